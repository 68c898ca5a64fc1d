"""Zoom reel package."""

__all__ = ["make_video", "import_images"]


def make_video(*args, **kwargs):
    from .builder import make_video as _make_video

    return _make_video(*args, **kwargs)


def import_images(*args, **kwargs):
    from .importer import import_images as _import_images

    return _import_images(*args, **kwargs)
