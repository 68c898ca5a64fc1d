"""Exception types raised by zoom_reel."""
from __future__ import annotations


class ZoomReelError(Exception):
    """Base class for all zoom_reel failures."""


class ConfigError(ZoomReelError):
    """Invalid rate or size configuration, detected before frame work."""


class ExternalToolError(ZoomReelError):
    """An external binary is missing or exited with a non-zero status."""

    def __init__(self, message: str, cmd=None, stderr: str | None = None):
        super().__init__(message)
        self.cmd = cmd
        self.stderr = stderr


class IntegrityError(ZoomReelError):
    """The importer would overwrite an already numbered image."""
