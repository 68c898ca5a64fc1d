import subprocess
from typing import Dict, List, Optional

from zoom_reel.bin_config import resolve_ffmpeg, resolve_imagemagick

VERSION_FLAGS = {
    "imagemagick": "-version",
    "ffmpeg": "-version",
}


def check_bin(name: str, path: Optional[str]) -> str:
    if not path:
        return f"{name}: NOT FOUND"
    try:
        out = subprocess.check_output(
            [path, VERSION_FLAGS[name]], stderr=subprocess.STDOUT, text=True
        ).splitlines()[0]
    except (OSError, subprocess.CalledProcessError) as e:
        out = f"error invoking: {e}"
    return f"{name}: {path} -> {out}"


def report() -> List[str]:
    found: Dict[str, Optional[str]] = {
        "imagemagick": resolve_imagemagick(),
        "ffmpeg": resolve_ffmpeg(),
    }
    return [check_bin(name, path) for name, path in found.items()]


def main() -> None:
    for line in report():
        print(line)


if __name__ == "__main__":
    main()
