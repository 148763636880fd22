"""Path helpers used by the command line batch mode."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator

IMAGE_EXTENSIONS = {
    ".jpg",
    ".jpeg",
    ".png",
    ".bmp",
    ".gif",
    ".tif",
    ".tiff",
}


def is_image_file(path: Path, *, extensions: Iterable[str] | None = None) -> bool:
    """Return True if the given path has a supported image extension."""
    exts = {ext.lower() for ext in (extensions or IMAGE_EXTENSIONS)}
    return path.suffix.lower() in exts


def resolve_image_paths(start: Path, *, recursive: bool = False) -> list[Path]:
    """Collect image paths below ``start``, or ``start`` itself when it is a file.

    Hidden entries (leading dot) are skipped when walking a directory.
    """
    start = start.expanduser()
    if not start.exists():
        raise FileNotFoundError(start)

    if start.is_file():
        return [start] if is_image_file(start) else []

    walker: Iterator[Path]
    if recursive:
        walker = (path for path in start.rglob("*") if path.is_file())
    else:
        walker = (path for path in start.iterdir() if path.is_file())

    collected: list[Path] = []
    for path in walker:
        if _is_hidden(path.relative_to(start)):
            continue
        if is_image_file(path):
            collected.append(path)

    collected.sort()
    return collected


def _is_hidden(relative: Path) -> bool:
    return any(part.startswith(".") for part in relative.parts)
