"""Utility helpers for the image enricher package."""

from .paths import is_image_file, resolve_image_paths
from .streams import SourceReadError, StreamSnapshotter

__all__ = ["SourceReadError", "StreamSnapshotter", "is_image_file", "resolve_image_paths"]
