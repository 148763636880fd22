"""Independent, rewindable snapshots over a shared image stream."""

from __future__ import annotations

import io
import logging
import shutil
from threading import Lock
from typing import BinaryIO

logger = logging.getLogger(__name__)


class SourceReadError(OSError):
    """Raised when the shared image source cannot be read."""


class StreamSnapshotter:
    """Hand out private copies of a shared, seekable byte stream.

    The source exposes a single read cursor, so the copy step runs under a
    lock: save the position, rewind, read everything, restore the position.
    The bytes are materialised once; every later snapshot is a fresh
    ``BytesIO`` over the same immutable buffer and never touches the source.
    """

    def __init__(self, source: BinaryIO) -> None:
        self._source = source
        self._lock = Lock()
        self._content: bytes | None = None

    def materialize(self) -> bytes:
        """Return the full content of the source, reading it on first use."""
        with self._lock:
            if self._content is None:
                self._content = self._copy_source()
            return self._content

    def snapshot(self) -> io.BytesIO:
        """Return a private stream positioned at the start of the content."""
        return io.BytesIO(self.materialize())

    def _copy_source(self) -> bytes:
        source = self._source
        try:
            position = source.tell()
            source.seek(0)
            buffer = io.BytesIO()
            try:
                shutil.copyfileobj(source, buffer)
            finally:
                source.seek(position)
        except (OSError, ValueError) as exc:
            raise SourceReadError(f"Unable to read image source: {exc}") from exc
        content = buffer.getvalue()
        logger.debug("Materialised %d bytes from image source", len(content))
        return content
