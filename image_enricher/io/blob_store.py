"""Directory-backed blob container used by the storage and queue flows."""

from __future__ import annotations

import logging
import mimetypes
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO

from .yaml_sidecar import YamlSidecarWriter

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(slots=True)
class StoredBlob:
    """A blob written to a container together with its properties."""

    name: str
    path: Path
    content_type: str
    metadata: dict[str, str] = field(default_factory=dict)
    sidecar_path: Path | None = None


def content_type_for(name: str) -> str:
    """Guess a MIME type from the lower-cased file extension of ``name``."""
    _, dot, extension = name.rpartition(".")
    if not dot or not extension:
        logger.info("No extension on blob %r; using %s", name, DEFAULT_CONTENT_TYPE)
        return DEFAULT_CONTENT_TYPE
    guessed, _ = mimetypes.guess_type(f"blob.{extension.lower()}")
    return guessed or DEFAULT_CONTENT_TYPE


class LocalBlobContainer:
    """Blobs are files below ``root``; properties live in a sidecar per blob."""

    def __init__(self, root: Path, *, sidecar_extension: str = "yaml") -> None:
        self.root = root
        self.sidecar_writer = YamlSidecarWriter(extension=sidecar_extension)

    def path_for(self, name: str) -> Path:
        root = self.root.resolve()
        target = (root / name).resolve()
        if target == root or root not in target.parents:
            raise ValueError(f"Blob name {name!r} escapes the container.")
        return target

    def open(self, name: str) -> BinaryIO:
        """Open a blob for reading; raises ``FileNotFoundError`` when absent."""
        return self.path_for(name).open("rb")

    def upload(
        self,
        name: str,
        data: bytes,
        *,
        metadata: Mapping[str, str],
        content_type: str | None = None,
    ) -> StoredBlob:
        """Write ``data`` under ``name`` and attach ``metadata`` as its attribute map."""
        path = self.path_for(name)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

        blob = StoredBlob(
            name=name,
            path=path,
            content_type=content_type or content_type_for(name),
            metadata=dict(metadata),
        )
        blob.sidecar_path = self.sidecar_writer.write(
            path,
            {"content_type": blob.content_type, "metadata": blob.metadata},
        )
        logger.debug("Stored blob %s (%d bytes) in %s", name, len(data), self.root)
        return blob

    def properties(self, name: str) -> dict[str, object]:
        return self.sidecar_writer.read(self.path_for(name))
