"""JSON document records updated by the queue-triggered flow."""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_DOCUMENT_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")


class DocumentNotFoundError(KeyError):
    """Raised when a document record does not exist."""


class DocumentStore:
    """One ``<document id>.json`` file per record inside ``root``."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def path_for(self, document_id: str) -> Path:
        if not _DOCUMENT_ID_PATTERN.match(document_id) or document_id in {".", ".."}:
            raise ValueError(f"Invalid document id {document_id!r}.")
        return self.root / f"{document_id}.json"

    def get(self, document_id: str) -> dict[str, Any]:
        path = self.path_for(document_id)
        if not path.exists():
            raise DocumentNotFoundError(document_id)
        return json.loads(path.read_text(encoding="utf-8"))

    def create(self, document_id: str, fields: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """Seed a new record that later queue messages can update."""
        document = {"id": document_id, **(fields or {})}
        self._write(document_id, document)
        return document

    def update(self, document_id: str, fields: Mapping[str, Any]) -> dict[str, Any]:
        """Merge ``fields`` into an existing document and persist it."""
        document = self.get(document_id)
        document.update(fields)
        self._write(document_id, document)
        logger.debug("Updated %d fields on document %s", len(fields), document_id)
        return document

    def _write(self, document_id: str, document: Mapping[str, Any]) -> None:
        path = self.path_for(document_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{document_id}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(document, handle, indent=2)
                handle.write("\n")
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
