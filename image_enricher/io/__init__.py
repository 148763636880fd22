"""I/O helpers for reading images and persisting metadata."""

from .blob_store import LocalBlobContainer, StoredBlob, content_type_for
from .documents import DocumentNotFoundError, DocumentStore
from .yaml_sidecar import YamlSidecarWriter

__all__ = [
    "DocumentNotFoundError",
    "DocumentStore",
    "LocalBlobContainer",
    "StoredBlob",
    "YamlSidecarWriter",
    "content_type_for",
]
