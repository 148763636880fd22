"""Entry points invoked by storage-event and queue-event triggers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, BinaryIO

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..io.blob_store import LocalBlobContainer, StoredBlob
from ..io.documents import DocumentStore
from ..utils.streams import StreamSnapshotter
from .aggregator import ImageMetadata, MetadataAggregator

logger = logging.getLogger(__name__)


class QueueRequest(BaseModel):
    """Reference pair delivered on the processing queue."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    document_id: str = Field(alias="DocumentId", min_length=1)
    blob_name: str = Field(alias="BlobName", min_length=1)

    @classmethod
    def from_message(cls, message: str | bytes | dict[str, Any]) -> QueueRequest:
        """Validate a raw queue message (JSON text or an already-decoded mapping)."""
        try:
            if isinstance(message, (str, bytes)):
                return cls.model_validate_json(message)
            return cls.model_validate(message)
        except ValidationError as exc:
            raise ValueError(f"Invalid queue message: {exc}") from exc


@dataclass(slots=True)
class BlobEventResult:
    """What the storage-event flow produced for one image."""

    metadata: ImageMetadata
    blob: StoredBlob


@dataclass(slots=True)
class QueueEventResult:
    """What the queue-event flow produced for one request."""

    request: QueueRequest
    metadata: ImageMetadata
    document: dict[str, Any]


def process_blob_event(
    source: BinaryIO,
    name: str,
    output: LocalBlobContainer,
    aggregator: MetadataAggregator,
) -> BlobEventResult:
    """Enrich a newly uploaded image and copy it, with attributes, to ``output``."""
    logger.info("Processing uploaded blob %s", name)
    snapshotter = StreamSnapshotter(source)
    metadata = aggregator.aggregate(snapshotter)
    blob = output.upload(
        name,
        snapshotter.materialize(),
        metadata=metadata.as_attributes(),
    )
    return BlobEventResult(metadata=metadata, blob=blob)


def process_queue_item(
    message: QueueRequest | str | bytes | dict[str, Any],
    images: LocalBlobContainer,
    documents: DocumentStore,
    aggregator: MetadataAggregator,
) -> QueueEventResult:
    """Enrich the referenced image and write the metadata onto its document."""
    if isinstance(message, QueueRequest):
        request = message
    else:
        request = QueueRequest.from_message(message)
    logger.info(
        "Processing queued blob %s for document %s", request.blob_name, request.document_id
    )
    # Fail before any remote call when the target document is missing.
    documents.get(request.document_id)
    with images.open(request.blob_name) as stream:
        metadata = aggregator.aggregate(stream)
    document = documents.update(request.document_id, metadata.as_document_fields())
    return QueueEventResult(request=request, metadata=metadata, document=document)
