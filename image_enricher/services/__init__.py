"""Service layer for running the analyzers and persisting their output."""

from .aggregator import AnalysisOutcome, ImageMetadata, MetadataAggregator
from .triggers import QueueRequest, process_blob_event, process_queue_item

__all__ = [
    "AnalysisOutcome",
    "ImageMetadata",
    "MetadataAggregator",
    "QueueRequest",
    "process_blob_event",
    "process_queue_item",
]
