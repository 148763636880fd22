"""Top-level package for the Image Enricher library."""

from .config import AppConfig
from .services.aggregator import ImageMetadata, MetadataAggregator
from .settings_store import SettingsStore

__all__ = ["AppConfig", "ImageMetadata", "MetadataAggregator", "SettingsStore"]
