"""Analyzers that each derive one portion of an image's metadata."""

from .base import Analyzer, AnalyzerError, AnalyzerResult, FailureKind, run_analyzer
from .custom_vision import ClassifierVerdict, CustomClassifierAnalyzer
from .exif import ExifExtractor, ExifReading
from .vision_remote import OcrAnalyzer, OcrReading, SceneDescription, SceneTagAnalyzer

__all__ = [
    "Analyzer",
    "AnalyzerError",
    "AnalyzerResult",
    "ClassifierVerdict",
    "CustomClassifierAnalyzer",
    "ExifExtractor",
    "ExifReading",
    "FailureKind",
    "OcrAnalyzer",
    "OcrReading",
    "SceneDescription",
    "SceneTagAnalyzer",
    "run_analyzer",
]
