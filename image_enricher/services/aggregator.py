"""Fan-out/join orchestration of the analyzers into one metadata record."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import BinaryIO

from ..config import AppConfig
from ..models.base import Analyzer, AnalyzerResult, FailureKind, run_analyzer
from ..models.custom_vision import ClassifierVerdict, CustomClassifierAnalyzer
from ..models.exif import ExifExtractor, ExifReading
from ..models.vision_remote import OcrAnalyzer, OcrReading, SceneDescription, SceneTagAnalyzer
from ..utils.streams import StreamSnapshotter

logger = logging.getLogger(__name__)

SENTINEL = "."


def _flag(value: bool) -> str:
    return "true" if value else "false"


@dataclass(frozen=True, slots=True)
class ImageMetadata:
    """Merged metadata for one image; every field always holds a value."""

    ocr_text: str = SENTINEL
    has_high_voltage_sign: bool = False
    has_live_electrical_sign: bool = False
    has_live_wires_sign: bool = False
    tags: str = SENTINEL
    dominant_colours: str = SENTINEL
    accent_colour: str = SENTINEL
    is_on_fire: bool = False
    contains_transformer: bool = False
    contains_pole: bool = False
    exif_capture_date: str = SENTINEL
    exif_capture_time: str = SENTINEL
    exif_latitude: str = SENTINEL
    exif_longitude: str = SENTINEL

    @classmethod
    def from_readings(
        cls,
        ocr: OcrReading,
        scene: SceneDescription,
        classifier: ClassifierVerdict,
        exif: ExifReading,
    ) -> ImageMetadata:
        return cls(
            ocr_text=ocr.text or SENTINEL,
            has_high_voltage_sign=ocr.has_high_voltage_sign,
            has_live_electrical_sign=ocr.has_live_electrical_sign,
            has_live_wires_sign=ocr.has_live_wires_sign,
            tags=scene.tags or SENTINEL,
            dominant_colours=scene.dominant_colours or SENTINEL,
            accent_colour=scene.accent_colour or SENTINEL,
            is_on_fire=scene.is_on_fire,
            contains_transformer=classifier.contains_transformer,
            contains_pole=classifier.contains_pole,
            exif_capture_date=exif.capture_date or SENTINEL,
            exif_capture_time=exif.capture_time or SENTINEL,
            exif_latitude=exif.latitude or SENTINEL,
            exif_longitude=exif.longitude or SENTINEL,
        )

    def as_attributes(self) -> dict[str, str]:
        """Flat string map used for blob metadata attributes."""
        return {
            "ocrTxt": self.ocr_text,
            "hasHighVoltageSign": _flag(self.has_high_voltage_sign),
            "hasLiveElectricalSign": _flag(self.has_live_electrical_sign),
            "hasLiveWiresSign": _flag(self.has_live_wires_sign),
            "tags": self.tags,
            "dominantColours": self.dominant_colours,
            "accentColour": self.accent_colour,
            "isOnFire": _flag(self.is_on_fire),
            "containsTransformer": _flag(self.contains_transformer),
            "containsPole": _flag(self.contains_pole),
            "exifCaptureDate": self.exif_capture_date,
            "exifCaptureTime": self.exif_capture_time,
            "exifLatGPS": self.exif_latitude,
            "exifLongGPS": self.exif_longitude,
        }

    def as_document_fields(self) -> dict[str, str | bool]:
        """Fixed document schema written by the queue-triggered flow."""
        return {
            "OcrTxt": self.ocr_text,
            "HasHighVoltageSign": self.has_high_voltage_sign,
            "HasLiveElectricalSign": self.has_live_electrical_sign,
            "HasLiveWiresSign": self.has_live_wires_sign,
            "Tags": self.tags,
            "DominantColours": self.dominant_colours,
            "AccentColour": self.accent_colour,
            "IsOnFire": self.is_on_fire,
            "ContainsTransformer": self.contains_transformer,
            "ContainsPole": self.contains_pole,
            "ExifCaptureDate": self.exif_capture_date,
            "ExifCaptureTime": self.exif_capture_time,
            "ExifLatGPS": self.exif_latitude,
            "ExifLongGPS": self.exif_longitude,
        }


@dataclass(frozen=True, slots=True)
class AnalysisOutcome:
    """The four analyzer results before sentinel substitution."""

    ocr: AnalyzerResult[OcrReading]
    scene: AnalyzerResult[SceneDescription]
    classifier: AnalyzerResult[ClassifierVerdict]
    exif: AnalyzerResult[ExifReading]

    def failures(self) -> dict[str, FailureKind]:
        results = {
            "ocr": self.ocr,
            "scene": self.scene,
            "classifier": self.classifier,
            "exif": self.exif,
        }
        return {
            name: result.failure
            for name, result in results.items()
            if result.failure is not None
        }

    def metadata(self) -> ImageMetadata:
        return ImageMetadata.from_readings(
            self.ocr.value_or(OcrReading()),
            self.scene.value_or(SceneDescription()),
            self.classifier.value_or(ClassifierVerdict()),
            self.exif.value_or(ExifReading()),
        )


class MetadataAggregator:
    """Runs the remote analyzers concurrently and EXIF extraction inline.

    The only error that escapes is ``SourceReadError`` when the shared source
    cannot be read at all; every analyzer failure becomes a sentinel.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        ocr: Analyzer[OcrReading] | None = None,
        scene: Analyzer[SceneDescription] | None = None,
        classifier: Analyzer[ClassifierVerdict] | None = None,
        exif: Analyzer[ExifReading] | None = None,
    ) -> None:
        self.config = config or AppConfig()
        self.ocr = ocr or OcrAnalyzer(self.config)
        self.scene = scene or SceneTagAnalyzer(self.config)
        self.classifier = classifier or CustomClassifierAnalyzer(self.config)
        self.exif = exif or ExifExtractor()

    def aggregate(self, source: BinaryIO | StreamSnapshotter) -> ImageMetadata:
        """Analyze ``source`` and return the merged metadata record."""
        return self.analyze(source).metadata()

    def analyze(self, source: BinaryIO | StreamSnapshotter) -> AnalysisOutcome:
        if isinstance(source, StreamSnapshotter):
            snapshotter = source
        else:
            snapshotter = StreamSnapshotter(source)
        snapshotter.materialize()

        remote: dict[str, Analyzer] = {
            "ocr": self.ocr,
            "scene": self.scene,
            "classifier": self.classifier,
        }
        executor = ThreadPoolExecutor(max_workers=len(remote), thread_name_prefix="analyzer")
        try:
            futures: dict[str, Future] = {
                key: executor.submit(run_analyzer, analyzer, snapshotter)
                for key, analyzer in remote.items()
            }
            exif = run_analyzer(self.exif, snapshotter)
            done, _ = wait(futures.values(), timeout=self.config.pipeline_timeout)

            results: dict[str, AnalyzerResult] = {}
            for key, future in futures.items():
                if future in done:
                    results[key] = future.result()
                    continue
                future.cancel()
                logger.warning(
                    "Analyzer '%s' did not finish within %.1fs",
                    remote[key].name,
                    self.config.pipeline_timeout,
                )
                results[key] = AnalyzerResult.unavailable(
                    FailureKind.TIMEOUT,
                    f"No result after {self.config.pipeline_timeout}s",
                )
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        outcome = AnalysisOutcome(
            ocr=results["ocr"],
            scene=results["scene"],
            classifier=results["classifier"],
            exif=exif,
        )
        failures = outcome.failures()
        if failures:
            logger.info(
                "Metadata assembled with unavailable analyzers: %s",
                ", ".join(f"{name}={kind.value}" for name, kind in failures.items()),
            )
        return outcome
