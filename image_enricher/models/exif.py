"""Capture timestamp and GPS extraction from embedded EXIF data."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, BinaryIO

import piexif
from PIL import Image, UnidentifiedImageError

from .base import AnalyzerError, FailureKind

logger = logging.getLogger(__name__)

SENTINEL = "."
EXIF_DATETIME_FORMAT = "%Y:%m:%d %H:%M:%S"


@dataclass(frozen=True, slots=True)
class ExifReading:
    """Capture date/time and signed decimal-degree coordinates."""

    capture_date: str = SENTINEL
    capture_time: str = SENTINEL
    latitude: str = SENTINEL
    longitude: str = SENTINEL


def dms_to_decimal(degrees: float, minutes: float, seconds: float, reference: str) -> float:
    """Convert degrees/minutes/seconds to signed decimal degrees."""
    result = degrees + (minutes / 60) + (seconds / 3600)
    if reference in ("S", "W"):
        result *= -1
    return result


def _rational(value: Any) -> float:
    if isinstance(value, (tuple, list)) and len(value) == 2:
        numerator, denominator = value
        if denominator == 0:
            raise ValueError("Zero denominator in EXIF rational.")
        return numerator / denominator
    return float(value)


def _ascii(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("ascii", errors="ignore").strip("\x00 ")
    return str(value).strip("\x00 ")


def _coordinate(components: Any, reference: Any) -> float:
    if not isinstance(components, (tuple, list)) or len(components) != 3:
        raise ValueError(f"Unexpected GPS component layout: {components!r}")
    degrees, minutes, seconds = (_rational(item) for item in components)
    return dms_to_decimal(degrees, minutes, seconds, _ascii(reference).upper())


class ExifExtractor:
    """Reads the digitised timestamp and GPS position from an image snapshot.

    Runs synchronously; a missing EXIF segment is not an error and simply
    yields sentinel fields, while an unreadable image or corrupt tag raises
    ``AnalyzerError`` so the caller records the extractor as unavailable.
    """

    name = "exif"

    def analyze(self, snapshot: BinaryIO) -> ExifReading:
        try:
            with Image.open(snapshot) as image:
                exif_blob = image.info.get("exif")
        except (UnidentifiedImageError, OSError) as exc:
            raise AnalyzerError(
                f"Snapshot is not a readable image: {exc}", FailureKind.PARSE
            ) from exc

        if not exif_blob:
            logger.debug("No EXIF segment present")
            return ExifReading()

        try:
            exif_dict = piexif.load(exif_blob)
            return self._read_tags(exif_dict)
        except Exception as exc:
            raise AnalyzerError(f"Corrupt EXIF data: {exc}", FailureKind.PARSE) from exc

    def _read_tags(self, exif_dict: dict[str, Any]) -> ExifReading:
        capture_date = capture_time = SENTINEL
        digitized = (exif_dict.get("Exif") or {}).get(piexif.ExifIFD.DateTimeDigitized)
        if digitized:
            taken = datetime.strptime(_ascii(digitized), EXIF_DATETIME_FORMAT)
            capture_date = taken.strftime("%m%d%Y")
            capture_time = taken.strftime("%H%M%S")

        latitude = longitude = SENTINEL
        gps = exif_dict.get("GPS") or {}
        required = (
            piexif.GPSIFD.GPSLatitude,
            piexif.GPSIFD.GPSLongitude,
            piexif.GPSIFD.GPSLatitudeRef,
            piexif.GPSIFD.GPSLongitudeRef,
        )
        if all(gps.get(tag) for tag in required):
            latitude = str(
                _coordinate(gps[piexif.GPSIFD.GPSLatitude], gps[piexif.GPSIFD.GPSLatitudeRef])
            )
            longitude = str(
                _coordinate(gps[piexif.GPSIFD.GPSLongitude], gps[piexif.GPSIFD.GPSLongitudeRef])
            )

        return ExifReading(
            capture_date=capture_date,
            capture_time=capture_time,
            latitude=latitude,
            longitude=longitude,
        )
