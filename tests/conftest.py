"""Shared fixtures for the test suite."""

from __future__ import annotations

import io
from collections.abc import Callable

import piexif
import pytest
from PIL import Image


def _rational(value: int) -> tuple[int, int]:
    return (value, 1)


@pytest.fixture()
def jpeg_bytes() -> Callable[..., bytes]:
    """Build a small JPEG, optionally carrying a digitised timestamp and GPS tags."""

    def factory(
        *,
        digitized: str | None = None,
        latitude: tuple[int, int, int] | None = None,
        latitude_ref: str | None = None,
        longitude: tuple[int, int, int] | None = None,
        longitude_ref: str | None = None,
        with_exif: bool = True,
    ) -> bytes:
        image = Image.new("RGB", (8, 8), color=(200, 60, 20))
        buffer = io.BytesIO()
        if not with_exif:
            image.save(buffer, format="JPEG")
            return buffer.getvalue()

        exif_dict = {"0th": {}, "Exif": {}, "GPS": {}, "1st": {}, "Interop": {}, "thumbnail": None}
        if digitized is not None:
            exif_dict["Exif"][piexif.ExifIFD.DateTimeDigitized] = digitized.encode("ascii")
        if latitude is not None:
            exif_dict["GPS"][piexif.GPSIFD.GPSLatitude] = tuple(_rational(v) for v in latitude)
        if latitude_ref is not None:
            exif_dict["GPS"][piexif.GPSIFD.GPSLatitudeRef] = latitude_ref.encode("ascii")
        if longitude is not None:
            exif_dict["GPS"][piexif.GPSIFD.GPSLongitude] = tuple(_rational(v) for v in longitude)
        if longitude_ref is not None:
            exif_dict["GPS"][piexif.GPSIFD.GPSLongitudeRef] = longitude_ref.encode("ascii")
        image.save(buffer, format="JPEG", exif=piexif.dump(exif_dict))
        return buffer.getvalue()

    return factory
