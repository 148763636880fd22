"""Text-recognition and scene description analyzers backed by a remote vision service."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, BinaryIO

import requests
from requests import Response, Session

from ..config import AppConfig
from .base import AnalyzerError, FailureKind

logger = logging.getLogger(__name__)

SENTINEL = "."
FIRE_TAGS = frozenset({"fire", "flame"})


@dataclass(frozen=True, slots=True)
class OcrReading:
    """Flattened recognised text plus hazard-sign flags derived from it."""

    text: str = SENTINEL
    has_high_voltage_sign: bool = False
    has_live_electrical_sign: bool = False
    has_live_wires_sign: bool = False


@dataclass(frozen=True, slots=True)
class SceneDescription:
    """Description tags and colour analysis for an image."""

    tags: str = SENTINEL
    dominant_colours: str = SENTINEL
    accent_colour: str = SENTINEL
    is_on_fire: bool = False


def _text(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"Expected a string, got {value!r}")
    return value


def flatten_ocr_regions(payload: Mapping[str, Any]) -> str:
    """Join region/line/word text: words end with a space, lines end with a comma."""
    parts: list[str] = []
    for region in payload.get("regions") or []:
        for line in region.get("lines") or []:
            for word in line.get("words") or []:
                parts.append(_text(word["text"]))
                parts.append(" ")
            parts.append(",")
    return "".join(parts)


def reading_from_text(text: str) -> OcrReading:
    """Derive hazard-sign flags from flattened OCR text."""
    if not text:
        return OcrReading()
    lowered = text.lower()
    danger = "danger" in lowered
    live = "live" in lowered
    return OcrReading(
        text=text,
        has_high_voltage_sign=danger and "high" in lowered and "voltage" in lowered,
        has_live_electrical_sign=danger
        and live
        and ("electrical" in lowered or "equipment" in lowered),
        has_live_wires_sign=danger and live and "wires" in lowered,
    )


def detect_fire(tags: Iterable[str], *, window: int = 5) -> bool:
    """Return True when fire or flame appears among the first ``window`` ranked tags."""
    for index, tag in enumerate(tags):
        if index >= window:
            break
        if tag in FIRE_TAGS:
            return True
    return False


class RemoteServiceClient:
    """HTTP plumbing shared by analyzers that call a remote service.

    Without an injected ``session`` every request opens and closes its own
    ``requests.Session``: a worker abandoned after a join timeout may still be
    using its session while the next image is analyzed.
    """

    name = "remote"

    def __init__(self, config: AppConfig | None = None, *, session: Session | None = None) -> None:
        self._config = config or AppConfig()
        self._session = session

    def _headers(self) -> dict[str, str]:
        return {"Content-Type": "application/octet-stream"}

    def _session_post(
        self,
        url: str,
        body: bytes,
        *,
        params: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> Response:
        effective_timeout = timeout or self._config.remote_timeout
        session = self._session if self._session is not None else requests.Session()
        try:
            response = session.post(
                url,
                params=params,
                data=body,
                headers=self._headers(),
                timeout=effective_timeout,
            )
        except requests.exceptions.Timeout as exc:
            raise AnalyzerError(
                f"{self.name} request timed out after {effective_timeout}s.",
                FailureKind.TIMEOUT,
            ) from exc
        except requests.exceptions.RequestException as exc:
            raise AnalyzerError(f"Failed to contact {self.name} service: {exc}") from exc
        finally:
            if session is not self._session:
                session.close()
        if response.status_code >= 400:
            raise AnalyzerError(
                f"{self.name} service returned HTTP {response.status_code}: {response.text}"
            )
        return response

    def _post_json(
        self,
        url: str,
        snapshot: BinaryIO,
        *,
        params: Mapping[str, str] | None = None,
    ) -> dict[str, Any]:
        response = self._session_post(url, snapshot.read(), params=params)
        try:
            payload = response.json()
        except ValueError as exc:
            raise AnalyzerError(
                f"{self.name} service returned non-JSON output.", FailureKind.PARSE
            ) from exc
        if not isinstance(payload, dict):
            raise AnalyzerError(
                f"{self.name} service returned an unexpected payload.", FailureKind.PARSE
            )
        return payload


class VisionServiceClient(RemoteServiceClient):
    """Client for the vision service authenticated by a subscription key."""

    api_version = "v3.2"

    def _headers(self) -> dict[str, str]:
        key = self._config.vision_key
        if not key:
            raise AnalyzerError("No vision subscription key configured.", FailureKind.CONFIG)
        headers = super()._headers()
        headers["Ocp-Apim-Subscription-Key"] = key
        return headers

    def _endpoint(self, operation: str) -> str:
        return f"{self._config.vision_endpoint}/vision/{self.api_version}/{operation}"


class OcrAnalyzer(VisionServiceClient):
    """Recognises printed text and flags electrical hazard signage."""

    name = "ocr"

    def analyze(self, snapshot: BinaryIO) -> OcrReading:
        payload = self._post_json(
            self._endpoint("ocr"),
            snapshot,
            params={"language": self._config.ocr_language, "detectOrientation": "true"},
        )
        try:
            text = flatten_ocr_regions(payload)
        except (AttributeError, KeyError, TypeError) as exc:
            raise AnalyzerError(f"Malformed OCR response: {exc}", FailureKind.PARSE) from exc
        return reading_from_text(text)


class SceneTagAnalyzer(VisionServiceClient):
    """Describes the scene, its colours, and whether it appears to be on fire."""

    name = "scene-tags"

    def analyze(self, snapshot: BinaryIO) -> SceneDescription:
        payload = self._post_json(
            self._endpoint("analyze"),
            snapshot,
            params={"visualFeatures": "Description,Color"},
        )
        try:
            tags = [_text(tag) for tag in payload["description"]["tags"]]
            colour = payload["color"]
            dominant = [_text(item) for item in colour["dominantColors"]]
            accent = _text(colour["accentColor"])
            if not accent:
                raise TypeError("Empty accent colour")
        except (KeyError, TypeError) as exc:
            raise AnalyzerError(
                f"Malformed description response: {exc}", FailureKind.PARSE
            ) from exc

        return SceneDescription(
            tags=",".join(tags) or SENTINEL,
            dominant_colours=",".join(dominant) or SENTINEL,
            accent_colour=f"#{accent}",
            is_on_fire=detect_fire(tags, window=self._config.fire_tag_window),
        )
