"""Tests for the OCR and scene description analyzers."""

from __future__ import annotations

import io
from types import SimpleNamespace

import pytest
import requests
from image_enricher.config import AppConfig
from image_enricher.models.base import AnalyzerError, FailureKind
from image_enricher.models.vision_remote import (
    OcrAnalyzer,
    OcrReading,
    SceneTagAnalyzer,
    detect_fire,
    flatten_ocr_regions,
    reading_from_text,
)


class DummyResponse:
    def __init__(self, payload=None, *, status_code: int = 200, text: str = "") -> None:
        self._payload = payload
        self.status_code = status_code
        self.text = text

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class RecordingSession:
    def __init__(self, response) -> None:
        self.response = response
        self.calls: list[dict[str, object]] = []

    def post(self, url, **kwargs):
        self.calls.append({"url": url, **kwargs})
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def _config(**overrides) -> AppConfig:
    values = {"vision_key": "secret", "vision_endpoint": "https://vision.example.com"}
    values.update(overrides)
    return AppConfig(**values)


OCR_PAYLOAD = {
    "language": "en",
    "regions": [
        {
            "lines": [
                {"words": [{"text": "DANGER"}, {"text": "HIGH"}, {"text": "VOLTAGE"}]},
            ]
        }
    ],
}


def test_flatten_ocr_regions_joins_words_and_lines():
    payload = {
        "regions": [
            {"lines": [{"words": [{"text": "DANGER"}]}, {"words": [{"text": "LIVE"}]}]},
            {"lines": [{"words": [{"text": "WIRES"}, {"text": "AHEAD"}]}]},
        ]
    }
    assert flatten_ocr_regions(payload) == "DANGER ,LIVE ,WIRES AHEAD ,"
    assert flatten_ocr_regions(OCR_PAYLOAD) == "DANGER HIGH VOLTAGE ,"
    assert flatten_ocr_regions({}) == ""


def test_high_voltage_sign_flags():
    reading = reading_from_text("DANGER HIGH VOLTAGE ,")
    assert reading == OcrReading(
        text="DANGER HIGH VOLTAGE ,",
        has_high_voltage_sign=True,
        has_live_electrical_sign=False,
        has_live_wires_sign=False,
    )


def test_live_sign_flags_are_case_insensitive():
    electrical = reading_from_text("Danger ,Live Electrical ,")
    equipment = reading_from_text("danger live equipment")
    wires = reading_from_text("DANGER ,LIVE WIRES ,")

    assert electrical.has_live_electrical_sign
    assert equipment.has_live_electrical_sign
    assert wires.has_live_wires_sign
    assert not wires.has_live_electrical_sign
    assert not reading_from_text("live wires").has_live_wires_sign


def test_empty_text_becomes_sentinel():
    assert reading_from_text("") == OcrReading(text=".")


def test_detect_fire_only_inspects_top_five():
    assert detect_fire(["cat", "dog", "tree", "fire", "house", "flame"])
    assert not detect_fire(["a", "b", "c", "d", "e", "flame"])
    assert detect_fire(["flame"])
    assert not detect_fire([])
    assert detect_fire(["a", "b", "c", "d", "e", "flame"], window=6)


def test_ocr_analyzer_posts_snapshot_and_parses_text():
    session = RecordingSession(DummyResponse(OCR_PAYLOAD))
    analyzer = OcrAnalyzer(_config(), session=session)

    reading = analyzer.analyze(io.BytesIO(b"image-bytes"))

    assert reading.text == "DANGER HIGH VOLTAGE ,"
    assert reading.has_high_voltage_sign
    call = session.calls[0]
    assert call["url"] == "https://vision.example.com/vision/v3.2/ocr"
    assert call["params"] == {"language": "en", "detectOrientation": "true"}
    assert call["data"] == b"image-bytes"
    assert call["headers"]["Ocp-Apim-Subscription-Key"] == "secret"
    assert call["timeout"] == 30.0


def test_ocr_analyzer_without_text_returns_sentinel():
    session = RecordingSession(DummyResponse({"regions": []}))

    reading = OcrAnalyzer(_config(), session=session).analyze(io.BytesIO(b"x"))

    assert reading == OcrReading()


def test_ocr_analyzer_rejects_malformed_words():
    payload = {"regions": [{"lines": [{"words": [{"no-text": "x"}]}]}]}
    session = RecordingSession(DummyResponse(payload))

    with pytest.raises(AnalyzerError) as excinfo:
        OcrAnalyzer(_config(), session=session).analyze(io.BytesIO(b"x"))

    assert excinfo.value.kind is FailureKind.PARSE


def test_scene_analyzer_joins_tags_and_colours():
    payload = {
        "description": {"tags": ["outdoor", "smoke", "fire", "tree"], "captions": []},
        "color": {"dominantColors": ["Orange", "Black"], "accentColor": "C8641E"},
    }
    session = RecordingSession(DummyResponse(payload))

    scene = SceneTagAnalyzer(_config(), session=session).analyze(io.BytesIO(b"x"))

    assert scene.tags == "outdoor,smoke,fire,tree"
    assert scene.dominant_colours == "Orange,Black"
    assert scene.accent_colour == "#C8641E"
    assert scene.is_on_fire is True
    call = session.calls[0]
    assert call["url"].endswith("/vision/v3.2/analyze")
    assert call["params"] == {"visualFeatures": "Description,Color"}


def test_scene_analyzer_uses_configured_window():
    payload = {
        "description": {"tags": ["a", "b", "fire"]},
        "color": {"dominantColors": [], "accentColor": "000000"},
    }
    session = RecordingSession(DummyResponse(payload))

    scene = SceneTagAnalyzer(_config(fire_tag_window=2), session=session).analyze(
        io.BytesIO(b"x")
    )

    assert scene.is_on_fire is False
    assert scene.dominant_colours == "."


def test_scene_analyzer_malformed_payload_is_parse_failure():
    session = RecordingSession(DummyResponse({"description": {}}))

    with pytest.raises(AnalyzerError) as excinfo:
        SceneTagAnalyzer(_config(), session=session).analyze(io.BytesIO(b"x"))

    assert excinfo.value.kind is FailureKind.PARSE


def test_missing_subscription_key_is_config_failure():
    session = RecordingSession(DummyResponse(OCR_PAYLOAD))

    with pytest.raises(AnalyzerError) as excinfo:
        OcrAnalyzer(AppConfig(), session=session).analyze(io.BytesIO(b"x"))

    assert excinfo.value.kind is FailureKind.CONFIG
    assert session.calls == []


def test_timeout_is_reported_as_timeout():
    session = RecordingSession(requests.exceptions.Timeout("slow"))

    with pytest.raises(AnalyzerError) as excinfo:
        OcrAnalyzer(_config(remote_timeout=2.0), session=session).analyze(io.BytesIO(b"x"))

    assert excinfo.value.kind is FailureKind.TIMEOUT
    assert "2.0s" in str(excinfo.value)


def test_connection_error_is_remote_failure():
    session = RecordingSession(requests.exceptions.ConnectionError("refused"))

    with pytest.raises(AnalyzerError) as excinfo:
        SceneTagAnalyzer(_config(), session=session).analyze(io.BytesIO(b"x"))

    assert excinfo.value.kind is FailureKind.REMOTE


def test_http_error_is_remote_failure():
    session = RecordingSession(DummyResponse(None, status_code=401, text="denied"))

    with pytest.raises(AnalyzerError) as excinfo:
        OcrAnalyzer(_config(), session=session).analyze(io.BytesIO(b"x"))

    assert excinfo.value.kind is FailureKind.REMOTE
    assert "401" in str(excinfo.value)


def test_non_json_response_is_parse_failure():
    session = SimpleNamespace(
        post=lambda *args, **kwargs: DummyResponse(ValueError("not json"))
    )

    with pytest.raises(AnalyzerError) as excinfo:
        OcrAnalyzer(_config(), session=session).analyze(io.BytesIO(b"x"))

    assert excinfo.value.kind is FailureKind.PARSE


def test_ocr_analyzer_null_word_text_is_parse_failure():
    payload = {"regions": [{"lines": [{"words": [{"text": "DANGER"}, {"text": None}]}]}]}
    session = RecordingSession(DummyResponse(payload))

    with pytest.raises(AnalyzerError) as excinfo:
        OcrAnalyzer(_config(), session=session).analyze(io.BytesIO(b"x"))

    assert excinfo.value.kind is FailureKind.PARSE
    with pytest.raises(TypeError):
        flatten_ocr_regions(payload)


@pytest.mark.parametrize(
    "colour",
    [
        {"dominantColors": ["Black"], "accentColor": None},
        {"dominantColors": ["Black"], "accentColor": ""},
        {"dominantColors": [None], "accentColor": "000000"},
    ],
)
def test_scene_analyzer_null_colour_values_are_parse_failures(colour):
    payload = {"description": {"tags": ["outdoor"]}, "color": colour}
    session = RecordingSession(DummyResponse(payload))

    with pytest.raises(AnalyzerError) as excinfo:
        SceneTagAnalyzer(_config(), session=session).analyze(io.BytesIO(b"x"))

    assert excinfo.value.kind is FailureKind.PARSE


def test_scene_analyzer_null_tag_is_parse_failure():
    payload = {
        "description": {"tags": ["outdoor", None]},
        "color": {"dominantColors": [], "accentColor": "000000"},
    }
    session = RecordingSession(DummyResponse(payload))

    with pytest.raises(AnalyzerError) as excinfo:
        SceneTagAnalyzer(_config(), session=session).analyze(io.BytesIO(b"x"))

    assert excinfo.value.kind is FailureKind.PARSE


def test_each_request_uses_its_own_session(monkeypatch):
    sessions: list[SimpleNamespace] = []

    def make_session():
        session = SimpleNamespace(closed=False)
        session.post = lambda *args, **kwargs: DummyResponse(OCR_PAYLOAD)

        def close():
            session.closed = True

        session.close = close
        sessions.append(session)
        return session

    monkeypatch.setattr("image_enricher.models.vision_remote.requests.Session", make_session)
    analyzer = OcrAnalyzer(_config())

    analyzer.analyze(io.BytesIO(b"first"))
    analyzer.analyze(io.BytesIO(b"second"))

    assert len(sessions) == 2
    assert sessions[0] is not sessions[1]
    assert all(session.closed for session in sessions)


def test_session_is_closed_after_a_failed_request(monkeypatch):
    sessions: list[SimpleNamespace] = []

    def make_session():
        session = SimpleNamespace(closed=False)

        def post(*args, **kwargs):
            raise requests.exceptions.ConnectionError("refused")

        def close():
            session.closed = True

        session.post = post
        session.close = close
        sessions.append(session)
        return session

    monkeypatch.setattr("image_enricher.models.vision_remote.requests.Session", make_session)

    with pytest.raises(AnalyzerError):
        OcrAnalyzer(_config()).analyze(io.BytesIO(b"x"))

    assert [session.closed for session in sessions] == [True]
