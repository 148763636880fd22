"""Trained custom classifier for electrical infrastructure objects."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, BinaryIO

from .base import AnalyzerError, FailureKind
from .vision_remote import RemoteServiceClient

logger = logging.getLogger(__name__)

TRANSFORMER_LABEL = "Transformer"
POLE_LABEL = "Power Pole"


@dataclass(frozen=True, slots=True)
class ClassifierVerdict:
    """Presence flags for the trained object classes."""

    contains_transformer: bool = False
    contains_pole: bool = False


def verdict_from_predictions(
    predictions: Iterable[Mapping[str, Any]], *, threshold: float = 0.7
) -> ClassifierVerdict:
    """Flag each class when any of its predictions is strictly above ``threshold``."""
    transformer = False
    pole = False
    for prediction in predictions:
        label = prediction["tagName"]
        probability = float(prediction["probability"])
        if probability <= threshold:
            continue
        if label == TRANSFORMER_LABEL:
            transformer = True
        elif label == POLE_LABEL:
            pole = True
    return ClassifierVerdict(contains_transformer=transformer, contains_pole=pole)


class CustomClassifierAnalyzer(RemoteServiceClient):
    """Submits snapshots to the trained prediction endpoint."""

    name = "custom-classifier"
    api_version = "v3.0"

    def _headers(self) -> dict[str, str]:
        key = self._config.prediction_key
        if not key:
            raise AnalyzerError("No prediction key configured.", FailureKind.CONFIG)
        headers = super()._headers()
        headers["Prediction-Key"] = key
        return headers

    def _project_id(self) -> uuid.UUID:
        raw = self._config.project_id
        try:
            return uuid.UUID(str(raw).strip())
        except ValueError as exc:
            raise AnalyzerError(
                f"Project id {raw!r} is not a valid identifier.", FailureKind.CONFIG
            ) from exc

    def _endpoint(self, project_id: uuid.UUID) -> str:
        return (
            f"{self._config.prediction_endpoint}/customvision/{self.api_version}/Prediction/"
            f"{project_id}/classify/iterations/{self._config.prediction_iteration}/image"
        )

    def analyze(self, snapshot: BinaryIO) -> ClassifierVerdict:
        project_id = self._project_id()
        payload = self._post_json(self._endpoint(project_id), snapshot)
        try:
            return verdict_from_predictions(
                payload["predictions"], threshold=self._config.classifier_threshold
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise AnalyzerError(
                f"Malformed prediction response: {exc}", FailureKind.PARSE
            ) from exc
