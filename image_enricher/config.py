"""Application-wide configuration models and persistence helpers."""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

# Environment variable names understood by ``AppConfig.from_environment``.
ENV_VISION_KEY = "visionSubscriptionKey"
ENV_PREDICTION_KEY = "predictionKey"
ENV_PROJECT_ID = "projectId"
ENV_VISION_ENDPOINT = "VISION_ENDPOINT"
ENV_PREDICTION_ENDPOINT = "PREDICTION_ENDPOINT"

_ENVIRONMENT_FIELDS = {
    ENV_VISION_KEY: "vision_key",
    ENV_PREDICTION_KEY: "prediction_key",
    ENV_PROJECT_ID: "project_id",
    ENV_VISION_ENDPOINT: "vision_endpoint",
    ENV_PREDICTION_ENDPOINT: "prediction_endpoint",
}


class AppConfig(BaseModel):
    """Validates and stores runtime settings for the enrichment pipeline."""

    vision_endpoint: str = Field(
        default="https://westus.api.cognitive.microsoft.com",
        description="Base URL of the text-recognition and description/colour service.",
    )
    vision_key: str | None = Field(
        default=None,
        description="Subscription key for the vision service.",
    )
    prediction_endpoint: str = Field(
        default="https://southcentralus.api.cognitive.microsoft.com",
        description="Base URL of the trained custom classifier service.",
    )
    prediction_key: str | None = Field(
        default=None,
        description="Prediction key for the custom classifier service.",
    )
    project_id: str | None = Field(
        default=None,
        description="Identifier of the trained classifier project (expected to be a UUID).",
    )
    prediction_iteration: str = Field(
        default="latest",
        description="Published iteration name of the trained classifier.",
    )
    ocr_language: str = Field(
        default="en",
        description="Language hint passed to the text-recognition service.",
    )
    remote_timeout: float = Field(
        default=30.0,
        ge=1.0,
        le=600.0,
        description="Timeout (seconds) for each HTTP call to a remote analyzer.",
    )
    pipeline_timeout: float = Field(
        default=60.0,
        ge=1.0,
        le=1800.0,
        description="Upper bound (seconds) on waiting for all concurrent analyzers.",
    )
    classifier_threshold: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Probability a prediction must exceed to count as present.",
    )
    fire_tag_window: int = Field(
        default=5,
        ge=1,
        le=100,
        description="Number of top-ranked description tags inspected for fire/flame.",
    )
    sidecar_extension: str = Field(
        default="yaml",
        description="File extension used for attribute sidecars in the output container.",
    )
    output_directory: Path | None = Field(
        default=None,
        description="Output container directory for the storage-event flow.",
    )
    documents_directory: Path | None = Field(
        default=None,
        description="Directory holding document records for the queue-event flow.",
    )

    @model_validator(mode="after")
    def _normalise_endpoints(self) -> AppConfig:
        self.vision_endpoint = _normalise_url(self.vision_endpoint, "Vision endpoint")
        self.prediction_endpoint = _normalise_url(self.prediction_endpoint, "Prediction endpoint")
        return self

    @model_validator(mode="after")
    def _validate_sidecar_extension(self) -> AppConfig:
        extension = self.sidecar_extension.strip().lstrip(".")
        if not extension:
            raise ValueError("A sidecar extension must be configured.")
        self.sidecar_extension = extension
        return self

    @model_validator(mode="after")
    def _validate_timeouts(self) -> AppConfig:
        if self.pipeline_timeout < self.remote_timeout:
            raise ValueError("pipeline_timeout must not be shorter than remote_timeout.")
        return self

    def as_dict(self) -> dict[str, Any]:
        """Serialize the configuration to primitive Python types."""
        payload = self.model_dump(mode="json")
        for key in ("output_directory", "documents_directory"):
            value = getattr(self, key)
            if value is not None:
                payload[key] = str(value)
        return payload

    def with_environment(self, environ: Mapping[str, str] | None = None) -> AppConfig:
        """Return a copy with credentials and endpoints overridden from the environment."""
        source = os.environ if environ is None else environ
        updates: dict[str, Any] = {}
        for env_name, field_name in _ENVIRONMENT_FIELDS.items():
            value = source.get(env_name)
            if value is not None and value.strip():
                updates[field_name] = value.strip()
        if not updates:
            return self
        return type(self).model_validate({**self.model_dump(), **updates})

    @classmethod
    def from_environment(cls, environ: Mapping[str, str] | None = None) -> AppConfig:
        """Build a configuration from defaults plus the process environment."""
        return cls().with_environment(environ)

    @classmethod
    def load(cls, path: Path) -> AppConfig:
        """Load configuration from a YAML or JSON file."""
        data = _read_config_file(path)
        try:
            return cls.model_validate(data)
        except ValidationError as exc:  # pragma: no cover - pass through details
            raise ValueError(f"Invalid configuration file at {path}: {exc}") from exc

    def save(self, path: Path) -> None:
        """Persist configuration to a YAML file."""
        _write_config_file(path, self.as_dict())


def _normalise_url(value: str, label: str) -> str:
    base = value.strip()
    if not base:
        raise ValueError(f"{label} must not be empty.")
    if "://" not in base:
        raise ValueError(f"{label} must include a scheme such as https://example.com.")
    return base.rstrip("/")


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)

    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in {".yaml", ".yml"}:
        return yaml.safe_load(text) or {}
    return json.loads(text)


def _write_config_file(path: Path, data: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() in {".yaml", ".yml"}:
        yaml_text = yaml.safe_dump(
            data,
            allow_unicode=False,
            sort_keys=False,
        )
        path.write_text(yaml_text, encoding="utf-8")
    else:
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
