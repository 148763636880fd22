"""Write blob properties to YAML or JSON sidecar files."""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml


class YamlSidecarWriter:
    """Store blob properties and attributes in a human-readable file next to the blob."""

    def __init__(self, *, extension: str = "yaml") -> None:
        self.extension = extension.lstrip(".") or "yaml"
        self._format = self.extension.lower()

    def path_for(self, blob_path: Path) -> Path:
        return blob_path.with_name(f"{blob_path.name}.{self.extension}")

    def write(self, blob_path: Path, properties: Mapping[str, Any]) -> Path:
        target_path = self.path_for(blob_path)
        target_path.parent.mkdir(parents=True, exist_ok=True)
        data = dict(properties)
        if self._format == "json":
            payload = json.dumps(data, indent=2, ensure_ascii=True) + "\n"
        else:
            payload = yaml.safe_dump(data, sort_keys=False, allow_unicode=False)
        target_path.write_text(payload, encoding="utf-8")
        return target_path

    def read(self, blob_path: Path) -> dict[str, Any]:
        target_path = self.path_for(blob_path)
        if not target_path.exists():
            return {}
        text = target_path.read_text(encoding="utf-8")
        if self._format == "json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text) or {}
        return dict(data)
