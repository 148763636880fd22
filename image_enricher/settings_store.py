"""Persistence helpers for user configuration."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from .config import AppConfig


class SettingsStore:
    """Load and save pipeline settings to a well-known path.

    Credentials are never required to live in the settings file: ``load``
    overlays the process environment on top of whatever the file holds.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or default_settings_path()

    @property
    def path(self) -> Path:
        return self._path

    def load(self, environ: Mapping[str, str] | None = None) -> AppConfig:
        if not self._path.exists():
            config = AppConfig()
        else:
            config = AppConfig.load(self._path)
        return config.with_environment(environ)

    def save(self, config: AppConfig) -> None:
        config.save(self._path)


def default_settings_path() -> Path:
    if os.name == "nt":
        base = Path(os.getenv("APPDATA", Path.home() / "AppData" / "Roaming"))
    else:
        base = Path(os.getenv("XDG_CONFIG_HOME", Path.home() / ".config"))
    return base.expanduser() / "image_enricher" / "settings.yaml"
