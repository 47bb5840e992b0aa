from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from platformdirs import user_data_dir

from .models import DEFAULT_BGM_VOLUME
from .persistence.store import STORAGE_PREFIX

logger = logging.getLogger(__name__)

APP_NAME = "bingo-session"

# Environment variable overrides (useful for tests and kiosks)
ENV_DATA_DIR = "BINGO_DATA_DIR"
ENV_LOG_LEVEL = "BINGO_LOG_LEVEL"


def _default_data_dir() -> Path:
    return Path(user_data_dir(appname=APP_NAME, appauthor=False))


@dataclass(frozen=True)
class Settings:
    """
    Runtime settings with sensible defaults.

    You can override them with a YAML file holding any of the keys:
      - data_dir: directory that holds the storage file
      - storage_file: file name of the key/value store (default storage.json)
      - storage_prefix: namespace prefix of the versioned keys (default "bingo.v1.")
      - default_bgm_volume: float in [0, 1] used when no preference is stored
      - log_level: logging level name
    and then with the BINGO_DATA_DIR / BINGO_LOG_LEVEL environment variables.
    """

    data_dir: Path = field(default_factory=_default_data_dir)
    storage_file: str = "storage.json"
    storage_prefix: str = STORAGE_PREFIX
    default_bgm_volume: float = DEFAULT_BGM_VOLUME
    log_level: str = "INFO"

    @property
    def storage_path(self) -> Path:
        return self.data_dir / self.storage_file


def _coerce(raw: Dict[str, Any]) -> Dict[str, Any]:
    known = {f.name for f in fields(Settings)}
    values: Dict[str, Any] = {}
    for key, value in raw.items():
        if key not in known:
            logger.warning("Ignoring unknown setting '%s'", key)
            continue
        values[key] = value
    if "data_dir" in values:
        values["data_dir"] = Path(values["data_dir"]).expanduser()
    if "default_bgm_volume" in values:
        values["default_bgm_volume"] = max(0.0, min(1.0, float(values["default_bgm_volume"])))
    for key in ("storage_file", "storage_prefix"):
        if key in values:
            values[key] = str(values[key])
    if "log_level" in values:
        values["log_level"] = str(values["log_level"]).upper()
    return values


def load_settings(path: Optional[Union[str, Path]] = None) -> Settings:
    """Build settings from defaults, an optional YAML file, then the environment."""
    settings = Settings()
    if path is not None:
        config_path = Path(path)
        with config_path.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"Config file {config_path} must hold a mapping")
        settings = replace(settings, **_coerce(raw))
        logger.info("Loaded settings from %s", config_path)

    overrides: Dict[str, Any] = {}
    data_dir = os.getenv(ENV_DATA_DIR)
    if data_dir:
        overrides["data_dir"] = data_dir
    log_level = os.getenv(ENV_LOG_LEVEL)
    if log_level:
        overrides["log_level"] = log_level
    if overrides:
        settings = replace(settings, **_coerce(overrides))
    return settings
