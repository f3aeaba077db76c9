from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "KEYTRAINER_CONFIG"
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def default_home() -> Path:
    return Path.home() / ".keytrainer"


class ConfigError(ValueError):
    """A configuration value has the wrong type or is out of range."""


@dataclass
class Settings:
    patterns_file: Optional[Path] = None
    stats_file: Path = field(default_factory=lambda: default_home() / "stats.json")
    advance_delay_ms: int = 400
    log_level: str = "INFO"


def _path_value(key: str, value: Any) -> Path:
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"{key}: expected a path string, got {value!r}")
    return Path(value.strip()).expanduser()


def _apply(settings: Settings, key: str, value: Any) -> None:
    if key == "patterns_file":
        settings.patterns_file = _path_value(key, value)
    elif key == "stats_file":
        settings.stats_file = _path_value(key, value)
    elif key == "advance_delay_ms":
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ConfigError(f"{key}: expected a non-negative integer, got {value!r}")
        settings.advance_delay_ms = value
    elif key == "log_level":
        level = str(value).upper()
        if level not in _LOG_LEVELS:
            raise ConfigError(f"{key}: expected one of {', '.join(_LOG_LEVELS)}, got {value!r}")
        settings.log_level = level
    else:
        raise ConfigError(f"unknown setting {key!r}")


def load_settings(path: Optional[Path] = None) -> Settings:
    """Read settings from YAML; any problem leaves the affected values at their defaults.

    Lookup order: ``path``, then ``$KEYTRAINER_CONFIG``, then
    ``~/.keytrainer/config.yaml``.
    """
    settings = Settings()
    if path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        path = Path(env_path) if env_path else default_home() / "config.yaml"
    path = Path(path).expanduser()
    if not path.exists():
        return settings

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (yaml.YAMLError, OSError, UnicodeDecodeError) as e:
        logger.warning("Could not read config from %s: %s", path, e)
        return settings
    if raw is None:
        return settings
    if not isinstance(raw, dict):
        logger.warning("%s: expected a mapping of settings, ignoring", path.name)
        return settings

    values: Dict[str, Any] = raw
    for key, value in values.items():
        try:
            _apply(settings, str(key), value)
        except ConfigError as e:
            logger.warning("%s: %s", path.name, e)
    return settings
