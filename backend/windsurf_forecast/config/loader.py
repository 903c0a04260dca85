"""Persisted configuration file.

Layout (TOML, same file earlier releases wrote)::

    [general]
    timezone = "Europe/London"
    default_provider = "stormglass"
    lat = 32.486722
    lng = 34.888722

Every key is optional. Reading never writes; :func:`persist` is the only
function that touches the file and is called only on an explicit save.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Optional, Union

import tomli_w

from windsurf_forecast.domain.errors import ConfigFileError

from .types import FileSource, ResolvedConfig

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "WINDSURF_FORECAST_CONFIG"
DEFAULT_FILENAME = ".windsurf-config.toml"

PathLike = Union[str, Path]


def default_config_path() -> Path:
    override = os.getenv(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    try:
        return Path.home() / DEFAULT_FILENAME
    except RuntimeError:
        return Path(DEFAULT_FILENAME.lstrip("."))


def load_file_source(path: Optional[PathLike] = None) -> FileSource:
    """Read the persisted file; a missing file is an empty source, not an error."""
    config_path = Path(path) if path is not None else default_config_path()
    if not config_path.exists():
        logger.debug("No config file at %s", config_path)
        return FileSource()
    try:
        payload = tomllib.loads(config_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigFileError(config_path, f"cannot read file ({exc})") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigFileError(config_path, str(exc)) from exc
    general = payload.get("general", {})
    if not isinstance(general, dict):
        raise ConfigFileError(config_path, "'general' must be a table")
    return FileSource(
        provider=_optional_str(general, "default_provider", config_path),
        timezone=_optional_str(general, "timezone", config_path),
        lat=_optional_float(general, "lat", config_path),
        lng=_optional_float(general, "lng", config_path),
    )


def persist(resolved: ResolvedConfig, path: Optional[PathLike] = None) -> Path:
    """Write ``resolved`` back to the config file. Only call on an explicit save request."""
    config_path = Path(path) if path is not None else default_config_path()
    payload = {
        "general": {
            "timezone": resolved.timezone.key,
            "default_provider": resolved.provider,
            "lat": resolved.lat,
            "lng": resolved.lng,
        }
    }
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(tomli_w.dumps(payload), encoding="utf-8")
    except OSError as exc:
        raise ConfigFileError(config_path, str(exc), action="write") from exc
    logger.info("Configuration saved to %s", config_path)
    return config_path


def _optional_str(section: dict, key: str, path: Path) -> Optional[str]:
    value = section.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigFileError(path, f"'general.{key}' must be a string, got {value!r}")
    return value


def _optional_float(section: dict, key: str, path: Path) -> Optional[float]:
    value = section.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigFileError(path, f"'general.{key}' must be a number, got {value!r}")
    return float(value)
