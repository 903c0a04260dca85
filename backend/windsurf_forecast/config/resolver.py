"""Merge CLI overrides, the persisted file and built-in defaults.

Each field resolves override -> file -> default and remembers which source
won. Validation runs here in a fixed order after the merge, and
``ResolvedConfig`` re-checks the range rules on construction, so a config
that made it out of :func:`resolve` is valid.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple, TypeVar

from windsurf_forecast.domain.errors import MissingFieldError, UnknownBackendError
from windsurf_forecast.hub import backend_registry
from windsurf_forecast.hub.backend_registry import BackendRegistry

from .loader import CONFIG_ENV_VAR
from .timezone import parse_timezone
from .types import (
    DAYS_AHEAD_RANGE,
    FIRST_DAY_OFFSET_RANGE,
    LAT_RANGE,
    LNG_RANGE,
    DefaultSource,
    FileSource,
    OverrideSource,
    Provenance,
    ResolvedConfig,
    check_horizon,
    check_range,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def pick(override: Optional[T], file_value: Optional[T], default: T) -> Tuple[T, Provenance]:
    if override is not None:
        return override, Provenance.OVERRIDE
    if file_value is not None:
        return file_value, Provenance.FILE
    return default, Provenance.DEFAULT


def resolve(
    cli: OverrideSource,
    file: FileSource,
    *,
    defaults: Optional[DefaultSource] = None,
    registry: Optional[BackendRegistry] = None,
) -> ResolvedConfig:
    defaults = defaults or DefaultSource()
    registry = registry or backend_registry.initialize()
    provenance: Dict[str, Provenance] = {}

    tz_name, provenance["timezone"] = pick(cli.timezone, file.timezone, defaults.timezone)
    zone = parse_timezone(tz_name, provenance["timezone"])
    if provenance["timezone"] is Provenance.DEFAULT:
        logger.warning(
            "No timezone configured. Using %s as default. Set one with --timezone "
            "(e.g. --timezone \"America/New_York\") or in the config file.",
            tz_name,
        )

    lat, provenance["lat"] = _coordinate("lat", "Latitude", cli.lat, file.lat)
    lng, provenance["lng"] = _coordinate("lng", "Longitude", cli.lng, file.lng)
    check_range("lat", lat, provenance["lat"], LAT_RANGE, "Latitude", unit=" degrees")
    check_range("lng", lng, provenance["lng"], LNG_RANGE, "Longitude", unit=" degrees")

    days_ahead, provenance["days_ahead"] = pick(cli.days_ahead, None, defaults.days_ahead)
    first_day_offset, provenance["first_day_offset"] = pick(
        cli.first_day_offset, None, defaults.first_day_offset
    )
    check_range("days_ahead", days_ahead, provenance["days_ahead"], DAYS_AHEAD_RANGE, "days-ahead")
    check_range(
        "first_day_offset",
        first_day_offset,
        provenance["first_day_offset"],
        FIRST_DAY_OFFSET_RANGE,
        "first-day-offset",
    )
    check_horizon(days_ahead, first_day_offset, provenance["days_ahead"])

    provider, provenance["provider"] = pick(cli.provider, file.provider, defaults.provider)
    try:
        registry.validate(provider)
    except UnknownBackendError as exc:
        raise UnknownBackendError(provider, exc.available, provenance["provider"]) from exc

    return ResolvedConfig(
        provider=provider,
        timezone=zone,
        lat=float(lat),
        lng=float(lng),
        days_ahead=int(days_ahead),
        first_day_offset=int(first_day_offset),
        provenance=provenance,
    )


def _coordinate(key: str, label: str, override: Optional[float], file_value: Optional[float]):
    if override is not None:
        return override, Provenance.OVERRIDE
    if file_value is not None:
        return file_value, Provenance.FILE
    raise MissingFieldError(
        key,
        label=label,
        rule=f"Provide via --{key} argument or configure in config file.",
        suggestion=f"Pass --{key}, or set 'general.{key}' in the config file "
        f"(location overridable with ${CONFIG_ENV_VAR}).",
    )
