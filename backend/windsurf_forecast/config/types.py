from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple
from zoneinfo import ZoneInfo

from windsurf_forecast.domain.errors import CrossFieldError, OutOfRangeError

LAT_RANGE = (-90.0, 90.0)
LNG_RANGE = (-180.0, 180.0)
DAYS_AHEAD_RANGE = (1, 7)
FIRST_DAY_OFFSET_RANGE = (0, 7)
# Business policy, not a technical limit: forecasts further than a week out
# are not reliable enough to publish.
MAX_FORECAST_HORIZON_DAYS = 7


class Provenance(str, Enum):
    """Which configuration source supplied a resolved value."""

    OVERRIDE = "override"
    FILE = "file"
    DEFAULT = "default"

    def __str__(self) -> str:
        return _PROVENANCE_LABELS[self]


_PROVENANCE_LABELS = {
    Provenance.OVERRIDE: "CLI argument",
    Provenance.FILE: "config file",
    Provenance.DEFAULT: "default value",
}


@dataclass(frozen=True)
class OverrideSource:
    provider: Optional[str] = None
    timezone: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    days_ahead: Optional[int] = None
    first_day_offset: Optional[int] = None


@dataclass(frozen=True)
class FileSource:
    provider: Optional[str] = None
    timezone: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None


@dataclass(frozen=True)
class DefaultSource:
    # No coordinate defaults: a location must come from the CLI or the file.
    provider: str = "stormglass"
    timezone: str = "UTC"
    days_ahead: int = 4
    first_day_offset: int = 0


@dataclass(frozen=True)
class ResolvedConfig:
    """Validated settings for one run.

    Construction re-checks the range and horizon rules, so an out-of-range
    value can never reach the hub or the config file. Provider names are
    checked against the registry by the resolver.
    """

    provider: str
    timezone: ZoneInfo
    lat: float
    lng: float
    days_ahead: int
    first_day_offset: int
    provenance: Dict[str, Provenance] = field(default_factory=dict, compare=False, repr=False)

    def __post_init__(self):
        if not isinstance(self.timezone, ZoneInfo):
            raise TypeError(f"ResolvedConfig.timezone must be a ZoneInfo, got {type(self.timezone).__name__}")
        if not isinstance(self.provider, str) or not self.provider:
            raise TypeError("ResolvedConfig.provider must be a non-empty string")
        check_range("lat", self.lat, self.source_of("lat"), LAT_RANGE, "Latitude", unit=" degrees")
        check_range("lng", self.lng, self.source_of("lng"), LNG_RANGE, "Longitude", unit=" degrees")
        check_range("days_ahead", self.days_ahead, self.source_of("days_ahead"), DAYS_AHEAD_RANGE, "days-ahead")
        check_range(
            "first_day_offset",
            self.first_day_offset,
            self.source_of("first_day_offset"),
            FIRST_DAY_OFFSET_RANGE,
            "first-day-offset",
        )
        check_horizon(self.days_ahead, self.first_day_offset, self.source_of("days_ahead"))

    def source_of(self, name: str) -> Provenance:
        return self.provenance.get(name, Provenance.DEFAULT)


def check_range(field_name: str, value, provenance: Provenance, bounds: Tuple, label: str, unit: str = "") -> None:
    low, high = bounds
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not low <= value <= high:
        raise OutOfRangeError(
            field_name,
            value,
            provenance,
            rule=f"{label} {value} is out of valid range. Must be between {low} and {high}{unit}.",
            suggestion=_fix_hint(field_name, provenance),
        )


def check_horizon(days_ahead: int, first_day_offset: int, provenance: Provenance) -> None:
    total = days_ahead + first_day_offset
    if total > MAX_FORECAST_HORIZON_DAYS:
        raise CrossFieldError(
            "days_ahead + first_day_offset",
            total,
            provenance,
            rule=(
                f"days-ahead ({days_ahead}) + first-day-offset ({first_day_offset}) = {total} "
                f"exceeds maximum of {MAX_FORECAST_HORIZON_DAYS} days for reliable forecasts"
            ),
            suggestion="Reduce --days-ahead or --first-day-offset so their sum is at most "
            f"{MAX_FORECAST_HORIZON_DAYS}.",
        )


def _fix_hint(field_name: str, provenance: Provenance) -> str:
    flag = "--" + field_name.replace("_", "-")
    if provenance is Provenance.FILE:
        return f"Fix 'general.{field_name}' in the config file or override it with {flag}."
    if provenance is Provenance.DEFAULT:
        return f"The built-in default is invalid; pass {flag} explicitly."
    return f"Pass a value within range to {flag}."
