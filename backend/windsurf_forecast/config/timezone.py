from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from timezonefinder import TimezoneFinder

from windsurf_forecast.domain.errors import HostTimezoneError, InvalidTimezoneError

logger = logging.getLogger(__name__)

LOCAL_TOKEN = "LOCAL"

TIMEZONE_EXAMPLES = (
    "UTC",
    "LOCAL (use system timezone)",
    "America/New_York",
    "Europe/London",
    "Asia/Jerusalem",
    "Australia/Sydney",
)

_ETC_TIMEZONE = Path("/etc/timezone")
_ETC_LOCALTIME = Path("/etc/localtime")


def parse_timezone(name: str, provenance=None) -> ZoneInfo:
    """Turn a timezone identifier into a ``ZoneInfo``.

    ``LOCAL`` (case-sensitive) is not a tz database entry: it asks for the
    host's current zone, detected at run time.
    """
    if name == LOCAL_TOKEN:
        return detect_host_timezone(provenance)
    zone = _load_zone(name)
    if zone is None:
        raise InvalidTimezoneError(
            "timezone",
            name,
            provenance,
            rule="Timezone must be an IANA tz database identifier. Examples: "
            + ", ".join(TIMEZONE_EXAMPLES),
            suggestion="See https://en.wikipedia.org/wiki/List_of_tz_database_time_zones "
            "for the full list.",
        )
    return zone


def detect_host_timezone(provenance=None) -> ZoneInfo:
    """Best-effort detection of the host zone: $TZ, /etc/timezone, then /etc/localtime."""
    for candidate in (_from_env(), _from_etc_timezone(), _from_localtime_link()):
        if not candidate:
            continue
        zone = _load_zone(candidate)
        if zone is not None:
            logger.debug("Detected host timezone %s", candidate)
            return zone
        logger.debug("Ignoring host timezone candidate %r", candidate)
    raise HostTimezoneError(provenance)


@lru_cache(maxsize=1)
def _finder() -> TimezoneFinder:
    return TimezoneFinder()


def zone_at(lat: float, lng: float) -> Optional[str]:
    """IANA zone name covering the coordinates, or None where the data has no zone."""
    return _finder().timezone_at(lng=lng, lat=lat)


def check_zone_matches_coordinates(zone: ZoneInfo, lat: float, lng: float) -> Optional[str]:
    """Return the zone in force at the coordinates when it differs from ``zone``.

    None means no mismatch, or no zone is known there (open sea). A mismatch
    is not an error: timestamps are still rendered in the configured zone.
    """
    detected = zone_at(lat, lng)
    if detected is None or detected == zone.key:
        return None
    logger.debug("Configured zone %s differs from %s at (%.6f, %.6f)", zone.key, detected, lat, lng)
    return detected


def _load_zone(name: str) -> Optional[ZoneInfo]:
    if not name or name.startswith("/") or ".." in name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        return None


def _from_env() -> Optional[str]:
    value = os.getenv("TZ", "").strip()
    return value[1:] if value.startswith(":") else value or None


def _from_etc_timezone() -> Optional[str]:
    try:
        return _ETC_TIMEZONE.read_text(encoding="utf-8").strip() or None
    except OSError:
        return None


def _from_localtime_link() -> Optional[str]:
    try:
        target = _ETC_LOCALTIME.resolve(strict=True)
    except OSError:
        return None
    parts = target.parts
    if "zoneinfo" not in parts:
        return None
    idx = len(parts) - 1 - parts[::-1].index("zoneinfo")
    return "/".join(parts[idx + 1:]) or None
