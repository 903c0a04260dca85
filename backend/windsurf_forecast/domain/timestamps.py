"""Type-tagged timestamps.

Raw source timestamps enter the system as :class:`RawTimestamp` (always UTC)
and can only become a :class:`LocalizedTimestamp` through :func:`localize`.
Output records require a ``LocalizedTimestamp``, so every backend has to do
the conversion explicitly in its transform step.

DST handling: ``localize`` converts an absolute instant, so it never lands in
a spring-forward gap. Instants around the gap map to the post-transition wall
clock (2024-03-10T07:00Z in America/New_York is ``2024-03-10 03:00``). During
a fall-back overlap each instant keeps its own wall clock; the second pass
through the repeated hour is the standard-offset one (``fold=1``).
"""

from __future__ import annotations

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from .errors import TimestampParseError

OUTPUT_FORMAT = "%Y-%m-%d %H:%M"

_LOCALIZE_TOKEN = object()
_PARSE_TOKEN = object()


class RawTimestamp:
    """A UTC instant read from a source. Built only by the ``parse``/``from_*`` classmethods."""

    __slots__ = ("_instant",)

    def __init__(self, instant: datetime, *, _token=None) -> None:
        if _token is not _PARSE_TOKEN:
            raise TypeError("RawTimestamp can only be created by parse(), from_epoch_millis() or from_datetime()")
        object.__setattr__(self, "_instant", instant.astimezone(timezone.utc))

    def __setattr__(self, name, value):
        raise AttributeError("RawTimestamp is immutable")

    @classmethod
    def parse(cls, value, *, source: str = "unknown") -> "RawTimestamp":
        """Parse an ISO-8601 string or an epoch-seconds integer."""
        if isinstance(value, bool):
            raise TimestampParseError(value, source, "expected ISO-8601 string or epoch seconds")
        if isinstance(value, int):
            return cls._from_epoch(value, source=source)
        if isinstance(value, str):
            return cls._from_iso(value, source=source)
        raise TimestampParseError(value, source, "expected ISO-8601 string or epoch seconds")

    @classmethod
    def from_datetime(cls, value: datetime, *, source: str = "unknown") -> "RawTimestamp":
        """Wrap an aware ``datetime`` (for instance the current time); naive values are rejected."""
        if not isinstance(value, datetime) or value.tzinfo is None:
            raise TimestampParseError(value, source, "expected a timezone-aware datetime")
        return cls(value, _token=_PARSE_TOKEN)

    @classmethod
    def from_epoch_millis(cls, value: int, *, source: str = "unknown") -> "RawTimestamp":
        if isinstance(value, bool) or not isinstance(value, int):
            raise TimestampParseError(value, source, "expected epoch milliseconds")
        seconds, millis = divmod(value, 1000)
        raw = cls._from_epoch(seconds, source=source, original=value)
        return cls(raw.instant.replace(microsecond=millis * 1000), _token=_PARSE_TOKEN)

    @classmethod
    def _from_epoch(cls, seconds: int, *, source: str, original=None) -> "RawTimestamp":
        try:
            instant = datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as exc:
            raise TimestampParseError(original if original is not None else seconds, source, str(exc)) from exc
        return cls(instant, _token=_PARSE_TOKEN)

    @classmethod
    def _from_iso(cls, value: str, *, source: str) -> "RawTimestamp":
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            instant = datetime.fromisoformat(text)
        except ValueError as exc:
            raise TimestampParseError(value, source, str(exc)) from exc
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        return cls(instant, _token=_PARSE_TOKEN)

    @property
    def instant(self) -> datetime:
        return self._instant

    def isoformat(self) -> str:
        return self._instant.isoformat()

    def __eq__(self, other) -> bool:
        if not isinstance(other, RawTimestamp):
            return NotImplemented
        return self._instant == other._instant

    def __lt__(self, other: "RawTimestamp") -> bool:
        if not isinstance(other, RawTimestamp):
            return NotImplemented
        return self._instant < other._instant

    def __hash__(self) -> int:
        return hash(self._instant)

    def __repr__(self) -> str:
        return f"RawTimestamp({self._instant.isoformat()})"


class LocalizedTimestamp:
    """A point in time paired with a named zone. Only :func:`localize` makes these."""

    __slots__ = ("_wall_clock", "_zone")

    def __init__(self, wall_clock: datetime, zone: ZoneInfo, *, _token=None) -> None:
        if _token is not _LOCALIZE_TOKEN:
            raise TypeError("LocalizedTimestamp can only be created by localize()")
        object.__setattr__(self, "_wall_clock", wall_clock)
        object.__setattr__(self, "_zone", zone)

    def __setattr__(self, name, value):
        raise AttributeError("LocalizedTimestamp is immutable")

    @property
    def wall_clock(self) -> datetime:
        return self._wall_clock

    @property
    def zone(self) -> ZoneInfo:
        return self._zone

    def to_json(self) -> str:
        return str(self)

    def __str__(self) -> str:
        return self._wall_clock.strftime(OUTPUT_FORMAT)

    def __format__(self, spec: str) -> str:
        return format(str(self), spec)

    def __eq__(self, other) -> bool:
        if not isinstance(other, LocalizedTimestamp):
            return NotImplemented
        return self._utc() == other._utc() and self._zone.key == other._zone.key

    def __lt__(self, other: "LocalizedTimestamp") -> bool:
        if not isinstance(other, LocalizedTimestamp):
            return NotImplemented
        return self._utc() < other._utc()

    def __hash__(self) -> int:
        return hash((self._utc(), self._zone.key))

    def _utc(self) -> datetime:
        # Same-zone datetime comparison ignores fold; compare absolute instants.
        return self._wall_clock.astimezone(timezone.utc)

    def __repr__(self) -> str:
        return f"LocalizedTimestamp({self}, {self._zone.key})"


def localize(raw: RawTimestamp, zone: ZoneInfo) -> LocalizedTimestamp:
    """Convert ``raw`` to the wall clock of ``zone``; the only way to build a LocalizedTimestamp."""
    if not isinstance(raw, RawTimestamp):
        raise TypeError(f"localize() expects a RawTimestamp, got {type(raw).__name__}")
    return LocalizedTimestamp(raw.instant.astimezone(zone), zone, _token=_LOCALIZE_TOKEN)
