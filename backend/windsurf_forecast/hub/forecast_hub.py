from __future__ import annotations

import logging
from datetime import datetime, time, timedelta, timezone
from typing import Optional, Tuple

from windsurf_forecast.config.types import ResolvedConfig
from windsurf_forecast.domain.canonical import ForecastReport, ReportMeta
from windsurf_forecast.domain.timestamps import RawTimestamp, localize

from .backend_registry import BackendRegistry

logger = logging.getLogger(__name__)


class ForecastHub:
    """Runs one forecast: registry lookup, fetch, report assembly."""

    def __init__(self, registry: BackendRegistry) -> None:
        self._registry = registry

    def run(self, config: ResolvedConfig, *, now: Optional[datetime] = None) -> ForecastReport:
        now = now or datetime.now(timezone.utc)
        start, end = forecast_window(config.days_ahead, config.first_day_offset, now)
        backend = self._registry.instantiate(config.provider)
        logger.info(
            "Fetching %s forecast from %s to %s for (%s, %s)",
            config.provider,
            start.isoformat(),
            end.isoformat(),
            config.lat,
            config.lng,
        )
        result = backend.fetch_forecast(
            start=start,
            end=end,
            lat=config.lat,
            lng=config.lng,
            zone=config.timezone,
        )
        meta = ReportMeta(
            lat=config.lat,
            lng=config.lng,
            start=start,
            end=end,
            report_generated_at=localize(RawTimestamp.from_datetime(now, source="clock"), config.timezone),
            provider=config.provider,
        )
        logger.info("Loaded %d hourly data points from %s", len(result.points), config.provider)
        return ForecastReport(hours=list(result.points), meta=meta, alerts=result.alerts)


def forecast_window(days_ahead: int, first_day_offset: int, now: datetime) -> Tuple[datetime, datetime]:
    """UTC window: midnight of ``now + offset`` through 23:59:59 of the last forecast day."""
    now = now.astimezone(timezone.utc)
    first_day = (now + timedelta(days=first_day_offset)).date()
    last_day = (now + timedelta(days=first_day_offset + days_ahead - 1)).date()
    start = datetime.combine(first_day, time(0, 0, 0), tzinfo=timezone.utc)
    end = datetime.combine(last_day, time(23, 59, 59), tzinfo=timezone.utc)
    return start, end
