from __future__ import annotations

import os
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from windsurf_forecast.domain.canonical import ForecastPoint, ForecastResult
from windsurf_forecast.domain.errors import CredentialError
from windsurf_forecast.domain.timestamps import RawTimestamp, localize
from windsurf_forecast.hub.backend_registry import BackendDescriptor, submit
from windsurf_forecast.infra.weather.stormglass_client import StormGlassClient

from .base import ForecastBackend

CREDENTIAL_VAR = "STORMGLASS_API_KEY"
MS_TO_KNOTS = 1.94384


class StormGlassBackend(ForecastBackend):
    name = "stormglass"
    credential_var = CREDENTIAL_VAR

    def __init__(self, api_key: str, client: Optional[StormGlassClient] = None):
        self.client = client or StormGlassClient(api_key)

    @classmethod
    def from_env(cls) -> "StormGlassBackend":
        api_key = os.getenv(CREDENTIAL_VAR)
        if not api_key:
            raise CredentialError(CREDENTIAL_VAR, cls.name)
        return cls(api_key)

    def fetch_forecast(
        self,
        *,
        start: datetime,
        end: datetime,
        lat: float,
        lng: float,
        zone: ZoneInfo,
    ) -> ForecastResult:
        hours = self.client.fetch_hours(lat, lng, start, end)
        return ForecastResult(points=[self.transform_hour(hour, zone) for hour in hours])

    @staticmethod
    def transform_hour(hour: dict, zone: ZoneInfo) -> ForecastPoint:
        raw = RawTimestamp.parse(hour.get("time"), source="stormglass")
        return ForecastPoint(
            time=localize(raw, zone),
            air_temperature=_sg(hour, "airTemperature"),
            wind_speed=_knots(_sg(hour, "windSpeed")),
            wind_direction=_sg(hour, "windDirection"),
            gust=_knots(_sg(hour, "gust")),
            swell_height=_sg(hour, "swellHeight"),
            swell_period=_sg(hour, "swellPeriod"),
            swell_direction=_sg(hour, "swellDirection"),
            water_temperature=_sg(hour, "waterTemperature"),
            wind_wave_height=_sg(hour, "windWaveHeight"),
            wind_wave_period=_sg(hour, "windWavePeriod"),
            wind_wave_direction=_sg(hour, "windWaveDirection"),
            cloud_cover=_sg(hour, "cloudCover"),
            precipitation=_sg(hour, "precipitation"),
        )


def _sg(hour: dict, key: str) -> Optional[float]:
    section = hour.get(key)
    if not section or section.get("sg") is None:
        return None
    return float(section["sg"])


def _knots(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    return value * MS_TO_KNOTS


submit(
    BackendDescriptor(
        name="stormglass",
        description="StormGlass Marine Weather API",
        credential_var=CREDENTIAL_VAR,
        factory=StormGlassBackend.from_env,
        module=__name__,
    )
)
