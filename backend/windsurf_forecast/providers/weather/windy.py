from __future__ import annotations

import math
import os
from datetime import datetime
from typing import List, Optional
from zoneinfo import ZoneInfo

from windsurf_forecast.domain.canonical import ForecastPoint, ForecastResult
from windsurf_forecast.domain.errors import BackendError, CredentialError
from windsurf_forecast.domain.timestamps import RawTimestamp, localize
from windsurf_forecast.hub.backend_registry import BackendDescriptor, submit
from windsurf_forecast.infra.weather.windy_client import WindyClient

from .base import ForecastBackend

CREDENTIAL_VAR = "WINDY_API_KEY"
KELVIN_OFFSET = 273.15


class WindyBackend(ForecastBackend):
    name = "windy"
    credential_var = CREDENTIAL_VAR

    def __init__(self, api_key: str, client: Optional[WindyClient] = None):
        self.client = client or WindyClient(api_key)

    @classmethod
    def from_env(cls) -> "WindyBackend":
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
        waves, weather = self.client.fetch_models(lat, lng)
        points = [
            point
            for point in self.merge_models(waves, weather, zone)
            if start <= point.time.wall_clock <= end
        ]
        return ForecastResult(points=points)

    @classmethod
    def merge_models(cls, waves: dict, weather: dict, zone: ZoneInfo) -> List[ForecastPoint]:
        """Zip the gfsWave and gfs series; both are indexed by the gfsWave ``ts`` list."""
        stamps = waves.get("ts") or []
        for key, series in list(waves.items()) + list(weather.items()):
            if key.endswith("-surface") and isinstance(series, list) and len(series) < len(stamps):
                raise BackendError("windy", f"series {key!r} is shorter than the timestamp list")
        wind_u = weather.get("wind_u-surface")
        wind_v = weather.get("wind_v-surface")
        temps = weather.get("temp-surface")
        points: List[ForecastPoint] = []
        for idx, ts in enumerate(stamps):
            raw = RawTimestamp.from_epoch_millis(ts, source="windy")
            speed = direction = None
            if wind_u is not None and wind_v is not None:
                speed = cls.calc_wind_speed(wind_u[idx], wind_v[idx])
                direction = cls.calc_wind_direction(wind_u[idx], wind_v[idx])
            points.append(
                ForecastPoint(
                    time=localize(raw, zone),
                    air_temperature=cls.kelvin_to_celsius(temps[idx]) if temps is not None else None,
                    wind_speed=speed,
                    wind_direction=direction,
                    gust=_at(weather, "gust-surface", idx),
                    swell_height=_at(waves, "swell1_height-surface", idx),
                    swell_period=_at(waves, "swell1_period-surface", idx),
                    swell_direction=_at(waves, "swell1_direction-surface", idx),
                    wind_wave_height=_at(waves, "wwaves_height-surface", idx),
                    wind_wave_period=_at(waves, "wwaves_period-surface", idx),
                    wind_wave_direction=_at(waves, "wwaves_direction-surface", idx),
                    low_cloud_cover=_at(weather, "lclouds-surface", idx),
                    medium_cloud_cover=_at(weather, "mclouds-surface", idx),
                    high_cloud_cover=_at(weather, "hclouds-surface", idx),
                    precipitation=_at(weather, "past3hprecip-surface", idx),
                )
            )
        return points

    @staticmethod
    def calc_wind_speed(wind_west: float, wind_south: float) -> float:
        return math.hypot(wind_west, wind_south)

    @staticmethod
    def calc_wind_direction(wind_west: float, wind_south: float) -> float:
        # Meteorological convention: direction the wind comes from, north = 0.
        angle_deg = math.degrees(math.atan2(wind_south, wind_west))
        return (270.0 - angle_deg) % 360.0

    @staticmethod
    def kelvin_to_celsius(kelvin: float) -> float:
        return kelvin - KELVIN_OFFSET


def _at(payload: dict, key: str, idx: int) -> Optional[float]:
    series = payload.get(key)
    if series is None or series[idx] is None:
        return None
    return float(series[idx])


submit(
    BackendDescriptor(
        name="windy",
        description="Windy.com Weather API",
        credential_var=CREDENTIAL_VAR,
        factory=WindyBackend.from_env,
        module=__name__,
    )
)
