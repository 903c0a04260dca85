from __future__ import annotations

import os
from datetime import datetime
from typing import List, Optional
from zoneinfo import ZoneInfo

from windsurf_forecast.domain.canonical import ForecastPoint, ForecastResult
from windsurf_forecast.domain.errors import CredentialError
from windsurf_forecast.domain.timestamps import RawTimestamp, localize
from windsurf_forecast.hub.backend_registry import BackendDescriptor, submit
from windsurf_forecast.infra.weather.openweathermap_client import OpenWeatherMapClient

from .base import ForecastBackend

CREDENTIAL_VAR = "OPEN_WEATHER_MAP_API_KEY"


class OpenWeatherMapBackend(ForecastBackend):
    name = "openweathermap"
    credential_var = CREDENTIAL_VAR

    def __init__(self, api_key: str, client: Optional[OpenWeatherMapClient] = None):
        self.client = client or OpenWeatherMapClient(api_key)

    @classmethod
    def from_env(cls) -> "OpenWeatherMapBackend":
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
        data = self.client.fetch_onecall(lat, lng)
        points: List[ForecastPoint] = []
        for hour in data.get("hourly", []):
            raw = RawTimestamp.parse(hour.get("dt"), source="openweathermap")
            if not start <= raw.instant <= end:
                continue
            points.append(self.transform_hour(raw, hour, zone))
        alerts = self.format_alerts(data.get("alerts"), zone)
        return ForecastResult(points=points, alerts=alerts)

    @staticmethod
    def transform_hour(raw: RawTimestamp, hour: dict, zone: ZoneInfo) -> ForecastPoint:
        return ForecastPoint(
            time=localize(raw, zone),
            air_temperature=_float(hour.get("feels_like")),
            wind_speed=_float(hour.get("wind_speed")),
            wind_direction=_float(hour.get("wind_deg")),
            gust=_float(hour.get("wind_gust")),
            cloud_cover=_float(hour.get("clouds")),
        )

    @staticmethod
    def format_alerts(alerts: Optional[list], zone: ZoneInfo) -> Optional[List[str]]:
        if alerts is None:
            return None
        rendered: List[str] = []
        for alert in alerts:
            start = localize(RawTimestamp.parse(alert.get("start"), source="openweathermap alert"), zone)
            end = localize(RawTimestamp.parse(alert.get("end"), source="openweathermap alert"), zone)
            rendered.append(
                f"Alert[{alert.get('sender_name', '')}]: {alert.get('event', '')}\n"
                f"From: {start} To: {end}\n"
                f"Description: {alert.get('description', '')}"
            )
        return rendered


def _float(value) -> Optional[float]:
    if value is None:
        return None
    return float(value)


submit(
    BackendDescriptor(
        name="openweathermap",
        description="OpenWeatherMap Global Weather Data",
        credential_var=CREDENTIAL_VAR,
        factory=OpenWeatherMapBackend.from_env,
        module=__name__,
    )
)
