from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

import httpx

from windsurf_forecast.domain.errors import BackendError

logger = logging.getLogger(__name__)

_STATUS_MESSAGES = {
    402: "Payment Required: You've exceeded the daily request limit for your subscription.\n"
    "Please consider upgrading if this happens frequently, or try again tomorrow.",
    403: "Forbidden: Your API key was not provided or is malformed.\n"
    "Please check that STORMGLASS_API_KEY in your .env file is correct.",
    404: "Not Found: The requested API resource does not exist.\n"
    "Please verify the API endpoint and review the API documentation.",
    405: "Method Not Allowed: The API resource was requested using an unsupported method.\n"
    "Please review the API documentation for correct usage.",
    410: "Gone: You've requested a legacy API resource that is no longer available.\n"
    "Please update your code to use the current API version.",
    422: "Unprocessable Content: Invalid request parameters.\n"
    "Please verify your coordinates, date range, and other parameters are correct.",
    503: "Service Unavailable: Storm Glass is experiencing technical difficulties.\n"
    "Please try again later.",
}


class StormGlassClient:
    BASE_URL = "https://api.stormglass.io/v2/weather/point"
    PARAMS = [
        "airTemperature",
        "gust",
        "swellDirection",
        "swellHeight",
        "swellPeriod",
        "waterTemperature",
        "windDirection",
        "windSpeed",
        "windWaveHeight",
        "windWavePeriod",
        "windWaveDirection",
        "cloudCover",
        "precipitation",
    ]

    def __init__(
        self,
        api_key: str,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    def fetch_hours(self, lat: float, lng: float, start: datetime, end: datetime) -> list[dict]:
        params = {
            "lat": lat,
            "lng": lng,
            "params": ",".join(self.PARAMS),
            "start": int(start.timestamp()),
            "end": int(end.timestamp()),
            "source": "sg",
        }
        logger.info("Fetching Storm Glass data from %s to %s for (%s, %s)", start, end, lat, lng)
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                resp = client.get(self.BASE_URL, params=params, headers={"Authorization": self.api_key})
        except httpx.HTTPError as exc:
            raise BackendError("stormglass", f"Failed to connect to Storm Glass API: {exc}") from exc
        if resp.status_code >= 400:
            raise BackendError("stormglass", self.describe_status(resp.status_code), resp.status_code)
        try:
            data = resp.json()
        except ValueError as exc:
            raise BackendError("stormglass", "Failed to parse API response") from exc
        return data.get("hours", [])

    @staticmethod
    def describe_status(status_code: int) -> str:
        return _STATUS_MESSAGES.get(
            status_code,
            f"Unexpected API error (HTTP {status_code}).\n"
            "Please check the API documentation or try again later.",
        )
