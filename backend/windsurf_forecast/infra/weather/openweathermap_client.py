from __future__ import annotations

import logging
from typing import Optional

import httpx

from windsurf_forecast.domain.errors import BackendError

logger = logging.getLogger(__name__)


class OpenWeatherMapClient:
    BASE_URL = "https://api.openweathermap.org/data/3.0/onecall"

    def __init__(
        self,
        api_key: str,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    def fetch_onecall(self, lat: float, lng: float) -> dict:
        """One Call only serves the next 48 hours; the caller filters by window."""
        params = {
            "lat": lat,
            "lon": lng,
            "appid": self.api_key,
            "units": "metric",
            "mode": "json",
        }
        logger.info("Fetching OpenWeatherMap data for (%s, %s)", lat, lng)
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                resp = client.get(self.BASE_URL, params=params)
        except httpx.HTTPError as exc:
            raise BackendError("openweathermap", f"Failed to connect to OpenWeatherMap API: {exc}") from exc
        if resp.status_code >= 400:
            raise BackendError(
                "openweathermap",
                f"OpenWeatherMap API returned error status, message: {resp.text}",
                resp.status_code,
            )
        try:
            return resp.json()
        except ValueError as exc:
            raise BackendError("openweathermap", "Failed to parse API response") from exc
