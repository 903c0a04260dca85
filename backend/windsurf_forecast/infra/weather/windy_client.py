from __future__ import annotations

import logging
from typing import List, Optional

import httpx

from windsurf_forecast.domain.errors import BackendError

logger = logging.getLogger(__name__)


class WindyClient:
    BASE_URL = "https://api.windy.com/api/point-forecast/v2"
    WAVE_PARAMETERS = ["swell1", "waves", "windWaves"]
    WEATHER_PARAMETERS = ["temp", "precip", "wind", "windGust", "lclouds", "mclouds", "hclouds"]

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url or self.BASE_URL
        self.timeout = timeout
        self.transport = transport

    def fetch_models(self, lat: float, lng: float) -> tuple[dict, dict]:
        """Return the (gfsWave, gfs) responses for one point."""
        logger.info("Fetching Windy data for (%s, %s)", lat, lng)
        with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
            waves = self._post(client, "gfsWave", self.WAVE_PARAMETERS, lat, lng)
            weather = self._post(client, "gfs", self.WEATHER_PARAMETERS, lat, lng)
        return waves, weather

    def _post(
        self,
        client: httpx.Client,
        model: str,
        parameters: List[str],
        lat: float,
        lng: float,
    ) -> dict:
        body = {
            "lat": lat,
            "lon": lng,
            "model": model,
            "parameters": parameters,
            "levels": ["surface"],
            "key": self.api_key,
        }
        try:
            resp = client.post(self.base_url, json=body)
        except httpx.HTTPError as exc:
            raise BackendError("windy", f"Failed to connect to Windy API ({model}): {exc}") from exc
        if resp.status_code >= 400 or resp.status_code == 204:
            raise BackendError("windy", self.describe_status(resp.status_code, resp.text), resp.status_code)
        try:
            return resp.json()
        except ValueError as exc:
            raise BackendError("windy", f"Failed to parse {model} API response") from exc

    @staticmethod
    def describe_status(status_code: int, body: str) -> str:
        if status_code == 204:
            return "the selected model does not feature any of the requested parameters."
        if status_code == 400:
            return f"invalid request, error: {body}."
        if status_code == 500:
            return "unexpected error."
        return (
            f"Unexpected API error (HTTP {status_code}).\n"
            "Please check the API documentation or try again later."
        )
