from __future__ import annotations

from datetime import datetime
from typing import Protocol
from zoneinfo import ZoneInfo

from windsurf_forecast.domain.canonical import ForecastResult


class ForecastBackend(Protocol):
    """Contract for forecast backends.

    A backend module also submits one ``BackendDescriptor`` to
    ``windsurf_forecast.hub.backend_registry``; its factory reads the
    credential named by ``credential_var`` and raises ``CredentialError`` when
    it is missing.
    """

    name: str
    credential_var: str

    def fetch_forecast(
        self,
        *,
        start: datetime,
        end: datetime,
        lat: float,
        lng: float,
        zone: ZoneInfo,
    ) -> ForecastResult:
        """Fetch points between ``start`` and ``end`` (UTC), localized to ``zone``.

        Points come back in chronological order.
        """
        raise NotImplementedError
