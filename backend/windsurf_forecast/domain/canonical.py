from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Dict, List, Optional

from .timestamps import LocalizedTimestamp

UNITS = {
    "windSpeed": "Speed of wind at 10m above ground in knots",
    "gust": "Wind gust in knots",
    "airTemperature": "Air temperature in degrees celsius",
    "swellHeight": "Height of swell waves in meters",
    "swellPeriod": "Period of swell waves in seconds",
    "swellDirection": "Direction of swell waves. 0° indicates swell coming from north",
    "waterTemperature": "Water temperature in degrees celsius",
    "windDirection": "Direction of wind at 10m above ground. 0° indicates wind coming from north",
    "windWaveHeight": "Height of wind waves in meters",
    "windWavePeriod": "Period of wind waves in seconds",
    "windWaveDirection": "Direction of wind waves. 0° indicates waves coming from north",
    "cloudCover": "Total cloud coverage in percent",
    "lowCloudCover": "Low cloud coverage in percent",
    "mediumCloudCover": "Medium cloud coverage in percent",
    "highCloudCover": "High cloud coverage in percent",
    "precipitation": "Precipitation in millimeters",
}

_JSON_KEYS = {
    "air_temperature": "airTemperature",
    "wind_speed": "windSpeed",
    "wind_direction": "windDirection",
    "gust": "gust",
    "swell_height": "swellHeight",
    "swell_period": "swellPeriod",
    "swell_direction": "swellDirection",
    "water_temperature": "waterTemperature",
    "wind_wave_height": "windWaveHeight",
    "wind_wave_period": "windWavePeriod",
    "wind_wave_direction": "windWaveDirection",
    "cloud_cover": "cloudCover",
    "low_cloud_cover": "lowCloudCover",
    "medium_cloud_cover": "mediumCloudCover",
    "high_cloud_cover": "highCloudCover",
    "precipitation": "precipitation",
}


@dataclass(frozen=True)
class ForecastPoint:
    time: LocalizedTimestamp
    air_temperature: Optional[float] = None
    wind_speed: Optional[float] = None
    wind_direction: Optional[float] = None
    gust: Optional[float] = None
    swell_height: Optional[float] = None
    swell_period: Optional[float] = None
    swell_direction: Optional[float] = None
    water_temperature: Optional[float] = None
    wind_wave_height: Optional[float] = None
    wind_wave_period: Optional[float] = None
    wind_wave_direction: Optional[float] = None
    cloud_cover: Optional[float] = None
    low_cloud_cover: Optional[float] = None
    medium_cloud_cover: Optional[float] = None
    high_cloud_cover: Optional[float] = None
    precipitation: Optional[float] = None

    def __post_init__(self):
        if not isinstance(self.time, LocalizedTimestamp):
            raise TypeError(
                f"ForecastPoint.time must be a LocalizedTimestamp, got {type(self.time).__name__}; "
                "convert raw timestamps with localize()"
            )

    def to_dict(self) -> dict:
        payload: dict = {"time": self.time.to_json()}
        for item in fields(self):
            if item.name == "time":
                continue
            value = getattr(self, item.name)
            if value is not None:
                payload[_JSON_KEYS[item.name]] = value
        return payload


@dataclass(frozen=True)
class ForecastResult:
    """What a backend hands back: ordered points plus any provider alerts."""

    points: List[ForecastPoint]
    alerts: Optional[List[str]] = None


@dataclass(frozen=True)
class ReportMeta:
    lat: float
    lng: float
    start: datetime
    end: datetime
    report_generated_at: LocalizedTimestamp
    provider: str
    units: Dict[str, str] = field(default_factory=lambda: dict(UNITS))

    def to_dict(self) -> dict:
        return {
            "lat": self.lat,
            "lng": self.lng,
            "start": self.start.astimezone(timezone.utc).isoformat(),
            "end": self.end.astimezone(timezone.utc).isoformat(),
            "report_generated_at": self.report_generated_at.to_json(),
            "provider": self.provider,
            "units": dict(self.units),
        }


@dataclass(frozen=True)
class ForecastReport:
    hours: List[ForecastPoint]
    meta: ReportMeta
    alerts: Optional[List[str]] = None

    def to_dict(self) -> dict:
        payload = {
            "hours": [point.to_dict() for point in self.hours],
            "meta": self.meta.to_dict(),
        }
        if self.alerts:
            payload["alerts"] = list(self.alerts)
        return payload
