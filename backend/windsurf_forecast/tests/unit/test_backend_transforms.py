from __future__ import annotations

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from windsurf_forecast.domain.errors import BackendError, CredentialError, TimestampParseError
from windsurf_forecast.providers.weather.openweathermap import OpenWeatherMapBackend
from windsurf_forecast.providers.weather.stormglass import MS_TO_KNOTS, StormGlassBackend
from windsurf_forecast.providers.weather.windy import WindyBackend

UTC = ZoneInfo("UTC")
JERUSALEM = ZoneInfo("Asia/Jerusalem")

START = datetime(2024, 1, 15, 0, 0, tzinfo=timezone.utc)
END = datetime(2024, 1, 15, 23, 59, 59, tzinfo=timezone.utc)


class _StubClient:
    def __init__(self, **responses):
        self.responses = responses
        self.calls = []

    def fetch_hours(self, lat, lng, start, end):
        self.calls.append((lat, lng, start, end))
        return self.responses["hours"]

    def fetch_onecall(self, lat, lng):
        self.calls.append((lat, lng))
        return self.responses["onecall"]

    def fetch_models(self, lat, lng):
        self.calls.append((lat, lng))
        return self.responses["waves"], self.responses["weather"]


def _sg_hour(time: str = "2024-01-15T12:00:00+00:00", **values):
    hour = {"time": time}
    for key, value in values.items():
        hour[key] = {"sg": value}
    return hour


# --- stormglass ---


def test_stormglass_converts_wind_to_knots():
    point = StormGlassBackend.transform_hour(_sg_hour(windSpeed=10.0, gust=5.0, airTemperature=18.5), UTC)

    assert point.wind_speed == pytest.approx(19.4384)
    assert point.gust == pytest.approx(5.0 * MS_TO_KNOTS)
    assert point.air_temperature == 18.5
    assert str(point.time) == "2024-01-15 12:00"


def test_stormglass_missing_fields_are_absent():
    point = StormGlassBackend.transform_hour(_sg_hour(swellHeight=1.2), JERUSALEM)

    assert point.to_dict() == {"time": "2024-01-15 14:00", "swellHeight": 1.2}


def test_stormglass_bad_time_names_source():
    with pytest.raises(TimestampParseError) as excinfo:
        StormGlassBackend.transform_hour(_sg_hour(time="yesterday"), UTC)

    assert excinfo.value.source == "stormglass"


def test_stormglass_fetch_passes_window_to_client():
    client = _StubClient(hours=[_sg_hour(windSpeed=1.0), _sg_hour("2024-01-15T13:00:00+00:00")])
    backend = StormGlassBackend("key", client=client)

    result = backend.fetch_forecast(start=START, end=END, lat=32.4, lng=34.8, zone=UTC)

    assert [str(point.time) for point in result.points] == ["2024-01-15 12:00", "2024-01-15 13:00"]
    assert result.alerts is None
    assert client.calls == [(32.4, 34.8, START, END)]


def test_stormglass_from_env_requires_key(monkeypatch):
    monkeypatch.delenv("STORMGLASS_API_KEY", raising=False)

    with pytest.raises(CredentialError) as excinfo:
        StormGlassBackend.from_env()

    assert "STORMGLASS_API_KEY not found" in str(excinfo.value)


def test_stormglass_from_env_reads_key(monkeypatch):
    monkeypatch.setenv("STORMGLASS_API_KEY", "secret")

    backend = StormGlassBackend.from_env()

    assert backend.client.api_key == "secret"


# --- openweathermap ---


def _owm_payload():
    return {
        "hourly": [
            {"dt": 1705276800 - 3600, "feels_like": 10.0, "wind_speed": 3.0},
            {"dt": 1705320000, "feels_like": 12.5, "wind_speed": 4.2, "wind_deg": 180, "wind_gust": 6.0, "clouds": 40},
            {"dt": 1705363199 + 1, "feels_like": 9.0},
        ],
        "alerts": [
            {
                "sender_name": "IMS",
                "event": "Strong winds",
                "start": 1705320000,
                "end": 1705330800,
                "description": "Gusts up to 60 km/h",
            }
        ],
    }


def test_openweathermap_filters_to_window():
    backend = OpenWeatherMapBackend("key", client=_StubClient(onecall=_owm_payload()))

    result = backend.fetch_forecast(start=START, end=END, lat=32.4, lng=34.8, zone=UTC)

    assert len(result.points) == 1
    point = result.points[0]
    assert str(point.time) == "2024-01-15 12:00"
    assert point.air_temperature == 12.5
    assert point.wind_speed == 4.2
    assert point.wind_direction == 180.0
    assert point.gust == 6.0
    assert point.cloud_cover == 40.0


def test_openweathermap_formats_alerts_in_output_zone():
    backend = OpenWeatherMapBackend("key", client=_StubClient(onecall=_owm_payload()))

    result = backend.fetch_forecast(start=START, end=END, lat=32.4, lng=34.8, zone=JERUSALEM)

    assert result.alerts == [
        "Alert[IMS]: Strong winds\nFrom: 2024-01-15 14:00 To: 2024-01-15 17:00\nDescription: Gusts up to 60 km/h"
    ]


def test_openweathermap_without_alerts():
    assert OpenWeatherMapBackend.format_alerts(None, UTC) is None
    assert OpenWeatherMapBackend.format_alerts([], UTC) == []


# --- windy ---


@pytest.mark.parametrize(
    "west,south,expected",
    [
        (0.0, -5.0, 0.0),
        (-5.0, 0.0, 90.0),
        (0.0, 5.0, 180.0),
        (5.0, 0.0, 270.0),
    ],
)
def test_windy_wind_direction(west, south, expected):
    assert WindyBackend.calc_wind_direction(west, south) == pytest.approx(expected)


def test_windy_wind_speed_and_temperature():
    assert WindyBackend.calc_wind_speed(3.0, 4.0) == pytest.approx(5.0)
    assert WindyBackend.kelvin_to_celsius(293.15) == pytest.approx(20.0)


def _windy_models():
    stamps = [1705320000000, 1705330800000, 1705449600000]
    waves = {
        "ts": stamps,
        "units": {},
        "swell1_height-surface": [1.1, 1.2, 1.3],
        "swell1_period-surface": [8.0, 8.5, 9.0],
        "swell1_direction-surface": [270.0, 275.0, 280.0],
        "wwaves_height-surface": [0.4, None, 0.6],
    }
    weather = {
        "ts": stamps,
        "temp-surface": [293.15, 291.15, 290.15],
        "wind_u-surface": [0.0, 5.0, 1.0],
        "wind_v-surface": [-5.0, 0.0, 1.0],
        "gust-surface": [7.0, 8.0, 9.0],
        "past3hprecip-surface": [0.0, 0.2, 0.0],
        "lclouds-surface": [10.0, 55.0, 0.0],
        "mclouds-surface": [0.0, 20.0, 5.0],
        "hclouds-surface": [80.0, None, 30.0],
    }
    return waves, weather


def test_windy_merges_models_and_filters_window():
    waves, weather = _windy_models()
    backend = WindyBackend("key", client=_StubClient(waves=waves, weather=weather))

    result = backend.fetch_forecast(start=START, end=END, lat=32.4, lng=34.8, zone=UTC)

    assert [str(point.time) for point in result.points] == ["2024-01-15 12:00", "2024-01-15 15:00"]
    first, second = result.points
    assert first.air_temperature == pytest.approx(20.0)
    assert first.wind_speed == pytest.approx(5.0)
    assert first.wind_direction == pytest.approx(0.0)
    assert first.swell_height == 1.1
    assert first.wind_wave_height == 0.4
    assert second.wind_direction == pytest.approx(270.0)
    assert second.wind_wave_height is None
    assert second.precipitation == 0.2
    assert (first.low_cloud_cover, first.medium_cloud_cover, first.high_cloud_cover) == (10.0, 0.0, 80.0)
    assert second.high_cloud_cover is None
    assert first.to_dict()["highCloudCover"] == 80.0
    assert "highCloudCover" not in second.to_dict()
    assert first.cloud_cover is None


def test_windy_rejects_short_series():
    waves, weather = _windy_models()
    weather["gust-surface"] = [7.0]

    with pytest.raises(BackendError) as excinfo:
        WindyBackend.merge_models(waves, weather, UTC)

    assert "gust-surface" in str(excinfo.value)


def test_windy_from_env_requires_key(monkeypatch):
    monkeypatch.delenv("WINDY_API_KEY", raising=False)

    with pytest.raises(CredentialError):
        WindyBackend.from_env()
