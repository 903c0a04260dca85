from __future__ import annotations

import logging
from zoneinfo import ZoneInfo

import pytest

from windsurf_forecast.config import timezone as tz_module
from windsurf_forecast.config.resolver import pick, resolve
from windsurf_forecast.config.types import DefaultSource, FileSource, OverrideSource, Provenance, ResolvedConfig
from windsurf_forecast.domain.canonical import ForecastResult
from windsurf_forecast.domain.errors import (
    CrossFieldError,
    HostTimezoneError,
    InvalidTimezoneError,
    MissingFieldError,
    OutOfRangeError,
    UnknownBackendError,
)
from windsurf_forecast.hub.backend_registry import BackendDescriptor, BackendRegistry


class _NullBackend:
    name = "null"
    credential_var = "NULL_KEY"

    def fetch_forecast(self, *, start, end, lat, lng, zone):
        return ForecastResult(points=[])


def _registry(*names: str) -> BackendRegistry:
    names = names or ("openweathermap", "stormglass", "windy")
    return BackendRegistry(
        BackendDescriptor(name=name, description=f"{name} backend", credential_var="NULL_KEY", factory=_NullBackend)
        for name in names
    )


def _located(**overrides) -> OverrideSource:
    values = dict(lat=32.4, lng=34.8)
    values.update(overrides)
    return OverrideSource(**values)


def test_pick_precedence():
    assert pick("cli", "file", "default") == ("cli", Provenance.OVERRIDE)
    assert pick(None, "file", "default") == ("file", Provenance.FILE)
    assert pick(None, None, "default") == ("default", Provenance.DEFAULT)
    assert pick(0, 5, 9) == (0, Provenance.OVERRIDE)


def test_provenance_labels():
    assert str(Provenance.OVERRIDE) == "CLI argument"
    assert str(Provenance.FILE) == "config file"
    assert str(Provenance.DEFAULT) == "default value"


def test_merges_override_file_and_defaults():
    cli = OverrideSource(days_ahead=3)
    file = FileSource(lat=32.4, lng=34.8, timezone="Europe/London")

    resolved = resolve(cli, file, registry=_registry())

    assert resolved == ResolvedConfig(
        provider="stormglass",
        timezone=ZoneInfo("Europe/London"),
        lat=32.4,
        lng=34.8,
        days_ahead=3,
        first_day_offset=0,
    )
    assert resolved.source_of("days_ahead") is Provenance.OVERRIDE
    assert resolved.source_of("lat") is Provenance.FILE
    assert resolved.source_of("timezone") is Provenance.FILE
    assert resolved.source_of("provider") is Provenance.DEFAULT


def test_override_beats_file():
    cli = _located(provider="windy", timezone="Asia/Jerusalem", lat=10.0)
    file = FileSource(provider="openweathermap", timezone="Europe/London", lat=50.0, lng=1.0)

    resolved = resolve(cli, file, registry=_registry())

    assert resolved.provider == "windy"
    assert resolved.timezone.key == "Asia/Jerusalem"
    assert resolved.lat == 10.0
    assert resolved.lng == 34.8


def test_custom_defaults_are_used():
    defaults = DefaultSource(provider="windy", timezone="Asia/Jerusalem", days_ahead=2, first_day_offset=1)

    resolved = resolve(_located(), FileSource(), defaults=defaults, registry=_registry())

    assert (resolved.provider, resolved.days_ahead, resolved.first_day_offset) == ("windy", 2, 1)
    assert resolved.timezone.key == "Asia/Jerusalem"


def test_default_timezone_logs_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="windsurf_forecast.config.resolver"):
        resolved = resolve(_located(), FileSource(), registry=_registry())

    assert resolved.timezone.key == "UTC"
    assert "No timezone configured" in caplog.text


@pytest.mark.parametrize("missing,label", [("lat", "Latitude"), ("lng", "Longitude")])
def test_missing_coordinate(missing, label):
    values = {"lat": 32.4, "lng": 34.8}
    values.pop(missing)

    with pytest.raises(MissingFieldError) as excinfo:
        resolve(OverrideSource(**values), FileSource(), registry=_registry())

    assert excinfo.value.field == missing
    assert excinfo.value.label == label
    message = str(excinfo.value)
    assert message.startswith(f"{label} not specified")
    assert f"--{missing}" in message


def test_latitude_out_of_range_names_field_and_bounds():
    with pytest.raises(OutOfRangeError) as excinfo:
        resolve(_located(lat=95.0), FileSource(), registry=_registry())

    error = excinfo.value
    assert error.field == "lat"
    assert error.value == 95.0
    assert error.provenance is Provenance.OVERRIDE
    assert "-90.0 and 90.0" in str(error)
    assert "CLI argument" in str(error)


def test_longitude_from_file_out_of_range_mentions_file():
    with pytest.raises(OutOfRangeError) as excinfo:
        resolve(OverrideSource(lat=1.0), FileSource(lng=-200.0), registry=_registry())

    assert excinfo.value.provenance is Provenance.FILE
    assert "config file" in str(excinfo.value)
    assert "-180.0 and 180.0" in str(excinfo.value)


@pytest.mark.parametrize("lat,lng", [(90.0, 180.0), (-90.0, -180.0), (0.0, 0.0)])
def test_coordinate_bounds_are_inclusive(lat, lng):
    resolved = resolve(OverrideSource(lat=lat, lng=lng), FileSource(), registry=_registry())

    assert (resolved.lat, resolved.lng) == (lat, lng)


@pytest.mark.parametrize("field,value", [("days_ahead", 0), ("days_ahead", 8), ("first_day_offset", -1), ("first_day_offset", 8)])
def test_day_ranges(field, value):
    with pytest.raises(OutOfRangeError) as excinfo:
        resolve(_located(**{field: value}), FileSource(), registry=_registry())

    assert excinfo.value.field == field


def test_horizon_limit():
    with pytest.raises(CrossFieldError) as excinfo:
        resolve(_located(days_ahead=5, first_day_offset=4), FileSource(), registry=_registry())

    message = str(excinfo.value)
    assert "7" in message
    assert "days-ahead (5) + first-day-offset (4) = 9" in message


def test_horizon_limit_is_inclusive():
    resolved = resolve(_located(days_ahead=4, first_day_offset=3), FileSource(), registry=_registry())

    assert resolved.days_ahead + resolved.first_day_offset == 7


def test_unknown_provider_lists_available_and_source():
    with pytest.raises(UnknownBackendError) as excinfo:
        resolve(OverrideSource(lat=1.0, lng=1.0), FileSource(provider="nonexistent"), registry=_registry())

    message = str(excinfo.value)
    assert "nonexistent" in message
    assert "openweathermap, stormglass, windy" in message
    assert excinfo.value.provenance is Provenance.FILE


def test_invalid_timezone():
    with pytest.raises(InvalidTimezoneError) as excinfo:
        resolve(_located(timezone="Mars/Olympus_Mons"), FileSource(), registry=_registry())

    assert excinfo.value.value == "Mars/Olympus_Mons"
    assert "Europe/London" in str(excinfo.value)


@pytest.mark.parametrize("name", ["America", "../etc/passwd", "/usr/share/zoneinfo/UTC", "local"])
def test_malformed_timezone_names(name):
    with pytest.raises(InvalidTimezoneError):
        tz_module.parse_timezone(name)


def test_local_timezone_uses_host_zone(monkeypatch):
    monkeypatch.setenv("TZ", "Asia/Tokyo")

    resolved = resolve(_located(timezone="LOCAL"), FileSource(), registry=_registry())

    assert resolved.timezone.key == "Asia/Tokyo"


def test_host_timezone_detection_failure(monkeypatch, tmp_path):
    monkeypatch.delenv("TZ", raising=False)
    monkeypatch.setattr(tz_module, "_ETC_TIMEZONE", tmp_path / "timezone")
    monkeypatch.setattr(tz_module, "_ETC_LOCALTIME", tmp_path / "localtime")

    with pytest.raises(HostTimezoneError):
        tz_module.detect_host_timezone()

    with pytest.raises(InvalidTimezoneError) as excinfo:
        resolve(OverrideSource(lat=1.0, lng=1.0), FileSource(timezone="LOCAL"), registry=_registry())

    error = excinfo.value
    assert isinstance(error, HostTimezoneError)
    assert error.field == "timezone"
    assert error.value == "LOCAL"
    assert error.provenance is Provenance.FILE
    assert "config file" in str(error)
    assert "--timezone" in str(error)


def test_host_timezone_from_etc_timezone(monkeypatch, tmp_path):
    etc = tmp_path / "timezone"
    etc.write_text("Europe/Lisbon\n", encoding="utf-8")
    monkeypatch.delenv("TZ", raising=False)
    monkeypatch.setattr(tz_module, "_ETC_TIMEZONE", etc)

    assert tz_module.detect_host_timezone().key == "Europe/Lisbon"


def test_validation_checks_timezone_before_coordinates():
    with pytest.raises(InvalidTimezoneError):
        resolve(OverrideSource(timezone="Nowhere/Special"), FileSource(), registry=_registry())


def test_resolve_does_not_write_config(tmp_path, monkeypatch):
    monkeypatch.setenv("WINDSURF_FORECAST_CONFIG", str(tmp_path / "config.toml"))

    resolve(_located(), FileSource(), registry=_registry())

    assert not (tmp_path / "config.toml").exists()


def _config(**overrides):
    values = dict(provider="stormglass", timezone=ZoneInfo("UTC"), lat=0.0, lng=0.0, days_ahead=4, first_day_offset=0)
    values.update(overrides)
    return ResolvedConfig(**values)


@pytest.mark.parametrize("field,value", [("lat", 500.0), ("lng", -180.5), ("days_ahead", 0), ("first_day_offset", 9)])
def test_resolved_config_rejects_out_of_range_values(field, value):
    with pytest.raises(OutOfRangeError) as excinfo:
        _config(**{field: value})

    assert excinfo.value.field == field
    assert excinfo.value.provenance is Provenance.DEFAULT


def test_resolved_config_reports_recorded_provenance():
    with pytest.raises(OutOfRangeError) as excinfo:
        _config(lat=500.0, provenance={"lat": Provenance.FILE})

    assert excinfo.value.provenance is Provenance.FILE
    assert "config file" in str(excinfo.value)


def test_resolved_config_rejects_horizon_overflow():
    with pytest.raises(CrossFieldError):
        _config(days_ahead=5, first_day_offset=4)


@pytest.mark.parametrize("overrides", [{"timezone": "UTC"}, {"provider": ""}, {"lat": True}])
def test_resolved_config_rejects_wrong_types(overrides):
    with pytest.raises((TypeError, OutOfRangeError)):
        _config(**overrides)
