from __future__ import annotations

import pytest
import responses

from safetynet.config import SafetyNetConfig
from safetynet.entities import Coordinates, RequestType, Severity, WeatherAlert
from safetynet.providers.base import ProviderError, ProviderHTTPError, ProviderTimeout
from safetynet.services import build_services
from safetynet.services.orchestrator import FallbackOrchestrator
from safetynet.services.weather import WEATHER_DEGRADERS, WeatherService, build_weather_chains
from support import FakeAdapter

WEATHER_TYPES = (RequestType.CURRENT, RequestType.FORECAST, RequestType.ALERTS)


def make_service(*adapters) -> WeatherService:
    by_name = {adapter.name: adapter for adapter in adapters}
    orchestrator = FallbackOrchestrator(chains=build_weather_chains(by_name), degraders=WEATHER_DEGRADERS)
    return WeatherService(orchestrator)


def make_alert(alert_id: str, active: bool = True) -> WeatherAlert:
    return WeatherAlert(
        alert_id=alert_id,
        kind="Heat Advisory",
        severity=Severity.MODERATE,
        title="Heat Advisory",
        description="",
        source="National Weather Service",
        is_active=active,
    )


def test_chains_follow_fixed_priority() -> None:
    adapters = {
        name: FakeAdapter(name, request_types=WEATHER_TYPES)
        for name in ("openmeteo", "nws", "meteostat", "weatherapi", "openweather")
    }

    chains = build_weather_chains(adapters)

    assert [adapter.name for adapter in chains[RequestType.CURRENT]] == [
        "openweather",
        "weatherapi",
        "meteostat",
        "nws",
        "openmeteo",
    ]
    assert [adapter.name for adapter in chains[RequestType.FORECAST]] == ["openweather", "weatherapi", "openmeteo"]
    assert [adapter.name for adapter in chains[RequestType.ALERTS]] == ["nws", "weatherapi"]


def test_disabled_providers_are_left_out_of_chains() -> None:
    chains = build_weather_chains({"openmeteo": FakeAdapter("openmeteo")})

    assert [adapter.name for adapter in chains[RequestType.CURRENT]] == ["openmeteo"]
    assert chains[RequestType.ALERTS] == []


def test_current_conditions_degrade_with_placeholder() -> None:
    service = make_service(
        FakeAdapter("openweather", error=ProviderHTTPError(401)),
        FakeAdapter("openmeteo", error=ProviderTimeout("timeout after 8s")),
    )

    reading = service.get_current_conditions(40.0, -74.0)

    assert reading.degraded is True
    assert reading.source == "system"
    assert reading.current.temperature == 72.0
    assert reading.current.condition.main == "Unavailable"
    assert "Openweather: HTTP 401; Openmeteo: timeout after 8s" in reading.current.condition.description
    assert reading.alerts[0].alert_id == "API_ERROR"
    assert reading.location == Coordinates(40.0, -74.0)


def test_forecast_days_are_clamped() -> None:
    adapter = FakeAdapter("openmeteo", request_types=WEATHER_TYPES, error=ProviderHTTPError(500))
    service = make_service(adapter)

    entries = service.get_forecast(40.0, -74.0, days=30)
    single = service.get_forecast(40.0, -74.0, days=0)

    assert len(entries) == 10
    assert len(single) == 1
    assert all(entry.condition.main == "Unavailable" for entry in entries)
    assert all("Openmeteo: HTTP 500" in entry.condition.description for entry in entries)
    assert entries[0].condition.description.startswith("Forecast data unavailable. Errors: ")


def test_active_alerts_exclude_expired_ones() -> None:
    alerts = [make_alert("a"), make_alert("b", active=False)]
    service = make_service(FakeAdapter("nws", request_types=WEATHER_TYPES, result=alerts))

    active = service.get_active_alerts(33.2, -87.5)

    assert [alert.alert_id for alert in active] == ["a"]


def test_alerts_degrade_to_system_alert() -> None:
    service = make_service()

    alerts = service.get_active_alerts(33.2, -87.5)

    assert len(alerts) == 1
    assert alerts[0].kind == "system"
    assert alerts[0].title == "Weather Data Unavailable"


def test_invalid_coordinates_raise_value_error() -> None:
    service = make_service(FakeAdapter("openmeteo"))

    with pytest.raises(ValueError):
        service.fetch_current(95.0, 0.0)


def test_monthly_summary_requires_meteostat() -> None:
    service = make_service(FakeAdapter("openmeteo"))

    with pytest.raises(ProviderError):
        service.get_monthly_summary(33.2, -87.5, 2024, 1)


def test_monthly_summary_respects_rate_limit() -> None:
    class MonthlyAdapter(FakeAdapter):
        def monthly(self, location, year, month):
            return {"station": {"id": "72340"}, "data": [], "period": (year, month)}

    service = make_service(MonthlyAdapter("meteostat", rpm=1))

    assert service.get_monthly_summary(33.2, -87.5, 2024, 2)["period"] == (2024, 2)
    with pytest.raises(ProviderError):
        service.get_monthly_summary(33.2, -87.5, 2024, 3)


def test_build_services_falls_back_over_http() -> None:
    config = SafetyNetConfig.from_env(
        {
            "SAFETYNET_OPENWEATHER_API_KEY": "owm-key",
            "SAFETYNET_OPENWEATHER_BASE_URL": "https://owm.test",
            "SAFETYNET_OPENMETEO_BASE_URL": "https://openmeteo.test",
        }
    )
    services = build_services(config)

    with responses.RequestsMock() as rsps:
        rsps.add("GET", "https://owm.test/weather", json={"cod": 500}, status=500)
        rsps.add(
            "GET",
            "https://openmeteo.test/forecast",
            json={
                "current_weather": {"temperature": 10.0, "windspeed": 0.0, "winddirection": 0, "weathercode": 0},
                "hourly": {"relative_humidity_2m": [70]},
            },
            status=200,
        )
        # London is outside the National Weather Service coverage.
        result = services.weather.fetch_current(51.5074, -0.1278)
        assert len(rsps.calls) == 2

    assert result.degraded is False
    assert result.source == "Open-Meteo"
    assert result.errors == ("OpenWeatherMap: HTTP 500",)
    assert result.skipped == ("National Weather Service: unsupported location",)
    assert result.value.current.temperature == pytest.approx(50.0)

    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        cached = services.weather.fetch_current(51.5074, -0.1278)
        assert len(rsps.calls) == 0

    assert cached.from_cache is True
    assert cached.source == "Open-Meteo"


def test_build_services_offline_never_touches_network() -> None:
    services = build_services(SafetyNetConfig.from_env({"SAFETYNET_OFFLINE": "1"}))

    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        result = services.weather.fetch_current(51.5074, -0.1278)
        assert len(rsps.calls) == 0

    assert result.degraded is True
    assert result.errors == ("offline",)
