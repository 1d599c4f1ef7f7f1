from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..entities import (
    Coordinates,
    CurrentConditions,
    FetchResult,
    ForecastEntry,
    NormalizedWeatherReading,
    RequestType,
    Severity,
    WeatherAlert,
    WeatherCondition,
)
from ..providers.base import ProviderAdapter, ProviderError
from .orchestrator import DEGRADED_SOURCE, FallbackOrchestrator


logger = logging.getLogger(__name__)

WEATHER_CHAINS: Dict[RequestType, Sequence[str]] = {
    RequestType.CURRENT: ("openweather", "weatherapi", "meteostat", "nws", "openmeteo"),
    RequestType.FORECAST: ("openweather", "weatherapi", "openmeteo"),
    RequestType.ALERTS: ("nws", "weatherapi"),
}

MAX_FORECAST_DAYS = 10


def system_alert(reasons: Sequence[str]) -> WeatherAlert:
    return WeatherAlert(
        alert_id="API_ERROR",
        kind="system",
        severity=Severity.MINOR,
        title="Weather Data Unavailable",
        description=f"Unable to fetch weather data from external APIs. {'; '.join(reasons)}",
        source=DEGRADED_SOURCE,
    )


def degraded_current(
    location: Optional[Coordinates],
    options: Mapping[str, Any],
    reasons: Sequence[str],
) -> NormalizedWeatherReading:
    """Placeholder reading served when every provider failed.

    The values are fixed, plausible defaults; ``degraded`` and the embedded
    system alert tell callers they are not real observations.
    """
    return NormalizedWeatherReading(
        location=location or Coordinates(0.0, 0.0),
        name="Unknown Location",
        current=CurrentConditions(
            temperature=72.0,
            feels_like=75.0,
            humidity=50.0,
            pressure=1013.0,
            visibility=10.0,
            wind_speed=5.0,
            wind_direction=180.0,
            condition=WeatherCondition(
                main="Unavailable",
                description=f"Weather data temporarily unavailable. Errors: {'; '.join(reasons)}",
            ),
        ),
        source=DEGRADED_SOURCE,
        alerts=(system_alert(reasons),),
        degraded=True,
    )


def degraded_forecast(
    location: Optional[Coordinates],
    options: Mapping[str, Any],
    reasons: Sequence[str],
) -> List[ForecastEntry]:
    days = int(options.get("days", 5))
    today = date.today()
    condition = WeatherCondition(
        main="Unavailable",
        description=f"Forecast data unavailable. Errors: {'; '.join(reasons)}",
    )
    return [
        ForecastEntry(
            date=today + timedelta(days=offset),
            temp_max=75.0,
            temp_min=60.0,
            humidity=50.0,
            wind_speed=5.0,
            condition=condition,
        )
        for offset in range(days)
    ]


def degraded_alerts(
    location: Optional[Coordinates],
    options: Mapping[str, Any],
    reasons: Sequence[str],
) -> List[WeatherAlert]:
    return [system_alert(reasons)]


WEATHER_DEGRADERS = {
    RequestType.CURRENT: degraded_current,
    RequestType.FORECAST: degraded_forecast,
    RequestType.ALERTS: degraded_alerts,
}


def build_weather_chains(adapters: Mapping[str, ProviderAdapter]) -> Dict[RequestType, List[ProviderAdapter]]:
    """Order the enabled adapters by the fixed weather priority."""
    return {
        request_type: [adapters[name] for name in names if name in adapters]
        for request_type, names in WEATHER_CHAINS.items()
    }


class WeatherService:
    """Weather facade over the fallback orchestrator.

    Every method returns normalized entities and never raises for provider
    failures; inspect ``degraded`` (or :meth:`fetch_current` for the full
    :class:`FetchResult`) to tell real data from placeholders.
    """

    def __init__(self, orchestrator: FallbackOrchestrator) -> None:
        self.orchestrator = orchestrator
        self._log = logging.getLogger(self.__class__.__name__)

    # Public API ---------------------------------------------------------
    def fetch_current(self, latitude: float, longitude: float) -> FetchResult:
        return self.orchestrator.fetch(RequestType.CURRENT, Coordinates(latitude, longitude))

    def get_current_conditions(self, latitude: float, longitude: float) -> NormalizedWeatherReading:
        return self.fetch_current(latitude, longitude).value

    def fetch_forecast(self, latitude: float, longitude: float, days: int = 5) -> FetchResult:
        days = max(1, min(int(days), MAX_FORECAST_DAYS))
        return self.orchestrator.fetch(
            RequestType.FORECAST,
            Coordinates(latitude, longitude),
            {"days": days},
        )

    def get_forecast(self, latitude: float, longitude: float, days: int = 5) -> List[ForecastEntry]:
        return list(self.fetch_forecast(latitude, longitude, days).value)

    def fetch_alerts(self, latitude: float, longitude: float) -> FetchResult:
        return self.orchestrator.fetch(RequestType.ALERTS, Coordinates(latitude, longitude))

    def get_active_alerts(self, latitude: float, longitude: float) -> List[WeatherAlert]:
        alerts = self.fetch_alerts(latitude, longitude).value
        return [alert for alert in alerts if alert.is_active]

    def get_monthly_summary(self, latitude: float, longitude: float, year: int, month: int) -> Dict[str, Any]:
        """Meteostat monthly aggregates; raises ``ProviderError`` when unavailable."""
        adapter = self.orchestrator.adapters().get("meteostat")
        if adapter is None:
            raise ProviderError("Meteostat is not configured")
        if not self.orchestrator.rate_limiter.try_acquire(adapter.name):
            raise ProviderError("Meteostat rate limit exceeded")
        return adapter.monthly(Coordinates(latitude, longitude), year, month)


__all__ = [
    "WEATHER_CHAINS",
    "WEATHER_DEGRADERS",
    "WeatherService",
    "build_weather_chains",
    "degraded_alerts",
    "degraded_current",
    "degraded_forecast",
]
