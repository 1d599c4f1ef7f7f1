from __future__ import annotations

import hashlib
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, Field

from .base import MalformedPayload, ProviderAdapter
from .units import parse_timestamp
from ..entities import (
    Coordinates,
    CurrentConditions,
    ForecastEntry,
    NormalizedWeatherReading,
    RequestType,
    Severity,
    WeatherAlert,
    WeatherCondition,
)


class WAPICondition(BaseModel):
    text: str = "Unknown"


class WAPILocation(BaseModel):
    name: Optional[str] = None


class WAPICurrent(BaseModel):
    temp_f: float
    feelslike_f: Optional[float] = None
    humidity: float
    pressure_mb: float
    vis_miles: float = 10.0
    wind_mph: float = 0.0
    wind_degree: float = 0.0
    condition: WAPICondition = WAPICondition()


class WAPIDay(BaseModel):
    maxtemp_f: float
    mintemp_f: float
    avghumidity: float = 0.0
    maxwind_mph: float = 0.0
    daily_chance_of_rain: float = 0.0
    condition: WAPICondition = WAPICondition()


class WAPIForecastDay(BaseModel):
    day_date: date = Field(alias="date")
    day: WAPIDay


class WAPIForecastBlock(BaseModel):
    forecastday: List[WAPIForecastDay] = []


class WAPIAlert(BaseModel):
    headline: Optional[str] = None
    event: Optional[str] = None
    severity: Optional[str] = None
    areas: Optional[str] = None
    desc: Optional[str] = None
    instruction: Optional[str] = None
    effective: Optional[str] = None
    expires: Optional[str] = None


class WAPIAlertBlock(BaseModel):
    alert: List[WAPIAlert] = []


class WAPIResponse(BaseModel):
    location: WAPILocation = WAPILocation()
    current: Optional[WAPICurrent] = None
    forecast: Optional[WAPIForecastBlock] = None
    alerts: WAPIAlertBlock = Field(default_factory=WAPIAlertBlock)


class WeatherApiAdapter(ProviderAdapter):
    """WeatherAPI.com v1; current, daily forecast and government alerts."""

    request_types = frozenset({RequestType.CURRENT, RequestType.FORECAST, RequestType.ALERTS})

    def current(self, location: Coordinates, options: Mapping[str, Any]) -> NormalizedWeatherReading:
        params = self._params(location)
        params["aqi"] = "yes"
        payload = self._parse(WAPIResponse, self._get_json(f"{self.base_url}/current.json", params=params))
        if payload.current is None:
            self._missing("current")
        current = payload.current
        feels_like = current.feelslike_f if current.feelslike_f is not None else current.temp_f
        return NormalizedWeatherReading(
            location=location,
            name=payload.location.name or "Unknown Location",
            current=CurrentConditions(
                temperature=round(current.temp_f),
                feels_like=round(feels_like),
                humidity=current.humidity,
                pressure=round(current.pressure_mb),
                visibility=round(current.vis_miles),
                wind_speed=round(current.wind_mph),
                wind_direction=current.wind_degree,
                condition=WeatherCondition(main=current.condition.text, description=current.condition.text),
            ),
            source=self.label,
        )

    def forecast(self, location: Coordinates, options: Mapping[str, Any]) -> List[ForecastEntry]:
        params = self._params(location)
        params.update({"days": min(int(options.get("days", 5)), 10), "aqi": "no", "alerts": "no"})
        payload = self._parse(WAPIResponse, self._get_json(f"{self.base_url}/forecast.json", params=params))
        if payload.forecast is None or not payload.forecast.forecastday:
            self._missing("forecast")
        return [
            ForecastEntry(
                date=item.day_date,
                temp_max=round(item.day.maxtemp_f),
                temp_min=round(item.day.mintemp_f),
                humidity=item.day.avghumidity,
                wind_speed=round(item.day.maxwind_mph),
                condition=WeatherCondition(main=item.day.condition.text, description=item.day.condition.text),
                precipitation_probability=item.day.daily_chance_of_rain,
            )
            for item in payload.forecast.forecastday
        ]

    def alerts(self, location: Coordinates, options: Mapping[str, Any]) -> List[WeatherAlert]:
        params = self._params(location)
        params["alerts"] = "yes"
        payload = self._parse(WAPIResponse, self._get_json(f"{self.base_url}/forecast.json", params=params))
        return [self._alert(item) for item in payload.alerts.alert]

    def probe(self) -> None:
        params = self._params(Coordinates(33.2098, -87.5692))
        params["aqi"] = "no"
        self._get_json(f"{self.base_url}/current.json", params=params, timeout=min(self.timeout, 3.0))

    # Helpers ------------------------------------------------------------
    def _params(self, location: Coordinates) -> Dict[str, Any]:
        return {"key": self.api_key, "q": f"{location.latitude},{location.longitude}"}

    def _alert(self, item: WAPIAlert) -> WeatherAlert:
        # WeatherAPI alerts carry no id; derive a stable one from their content.
        digest = hashlib.sha1(
            "|".join([item.event or "", item.headline or "", item.effective or "", item.areas or ""]).encode()
        ).hexdigest()[:16]
        return WeatherAlert(
            alert_id=f"weatherapi_{digest}",
            kind=item.event or "Weather Alert",
            severity=Severity.from_label(item.severity) if item.severity else Severity.MODERATE,
            title=item.headline or item.event or "Weather Alert",
            description=item.desc or item.instruction or "",
            source=self.label,
            area_description=item.areas,
            start_time=parse_timestamp(item.effective),
            end_time=parse_timestamp(item.expires),
        )

    def _missing(self, block: str) -> None:
        raise MalformedPayload(f"missing {block} block")


__all__ = ["WeatherApiAdapter"]
