from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, Field

from .base import MalformedPayload, ProviderAdapter
from .units import meters_to_miles
from ..entities import (
    Coordinates,
    CurrentConditions,
    ForecastEntry,
    NormalizedWeatherReading,
    RequestType,
    WeatherCondition,
)


class OWMWeather(BaseModel):
    main: str = "Unknown"
    description: str = "No description"
    icon: str = "01d"


class OWMMain(BaseModel):
    temp: float
    feels_like: Optional[float] = None
    temp_min: Optional[float] = None
    temp_max: Optional[float] = None
    humidity: float
    pressure: float


class OWMWind(BaseModel):
    speed: float = 0.0
    deg: float = 0.0


class OWMCurrent(BaseModel):
    name: Optional[str] = None
    main: OWMMain
    visibility: Optional[float] = None
    wind: OWMWind = OWMWind()
    weather: List[OWMWeather] = []


class OWMForecastItem(BaseModel):
    dt: int
    main: OWMMain
    wind: OWMWind = OWMWind()
    weather: List[OWMWeather] = []
    pop: float = 0.0


class OWMForecast(BaseModel):
    items: List[OWMForecastItem] = Field(alias="list")


def _condition(weather: List[OWMWeather]) -> WeatherCondition:
    first = weather[0] if weather else OWMWeather()
    return WeatherCondition(main=first.main, description=first.description, icon=first.icon)


class OpenWeatherAdapter(ProviderAdapter):
    """OpenWeatherMap 2.5; requested in imperial units so no conversion but visibility."""

    request_types = frozenset({RequestType.CURRENT, RequestType.FORECAST})

    def current(self, location: Coordinates, options: Mapping[str, Any]) -> NormalizedWeatherReading:
        data = self._get_json(f"{self.base_url}/weather", params=self._params(location))
        payload = self._parse(OWMCurrent, data)
        main = payload.main
        visibility = round(meters_to_miles(payload.visibility)) if payload.visibility else 10
        current = CurrentConditions(
            temperature=round(main.temp),
            feels_like=round(main.feels_like if main.feels_like is not None else main.temp),
            humidity=main.humidity,
            pressure=main.pressure,
            visibility=visibility,
            wind_speed=round(payload.wind.speed),
            wind_direction=payload.wind.deg,
            condition=_condition(payload.weather),
        )
        return NormalizedWeatherReading(
            location=location,
            name=payload.name or "Unknown Location",
            current=current,
            source=self.label,
        )

    def forecast(self, location: Coordinates, options: Mapping[str, Any]) -> List[ForecastEntry]:
        days = int(options.get("days", 5))
        params = self._params(location)
        # 3-hour steps, eight per day
        params["cnt"] = days * 8
        data = self._get_json(f"{self.base_url}/forecast", params=params)
        payload = self._parse(OWMForecast, data)
        if not payload.items:
            raise MalformedPayload("empty forecast list")
        entries: List[ForecastEntry] = []
        for item in payload.items[: days * 8 : 8]:
            entries.append(
                ForecastEntry(
                    date=_day(item.dt),
                    temp_max=round(item.main.temp_max if item.main.temp_max is not None else item.main.temp),
                    temp_min=round(item.main.temp_min if item.main.temp_min is not None else item.main.temp),
                    humidity=item.main.humidity,
                    wind_speed=round(item.wind.speed),
                    condition=_condition(item.weather),
                    precipitation_probability=round(item.pop * 100),
                )
            )
        return entries

    def probe(self) -> None:
        self._get_json(
            f"{self.base_url}/weather",
            params=self._params(Coordinates(33.2098, -87.5692)),
            timeout=min(self.timeout, 3.0),
        )

    def _params(self, location: Coordinates) -> Dict[str, Any]:
        return {
            "lat": location.latitude,
            "lon": location.longitude,
            "appid": self.api_key,
            "units": "imperial",
        }


def _day(timestamp: int) -> date:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).date()


__all__ = ["OpenWeatherAdapter"]
