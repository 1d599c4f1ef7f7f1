from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel

from .base import MalformedPayload, ProviderAdapter
from .units import celsius_to_fahrenheit, kmh_to_mph, safe_index
from ..entities import (
    Coordinates,
    CurrentConditions,
    ForecastEntry,
    NormalizedWeatherReading,
    RequestType,
    WeatherCondition,
)


# WMO weather interpretation codes: (main, description, icon)
WMO_CODES: Dict[int, tuple] = {
    0: ("Clear", "Clear sky", "01d"),
    1: ("Mainly Clear", "Mainly clear", "02d"),
    2: ("Partly Cloudy", "Partly cloudy", "03d"),
    3: ("Overcast", "Overcast", "04d"),
    45: ("Fog", "Fog", "50d"),
    48: ("Depositing Rime Fog", "Depositing rime fog", "50d"),
    51: ("Light Drizzle", "Light drizzle", "09d"),
    53: ("Moderate Drizzle", "Moderate drizzle", "09d"),
    55: ("Dense Drizzle", "Dense drizzle", "09d"),
    61: ("Slight Rain", "Slight rain", "10d"),
    63: ("Moderate Rain", "Moderate rain", "10d"),
    65: ("Heavy Rain", "Heavy rain", "10d"),
    71: ("Slight Snow", "Slight snow fall", "13d"),
    73: ("Moderate Snow", "Moderate snow fall", "13d"),
    75: ("Heavy Snow", "Heavy snow fall", "13d"),
    95: ("Thunderstorm", "Thunderstorm", "11d"),
    96: ("Thunderstorm with Hail", "Thunderstorm with slight hail", "11d"),
    99: ("Thunderstorm with Heavy Hail", "Thunderstorm with heavy hail", "11d"),
}


def wmo_condition(code: Optional[int]) -> WeatherCondition:
    main, description, icon = WMO_CODES.get(code, ("Unknown", "Unknown weather condition", "01d"))
    return WeatherCondition(main=main, description=description, icon=icon)


class CurrentWeather(BaseModel):
    temperature: float
    windspeed: float = 0.0
    winddirection: float = 0.0
    weathercode: Optional[int] = None


class HourlyBlock(BaseModel):
    relative_humidity_2m: List[Optional[float]] = []


class DailyBlock(BaseModel):
    time: List[date]
    temperature_2m_max: List[Optional[float]] = []
    temperature_2m_min: List[Optional[float]] = []
    wind_speed_10m_max: List[Optional[float]] = []
    relative_humidity_2m_mean: List[Optional[float]] = []
    precipitation_probability_max: List[Optional[float]] = []
    weather_code: List[Optional[int]] = []


class OpenMeteoResponse(BaseModel):
    current_weather: Optional[CurrentWeather] = None
    hourly: HourlyBlock = HourlyBlock()
    daily: Optional[DailyBlock] = None


class OpenMeteoAdapter(ProviderAdapter):
    """Free global model data; no key, values arrive metric and are converted."""

    request_types = frozenset({RequestType.CURRENT, RequestType.FORECAST})

    def current(self, location: Coordinates, options: Mapping[str, Any]) -> NormalizedWeatherReading:
        params = {
            "latitude": location.latitude,
            "longitude": location.longitude,
            "current_weather": "true",
            "hourly": "temperature_2m,relative_humidity_2m,wind_speed_10m,wind_direction_10m",
            "timezone": "auto",
        }
        payload = self._parse(OpenMeteoResponse, self._get_json(f"{self.base_url}/forecast", params=params))
        current = payload.current_weather
        if current is None:
            raise MalformedPayload("missing current weather")
        temperature = celsius_to_fahrenheit(current.temperature)
        humidity = safe_index(payload.hourly.relative_humidity_2m, 0)
        return NormalizedWeatherReading(
            location=location,
            name=f"{location.latitude:.2f}, {location.longitude:.2f}",
            current=CurrentConditions(
                temperature=temperature,
                feels_like=temperature,
                humidity=humidity if humidity is not None else 50.0,
                pressure=1013.0,
                visibility=10.0,
                wind_speed=kmh_to_mph(current.windspeed),
                wind_direction=current.winddirection,
                condition=wmo_condition(current.weathercode),
            ),
            source=self.label,
        )

    def forecast(self, location: Coordinates, options: Mapping[str, Any]) -> List[ForecastEntry]:
        days = int(options.get("days", 5))
        params = {
            "latitude": location.latitude,
            "longitude": location.longitude,
            "daily": ",".join(
                [
                    "temperature_2m_max",
                    "temperature_2m_min",
                    "wind_speed_10m_max",
                    "relative_humidity_2m_mean",
                    "precipitation_probability_max",
                    "weather_code",
                ]
            ),
            "forecast_days": days,
            "timezone": "auto",
        }
        payload = self._parse(OpenMeteoResponse, self._get_json(f"{self.base_url}/forecast", params=params))
        daily = payload.daily
        if daily is None or not daily.time:
            raise MalformedPayload("missing daily data")
        entries: List[ForecastEntry] = []
        for idx, day in enumerate(daily.time[:days]):
            high = safe_index(daily.temperature_2m_max, idx)
            low = safe_index(daily.temperature_2m_min, idx)
            if high is None or low is None:
                raise MalformedPayload(f"missing temperatures for {day.isoformat()}")
            wind = safe_index(daily.wind_speed_10m_max, idx)
            humidity = safe_index(daily.relative_humidity_2m_mean, idx)
            code = safe_index(daily.weather_code, idx)
            entries.append(
                ForecastEntry(
                    date=day,
                    temp_max=round(celsius_to_fahrenheit(high)),
                    temp_min=round(celsius_to_fahrenheit(low)),
                    humidity=humidity if humidity is not None else 50.0,
                    wind_speed=round(kmh_to_mph(wind)) if wind is not None else 0.0,
                    condition=wmo_condition(int(code) if code is not None else None),
                    precipitation_probability=safe_index(daily.precipitation_probability_max, idx) or 0.0,
                )
            )
        return entries

    def probe(self) -> None:
        self._get_json(
            f"{self.base_url}/forecast",
            params={"latitude": 33.2098, "longitude": -87.5692, "current_weather": "true"},
            timeout=min(self.timeout, 3.0),
        )


__all__ = ["OpenMeteoAdapter", "WMO_CODES", "wmo_condition"]
