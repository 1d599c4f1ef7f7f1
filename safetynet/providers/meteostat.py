from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel

from .base import MalformedPayload, ProviderAdapter
from .units import celsius_to_fahrenheit, kmh_to_mph
from ..entities import (
    Coordinates,
    CurrentConditions,
    NormalizedWeatherReading,
    RequestType,
    WeatherCondition,
)


RAPIDAPI_HOST = "meteostat.p.rapidapi.com"


class MeteostatStation(BaseModel):
    id: str
    name: Optional[Dict[str, str]] = None


class MeteostatStations(BaseModel):
    data: List[MeteostatStation] = []


class MeteostatDay(BaseModel):
    date: Optional[str] = None
    tavg: Optional[float] = None
    tmin: Optional[float] = None
    tmax: Optional[float] = None
    prcp: Optional[float] = None
    wdir: Optional[float] = None
    wspd: Optional[float] = None
    pres: Optional[float] = None


class MeteostatDaily(BaseModel):
    data: List[MeteostatDay] = []


class MeteostatMonthly(BaseModel):
    data: Optional[List[Dict[str, Any]]] = None


def infer_condition(day: MeteostatDay) -> WeatherCondition:
    """Daily station records carry no condition; infer one from temperature and rain."""
    freezing = day.tavg is not None and day.tavg < 0
    if day.prcp:
        kind = "snow" if freezing else "rain"
        if day.prcp > 10:
            description = f"Heavy {kind}"
        elif day.prcp > 2:
            description = f"Moderate {kind}"
        else:
            description = f"Light {kind}"
        return WeatherCondition(
            main=kind.capitalize(),
            description=description,
            icon="13d" if freezing else "10d",
        )
    if day.tavg is not None:
        if day.tavg > 30:
            return WeatherCondition(main="Hot", description="Very hot weather")
        if day.tavg > 25:
            return WeatherCondition(main="Hot", description="Hot weather")
        if day.tavg < -10:
            return WeatherCondition(main="Cold", description="Very cold weather")
        if day.tavg < 0:
            return WeatherCondition(main="Cold", description="Cold weather")
    return WeatherCondition(main="Clear", description="Clear weather conditions")


class MeteostatAdapter(ProviderAdapter):
    """Meteostat through RapidAPI: nearest station, then its latest daily record."""

    request_types = frozenset({RequestType.CURRENT})

    def current(self, location: Coordinates, options: Mapping[str, Any]) -> NormalizedWeatherReading:
        station = self._nearest_station(location)
        today = datetime.now(tz=timezone.utc).date()
        daily = self._parse(
            MeteostatDaily,
            self._get_json(
                f"{self.base_url}/stations/daily",
                params={
                    "station": station.id,
                    "start": (today - timedelta(days=1)).isoformat(),
                    "end": today.isoformat(),
                },
                headers=self._headers(),
            ),
        )
        if not daily.data:
            raise MalformedPayload("no recent weather data available")
        day = daily.data[-1]
        reference = day.tavg if day.tavg is not None else day.tmax
        temperature = celsius_to_fahrenheit(reference) if reference is not None else 70.0
        return NormalizedWeatherReading(
            location=location,
            name=self._station_name(station, location),
            current=CurrentConditions(
                temperature=temperature,
                feels_like=temperature,
                humidity=50.0,
                pressure=day.pres or 1013.0,
                visibility=10.0,
                wind_speed=kmh_to_mph(day.wspd) if day.wspd else 0.0,
                wind_direction=day.wdir or 0.0,
                condition=infer_condition(day),
            ),
            source=self.label,
        )

    def monthly(self, location: Coordinates, year: int, month: int) -> Dict[str, Any]:
        """Monthly aggregates for the station nearest to ``location``."""
        if not 1 <= month <= 12:
            raise ValueError("month must be within 1..12")
        station = self._nearest_station(location)
        start = date(year, month, 1)
        end = date(year + month // 12, month % 12 + 1, 1) - timedelta(days=1)
        payload = self._get_json(
            f"{self.base_url}/stations/monthly",
            params={"station": station.id, "start": start.isoformat(), "end": end.isoformat()},
            headers=self._headers(),
        )
        monthly = self._parse(MeteostatMonthly, {} if payload is None else payload)
        return {
            "station": {"id": station.id, "name": self._station_name(station, location)},
            "data": monthly.data or [],
        }

    def probe(self) -> None:
        self._get_json(
            f"{self.base_url}/stations/nearby",
            params={"lat": 33.2098, "lon": -87.5692},
            headers=self._headers(),
            timeout=min(self.timeout, 3.0),
        )

    # Helpers ------------------------------------------------------------
    def _nearest_station(self, location: Coordinates) -> MeteostatStation:
        stations = self._parse(
            MeteostatStations,
            self._get_json(
                f"{self.base_url}/stations/nearby",
                params={"lat": location.latitude, "lon": location.longitude, "limit": 1},
                headers=self._headers(),
            ),
        )
        if not stations.data:
            raise MalformedPayload("no nearby weather stations found")
        return stations.data[0]

    def _headers(self) -> Dict[str, str]:
        return {"X-RapidAPI-Key": self.api_key or "", "X-RapidAPI-Host": RAPIDAPI_HOST}

    @staticmethod
    def _station_name(station: MeteostatStation, location: Coordinates) -> str:
        if station.name and station.name.get("en"):
            return station.name["en"]
        return f"{location.latitude:.2f}, {location.longitude:.2f}"


__all__ = ["MeteostatAdapter", "infer_condition"]
