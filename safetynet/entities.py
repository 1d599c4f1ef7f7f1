from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional, Tuple


class RequestType(str, enum.Enum):
    CURRENT = "current"
    FORECAST = "forecast"
    ALERTS = "alerts"
    EARTHQUAKES = "earthquakes"
    WILDFIRES = "wildfires"
    CIVIL_UNREST = "civil_unrest"
    SEVERE_WEATHER = "severe_weather"


class DisasterCategory(str, enum.Enum):
    EARTHQUAKE = "earthquake"
    FIRE = "fire"
    FLOOD = "flood"
    STORM = "storm"
    TRAFFIC = "traffic"
    CIVIL_UNREST = "civil_unrest"
    OTHER = "other"


class Severity(str, enum.Enum):
    """Hazard severity tier, ordered minor < moderate < severe < extreme."""

    MINOR = "minor"
    MODERATE = "moderate"
    SEVERE = "severe"
    EXTREME = "extreme"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank

    @classmethod
    def from_label(cls, label: Optional[str]) -> "Severity":
        """Map a free-form provider label onto a tier; unknown labels are minor."""
        try:
            return cls((label or "").strip().lower())
        except ValueError:
            return cls.MINOR


_SEVERITY_RANK = {
    Severity.MINOR: 1,
    Severity.MODERATE: 2,
    Severity.SEVERE: 3,
    Severity.EXTREME: 4,
}


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"longitude out of range: {self.longitude}")


@dataclass(frozen=True)
class WeatherCondition:
    main: str
    description: str
    icon: str = "01d"


@dataclass(frozen=True)
class CurrentConditions:
    """Current observation in imperial display units.

    - temperature / feels_like in Fahrenheit
    - humidity in percent
    - pressure in hectopascal (hPa)
    - visibility in miles
    - wind speed in miles per hour, direction in degrees
    """

    temperature: float
    feels_like: float
    humidity: float
    pressure: float
    visibility: float
    wind_speed: float
    wind_direction: float
    condition: WeatherCondition


@dataclass(frozen=True)
class ForecastEntry:
    date: date
    temp_max: float
    temp_min: float
    humidity: float
    wind_speed: float
    condition: WeatherCondition
    precipitation_probability: float = 0.0


@dataclass(frozen=True)
class WeatherAlert:
    alert_id: str
    kind: str
    severity: Severity
    title: str
    description: str
    source: str
    area_description: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    radius_km: Optional[float] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    is_active: bool = True


@dataclass(frozen=True)
class NormalizedWeatherReading:
    location: Coordinates
    name: str
    current: CurrentConditions
    source: str
    forecast: Tuple[ForecastEntry, ...] = ()
    alerts: Tuple[WeatherAlert, ...] = ()
    degraded: bool = False


@dataclass(frozen=True)
class DisasterEvent:
    """One discrete hazard occurrence normalized across providers."""

    event_id: str
    category: DisasterCategory
    severity: Severity
    title: str
    latitude: float
    longitude: float
    radius_km: float
    source: str
    description: str = ""
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    is_active: bool = True
    degraded: bool = False


@dataclass(frozen=True)
class FetchResult:
    """Envelope returned by the orchestrator for every request."""

    request_type: RequestType
    value: Any
    source: str
    degraded: bool = False
    errors: Tuple[str, ...] = ()
    skipped: Tuple[str, ...] = ()
    from_cache: bool = False


__all__ = [
    "Coordinates",
    "CurrentConditions",
    "DisasterCategory",
    "DisasterEvent",
    "FetchResult",
    "ForecastEntry",
    "NormalizedWeatherReading",
    "RequestType",
    "Severity",
    "WeatherAlert",
    "WeatherCondition",
]
