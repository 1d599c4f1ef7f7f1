"""Severity and affected-radius rules for hazards whose providers omit them."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from .entities import Severity


# (minimum magnitude, severity, radius km), checked top to bottom.
EARTHQUAKE_TABLE: Tuple[Tuple[float, Severity, float], ...] = (
    (8.0, Severity.EXTREME, 1000.0),
    (7.0, Severity.SEVERE, 500.0),
    (6.0, Severity.MODERATE, 200.0),
    (5.0, Severity.MODERATE, 100.0),
    (4.0, Severity.MINOR, 50.0),
)
_EARTHQUAKE_FLOOR = (Severity.MINOR, 25.0)

EARTHQUAKE_ACTIVE_WINDOW = timedelta(hours=24)


def classify_earthquake(magnitude: float) -> Tuple[Severity, float]:
    for threshold, severity, radius in EARTHQUAKE_TABLE:
        if magnitude >= threshold:
            return severity, radius
    return _EARTHQUAKE_FLOOR


def earthquake_severity(magnitude: float) -> Severity:
    return classify_earthquake(magnitude)[0]


def earthquake_radius_km(magnitude: float) -> float:
    return classify_earthquake(magnitude)[1]


def is_earthquake_active(event_time: datetime, now: Optional[datetime] = None) -> bool:
    now = now or datetime.now(tz=timezone.utc)
    return now - event_time < EARTHQUAKE_ACTIVE_WINDOW


def fire_radius_km(acres_burned: Optional[float]) -> float:
    acres = acres_burned or 0.0
    if acres > 10000:
        return 50.0
    if acres > 1000:
        return 20.0
    if acres > 100:
        return 10.0
    return 5.0


def fire_severity(acres_burned: Optional[float]) -> Severity:
    acres = acres_burned or 0.0
    if acres > 100000:
        return Severity.EXTREME
    if acres > 10000:
        return Severity.SEVERE
    if acres > 1000:
        return Severity.MODERATE
    return Severity.MINOR


_TRAFFIC_RADIUS = {
    Severity.EXTREME: 10.0,
    Severity.SEVERE: 5.0,
    Severity.MODERATE: 3.0,
}


def traffic_radius_km(severity: Severity | str) -> float:
    if not isinstance(severity, Severity):
        severity = Severity.from_label(severity)
    return _TRAFFIC_RADIUS.get(severity, 1.0)


def unrest_severity(fatalities: Optional[int]) -> Severity:
    count = fatalities or 0
    if count >= 10:
        return Severity.EXTREME
    if count >= 3:
        return Severity.SEVERE
    if count >= 1:
        return Severity.MODERATE
    return Severity.MINOR


_GDACS_LEVELS = {
    "red": Severity.EXTREME,
    "orange": Severity.SEVERE,
    "green": Severity.MINOR,
}


def gdacs_severity(alert_level: Optional[str]) -> Severity:
    return _GDACS_LEVELS.get((alert_level or "").strip().lower(), Severity.MINOR)


__all__ = [
    "EARTHQUAKE_TABLE",
    "classify_earthquake",
    "earthquake_radius_km",
    "earthquake_severity",
    "fire_radius_km",
    "fire_severity",
    "gdacs_severity",
    "is_earthquake_active",
    "traffic_radius_km",
    "unrest_severity",
]
