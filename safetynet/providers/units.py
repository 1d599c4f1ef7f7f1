from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional


def safe_float(value: Optional[object]) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def safe_index(values: Optional[List[Optional[float]]], index: int) -> Optional[float]:
    try:
        value = (values or [])[index]
    except IndexError:
        return None
    return safe_float(value)


def celsius_to_fahrenheit(value: float) -> float:
    return value * 9 / 5 + 32


def kmh_to_mph(value: float) -> float:
    return value * 0.621371


def ms_to_mph(value: float) -> float:
    return value * 2.237


def meters_to_miles(value: float) -> float:
    return value / 1609.34


def pa_to_hpa(value: float) -> float:
    return value / 100


def parse_timestamp(value: Optional[object]) -> Optional[datetime]:
    """Parse epoch seconds/milliseconds or ISO-8601 text into aware UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)):
        seconds = value / 1000 if value > 1e11 else value
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


__all__ = [
    "celsius_to_fahrenheit",
    "kmh_to_mph",
    "meters_to_miles",
    "ms_to_mph",
    "pa_to_hpa",
    "parse_timestamp",
    "safe_float",
    "safe_index",
]
