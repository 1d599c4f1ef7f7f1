"""Provider configuration loaded from environment variables.

Every provider reads ``SAFETYNET_<ID>_API_KEY``, ``SAFETYNET_<ID>_BASE_URL``,
``SAFETYNET_<ID>_TIMEOUT`` and ``SAFETYNET_<ID>_RPM``. Providers that need a
key and have none are left out of the fallback chains instead of failing.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Dict, Mapping, Optional, Tuple


class ConfigurationError(ValueError):
    """Raised when an environment value cannot be parsed."""


@dataclass(frozen=True)
class ProviderConfig:
    name: str
    label: str
    base_url: str
    timeout: float
    requests_per_minute: int
    requires_key: bool = False
    api_key: Optional[str] = None
    required_extra: Tuple[str, ...] = ()
    extra: Mapping[str, str] = field(default_factory=dict)

    @property
    def enabled(self) -> bool:
        if self.requires_key and not self.api_key:
            return False
        return all(self.extra.get(key) for key in self.required_extra)


DEFAULT_PROVIDERS: Dict[str, ProviderConfig] = {
    "openweather": ProviderConfig(
        name="openweather",
        label="OpenWeatherMap",
        base_url="https://api.openweathermap.org/data/2.5",
        timeout=5.0,
        requests_per_minute=60,
        requires_key=True,
    ),
    "weatherapi": ProviderConfig(
        name="weatherapi",
        label="WeatherAPI",
        base_url="https://api.weatherapi.com/v1",
        timeout=5.0,
        requests_per_minute=100,
        requires_key=True,
    ),
    "meteostat": ProviderConfig(
        name="meteostat",
        label="Meteostat",
        base_url="https://meteostat.p.rapidapi.com",
        timeout=10.0,
        requests_per_minute=2000,
        requires_key=True,
    ),
    "nws": ProviderConfig(
        name="nws",
        label="National Weather Service",
        base_url="https://api.weather.gov",
        timeout=12.0,
        requests_per_minute=300,
    ),
    "openmeteo": ProviderConfig(
        name="openmeteo",
        label="Open-Meteo",
        base_url="https://api.open-meteo.com/v1",
        timeout=8.0,
        requests_per_minute=10000,
    ),
    "usgs": ProviderConfig(
        name="usgs",
        label="USGS",
        base_url="https://earthquake.usgs.gov/fdsnws/event/1",
        timeout=10.0,
        requests_per_minute=60,
    ),
    "wfigs": ProviderConfig(
        name="wfigs",
        label="WFIGS Wildfires",
        base_url=(
            "https://services3.arcgis.com/T4QMspbfLg3qTGWY/arcgis/rest/services/"
            "WFIGS_Incident_Locations_Current/FeatureServer/0"
        ),
        timeout=12.0,
        requests_per_minute=60,
    ),
    "gdacs": ProviderConfig(
        name="gdacs",
        label="GDACS",
        base_url="https://www.gdacs.org/gdacsapi/api",
        timeout=12.0,
        requests_per_minute=60,
    ),
    "acled": ProviderConfig(
        name="acled",
        label="ACLED",
        base_url="https://api.acleddata.com/acled",
        timeout=10.0,
        requests_per_minute=30,
        requires_key=True,
        required_extra=("email",),
    ),
}

DEFAULT_USER_AGENT = "SafetyNet/1.0 (family-safety@example.com)"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive")
    return value


def _env_bool(environ: Mapping[str, str], name: str, default: bool = False) -> bool:
    raw = environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE_VALUES


@dataclass(frozen=True)
class SafetyNetConfig:
    providers: Mapping[str, ProviderConfig] = field(default_factory=lambda: dict(DEFAULT_PROVIDERS))
    user_agent: str = DEFAULT_USER_AGENT
    offline: bool = False
    single_flight: bool = False

    def provider(self, name: str) -> ProviderConfig:
        return self.providers[name]

    def enabled(self, name: str) -> bool:
        config = self.providers.get(name)
        return config is not None and config.enabled

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SafetyNetConfig":
        environ = os.environ if environ is None else environ
        providers: Dict[str, ProviderConfig] = {}
        for name, default in DEFAULT_PROVIDERS.items():
            prefix = f"SAFETYNET_{name.upper()}"
            extra: Dict[str, str] = {}
            if name == "acled" and environ.get("SAFETYNET_ACLED_EMAIL"):
                extra["email"] = environ["SAFETYNET_ACLED_EMAIL"]
            providers[name] = replace(
                default,
                api_key=environ.get(f"{prefix}_API_KEY") or None,
                base_url=environ.get(f"{prefix}_BASE_URL") or default.base_url,
                timeout=_env_float(environ, f"{prefix}_TIMEOUT", default.timeout),
                requests_per_minute=_env_int(environ, f"{prefix}_RPM", default.requests_per_minute),
                extra=extra,
            )
        return cls(
            providers=providers,
            user_agent=environ.get("SAFETYNET_USER_AGENT") or DEFAULT_USER_AGENT,
            offline=_env_bool(environ, "SAFETYNET_OFFLINE"),
            single_flight=_env_bool(environ, "SAFETYNET_SINGLE_FLIGHT"),
        )


__all__ = ["ConfigurationError", "DEFAULT_PROVIDERS", "ProviderConfig", "SafetyNetConfig"]
