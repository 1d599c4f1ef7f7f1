from __future__ import annotations

import logging
from typing import Dict, Optional, Type

import requests

from .acled import AcledUnrestAdapter
from .base import (
    MalformedPayload,
    ProviderAdapter,
    ProviderError,
    ProviderHTTPError,
    ProviderTimeout,
    QuotaExceeded,
)
from .gdacs import GdacsAdapter
from .meteostat import MeteostatAdapter
from .nws import NationalWeatherServiceAdapter
from .openmeteo import OpenMeteoAdapter
from .openweather import OpenWeatherAdapter
from .usgs import USGSEarthquakeAdapter
from .weatherapi import WeatherApiAdapter
from .wfigs import WildfireIncidentAdapter
from ..config import SafetyNetConfig


logger = logging.getLogger(__name__)

ADAPTER_CLASSES: Dict[str, Type[ProviderAdapter]] = {
    "openweather": OpenWeatherAdapter,
    "weatherapi": WeatherApiAdapter,
    "meteostat": MeteostatAdapter,
    "nws": NationalWeatherServiceAdapter,
    "openmeteo": OpenMeteoAdapter,
    "usgs": USGSEarthquakeAdapter,
    "wfigs": WildfireIncidentAdapter,
    "gdacs": GdacsAdapter,
    "acled": AcledUnrestAdapter,
}


def build_adapters(
    config: SafetyNetConfig,
    session: Optional[requests.Session] = None,
) -> Dict[str, ProviderAdapter]:
    """Instantiate every enabled provider; providers lacking credentials are left out."""
    session = session or requests.Session()
    adapters: Dict[str, ProviderAdapter] = {}
    for name, adapter_cls in ADAPTER_CLASSES.items():
        provider_config = config.providers.get(name)
        if provider_config is None:
            continue
        if not provider_config.enabled:
            logger.info("Provider %s disabled: missing credentials", name)
            continue
        adapters[name] = adapter_cls(provider_config, session=session, user_agent=config.user_agent)
    return adapters


__all__ = [
    "ADAPTER_CLASSES",
    "AcledUnrestAdapter",
    "GdacsAdapter",
    "MalformedPayload",
    "MeteostatAdapter",
    "NationalWeatherServiceAdapter",
    "OpenMeteoAdapter",
    "OpenWeatherAdapter",
    "ProviderAdapter",
    "ProviderError",
    "ProviderHTTPError",
    "ProviderTimeout",
    "QuotaExceeded",
    "USGSEarthquakeAdapter",
    "WeatherApiAdapter",
    "WildfireIncidentAdapter",
    "build_adapters",
]
