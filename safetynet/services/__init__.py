from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from ..cache import ResponseCache
from ..config import SafetyNetConfig
from ..network import AlwaysOnline, NetworkReachability, StaticReachability
from ..providers import ProviderAdapter, build_adapters
from ..ratelimit import RateLimiter
from .disasters import DISASTER_DEGRADERS, DisasterRepository, DisasterService, build_disaster_chains
from .health import health_check
from .orchestrator import FallbackOrchestrator
from .weather import WEATHER_DEGRADERS, WeatherService, build_weather_chains


logger = logging.getLogger(__name__)


@dataclass
class Services:
    weather: WeatherService
    disasters: DisasterService
    orchestrator: FallbackOrchestrator
    adapters: Dict[str, ProviderAdapter]
    config: SafetyNetConfig

    def health(self) -> Dict[str, Dict[str, Any]]:
        return health_check(self.adapters, self.config.providers)


def build_services(
    config: Optional[SafetyNetConfig] = None,
    reachability: Optional[NetworkReachability] = None,
    repository: Optional[DisasterRepository] = None,
    health: Optional[Any] = None,
    session: Optional[requests.Session] = None,
) -> Services:
    """Wire one cache, rate limiter and orchestrator shared by both facades."""
    config = config or SafetyNetConfig.from_env()
    if reachability is None:
        reachability = StaticReachability(online=False) if config.offline else AlwaysOnline()
    adapters = build_adapters(config, session=session)
    chains = build_weather_chains(adapters)
    chains.update(build_disaster_chains(adapters))
    degraders = dict(WEATHER_DEGRADERS)
    degraders.update(DISASTER_DEGRADERS)
    orchestrator = FallbackOrchestrator(
        chains=chains,
        cache=ResponseCache(),
        rate_limiter=RateLimiter(),
        reachability=reachability,
        degraders=degraders,
        health=health,
        single_flight=config.single_flight,
    )
    logger.info("Providers enabled: %s", ", ".join(sorted(adapters)) or "none")
    return Services(
        weather=WeatherService(orchestrator),
        disasters=DisasterService(orchestrator, repository=repository),
        orchestrator=orchestrator,
        adapters=adapters,
        config=config,
    )


__all__ = ["Services", "build_services"]
