from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Mapping, Optional

from ..config import ProviderConfig
from ..providers.base import ProviderAdapter, ProviderError


logger = logging.getLogger(__name__)


def health_check(
    adapters: Mapping[str, ProviderAdapter],
    configs: Optional[Mapping[str, ProviderConfig]] = None,
    time_func: Callable[[], float] = time.perf_counter,
) -> Dict[str, Dict[str, Any]]:
    """Probe each configured provider once, bypassing cache, rate limits and fallback."""
    report: Dict[str, Dict[str, Any]] = {}
    for name, config in (configs or {}).items():
        if name not in adapters:
            reason = "No API key configured" if config.requires_key else "Provider not configured"
            report[name] = {"status": "disabled", "reason": reason}
    for name, adapter in adapters.items():
        started = time_func()
        try:
            adapter.probe()
        except ProviderError as exc:
            logger.warning("Health probe for %s failed: %s", adapter.label, exc)
            report[name] = {
                "status": "unhealthy",
                "response_time_ms": _elapsed_ms(started, time_func),
                "error": str(exc),
                "rate_limit": adapter.requests_per_minute,
            }
            continue
        report[name] = {
            "status": "healthy",
            "response_time_ms": _elapsed_ms(started, time_func),
            "rate_limit": adapter.requests_per_minute,
        }
    return report


def _elapsed_ms(started: float, time_func: Callable[[], float]) -> int:
    return int(round((time_func() - started) * 1000))


__all__ = ["health_check"]
