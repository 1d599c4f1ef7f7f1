from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict


logger = logging.getLogger(__name__)


@dataclass
class ProviderRateState:
    window_start: float
    count: int
    requests_per_minute: int


class RateLimiter:
    """Per-provider request budget over an approximate one minute window.

    The counter resets the first time :meth:`try_acquire` runs more than
    ``window_seconds`` after the window opened. This is a fixed window that
    restarts lazily, not a precise sliding window.
    """

    def __init__(
        self,
        time_func: Callable[[], float] = time.monotonic,
        window_seconds: float = 60.0,
    ) -> None:
        self._time_func = time_func
        self._window = window_seconds
        self._states: Dict[str, ProviderRateState] = {}
        self._lock = threading.Lock()

    def register(self, provider_id: str, requests_per_minute: int) -> None:
        if requests_per_minute <= 0:
            raise ValueError("requests_per_minute must be positive")
        with self._lock:
            self._states[provider_id] = ProviderRateState(
                window_start=self._time_func(),
                count=0,
                requests_per_minute=requests_per_minute,
            )

    def try_acquire(self, provider_id: str) -> bool:
        with self._lock:
            state = self._states.get(provider_id)
            if state is None:
                return True
            now = self._time_func()
            if now - state.window_start > self._window:
                state.window_start = now
                state.count = 0
            if state.count >= state.requests_per_minute:
                logger.debug("Rate limit reached for %s (%s/min)", provider_id, state.requests_per_minute)
                return False
            state.count += 1
            return True

    def snapshot(self) -> Dict[str, Dict[str, float]]:
        with self._lock:
            return {
                provider_id: {
                    "count": state.count,
                    "requests_per_minute": state.requests_per_minute,
                    "window_start": state.window_start,
                }
                for provider_id, state in self._states.items()
            }


__all__ = ["ProviderRateState", "RateLimiter"]
