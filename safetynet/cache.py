from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from .entities import Coordinates, RequestType


logger = logging.getLogger(__name__)


DEFAULT_TTLS: Dict[RequestType, float] = {
    RequestType.CURRENT: 10 * 60,
    RequestType.FORECAST: 30 * 60,
    # alerts are safety critical and refresh faster than conditions
    RequestType.ALERTS: 5 * 60,
    RequestType.EARTHQUAKES: 5 * 60,
    RequestType.WILDFIRES: 5 * 60,
    RequestType.CIVIL_UNREST: 5 * 60,
    RequestType.SEVERE_WEATHER: 5 * 60,
}


def make_fingerprint(
    request_type: RequestType,
    location: Optional[Coordinates],
    options: Optional[Mapping[str, Any]] = None,
) -> str:
    """Build the cache key for a request.

    Coordinates are rounded to four decimals (~11 m) so that jitter in client
    positions maps onto the same entry. Options with a ``None`` value are not
    material and are left out.
    """
    if location is None:
        where = "global"
    else:
        where = f"{round(location.latitude, 4):.4f}:{round(location.longitude, 4):.4f}"
    material = sorted((key, value) for key, value in (options or {}).items() if value is not None)
    opts = ",".join(f"{key}={value}" for key, value in material)
    return f"{RequestType(request_type).value}:{where}:{opts}"


@dataclass(frozen=True)
class CacheEntry:
    payload: Any
    inserted_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.inserted_at > self.ttl


class ResponseCache:
    """In-process TTL cache keyed by request fingerprint.

    Entries are evicted lazily when a lookup finds them expired; there is no
    background sweep and no size bound.
    """

    def __init__(self, time_func: Callable[[], float] = time.monotonic) -> None:
        self._time_func = time_func
        self._storage: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Any:
        with self._lock:
            entry = self._storage.get(key)
            if entry is None:
                self._misses += 1
                return None
            if entry.is_expired(self._time_func()):
                self._storage.pop(key, None)
                self._misses += 1
                logger.debug("Cache entry expired: %s", key)
                return None
            self._hits += 1
            return entry.payload

    def set(self, key: str, value: Any, ttl: float) -> None:
        with self._lock:
            self._storage[key] = CacheEntry(payload=value, inserted_at=self._time_func(), ttl=ttl)

    def clear(self) -> None:
        with self._lock:
            self._storage.clear()

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {"hits": self._hits, "misses": self._misses, "keys": len(self._storage)}

    def __len__(self) -> int:
        with self._lock:
            return len(self._storage)


__all__ = ["CacheEntry", "DEFAULT_TTLS", "ResponseCache", "make_fingerprint"]
