"""In-memory health registry for the admin dashboard.

The orchestrator reports provider failures here and the ingestion command
records its runs; the admin endpoint reads one consistent snapshot.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from threading import Lock
from typing import Dict, Mapping, Optional


@dataclass(frozen=True)
class CacheStats:
    """Simple container for cache related counters."""

    hits: int = 0
    misses: int = 0
    keys: int = 0

    def as_dict(self) -> Dict[str, int]:
        return {"hits": self.hits, "misses": self.misses, "keys": self.keys}


class HealthRegistry:
    """Stores provider error counters, cache stats and the last ingestion runs."""

    def __init__(self) -> None:
        self._provider_errors: Dict[str, int] = {}
        self._ingest_runs: Dict[str, Dict[str, object]] = {}
        self._cache_stats: CacheStats = CacheStats()
        self._lock = Lock()

    # -- Provider errors ----------------------------------------------------
    def record_provider_error(self, provider: str, increment: int = 1) -> None:
        if not provider:
            raise ValueError("provider must be provided")
        if increment <= 0:
            raise ValueError("increment must be positive")
        with self._lock:
            self._provider_errors[provider] = self._provider_errors.get(provider, 0) + increment

    def drain_provider_errors(self) -> Dict[str, int]:
        with self._lock:
            snapshot = dict(self._provider_errors)
            self._provider_errors.clear()
            return snapshot

    # -- Ingestion ----------------------------------------------------------
    def record_ingest(self, feed: str, stored: int, when: Optional[datetime] = None) -> None:
        if not feed:
            raise ValueError("feed must be provided")
        if stored < 0:
            raise ValueError("stored must be non-negative")
        when = when or datetime.now(timezone.utc)
        with self._lock:
            self._ingest_runs[feed] = {"at": self._format_datetime(when), "stored": stored}

    # -- Cache stats --------------------------------------------------------
    def set_cache_stats(self, stats: Optional[Mapping[str, int]]) -> None:
        if not stats:
            self._cache_stats = CacheStats()
            return
        self._cache_stats = CacheStats(
            hits=int(stats.get("hits", 0)),
            misses=int(stats.get("misses", 0)),
            keys=int(stats.get("keys", 0)),
        )

    # -- Snapshot -----------------------------------------------------------
    def snapshot(self) -> Dict[str, object]:
        with self._lock:
            providers = dict(self._provider_errors)
            ingest = {feed: dict(run) for feed, run in self._ingest_runs.items()}
            cache = self._cache_stats.as_dict()
        return {"providers": providers, "cache": cache, "ingest": ingest}

    @staticmethod
    def _format_datetime(value: datetime) -> str:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat()


__all__ = ["CacheStats", "HealthRegistry"]
