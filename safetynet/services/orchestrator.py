from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from ..cache import DEFAULT_TTLS, ResponseCache, make_fingerprint
from ..entities import Coordinates, FetchResult, RequestType
from ..network import AlwaysOnline, NetworkReachability
from ..providers.base import ProviderAdapter, ProviderError
from ..ratelimit import RateLimiter


logger = logging.getLogger(__name__)

DEGRADED_SOURCE = "system"
OFFLINE = "offline"
NO_PROVIDERS = "no providers configured"

# (location, options, reasons) -> placeholder payload
Degrader = Callable[[Optional[Coordinates], Mapping[str, Any], Sequence[str]], Any]


@dataclass(frozen=True)
class Success:
    provider: str
    value: Any


@dataclass(frozen=True)
class Failure:
    provider: str
    message: str


@dataclass(frozen=True)
class Skipped:
    provider: str
    reason: str


Outcome = Union[Success, Failure, Skipped]


class FallbackOrchestrator:
    """Walk a fixed-priority provider chain and always hand back a usable result.

    For each request the cache is consulted first, then reachability, then
    every adapter in order: rate limited or unsupported adapters are skipped,
    a failing adapter contributes ``"{Label}: {message}"`` to the error list and
    the first success is cached and returned. When the chain is exhausted the
    request type's degrader builds a placeholder which is never cached.
    """

    def __init__(
        self,
        chains: Mapping[RequestType, Sequence[ProviderAdapter]],
        cache: Optional[ResponseCache] = None,
        rate_limiter: Optional[RateLimiter] = None,
        reachability: Optional[NetworkReachability] = None,
        ttls: Optional[Mapping[RequestType, float]] = None,
        degraders: Optional[Mapping[RequestType, Degrader]] = None,
        health: Optional[Any] = None,
        single_flight: bool = False,
    ) -> None:
        self.chains: Dict[RequestType, Tuple[ProviderAdapter, ...]] = {
            RequestType(request_type): tuple(adapters) for request_type, adapters in chains.items()
        }
        self.cache = cache if cache is not None else ResponseCache()
        self.rate_limiter = rate_limiter if rate_limiter is not None else RateLimiter()
        self.reachability = reachability if reachability is not None else AlwaysOnline()
        self.ttls = dict(DEFAULT_TTLS)
        self.ttls.update(ttls or {})
        self.degraders = dict(degraders or {})
        self.health = health
        self.single_flight = single_flight
        self._inflight: Dict[str, Future] = {}
        self._inflight_lock = threading.Lock()
        for adapter in self.adapters().values():
            self.rate_limiter.register(adapter.name, adapter.requests_per_minute)

    # Public API ---------------------------------------------------------
    def adapters(self) -> Dict[str, ProviderAdapter]:
        unique: Dict[str, ProviderAdapter] = {}
        for chain in self.chains.values():
            for adapter in chain:
                unique.setdefault(adapter.name, adapter)
        return unique

    def chain(self, request_type: RequestType) -> Tuple[ProviderAdapter, ...]:
        return self.chains.get(RequestType(request_type), ())

    def fetch(
        self,
        request_type: RequestType,
        location: Optional[Coordinates] = None,
        options: Optional[Mapping[str, Any]] = None,
    ) -> FetchResult:
        request_type = RequestType(request_type)
        options = dict(options or {})
        key = make_fingerprint(request_type, location, options)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Cache hit for %s", key)
            return replace(cached, from_cache=True)
        if not self.single_flight:
            return self._resolve(request_type, location, options, key)
        return self._resolve_once(request_type, location, options, key)

    # Helpers ------------------------------------------------------------
    def _resolve_once(
        self,
        request_type: RequestType,
        location: Optional[Coordinates],
        options: Mapping[str, Any],
        key: str,
    ) -> FetchResult:
        with self._inflight_lock:
            future = self._inflight.get(key)
            leader = future is None
            if leader:
                future = Future()
                self._inflight[key] = future
        if not leader:
            logger.debug("Joining in-flight request for %s", key)
            return future.result()
        try:
            result = self._resolve(request_type, location, options, key)
        except BaseException as exc:
            future.set_exception(exc)
            raise
        else:
            future.set_result(result)
            return result
        finally:
            with self._inflight_lock:
                self._inflight.pop(key, None)

    def _resolve(
        self,
        request_type: RequestType,
        location: Optional[Coordinates],
        options: Mapping[str, Any],
        key: str,
    ) -> FetchResult:
        if not self.reachability.is_online():
            logger.warning("Offline, serving degraded %s", request_type.value)
            return self._degrade(request_type, location, options, [OFFLINE], [])

        errors: List[str] = []
        skipped: List[str] = []
        for adapter in self.chain(request_type):
            outcome = self._attempt(adapter, request_type, location, options)
            if isinstance(outcome, Success):
                result = FetchResult(
                    request_type=request_type,
                    value=outcome.value,
                    source=adapter.label,
                    errors=tuple(errors),
                    skipped=tuple(skipped),
                )
                self.cache.set(key, result, self.ttls.get(request_type, 300))
                return result
            if isinstance(outcome, Skipped):
                skipped.append(f"{adapter.label}: {outcome.reason}")
            else:
                errors.append(outcome.message)

        reasons = errors or skipped or [NO_PROVIDERS]
        logger.error("All providers failed for %s: %s", request_type.value, "; ".join(reasons))
        return self._degrade(request_type, location, options, reasons, skipped)

    def _attempt(
        self,
        adapter: ProviderAdapter,
        request_type: RequestType,
        location: Optional[Coordinates],
        options: Mapping[str, Any],
    ) -> Outcome:
        if not adapter.supports(request_type, location):
            return Skipped(adapter.name, "unsupported location")
        if not self.rate_limiter.try_acquire(adapter.name):
            logger.info("Skipping %s: rate limit reached", adapter.label)
            return Skipped(adapter.name, "rate limited")
        try:
            value = adapter.attempt_fetch(request_type, location, options)
        except ProviderError as exc:
            logger.warning("%s failed for %s: %s", adapter.label, request_type.value, exc)
            return self._failed(adapter, str(exc))
        except Exception as exc:  # a mapping bug must not break the chain
            logger.exception("%s raised while mapping %s", adapter.label, request_type.value)
            return self._failed(adapter, str(exc) or exc.__class__.__name__)
        return Success(adapter.name, value)

    def _failed(self, adapter: ProviderAdapter, message: str) -> Failure:
        if self.health is not None:
            self.health.record_provider_error(adapter.name)
        return Failure(adapter.name, f"{adapter.label}: {message}")

    def _degrade(
        self,
        request_type: RequestType,
        location: Optional[Coordinates],
        options: Mapping[str, Any],
        reasons: Sequence[str],
        skipped: Sequence[str],
    ) -> FetchResult:
        degrader = self.degraders.get(request_type)
        value = degrader(location, options, tuple(reasons)) if degrader else None
        return FetchResult(
            request_type=request_type,
            value=value,
            source=DEGRADED_SOURCE,
            degraded=True,
            errors=tuple(reasons),
            skipped=tuple(skipped),
        )


__all__ = [
    "DEGRADED_SOURCE",
    "Degrader",
    "Failure",
    "FallbackOrchestrator",
    "NO_PROVIDERS",
    "OFFLINE",
    "Outcome",
    "Skipped",
    "Success",
]
