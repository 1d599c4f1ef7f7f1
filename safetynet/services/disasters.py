from __future__ import annotations

import logging
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from functools import partial
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

from ..derivation import fire_radius_km, traffic_radius_km
from ..entities import (
    Coordinates,
    DisasterCategory,
    DisasterEvent,
    FetchResult,
    RequestType,
    Severity,
)
from ..geo import filter_by_radius
from ..providers.base import ProviderAdapter
from .orchestrator import DEGRADED_SOURCE, FallbackOrchestrator


logger = logging.getLogger(__name__)

DISASTER_CHAINS: Dict[RequestType, Sequence[str]] = {
    RequestType.EARTHQUAKES: ("usgs", "gdacs"),
    RequestType.WILDFIRES: ("wfigs", "gdacs"),
    RequestType.CIVIL_UNREST: ("acled",),
    RequestType.SEVERE_WEATHER: ("gdacs", "nws"),
}

# Order of the combined feed.
COMBINED_ORDER = (
    RequestType.EARTHQUAKES,
    RequestType.WILDFIRES,
    RequestType.CIVIL_UNREST,
    RequestType.SEVERE_WEATHER,
)

_FEED_TITLES = {
    RequestType.EARTHQUAKES: "Earthquake data unavailable",
    RequestType.WILDFIRES: "Wildfire data unavailable",
    RequestType.CIVIL_UNREST: "Civil unrest data unavailable",
    RequestType.SEVERE_WEATHER: "Severe weather data unavailable",
}


class DisasterRepository(Protocol):
    def find_by_id(self, event_id: str) -> Optional[DisasterEvent]:
        ...

    def create(self, event: DisasterEvent) -> DisasterEvent:
        ...

    def find_active(self) -> List[DisasterEvent]:
        ...

    def find_near(self, latitude: float, longitude: float, radius_km: float) -> List[DisasterEvent]:
        ...


def degraded_events(
    request_type: RequestType,
    location: Optional[Coordinates],
    options: Mapping[str, Any],
    reasons: Sequence[str],
) -> List[DisasterEvent]:
    """Single placeholder event standing in for a feed whose providers all failed."""
    center = location or Coordinates(0.0, 0.0)
    return [
        DisasterEvent(
            event_id=f"DEGRADED_{request_type.value.upper()}",
            category=DisasterCategory.OTHER,
            severity=Severity.MINOR,
            title=_FEED_TITLES.get(request_type, "Disaster data unavailable"),
            description=f"Unable to fetch disaster data from external APIs. {'; '.join(reasons)}",
            latitude=center.latitude,
            longitude=center.longitude,
            radius_km=0.0,
            source=DEGRADED_SOURCE,
            start_time=datetime.now(tz=timezone.utc),
            degraded=True,
        )
    ]


DISASTER_DEGRADERS = {request_type: partial(degraded_events, request_type) for request_type in DISASTER_CHAINS}


def build_disaster_chains(adapters: Mapping[str, ProviderAdapter]) -> Dict[RequestType, List[ProviderAdapter]]:
    return {
        request_type: [adapters[name] for name in names if name in adapters]
        for request_type, names in DISASTER_CHAINS.items()
    }


def _generate_id(prefix: str) -> str:
    return f"{prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


class DisasterService:
    def __init__(
        self,
        orchestrator: FallbackOrchestrator,
        repository: Optional[DisasterRepository] = None,
        max_workers: int = 4,
    ) -> None:
        self.orchestrator = orchestrator
        self.repository = repository
        self.max_workers = max_workers
        self._log = logging.getLogger(self.__class__.__name__)

    # Feeds --------------------------------------------------------------
    def fetch_recent_earthquakes(
        self,
        min_magnitude: float = 2.5,
        max_magnitude: float = 10.0,
        window_hours: float = 24,
        center: Optional[Coordinates] = None,
        radius_km: Optional[float] = None,
        limit: int = 100,
    ) -> FetchResult:
        options = {
            "min_magnitude": min_magnitude,
            "max_magnitude": max_magnitude,
            "window_hours": window_hours,
            "radius_km": radius_km,
            "limit": limit,
        }
        return self._fetch(RequestType.EARTHQUAKES, center, radius_km, options)

    def get_recent_earthquakes(self, *args, **kwargs) -> List[DisasterEvent]:
        return list(self.fetch_recent_earthquakes(*args, **kwargs).value)

    def fetch_active_wildfires(
        self,
        center: Optional[Coordinates] = None,
        radius_km: Optional[float] = None,
        min_acres: float = 100,
    ) -> FetchResult:
        return self._fetch(RequestType.WILDFIRES, center, radius_km, {"min_acres": min_acres})

    def get_active_wildfires(self, *args, **kwargs) -> List[DisasterEvent]:
        return list(self.fetch_active_wildfires(*args, **kwargs).value)

    def fetch_civil_unrest(
        self,
        center: Optional[Coordinates] = None,
        radius_km: Optional[float] = None,
        days_back: int = 7,
    ) -> FetchResult:
        return self._fetch(RequestType.CIVIL_UNREST, center, radius_km, {"days_back": days_back})

    def get_civil_unrest(self, *args, **kwargs) -> List[DisasterEvent]:
        return list(self.fetch_civil_unrest(*args, **kwargs).value)

    def fetch_severe_weather(
        self,
        center: Optional[Coordinates] = None,
        radius_km: Optional[float] = None,
    ) -> FetchResult:
        return self._fetch(RequestType.SEVERE_WEATHER, center, radius_km, {})

    def get_severe_weather(self, *args, **kwargs) -> List[DisasterEvent]:
        return list(self.fetch_severe_weather(*args, **kwargs).value)

    def get_combined_alerts(self, center: Coordinates, radius_km: float = 100) -> List[DisasterEvent]:
        """All four hazard feeds around ``center``, fetched concurrently."""
        fetchers = {
            RequestType.EARTHQUAKES: partial(self.fetch_recent_earthquakes, center=center, radius_km=radius_km),
            RequestType.WILDFIRES: partial(self.fetch_active_wildfires, center=center, radius_km=radius_km),
            RequestType.CIVIL_UNREST: partial(self.fetch_civil_unrest, center=center, radius_km=radius_km),
            RequestType.SEVERE_WEATHER: partial(self.fetch_severe_weather, center=center, radius_km=radius_km),
        }
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = {request_type: pool.submit(fetcher) for request_type, fetcher in fetchers.items()}
            results = {request_type: future.result() for request_type, future in futures.items()}
        combined: List[DisasterEvent] = []
        for request_type in COMBINED_ORDER:
            combined.extend(results[request_type].value)
        return combined

    # Persistence --------------------------------------------------------
    def store_events(self, events: Sequence[DisasterEvent]) -> List[DisasterEvent]:
        """Persist events not stored yet; running it twice stores nothing new."""
        repository = self._require_repository()
        stored: List[DisasterEvent] = []
        for event in events:
            if event.degraded:
                continue
            if repository.find_by_id(event.event_id) is not None:
                self._log.debug("Event %s already stored", event.event_id)
                continue
            stored.append(repository.create(event))
        if stored:
            self._log.info("Stored %s new events", len(stored))
        return stored

    def create_traffic_incident(
        self,
        title: str,
        description: str,
        latitude: float,
        longitude: float,
        severity: Severity | str,
        estimated_duration_minutes: Optional[int] = None,
        source: Optional[str] = None,
    ) -> DisasterEvent:
        severity = severity if isinstance(severity, Severity) else Severity.from_label(severity)
        location = Coordinates(latitude, longitude)
        now = datetime.now(tz=timezone.utc)
        end_time = now + timedelta(minutes=estimated_duration_minutes) if estimated_duration_minutes else None
        event = DisasterEvent(
            event_id=_generate_id("TRAFFIC"),
            category=DisasterCategory.TRAFFIC,
            severity=severity,
            title=title,
            description=description,
            latitude=location.latitude,
            longitude=location.longitude,
            radius_km=traffic_radius_km(severity),
            source=source or "Manual Report",
            start_time=now,
            end_time=end_time,
        )
        return self._require_repository().create(event)

    def create_fire_incident(
        self,
        title: str,
        description: str,
        latitude: float,
        longitude: float,
        severity: Severity | str,
        acres_burned: Optional[float] = None,
        containment_percent: Optional[float] = None,
        source: Optional[str] = None,
    ) -> DisasterEvent:
        severity = severity if isinstance(severity, Severity) else Severity.from_label(severity)
        location = Coordinates(latitude, longitude)
        if containment_percent is not None:
            description = f"{description} ({containment_percent:.0f}% contained)"
        event = DisasterEvent(
            event_id=_generate_id("FIRE"),
            category=DisasterCategory.FIRE,
            severity=severity,
            title=title,
            description=description,
            latitude=location.latitude,
            longitude=location.longitude,
            radius_km=fire_radius_km(acres_burned),
            source=source or "Fire Department",
            start_time=datetime.now(tz=timezone.utc),
        )
        return self._require_repository().create(event)

    def get_active_near(self, latitude: float, longitude: float, radius_km: float = 100) -> List[DisasterEvent]:
        return self._require_repository().find_near(latitude, longitude, radius_km)

    def get_statistics(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.now(tz=timezone.utc)
        active = self._require_repository().find_active()
        by_category: Dict[str, int] = {}
        by_severity: Dict[str, int] = {}
        recent = 0
        most_severe: Optional[DisasterEvent] = None
        for event in active:
            by_category[event.category.value] = by_category.get(event.category.value, 0) + 1
            by_severity[event.severity.value] = by_severity.get(event.severity.value, 0) + 1
            if event.start_time is not None and now - event.start_time <= timedelta(hours=24):
                recent += 1
            if most_severe is None or event.severity > most_severe.severity:
                most_severe = event
        return {
            "total_active": len(active),
            "by_category": by_category,
            "by_severity": by_severity,
            "recent_24h": recent,
            "most_severe": most_severe,
        }

    # Helpers ------------------------------------------------------------
    def _fetch(
        self,
        request_type: RequestType,
        center: Optional[Coordinates],
        radius_km: Optional[float],
        options: Mapping[str, Any],
    ) -> FetchResult:
        result = self.orchestrator.fetch(request_type, center, options)
        if center is None or radius_km is None or result.degraded:
            return result
        return replace(result, value=filter_by_radius(result.value, center, radius_km))

    def _require_repository(self) -> DisasterRepository:
        if self.repository is None:
            raise RuntimeError("No disaster repository configured")
        return self.repository


__all__ = [
    "COMBINED_ORDER",
    "DISASTER_CHAINS",
    "DISASTER_DEGRADERS",
    "DisasterRepository",
    "DisasterService",
    "build_disaster_chains",
    "degraded_events",
]
