from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from backend.core import models
from safetynet.entities import Coordinates, DisasterCategory, DisasterEvent, RequestType, Severity
from safetynet.providers.base import ProviderHTTPError
from safetynet.services.disasters import (
    DISASTER_DEGRADERS,
    DisasterService,
    build_disaster_chains,
)
from safetynet.services.orchestrator import FallbackOrchestrator
from support import FakeAdapter

NOW = datetime.now(tz=timezone.utc)


def make_event(event_id: str, latitude: float = 34.0, longitude: float = -118.0, **overrides) -> DisasterEvent:
    values = {
        "event_id": event_id,
        "category": DisasterCategory.EARTHQUAKE,
        "severity": Severity.MODERATE,
        "title": f"Event {event_id}",
        "latitude": latitude,
        "longitude": longitude,
        "radius_km": 100.0,
        "source": "USGS",
        "start_time": NOW,
    }
    values.update(overrides)
    return DisasterEvent(**values)


@pytest.fixture()
def repository(tmp_path) -> models.DisasterEventRepository:
    factory = models.configure_engine(f"sqlite:///{tmp_path / 'events.db'}")
    return models.DisasterEventRepository(factory)


def make_service(*adapters, repository=None) -> DisasterService:
    by_name = {adapter.name: adapter for adapter in adapters}
    orchestrator = FallbackOrchestrator(chains=build_disaster_chains(by_name), degraders=DISASTER_DEGRADERS)
    return DisasterService(orchestrator, repository=repository)


def quake_adapter(name: str, events, **kwargs) -> FakeAdapter:
    return FakeAdapter(name, request_types=(RequestType.EARTHQUAKES,), result=events, **kwargs)


def test_earthquakes_fall_back_to_gdacs() -> None:
    service = make_service(
        quake_adapter("usgs", [], error=ProviderHTTPError(502)),
        quake_adapter("gdacs", [make_event("GDACS_EQ_1")]),
    )

    result = service.fetch_recent_earthquakes(min_magnitude=4.5)

    assert result.source == "Gdacs"
    assert result.errors == ("Usgs: HTTP 502",)
    assert [event.event_id for event in result.value] == ["GDACS_EQ_1"]


def test_events_are_filtered_to_requested_radius() -> None:
    events = [make_event("near", 34.01, -118.01), make_event("far", 40.0, -100.0)]
    service = make_service(quake_adapter("usgs", events))

    nearby = service.get_recent_earthquakes(center=Coordinates(34.0, -118.0), radius_km=50)

    assert [event.event_id for event in nearby] == ["near"]


def test_degraded_feed_returns_single_placeholder_event() -> None:
    service = make_service(quake_adapter("usgs", [], error=ProviderHTTPError(500)))
    center = Coordinates(34.0, -118.0)

    result = service.fetch_recent_earthquakes(center=center, radius_km=10)

    assert result.degraded is True
    assert len(result.value) == 1
    placeholder = result.value[0]
    assert placeholder.event_id == "DEGRADED_EARTHQUAKES"
    assert placeholder.degraded is True
    assert placeholder.source == "system"
    assert (placeholder.latitude, placeholder.longitude) == (34.0, -118.0)
    assert "Usgs: HTTP 500" in placeholder.description


def test_combined_alerts_keep_feed_order() -> None:
    service = make_service(
        FakeAdapter("usgs", request_types=(RequestType.EARTHQUAKES,), result=[make_event("quake")]),
        FakeAdapter(
            "wfigs",
            request_types=(RequestType.WILDFIRES,),
            result=[make_event("fire", category=DisasterCategory.FIRE)],
        ),
        FakeAdapter(
            "acled",
            request_types=(RequestType.CIVIL_UNREST,),
            result=[make_event("protest", category=DisasterCategory.CIVIL_UNREST)],
        ),
        FakeAdapter(
            "gdacs",
            request_types=(RequestType.SEVERE_WEATHER,),
            result=[make_event("storm", category=DisasterCategory.STORM)],
        ),
    )

    combined = service.get_combined_alerts(Coordinates(34.0, -118.0), radius_km=100)

    assert [event.event_id for event in combined] == ["quake", "fire", "protest", "storm"]


def test_combined_alerts_include_placeholders_for_failed_feeds() -> None:
    service = make_service(FakeAdapter("usgs", request_types=(RequestType.EARTHQUAKES,), result=[make_event("quake")]))

    combined = service.get_combined_alerts(Coordinates(34.0, -118.0))

    assert [event.event_id for event in combined] == [
        "quake",
        "DEGRADED_WILDFIRES",
        "DEGRADED_CIVIL_UNREST",
        "DEGRADED_SEVERE_WEATHER",
    ]


def test_store_events_is_idempotent(repository) -> None:
    service = make_service(repository=repository)
    events = [make_event("us1"), make_event("us2")]

    first = service.store_events(events)
    second = service.store_events(events)

    assert [event.event_id for event in first] == ["us1", "us2"]
    assert second == []
    assert repository.count() == 2


def test_store_events_skips_placeholders(repository) -> None:
    service = make_service(repository=repository)

    stored = service.store_events([make_event("DEGRADED_EARTHQUAKES", degraded=True)])

    assert stored == []
    assert repository.count() == 0


def test_repository_round_trips_event_fields(repository) -> None:
    event = make_event("us3", end_time=NOW + timedelta(hours=2), description="Shallow")
    repository.create(event)

    loaded = repository.find_by_id("us3")

    assert loaded == event
    assert repository.find_by_id("missing") is None


def test_traffic_incident_is_persisted_with_derived_radius(repository) -> None:
    service = make_service(repository=repository)

    event = service.create_traffic_incident(
        title="Crash on I-359",
        description="Two lanes blocked",
        latitude=33.2,
        longitude=-87.5,
        severity="severe",
        estimated_duration_minutes=45,
    )

    assert event.event_id.startswith("TRAFFIC_")
    assert event.category is DisasterCategory.TRAFFIC
    assert event.radius_km == 5.0
    assert event.source == "Manual Report"
    assert event.end_time - event.start_time == timedelta(minutes=45)
    assert repository.find_by_id(event.event_id) is not None


def test_fire_incident_is_persisted(repository) -> None:
    service = make_service(repository=repository)

    event = service.create_fire_incident(
        title="Brush fire",
        description="Near the river",
        latitude=33.2,
        longitude=-87.5,
        severity=Severity.MODERATE,
        acres_burned=1500,
        containment_percent=20,
    )

    assert event.event_id.startswith("FIRE_")
    assert event.radius_km == 20.0
    assert event.source == "Fire Department"
    assert event.description == "Near the river (20% contained)"
    assert repository.count() == 1


def test_incident_with_invalid_coordinates_is_rejected(repository) -> None:
    service = make_service(repository=repository)

    with pytest.raises(ValueError):
        service.create_traffic_incident("x", "y", 120.0, 0.0, "minor")
    assert repository.count() == 0


def test_active_near_and_statistics(repository) -> None:
    service = make_service(repository=repository)
    service.store_events(
        [
            make_event("a", 34.0, -118.0, severity=Severity.MINOR),
            make_event("b", 34.1, -118.1, severity=Severity.EXTREME, category=DisasterCategory.FIRE),
            make_event("c", 10.0, 10.0, start_time=NOW - timedelta(days=3)),
            make_event("d", 34.0, -118.0, is_active=False),
        ]
    )

    near = service.get_active_near(34.0, -118.0, radius_km=50)
    stats = service.get_statistics(now=NOW)

    assert [event.event_id for event in near] == ["a", "b"]
    assert stats["total_active"] == 3
    assert stats["by_category"] == {"earthquake": 2, "fire": 1}
    assert stats["by_severity"] == {"minor": 1, "extreme": 1, "moderate": 1}
    assert stats["recent_24h"] == 2
    assert stats["most_severe"].event_id == "b"


def test_persistence_requires_repository() -> None:
    service = make_service()

    with pytest.raises(RuntimeError):
        service.store_events([make_event("x")])


def test_each_feed_uses_its_own_chain() -> None:
    service = make_service(
        FakeAdapter("wfigs", request_types=(RequestType.WILDFIRES,), result=[make_event("fire")]),
        FakeAdapter("acled", request_types=(RequestType.CIVIL_UNREST,), result=[make_event("protest")]),
        FakeAdapter(
            "nws",
            request_types=(RequestType.SEVERE_WEATHER,),
            result=[make_event("storm")],
        ),
    )

    assert [event.event_id for event in service.get_active_wildfires(min_acres=500)] == ["fire"]
    assert [event.event_id for event in service.get_civil_unrest(days_back=3)] == ["protest"]
    assert [event.event_id for event in service.get_severe_weather()] == ["storm"]
