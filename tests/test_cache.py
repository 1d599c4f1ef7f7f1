from __future__ import annotations

from safetynet.cache import DEFAULT_TTLS, ResponseCache, make_fingerprint
from safetynet.entities import Coordinates, RequestType


def test_fingerprint_rounds_coordinates_to_four_decimals() -> None:
    first = make_fingerprint(RequestType.CURRENT, Coordinates(40.712811, -74.006012))
    second = make_fingerprint(RequestType.CURRENT, Coordinates(40.712849, -74.005951))

    assert first == second
    assert first == "current:40.7128:-74.0060:"


def test_fingerprint_includes_material_options_in_sorted_order() -> None:
    key = make_fingerprint(
        RequestType.EARTHQUAKES,
        None,
        {"window_hours": 24, "min_magnitude": 4.5, "radius_km": None},
    )

    assert key == "earthquakes:global:min_magnitude=4.5,window_hours=24"


def test_fingerprint_differs_by_request_type_and_options() -> None:
    location = Coordinates(10.0, 20.0)

    assert make_fingerprint(RequestType.CURRENT, location) != make_fingerprint(RequestType.FORECAST, location)
    assert make_fingerprint(RequestType.FORECAST, location, {"days": 3}) != make_fingerprint(
        RequestType.FORECAST, location, {"days": 5}
    )


def test_cache_returns_value_until_ttl_elapses(clock) -> None:
    cache = ResponseCache(time_func=clock)
    cache.set("key", "value", ttl=60)

    clock.advance(60)
    assert cache.get("key") == "value"

    clock.advance(0.5)
    assert cache.get("key") is None
    assert len(cache) == 0


def test_cache_stats_track_hits_and_misses(clock) -> None:
    cache = ResponseCache(time_func=clock)
    cache.get("missing")
    cache.set("key", 1, ttl=10)
    cache.get("key")
    cache.get("key")

    assert cache.stats() == {"hits": 2, "misses": 1, "keys": 1}

    cache.clear()
    assert cache.stats()["keys"] == 0


def test_alert_feeds_refresh_faster_than_forecasts() -> None:
    assert DEFAULT_TTLS[RequestType.ALERTS] == 300
    assert DEFAULT_TTLS[RequestType.CURRENT] == 600
    assert DEFAULT_TTLS[RequestType.FORECAST] == 1800
