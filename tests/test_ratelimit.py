from __future__ import annotations

import pytest

from safetynet.ratelimit import RateLimiter


def test_limiter_admits_up_to_budget_within_window(clock) -> None:
    limiter = RateLimiter(time_func=clock)
    limiter.register("usgs", 3)

    assert [limiter.try_acquire("usgs") for _ in range(4)] == [True, True, True, False]


def test_limiter_window_resets_after_a_minute(clock) -> None:
    limiter = RateLimiter(time_func=clock)
    limiter.register("acled", 1)
    assert limiter.try_acquire("acled") is True
    assert limiter.try_acquire("acled") is False

    clock.advance(60)
    assert limiter.try_acquire("acled") is False

    clock.advance(0.1)
    assert limiter.try_acquire("acled") is True


def test_limiter_tracks_providers_independently(clock) -> None:
    limiter = RateLimiter(time_func=clock)
    limiter.register("a", 1)
    limiter.register("b", 1)

    assert limiter.try_acquire("a") is True
    assert limiter.try_acquire("b") is True
    assert limiter.try_acquire("a") is False


def test_unregistered_provider_is_not_limited(clock) -> None:
    limiter = RateLimiter(time_func=clock)

    assert all(limiter.try_acquire("unknown") for _ in range(100))


def test_register_rejects_non_positive_budget() -> None:
    limiter = RateLimiter()

    with pytest.raises(ValueError):
        limiter.register("nws", 0)


def test_snapshot_reports_usage(clock) -> None:
    limiter = RateLimiter(time_func=clock)
    limiter.register("nws", 300)
    limiter.try_acquire("nws")

    snapshot = limiter.snapshot()

    assert snapshot["nws"]["count"] == 1
    assert snapshot["nws"]["requests_per_minute"] == 300
