from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from safetynet.derivation import (
    classify_earthquake,
    earthquake_radius_km,
    earthquake_severity,
    fire_radius_km,
    fire_severity,
    gdacs_severity,
    is_earthquake_active,
    traffic_radius_km,
    unrest_severity,
)
from safetynet.entities import Severity


@pytest.mark.parametrize(
    "magnitude, severity, radius",
    [
        (8.2, Severity.EXTREME, 1000.0),
        (7.0, Severity.SEVERE, 500.0),
        (6.5, Severity.MODERATE, 200.0),
        (5.1, Severity.MODERATE, 100.0),
        (4.0, Severity.MINOR, 50.0),
        (2.5, Severity.MINOR, 25.0),
    ],
)
def test_earthquake_classification(magnitude: float, severity: Severity, radius: float) -> None:
    assert classify_earthquake(magnitude) == (severity, radius)


def test_earthquake_active_for_a_day() -> None:
    now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    assert is_earthquake_active(now - timedelta(hours=23), now) is True
    assert is_earthquake_active(now - timedelta(hours=24), now) is False


@pytest.mark.parametrize(
    "acres, radius, severity",
    [
        (None, 5.0, Severity.MINOR),
        (150, 10.0, Severity.MINOR),
        (5000, 20.0, Severity.MODERATE),
        (20000, 50.0, Severity.SEVERE),
        (150000, 50.0, Severity.EXTREME),
    ],
)
def test_fire_rules(acres, radius: float, severity: Severity) -> None:
    assert fire_radius_km(acres) == radius
    assert fire_severity(acres) is severity


def test_traffic_radius_by_severity() -> None:
    assert traffic_radius_km(Severity.EXTREME) == 10.0
    assert traffic_radius_km("severe") == 5.0
    assert traffic_radius_km(Severity.MODERATE) == 3.0
    assert traffic_radius_km(Severity.MINOR) == 1.0


def test_unrest_and_gdacs_severity() -> None:
    assert unrest_severity(None) is Severity.MINOR
    assert unrest_severity(1) is Severity.MODERATE
    assert unrest_severity(3) is Severity.SEVERE
    assert unrest_severity(12) is Severity.EXTREME
    assert gdacs_severity("Red") is Severity.EXTREME
    assert gdacs_severity("Orange") is Severity.SEVERE
    assert gdacs_severity(None) is Severity.MINOR


def test_severity_ordering_and_labels() -> None:
    assert Severity.MINOR < Severity.MODERATE < Severity.SEVERE < Severity.EXTREME
    assert max([Severity.SEVERE, Severity.EXTREME, Severity.MINOR]) is Severity.EXTREME
    assert Severity.from_label(" Severe ") is Severity.SEVERE
    assert Severity.from_label("unknown") is Severity.MINOR


def test_magnitude_helpers_share_one_table() -> None:
    assert (earthquake_severity(7.5), earthquake_radius_km(7.5)) == (Severity.SEVERE, 500.0)
    assert (earthquake_severity(3.0), earthquake_radius_km(3.0)) == (Severity.MINOR, 25.0)
