"""Fetch a disaster feed through the fallback chain and persist new events."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from safetynet.services.disasters import DisasterService

logger = logging.getLogger(__name__)

FEEDS: Dict[str, str] = {
    "earthquakes": "fetch_recent_earthquakes",
    "wildfires": "fetch_active_wildfires",
    "unrest": "fetch_civil_unrest",
    "severe-weather": "fetch_severe_weather",
}


@dataclass
class IngestReport:
    feed: str
    source: str
    fetched: int
    stored: int
    degraded: bool = False
    errors: List[str] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "feed": self.feed,
            "source": self.source,
            "fetched": self.fetched,
            "stored": self.stored,
            "degraded": self.degraded,
            "errors": list(self.errors),
        }


def ingest_feed(
    service: DisasterService,
    feed: str,
    health: Optional[Any] = None,
    **options: Any,
) -> IngestReport:
    """Run one feed and store the events not seen before.

    Degraded results are reported but never persisted, so a provider outage
    does not leave placeholder rows behind.
    """
    try:
        method_name = FEEDS[feed]
    except KeyError:
        raise ValueError(f"Unknown feed {feed!r}; expected one of {', '.join(FEEDS)}") from None
    result = getattr(service, method_name)(**options)
    events = list(result.value or [])
    if result.degraded:
        logger.warning("Feed %s degraded: %s", feed, "; ".join(result.errors))
        stored = []
    else:
        stored = service.store_events(events)
        logger.info("Feed %s: %s fetched, %s new", feed, len(events), len(stored))
    if health is not None:
        health.record_ingest(feed, len(stored))
    return IngestReport(
        feed=feed,
        source=result.source,
        fetched=0 if result.degraded else len(events),
        stored=len(stored),
        degraded=result.degraded,
        errors=list(result.errors),
    )


__all__ = ["FEEDS", "IngestReport", "ingest_feed"]
