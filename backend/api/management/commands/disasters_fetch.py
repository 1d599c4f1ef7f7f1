"""Management command that pulls a disaster feed and stores new events."""
from __future__ import annotations

import json
from typing import Any, Dict

from django.core.management.base import BaseCommand, CommandError

from backend.api import views
from backend.ingest.disasters import FEEDS, ingest_feed
from safetynet.entities import Coordinates


class Command(BaseCommand):
    help = "Fetch a disaster feed through the provider fallback chain and persist unseen events"

    def add_arguments(self, parser) -> None:  # noqa: D401
        parser.add_argument("--feed", choices=sorted(FEEDS), required=True)
        parser.add_argument("--lat", type=float, help="Latitude of the area centre")
        parser.add_argument("--lon", type=float, help="Longitude of the area centre")
        parser.add_argument("--radius", type=float, default=100.0, help="Radius in km")
        parser.add_argument("--min-magnitude", dest="min_magnitude", type=float, default=2.5)
        parser.add_argument("--hours", type=float, default=24.0, help="Earthquake window")
        parser.add_argument("--min-acres", dest="min_acres", type=float, default=100.0)
        parser.add_argument("--days", type=int, default=7, help="Civil unrest look-back")

    def handle(self, *args: Any, **options: Any) -> None:  # noqa: D401
        feed = options["feed"]
        latitude = options.get("lat")
        longitude = options.get("lon")
        if (latitude is None) != (longitude is None):
            raise CommandError("--lat and --lon must be given together")

        kwargs: Dict[str, Any] = {}
        if latitude is not None:
            try:
                kwargs["center"] = Coordinates(latitude, longitude)
            except ValueError as exc:
                raise CommandError(str(exc)) from exc
            kwargs["radius_km"] = options["radius"]
        if feed == "earthquakes":
            kwargs["min_magnitude"] = options["min_magnitude"]
            kwargs["window_hours"] = options["hours"]
        elif feed == "wildfires":
            kwargs["min_acres"] = options["min_acres"]
        elif feed == "unrest":
            kwargs["days_back"] = options["days"]

        report = ingest_feed(
            views.get_services().disasters,
            feed,
            health=views.get_health_registry(),
            **kwargs,
        )
        self.stdout.write(json.dumps(report.as_dict()))
