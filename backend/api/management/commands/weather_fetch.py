"""Management command to fetch weather using the same stack as the API."""
from __future__ import annotations

import json
from typing import Any

from django.core.management.base import BaseCommand, CommandError
from django.core.serializers.json import DjangoJSONEncoder

from backend.api import views
from safetynet.entities import RequestType

KINDS = {
    "current": RequestType.CURRENT,
    "forecast": RequestType.FORECAST,
    "alerts": RequestType.ALERTS,
}


class Command(BaseCommand):
    help = "Fetch weather for the provided coordinates through the provider fallback chain"

    def add_arguments(self, parser) -> None:  # noqa: D401
        parser.add_argument("--lat", type=float, help="Latitude")
        parser.add_argument("--lon", type=float, help="Longitude")
        parser.add_argument("--kind", choices=sorted(KINDS), default="current")
        parser.add_argument("--days", type=int, default=5, help="Forecast length in days")
        parser.add_argument(
            "--strict",
            action="store_true",
            help="Exit with an error when every provider failed",
        )

    def handle(self, *args: Any, **options: Any) -> None:  # noqa: D401
        latitude = options.get("lat")
        longitude = options.get("lon")
        if latitude is None or longitude is None:
            raise CommandError("--lat and --lon are required")

        weather = views.get_services().weather
        kind = KINDS[options.get("kind") or "current"]
        try:
            if kind is RequestType.FORECAST:
                result = weather.fetch_forecast(latitude, longitude, options.get("days") or 5)
            elif kind is RequestType.ALERTS:
                result = weather.fetch_alerts(latitude, longitude)
            else:
                result = weather.fetch_current(latitude, longitude)
        except ValueError as exc:
            raise CommandError(str(exc)) from exc

        if result.degraded and options.get("strict"):
            raise CommandError("All weather providers failed: " + "; ".join(result.errors))
        self.stdout.write(json.dumps(views.serialize_result(result), cls=DjangoJSONEncoder))
