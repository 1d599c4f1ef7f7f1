"""REST API views for weather and disaster information."""
from __future__ import annotations

from dataclasses import asdict, is_dataclass
from functools import lru_cache
from typing import Any, Dict, Optional, Tuple

from django.conf import settings
from pydantic import ValidationError
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from backend.core.health import HealthRegistry
from backend.core.models import DisasterEventRepository, configure_engine
from backend.ingest.schemas import FireIncidentReport, TrafficIncidentReport
from safetynet.entities import Coordinates, FetchResult
from safetynet.providers.base import ProviderError
from safetynet.services import Services, build_services


@lru_cache(maxsize=1)
def get_health_registry() -> HealthRegistry:
    return HealthRegistry()


@lru_cache(maxsize=1)
def get_services() -> Services:
    repository = DisasterEventRepository(configure_engine(settings.DATABASE_URL))
    return build_services(repository=repository, health=get_health_registry())


class BadRequest(ValueError):
    """Invalid query parameter; rendered as a 400 with ``detail``."""


def serialize(value: Any) -> Any:
    if is_dataclass(value):
        return asdict(value)
    if isinstance(value, (list, tuple)):
        return [serialize(item) for item in value]
    return value


def serialize_result(result: FetchResult, value: Any = None) -> Dict[str, Any]:
    return {
        "data": serialize(result.value if value is None else value),
        "source": result.source,
        "degraded": result.degraded,
        "errors": list(result.errors),
        "cached": result.from_cache,
    }


def _float_param(request, name: str, default: Optional[float] = None) -> Optional[float]:
    raw = request.query_params.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise BadRequest(f"{name} must be a valid number") from None


def _int_param(request, name: str, default: int) -> int:
    raw = request.query_params.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise BadRequest(f"{name} must be an integer") from None


def _coordinates(request, required: bool = True) -> Optional[Coordinates]:
    latitude = _float_param(request, "lat")
    longitude = _float_param(request, "lon")
    if latitude is None or longitude is None:
        if required or latitude is not None or longitude is not None:
            raise BadRequest("lat and lon query parameters are required")
        return None
    try:
        return Coordinates(latitude, longitude)
    except ValueError as exc:
        raise BadRequest(str(exc)) from None


def _radius(request) -> Optional[float]:
    radius = _float_param(request, "radius")
    if radius is not None and radius < 0:
        raise BadRequest("radius must be non-negative")
    return radius


def _area(request) -> Tuple[Optional[Coordinates], Optional[float]]:
    center = _coordinates(request, required=False)
    radius = _radius(request)
    if center is None:
        return None, None
    return center, radius if radius is not None else 100.0


def _bad_request(exc: Exception) -> Response:
    return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)


class SafetyNetView(APIView):
    permission_classes = [AllowAny]

    def handle_exception(self, exc):
        if isinstance(exc, BadRequest):
            return _bad_request(exc)
        return super().handle_exception(exc)


# -- Weather ------------------------------------------------------------------
class CurrentWeatherView(SafetyNetView):
    """Current conditions for the requested coordinates."""

    def get(self, request, *args, **kwargs):
        location = _coordinates(request)
        result = get_services().weather.fetch_current(location.latitude, location.longitude)
        return Response(serialize_result(result), status=status.HTTP_200_OK)


class ForecastView(SafetyNetView):
    def get(self, request, *args, **kwargs):
        location = _coordinates(request)
        days = _int_param(request, "days", 5)
        result = get_services().weather.fetch_forecast(location.latitude, location.longitude, days)
        return Response(serialize_result(result), status=status.HTTP_200_OK)


class WeatherAlertsView(SafetyNetView):
    def get(self, request, *args, **kwargs):
        location = _coordinates(request)
        result = get_services().weather.fetch_alerts(location.latitude, location.longitude)
        active = [alert for alert in result.value if alert.is_active]
        return Response(serialize_result(result, active), status=status.HTTP_200_OK)


class MeteostatMonthlyView(SafetyNetView):
    def get(self, request, *args, **kwargs):
        location = _coordinates(request)
        year = _int_param(request, "year", 0)
        month = _int_param(request, "month", 0)
        if not year or not 1 <= month <= 12:
            raise BadRequest("year and month (1-12) query parameters are required")
        try:
            summary = get_services().weather.get_monthly_summary(
                location.latitude, location.longitude, year, month
            )
        except ProviderError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_503_SERVICE_UNAVAILABLE)
        return Response({"data": summary}, status=status.HTTP_200_OK)


# -- Disasters ----------------------------------------------------------------
class EarthquakesView(SafetyNetView):
    def get(self, request, *args, **kwargs):
        center, radius = _area(request)
        result = get_services().disasters.fetch_recent_earthquakes(
            min_magnitude=_float_param(request, "min_magnitude", 2.5),
            max_magnitude=_float_param(request, "max_magnitude", 10.0),
            window_hours=_float_param(request, "hours", 24.0),
            center=center,
            radius_km=radius,
            limit=_int_param(request, "limit", 100),
        )
        return Response(serialize_result(result), status=status.HTTP_200_OK)


class WildfiresView(SafetyNetView):
    def get(self, request, *args, **kwargs):
        center, radius = _area(request)
        result = get_services().disasters.fetch_active_wildfires(
            center=center,
            radius_km=radius,
            min_acres=_float_param(request, "min_acres", 100.0),
        )
        return Response(serialize_result(result), status=status.HTTP_200_OK)


class CivilUnrestView(SafetyNetView):
    def get(self, request, *args, **kwargs):
        center, radius = _area(request)
        result = get_services().disasters.fetch_civil_unrest(
            center=center,
            radius_km=radius,
            days_back=_int_param(request, "days", 7),
        )
        return Response(serialize_result(result), status=status.HTTP_200_OK)


class SevereWeatherView(SafetyNetView):
    def get(self, request, *args, **kwargs):
        center, radius = _area(request)
        result = get_services().disasters.fetch_severe_weather(center=center, radius_km=radius)
        return Response(serialize_result(result), status=status.HTTP_200_OK)


class CombinedAlertsView(SafetyNetView):
    def get(self, request, *args, **kwargs):
        center = _coordinates(request)
        radius = _radius(request)
        radius = 100.0 if radius is None else radius
        events = get_services().disasters.get_combined_alerts(center, radius)
        return Response({"data": serialize(events)}, status=status.HTTP_200_OK)


class ActiveNearView(SafetyNetView):
    def get(self, request, *args, **kwargs):
        center = _coordinates(request)
        radius = _radius(request)
        radius = 100.0 if radius is None else radius
        events = get_services().disasters.get_active_near(center.latitude, center.longitude, radius)
        return Response({"data": serialize(events)}, status=status.HTTP_200_OK)


class DisasterStatsView(SafetyNetView):
    def get(self, request, *args, **kwargs):
        stats = get_services().disasters.get_statistics()
        stats["most_severe"] = serialize(stats["most_severe"])
        return Response(stats, status=status.HTTP_200_OK)


class _IncidentView(SafetyNetView):
    schema = TrafficIncidentReport
    factory_name = "create_traffic_incident"

    def post(self, request, *args, **kwargs):
        try:
            report = self.schema.model_validate(request.data)
        except ValidationError as exc:
            errors = [
                {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
                for error in exc.errors()
            ]
            return Response({"detail": "invalid incident report", "errors": errors}, status=status.HTTP_400_BAD_REQUEST)
        create = getattr(get_services().disasters, self.factory_name)
        event = create(**report.to_service_kwargs())
        return Response({"data": serialize(event)}, status=status.HTTP_201_CREATED)


class TrafficIncidentView(_IncidentView):
    schema = TrafficIncidentReport
    factory_name = "create_traffic_incident"


class FireIncidentView(_IncidentView):
    schema = FireIncidentReport
    factory_name = "create_fire_incident"


# -- Health -------------------------------------------------------------------
class ProviderHealthView(SafetyNetView):
    """Probe every configured provider once."""

    def get(self, request, *args, **kwargs):
        services = get_services()
        return Response(
            {"apis": services.health(), "cache": services.orchestrator.cache.stats()},
            status=status.HTTP_200_OK,
        )


class AdminHealthView(SafetyNetView):
    def get(self, request, *args, **kwargs):
        registry = get_health_registry()
        services = get_services()
        registry.set_cache_stats(services.orchestrator.cache.stats())
        payload = registry.snapshot()
        payload["rate_limits"] = services.orchestrator.rate_limiter.snapshot()
        return Response(payload, status=status.HTTP_200_OK)
