from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel

from .base import MalformedPayload, ProviderAdapter
from .units import celsius_to_fahrenheit, meters_to_miles, ms_to_mph, pa_to_hpa, parse_timestamp
from ..entities import (
    Coordinates,
    CurrentConditions,
    DisasterCategory,
    DisasterEvent,
    NormalizedWeatherReading,
    RequestType,
    Severity,
    WeatherAlert,
    WeatherCondition,
)
from ..geo import is_us_location


# Default footprint for alerts that ship without a polygon.
ALERT_RADIUS_KM = 25.0


class Quantity(BaseModel):
    value: Optional[float] = None


class PointProperties(BaseModel):
    gridId: str
    gridX: int
    gridY: int


class PointResponse(BaseModel):
    properties: PointProperties


class StationProperties(BaseModel):
    stationIdentifier: str


class StationFeature(BaseModel):
    properties: StationProperties


class StationCollection(BaseModel):
    features: List[StationFeature] = []


class ObservationProperties(BaseModel):
    textDescription: Optional[str] = None
    temperature: Quantity = Quantity()
    heatIndex: Quantity = Quantity()
    relativeHumidity: Quantity = Quantity()
    barometricPressure: Quantity = Quantity()
    visibility: Quantity = Quantity()
    windSpeed: Quantity = Quantity()
    windDirection: Quantity = Quantity()


class ObservationResponse(BaseModel):
    properties: ObservationProperties


class AlertProperties(BaseModel):
    id: str
    event: str = "Weather Alert"
    severity: Optional[str] = None
    headline: Optional[str] = None
    description: Optional[str] = None
    areaDesc: Optional[str] = None
    onset: Optional[str] = None
    effective: Optional[str] = None
    expires: Optional[str] = None


class AlertGeometry(BaseModel):
    type: str
    coordinates: Any = None


class AlertFeature(BaseModel):
    properties: AlertProperties
    geometry: Optional[AlertGeometry] = None


class AlertCollection(BaseModel):
    features: List[AlertFeature] = []


def _polygon_centroid(geometry: Optional[AlertGeometry]) -> Optional[Tuple[float, float]]:
    """Average vertex of the outer ring as (lat, lon); good enough to place an alert."""
    if geometry is None or not geometry.coordinates:
        return None
    ring = geometry.coordinates[0]
    if geometry.type == "MultiPolygon":
        ring = ring[0]
    points = [point for point in ring if len(point) >= 2]
    if not points:
        return None
    lon = sum(point[0] for point in points) / len(points)
    lat = sum(point[1] for point in points) / len(points)
    return lat, lon


def _category(event: str) -> DisasterCategory:
    name = event.lower()
    if "flood" in name:
        return DisasterCategory.FLOOD
    if "fire" in name or "red flag" in name:
        return DisasterCategory.FIRE
    return DisasterCategory.STORM


class NationalWeatherServiceAdapter(ProviderAdapter):
    """api.weather.gov: observations and alerts for US locations only."""

    request_types = frozenset({RequestType.CURRENT, RequestType.ALERTS, RequestType.SEVERE_WEATHER})

    def supports(self, request_type: RequestType, location: Optional[Coordinates]) -> bool:
        if not super().supports(request_type, location):
            return False
        if location is None:
            return request_type == RequestType.SEVERE_WEATHER
        return is_us_location(location.latitude, location.longitude)

    def current(self, location: Coordinates, options: Mapping[str, Any]) -> NormalizedWeatherReading:
        point = self._parse(
            PointResponse,
            self._get_json(f"{self.base_url}/points/{location.latitude},{location.longitude}"),
        ).properties
        stations = self._parse(
            StationCollection,
            self._get_json(f"{self.base_url}/gridpoints/{point.gridId}/{point.gridX},{point.gridY}/stations"),
        )
        if not stations.features:
            raise MalformedPayload("no observation station found for location")
        station_id = stations.features[0].properties.stationIdentifier
        props = self._parse(
            ObservationResponse,
            self._get_json(f"{self.base_url}/stations/{station_id}/observations/latest"),
        ).properties

        def scaled(quantity: Quantity, convert, default: float) -> float:
            return round(convert(quantity.value)) if quantity.value is not None else default

        text = props.textDescription
        return NormalizedWeatherReading(
            location=location,
            name=f"NWS {station_id}",
            current=CurrentConditions(
                temperature=scaled(props.temperature, celsius_to_fahrenheit, 70.0),
                feels_like=scaled(props.heatIndex, celsius_to_fahrenheit, 70.0),
                humidity=props.relativeHumidity.value if props.relativeHumidity.value is not None else 50.0,
                pressure=scaled(props.barometricPressure, pa_to_hpa, 1013.0),
                visibility=scaled(props.visibility, meters_to_miles, 10.0),
                wind_speed=scaled(props.windSpeed, ms_to_mph, 0.0),
                wind_direction=props.windDirection.value or 0.0,
                condition=WeatherCondition(main=text or "Clear", description=text or "Clear conditions"),
            ),
            source=self.label,
        )

    def alerts(self, location: Coordinates, options: Mapping[str, Any]) -> List[WeatherAlert]:
        collection = self._active_alerts({"point": f"{location.latitude},{location.longitude}"})
        return [
            WeatherAlert(
                alert_id=feature.properties.id,
                kind=feature.properties.event,
                severity=Severity.from_label(feature.properties.severity),
                title=feature.properties.headline or feature.properties.event,
                description=feature.properties.description or "",
                source=self.label,
                area_description=feature.properties.areaDesc,
                start_time=parse_timestamp(feature.properties.onset or feature.properties.effective),
                end_time=parse_timestamp(feature.properties.expires),
            )
            for feature in collection.features
        ]

    def severe_weather(self, location: Optional[Coordinates], options: Mapping[str, Any]) -> List[DisasterEvent]:
        params: Dict[str, Any] = {"status": "actual", "severity": "Extreme,Severe"}
        if location is not None:
            params["point"] = f"{location.latitude},{location.longitude}"
        events: List[DisasterEvent] = []
        for feature in self._active_alerts(params).features:
            props = feature.properties
            position = _polygon_centroid(feature.geometry)
            if position is None and location is not None:
                position = (location.latitude, location.longitude)
            if position is None:
                # nothing to place the alert on
                continue
            events.append(
                DisasterEvent(
                    event_id=props.id,
                    category=_category(props.event),
                    severity=Severity.from_label(props.severity),
                    title=props.headline or props.event,
                    description=props.description or "",
                    latitude=position[0],
                    longitude=position[1],
                    radius_km=ALERT_RADIUS_KM,
                    source=self.label,
                    start_time=parse_timestamp(props.onset or props.effective),
                    end_time=parse_timestamp(props.expires),
                )
            )
        return events

    def probe(self) -> None:
        self._get_json(f"{self.base_url}/points/33.2098,-87.5692", timeout=min(self.timeout, 3.0))

    def _active_alerts(self, params: Mapping[str, Any]) -> AlertCollection:
        return self._parse(
            AlertCollection,
            self._get_json(
                f"{self.base_url}/alerts/active",
                params=dict(params),
                headers={"Accept": "application/geo+json"},
            ),
        )


__all__ = ["ALERT_RADIUS_KM", "NationalWeatherServiceAdapter"]
