from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel

from .base import ProviderAdapter
from .units import parse_timestamp
from ..derivation import classify_earthquake, gdacs_severity, is_earthquake_active
from ..entities import Coordinates, DisasterCategory, DisasterEvent, RequestType


EVENT_TYPES: Dict[RequestType, str] = {
    RequestType.EARTHQUAKES: "EQ",
    RequestType.WILDFIRES: "WF",
    RequestType.SEVERE_WEATHER: "TC;FL;DR;VO",
}

_CATEGORIES = {
    "EQ": DisasterCategory.EARTHQUAKE,
    "WF": DisasterCategory.FIRE,
    "FL": DisasterCategory.FLOOD,
    "TC": DisasterCategory.STORM,
}

# Footprint for hazards GDACS reports without a size, by event type.
_DEFAULT_RADIUS_KM = {"WF": 20.0, "FL": 50.0, "TC": 150.0, "DR": 200.0, "VO": 30.0}


class SeverityData(BaseModel):
    severity: Optional[float] = None
    severitytext: Optional[str] = None


class GdacsProperties(BaseModel):
    eventtype: str
    eventid: int
    episodeid: Optional[int] = None
    name: Optional[str] = None
    description: Optional[str] = None
    htmldescription: Optional[str] = None
    alertlevel: Optional[str] = None
    country: Optional[str] = None
    fromdate: Optional[str] = None
    todate: Optional[str] = None
    iscurrent: Optional[str] = None
    severitydata: SeverityData = SeverityData()


class GdacsGeometry(BaseModel):
    type: str
    coordinates: Any = None


class GdacsFeature(BaseModel):
    properties: GdacsProperties
    geometry: Optional[GdacsGeometry] = None


class GdacsCollection(BaseModel):
    features: List[GdacsFeature] = []


class GdacsAdapter(ProviderAdapter):
    """Global Disaster Alert and Coordination System event list."""

    request_types = frozenset(EVENT_TYPES)

    def earthquakes(self, location: Optional[Coordinates], options: Mapping[str, Any]) -> List[DisasterEvent]:
        min_magnitude = float(options.get("min_magnitude", 0) or 0)
        events = self._events(RequestType.EARTHQUAKES, options)
        return [
            event for event, magnitude in events
            if magnitude is None or magnitude >= min_magnitude
        ]

    def wildfires(self, location: Optional[Coordinates], options: Mapping[str, Any]) -> List[DisasterEvent]:
        return [event for event, _ in self._events(RequestType.WILDFIRES, options)]

    def severe_weather(self, location: Optional[Coordinates], options: Mapping[str, Any]) -> List[DisasterEvent]:
        return [event for event, _ in self._events(RequestType.SEVERE_WEATHER, options)]

    def probe(self) -> None:
        self._get_json(
            f"{self.base_url}/events/geteventlist/MAP",
            params={"eventlist": "EQ"},
            timeout=min(self.timeout, 3.0),
        )

    # Helpers ------------------------------------------------------------
    def _events(self, request_type: RequestType, options: Mapping[str, Any]):
        now = datetime.now(tz=timezone.utc)
        days = max(1, int(float(options.get("window_hours", 24 * 7)) // 24))
        params = {
            "eventlist": EVENT_TYPES[request_type],
            "fromDate": (now - timedelta(days=days)).date().isoformat(),
            "toDate": now.date().isoformat(),
            "alertlevel": "Green;Orange;Red",
        }
        collection = self._parse(
            GdacsCollection,
            self._get_json(f"{self.base_url}/events/geteventlist/MAP", params=params),
        )
        results = []
        for feature in collection.features:
            geometry = feature.geometry
            if geometry is None or geometry.type != "Point" or not geometry.coordinates:
                continue
            props = feature.properties
            magnitude = props.severitydata.severity if props.eventtype == "EQ" else None
            start_time = parse_timestamp(props.fromdate)
            is_active = (props.iscurrent or "true").lower() == "true"
            if magnitude is not None:
                severity, radius = classify_earthquake(magnitude)
                if start_time is not None:
                    is_active = is_earthquake_active(start_time, now)
            else:
                severity = gdacs_severity(props.alertlevel)
                radius = _DEFAULT_RADIUS_KM.get(props.eventtype, 25.0)
            event = DisasterEvent(
                event_id=f"GDACS_{props.eventtype}_{props.eventid}",
                category=_CATEGORIES.get(props.eventtype, DisasterCategory.OTHER),
                severity=severity,
                title=props.name or props.description or f"{props.eventtype} event {props.eventid}",
                description=props.severitydata.severitytext or props.htmldescription or "",
                longitude=float(geometry.coordinates[0]),
                latitude=float(geometry.coordinates[1]),
                radius_km=radius,
                source=self.label,
                start_time=start_time,
                end_time=parse_timestamp(props.todate),
                is_active=is_active,
            )
            results.append((event, magnitude))
        return results


__all__ = ["EVENT_TYPES", "GdacsAdapter"]
