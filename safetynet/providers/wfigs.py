from __future__ import annotations

from typing import Any, List, Mapping, Optional

from pydantic import BaseModel

from .base import ProviderAdapter
from .units import parse_timestamp
from ..derivation import fire_radius_km, fire_severity
from ..entities import Coordinates, DisasterCategory, DisasterEvent, RequestType


class IncidentAttributes(BaseModel):
    OBJECTID: Optional[int] = None
    IrwinID: Optional[str] = None
    IncidentName: Optional[str] = None
    IncidentSize: Optional[float] = None
    PercentContained: Optional[float] = None
    FireDiscoveryDateTime: Optional[int] = None
    POOCounty: Optional[str] = None
    POOState: Optional[str] = None
    IncidentShortDescription: Optional[str] = None


class IncidentGeometry(BaseModel):
    x: float
    y: float


class IncidentFeature(BaseModel):
    attributes: IncidentAttributes
    geometry: Optional[IncidentGeometry] = None


class IncidentQuery(BaseModel):
    features: List[IncidentFeature] = []


class WildfireIncidentAdapter(ProviderAdapter):
    """NIFC WFIGS current incident locations (ArcGIS feature service)."""

    request_types = frozenset({RequestType.WILDFIRES})

    def wildfires(self, location: Optional[Coordinates], options: Mapping[str, Any]) -> List[DisasterEvent]:
        min_acres = float(options.get("min_acres", 0) or 0)
        params = {
            "where": f"IncidentSize >= {min_acres:g}" if min_acres else "1=1",
            "outFields": "*",
            "outSR": 4326,
            "returnGeometry": "true",
            "f": "json",
        }
        query = self._parse(IncidentQuery, self._get_json(f"{self.base_url}/query", params=params))
        events: List[DisasterEvent] = []
        for feature in query.features:
            attrs = feature.attributes
            if feature.geometry is None:
                continue
            acres = attrs.IncidentSize or 0.0
            if acres < min_acres:
                continue
            name = attrs.IncidentName or "Unnamed"
            place = ", ".join(part for part in (attrs.POOCounty, attrs.POOState) if part)
            description = attrs.IncidentShortDescription or f"{acres:,.0f} acres burned"
            if attrs.PercentContained is not None:
                description = f"{description}; {attrs.PercentContained:.0f}% contained"
            events.append(
                DisasterEvent(
                    event_id=f"WFIGS_{attrs.IrwinID or attrs.OBJECTID}",
                    category=DisasterCategory.FIRE,
                    severity=fire_severity(acres),
                    title=f"{name} Fire" + (f" ({place})" if place else ""),
                    description=description,
                    latitude=feature.geometry.y,
                    longitude=feature.geometry.x,
                    radius_km=fire_radius_km(acres),
                    source=self.label,
                    start_time=parse_timestamp(attrs.FireDiscoveryDateTime),
                )
            )
        return events

    def probe(self) -> None:
        self._get_json(
            f"{self.base_url}/query",
            params={"where": "1=1", "returnCountOnly": "true", "f": "json"},
            timeout=min(self.timeout, 3.0),
        )


__all__ = ["WildfireIncidentAdapter"]
