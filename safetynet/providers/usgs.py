from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel

from .base import ProviderAdapter
from .units import parse_timestamp
from ..derivation import classify_earthquake, is_earthquake_active
from ..entities import Coordinates, DisasterCategory, DisasterEvent, RequestType


class QuakeProperties(BaseModel):
    mag: Optional[float] = None
    place: Optional[str] = None
    time: int
    title: Optional[str] = None


class QuakeGeometry(BaseModel):
    coordinates: List[float]


class QuakeFeature(BaseModel):
    id: str
    properties: QuakeProperties
    geometry: QuakeGeometry


class QuakeCollection(BaseModel):
    features: List[QuakeFeature] = []


class USGSEarthquakeAdapter(ProviderAdapter):
    """USGS FDSN event service (GeoJSON)."""

    request_types = frozenset({RequestType.EARTHQUAKES})

    def earthquakes(self, location: Optional[Coordinates], options: Mapping[str, Any]) -> List[DisasterEvent]:
        now = datetime.now(tz=timezone.utc)
        window = timedelta(hours=float(options.get("window_hours", 24)))
        params: Dict[str, Any] = {
            "format": "geojson",
            "starttime": (now - window).strftime("%Y-%m-%dT%H:%M:%S"),
            "endtime": now.strftime("%Y-%m-%dT%H:%M:%S"),
            "minmagnitude": options.get("min_magnitude", 2.5),
            "maxmagnitude": options.get("max_magnitude", 10.0),
            "limit": options.get("limit", 100),
            "orderby": "time",
        }
        if location is not None:
            params.update(
                latitude=location.latitude,
                longitude=location.longitude,
                maxradiuskm=options.get("radius_km") or 1000,
            )
        collection = self._parse(QuakeCollection, self._get_json(f"{self.base_url}/query", params=params))
        events: List[DisasterEvent] = []
        for feature in collection.features:
            props = feature.properties
            if props.mag is None or len(feature.geometry.coordinates) < 2:
                self._log.debug("Skipping incomplete feature %s", feature.id)
                continue
            severity, radius = classify_earthquake(props.mag)
            started = parse_timestamp(props.time)
            events.append(
                DisasterEvent(
                    event_id=feature.id,
                    category=DisasterCategory.EARTHQUAKE,
                    severity=severity,
                    title=f"Magnitude {props.mag:.1f} Earthquake",
                    description=props.title or props.place or "",
                    longitude=feature.geometry.coordinates[0],
                    latitude=feature.geometry.coordinates[1],
                    radius_km=radius,
                    source=self.label,
                    start_time=started,
                    is_active=is_earthquake_active(started, now),
                )
            )
        return events

    def probe(self) -> None:
        self._get_json(
            f"{self.base_url}/query",
            params={"format": "geojson", "minmagnitude": 1, "limit": 1},
            timeout=min(self.timeout, 3.0),
        )


__all__ = ["USGSEarthquakeAdapter"]
