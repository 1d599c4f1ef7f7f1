from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, List, Mapping, Optional, Union

from pydantic import BaseModel

from .base import MalformedPayload, ProviderAdapter
from .units import parse_timestamp, safe_float
from ..derivation import unrest_severity
from ..entities import Coordinates, DisasterCategory, DisasterEvent, RequestType, Severity


EVENT_TYPES = "Protests|Riots"


class AcledRecord(BaseModel):
    event_id_cnty: str
    event_type: str = "Protests"
    sub_event_type: Optional[str] = None
    event_date: str
    country: Optional[str] = None
    admin1: Optional[str] = None
    location: Optional[str] = None
    # ACLED usually serialises numbers as strings
    latitude: Union[str, float]
    longitude: Union[str, float]
    fatalities: Optional[Union[str, int]] = None
    notes: Optional[str] = None
    source: Optional[str] = None


class AcledResponse(BaseModel):
    success: bool = True
    error: Optional[Any] = None
    data: List[AcledRecord] = []


class AcledUnrestAdapter(ProviderAdapter):
    """ACLED protest and riot events; needs both an access key and the account email."""

    request_types = frozenset({RequestType.CIVIL_UNREST})

    def civil_unrest(self, location: Optional[Coordinates], options: Mapping[str, Any]) -> List[DisasterEvent]:
        today = datetime.now(tz=timezone.utc).date()
        start = today - timedelta(days=int(options.get("days_back", 7)))
        params = {
            "key": self.api_key,
            "email": self.config.extra.get("email", ""),
            "event_type": EVENT_TYPES,
            "event_date": f"{start.isoformat()}|{today.isoformat()}",
            "event_date_where": "BETWEEN",
            "limit": options.get("limit", 500),
        }
        if options.get("country"):
            params["country"] = options["country"]
        payload = self._parse(AcledResponse, self._get_json(f"{self.base_url}/read", params=params))
        if not payload.success:
            raise MalformedPayload(f"request rejected: {payload.error}")
        events: List[DisasterEvent] = []
        for record in payload.data:
            latitude, longitude = safe_float(record.latitude), safe_float(record.longitude)
            if latitude is None or longitude is None:
                continue
            fatalities = int(safe_float(record.fatalities) or 0)
            severity = unrest_severity(fatalities)
            place = ", ".join(part for part in (record.location, record.admin1, record.country) if part)
            events.append(
                DisasterEvent(
                    event_id=f"ACLED_{record.event_id_cnty}",
                    category=DisasterCategory.CIVIL_UNREST,
                    severity=severity,
                    title=f"{record.sub_event_type or record.event_type}" + (f" in {place}" if place else ""),
                    description=record.notes or "",
                    latitude=latitude,
                    longitude=longitude,
                    radius_km=10.0 if severity >= Severity.SEVERE or record.event_type == "Riots" else 5.0,
                    source=self.label,
                    start_time=parse_timestamp(record.event_date),
                )
            )
        return events

    def probe(self) -> None:
        self._get_json(
            f"{self.base_url}/read",
            params={"key": self.api_key, "email": self.config.extra.get("email", ""), "limit": 1},
            timeout=min(self.timeout, 3.0),
        )


__all__ = ["AcledUnrestAdapter"]
