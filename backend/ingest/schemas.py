"""Request schemas for manually reported incidents."""
from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from safetynet.entities import Severity

__all__ = ["FireIncidentReport", "TrafficIncidentReport"]


class _IncidentReport(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="")
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    severity: Severity = Field(default=Severity.MODERATE)
    source: Optional[str] = Field(default=None, max_length=128)

    @field_validator("severity", mode="before")
    @classmethod
    def _normalise_severity(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    def base_kwargs(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "severity": self.severity,
            "source": self.source,
        }


class TrafficIncidentReport(_IncidentReport):
    estimated_duration_minutes: Optional[int] = Field(
        default=None, ge=1, alias="estimatedDuration"
    )

    def to_service_kwargs(self) -> Dict[str, Any]:
        kwargs = self.base_kwargs()
        kwargs["estimated_duration_minutes"] = self.estimated_duration_minutes
        return kwargs


class FireIncidentReport(_IncidentReport):
    acres_burned: Optional[float] = Field(default=None, ge=0, alias="acresBurned")
    containment_percent: Optional[float] = Field(
        default=None, ge=0, le=100, alias="containmentPercent"
    )

    def to_service_kwargs(self) -> Dict[str, Any]:
        kwargs = self.base_kwargs()
        kwargs["acres_burned"] = self.acres_burned
        kwargs["containment_percent"] = self.containment_percent
        return kwargs
