"""Pydantic models for location traffic estimates and enrichment runs."""
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


class TrafficLevel(str, Enum):
    """Footfall classification, ordered from LOW to VERY_HIGH."""
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    VERY_HIGH = "very_high"
    UNKNOWN = "unknown"


class PeakHour(BaseModel):
    """Traffic level for one hour of the day."""
    hour: int = Field(..., ge=0, le=23)
    traffic_level: TrafficLevel


class TrafficEstimate(BaseModel):
    """
    Traffic estimate stored on an ad space as ``traffic_data``.

    An UNKNOWN level means the estimate was never computed successfully; in
    that state visitors, peak hours and weekly pattern must be empty.
    Hours missing from ``peak_hours`` are implicitly low.
    """
    traffic_level: TrafficLevel
    average_daily_visitors: Optional[int] = Field(None, ge=0)
    peak_hours: List[PeakHour] = Field(default_factory=list)
    weekly_pattern: Optional[Dict[str, TrafficLevel]] = None
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    source: str = "google_places"
    nearby_places_count: int = Field(0, ge=0)
    note: Optional[str] = None

    @field_validator("peak_hours")
    @classmethod
    def _unique_hours(cls, value: List[PeakHour]) -> List[PeakHour]:
        hours = [entry.hour for entry in value]
        if len(hours) != len(set(hours)):
            raise ValueError("peak_hours must not repeat an hour")
        return value

    @field_validator("weekly_pattern")
    @classmethod
    def _complete_week(
        cls, value: Optional[Dict[str, TrafficLevel]]
    ) -> Optional[Dict[str, TrafficLevel]]:
        if value is None:
            return value
        if set(value) != set(WEEKDAYS):
            raise ValueError(f"weekly_pattern must have exactly the keys {', '.join(WEEKDAYS)}")
        return {day: value[day] for day in WEEKDAYS}

    @model_validator(mode="after")
    def _unknown_is_empty(self) -> "TrafficEstimate":
        if self.traffic_level == TrafficLevel.UNKNOWN and (
            self.average_daily_visitors is not None
            or self.peak_hours
            or self.weekly_pattern is not None
        ):
            raise ValueError("an unknown traffic estimate cannot carry visitors, peak hours or a weekly pattern")
        return self

    @property
    def is_known(self) -> bool:
        return self.traffic_level != TrafficLevel.UNKNOWN


class TrafficSignals(BaseModel):
    """Raw point-of-interest signals for one location."""
    review_count: int = Field(0, ge=0, description="Reviews of the nearest place")
    place_types: List[str] = Field(default_factory=list, description="Category tags of the nearest place")
    nearby_places_count: int = Field(0, ge=0, description="Places found within the search radius")
    place_found: bool = Field(True, description="False when nearby search found nothing at all")


class LocationCandidate(BaseModel):
    """An ad space eligible for traffic enrichment."""
    id: str
    title: Optional[str] = None
    latitude: float
    longitude: float
    current_estimate: Optional[TrafficEstimate] = None


class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class EnrichmentOutcome(BaseModel):
    """Result of enriching a single ad space."""
    id: str
    title: str
    status: OutcomeStatus
    error: Optional[str] = None


class EnrichmentRunReport(BaseModel):
    """Totals and per-item outcomes of one enrichment run."""
    total: int = 0
    processed: int = 0
    successful: int = 0
    failed: int = 0
    skipped: int = 0
    cancelled: bool = False
    details: List[EnrichmentOutcome] = Field(default_factory=list)

    def record(self, outcome: EnrichmentOutcome) -> None:
        """Append an outcome and keep the counters consistent."""
        if outcome.status == OutcomeStatus.SKIPPED:
            self.skipped += 1
        else:
            self.processed += 1
            if outcome.status == OutcomeStatus.SUCCESS:
                self.successful += 1
            else:
                self.failed += 1
        self.details.append(outcome)


class LoadTrafficRequest(BaseModel):
    """Body of the bulk traffic load endpoint."""
    model_config = ConfigDict(populate_by_name=True)

    ad_space_ids: Optional[List[str]] = Field(None, alias="adSpaceIds")
    limit: Optional[int] = Field(None, ge=1, le=1000, description="Defaults to TRAFFIC_BATCH_LIMIT")
    force: bool = False


class LoadTrafficResponse(BaseModel):
    success: bool = True
    message: str
    results: EnrichmentRunReport


class TrafficUpdateRequest(BaseModel):
    """Body of the manual traffic update endpoint."""
    traffic_data: TrafficEstimate
