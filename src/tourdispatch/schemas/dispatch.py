"""Dispatch optimization request/response schemas."""

from __future__ import annotations

from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from .travel import ZoneTravelTimeModel


class BookingModel(BaseModel):
    id: str
    participant_count: int = Field(..., ge=0)
    customer_name: str
    reference_number: Optional[str] = None
    pickup_zone_id: Optional[str] = None
    pickup_location: Optional[str] = None
    special_requests: Optional[str] = None
    is_private: bool = False


class TourRunModel(BaseModel):
    tour_id: str
    tour_name: str
    date: date
    time: str = Field(..., pattern=r"^\d{1,2}:\d{2}$", description="Departure time as HH:MM.")
    duration_minutes: int = Field(..., ge=0)
    guests_per_guide: int = Field(..., ge=1)
    total_guests: Optional[int] = Field(default=None, ge=0)
    preferred_language: Optional[str] = None
    primary_pickup_zone_id: Optional[str] = None
    meeting_point_zone_id: Optional[str] = None
    bookings: List[BookingModel] = Field(default_factory=list)


class AvailabilityWindowModel(BaseModel):
    start: datetime
    end: datetime


class ScheduleEntryModel(BaseModel):
    id: str = Field(..., description="Tour run id or booking id of the existing commitment.")
    starts_at: datetime
    ends_at: datetime
    is_exclusive: bool = False
    end_zone_id: Optional[str] = None


class GuideModel(BaseModel):
    id: str
    name: str
    vehicle_capacity: int = Field(..., ge=0)
    vehicle_description: Optional[str] = None
    base_zone_id: Optional[str] = None
    languages: List[str] = Field(default_factory=list)
    primary_tour_ids: List[str] = Field(default_factory=list)
    available_from: Optional[datetime] = None
    available_to: Optional[datetime] = None
    availability_windows: List[AvailabilityWindowModel] = Field(default_factory=list)
    current_assignments: List[ScheduleEntryModel] = Field(default_factory=list)


class DispatchRequest(BaseModel):
    organization_id: str
    date: date
    tour_runs: List[TourRunModel] = Field(default_factory=list)
    guides: List[GuideModel] = Field(default_factory=list)
    travel_times: Optional[List[ZoneTravelTimeModel]] = Field(
        default=None,
        description="Zone travel times. When omitted, the configured travel time source is used.",
    )

    @field_validator("guides")
    @classmethod
    def _unique_guide_ids(cls, value: List[GuideModel]) -> List[GuideModel]:
        seen: set[str] = set()
        for guide in value:
            if guide.id in seen:
                raise ValueError(f"Duplicate guide id '{guide.id}'.")
            seen.add(guide.id)
        return value


class ScoreBreakdownModel(BaseModel):
    total: float
    primary_guide_bonus: float
    zone_proximity: float
    capacity_fit: float
    workload_balance: float
    language_match: float


class AssignmentModel(BaseModel):
    booking_id: str
    guide_id: str
    pickup_order: int
    calculated_pickup_time: str
    drive_time_minutes: float
    confidence: str
    score_breakdown: ScoreBreakdownModel
    tour_run_id: str
    is_lead_guide: bool


class ResolutionModel(BaseModel):
    id: str
    type: str
    label: str
    additional_drive_minutes: Optional[float] = None
    guide_id: Optional[str] = None
    guide_name: Optional[str] = None


class WarningModel(BaseModel):
    id: str
    type: str
    severity: str
    message: str
    tour_run_id: Optional[str] = None
    booking_id: Optional[str] = None
    guide_id: Optional[str] = None
    suggested_resolutions: List[ResolutionModel]


class DispatchMetadataModel(BaseModel):
    optimized_at: datetime
    algorithm_version: str
    tour_runs_processed: int
    bookings_processed: int


class DispatchResponse(BaseModel):
    organization_id: str
    date: date
    assignments: List[AssignmentModel]
    warnings: List[WarningModel]
    efficiency: int
    total_drive_minutes: float
    guides_used: int
    metadata: DispatchMetadataModel
    warning_counts: Dict[str, int] = Field(default_factory=dict)
