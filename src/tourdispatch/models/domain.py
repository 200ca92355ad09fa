"""Domain models for tour runs, guides and dispatch proposals."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Sequence

if TYPE_CHECKING:
    from ..services.travel.matrix import TravelMatrix


class AssignmentConfidence(str, Enum):
    OPTIMAL = "optimal"
    GOOD = "good"
    REVIEW = "review"
    PROBLEM = "problem"


class WarningType(str, Enum):
    INSUFFICIENT_GUIDES = "insufficient_guides"
    VEHICLE_CAPACITY_EXCEEDED = "vehicle_capacity_exceeded"
    TIME_CONFLICT = "time_conflict"
    LONG_DRIVE_TIME = "long_drive_time"
    UNASSIGNED_BOOKING = "unassigned_booking"
    SUBOPTIMAL_ASSIGNMENT = "suboptimal_assignment"


class WarningSeverity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class ResolutionType(str, Enum):
    ASSIGN_TO_GUIDE = "assign_to_guide"
    ADD_EXTERNAL_GUIDE = "add_external_guide"
    SPLIT_ACROSS_GUIDES = "split_across_guides"
    REQUEST_OVERTIME = "request_overtime"
    CANCEL_BOOKING = "cancel_booking"
    MERGE_TOUR_RUNS = "merge_tour_runs"


def parse_time_of_day(value: str) -> time:
    """Parse an ``HH:MM`` departure time."""

    try:
        hours_text, minutes_text = value.strip().split(":")[:2]
        return time(int(hours_text), int(minutes_text))
    except (AttributeError, ValueError) as exc:
        raise ValueError(f"Invalid time of day '{value}', expected HH:MM.") from exc


def format_time_of_day(moment: datetime) -> str:
    return moment.strftime("%H:%M")


@dataclass(slots=True)
class Booking:
    """A customer party travelling on one tour run."""

    booking_id: str
    participant_count: int
    customer_name: str
    pickup_zone_id: Optional[str] = None
    pickup_location: Optional[str] = None
    reference_number: Optional[str] = None
    special_requests: Optional[str] = None
    is_private: bool = False

    def __post_init__(self) -> None:
        if self.participant_count < 0:
            raise ValueError(f"Booking {self.booking_id} has a negative participant count.")

    @property
    def label(self) -> str:
        return self.reference_number or self.booking_id


@dataclass(slots=True)
class TourRun:
    """All bookings sharing one tour departure (tour, date and time of day)."""

    tour_id: str
    tour_name: str
    date: date
    time: str
    duration_minutes: int
    guests_per_guide: int
    bookings: List[Booking] = field(default_factory=list)
    total_guests: Optional[int] = None
    preferred_language: Optional[str] = None
    primary_pickup_zone_id: Optional[str] = None
    meeting_point_zone_id: Optional[str] = None

    def __post_init__(self) -> None:
        if self.guests_per_guide < 1:
            raise ValueError(f"Tour run {self.tour_id} needs guests_per_guide >= 1.")
        if self.duration_minutes < 0:
            raise ValueError(f"Tour run {self.tour_id} has a negative duration.")
        parse_time_of_day(self.time)
        if self.total_guests is None:
            self.total_guests = sum(booking.participant_count for booking in self.bookings)

    @property
    def tour_run_id(self) -> str:
        return f"{self.tour_id}|{self.date.isoformat()}|{self.time}"

    @property
    def guides_needed(self) -> int:
        return math.ceil(self.total_guests / self.guests_per_guide)

    @property
    def minutes_of_day(self) -> int:
        departure = parse_time_of_day(self.time)
        return departure.hour * 60 + departure.minute

    @property
    def starts_at(self) -> datetime:
        return datetime.combine(self.date, parse_time_of_day(self.time))

    @property
    def ends_at(self) -> datetime:
        return self.starts_at + timedelta(minutes=self.duration_minutes)

    @property
    def has_private_booking(self) -> bool:
        return any(booking.is_private for booking in self.bookings)


@dataclass(slots=True)
class AvailabilityWindow:
    start: datetime
    end: datetime


@dataclass(slots=True)
class GuideScheduleEntry:
    """A commitment already on a guide's calendar before optimization."""

    entry_id: str
    starts_at: datetime
    ends_at: datetime
    is_exclusive: bool = False
    end_zone_id: Optional[str] = None


@dataclass(slots=True)
class Guide:
    """A guide with a vehicle who can be dispatched on tour runs."""

    guide_id: str
    name: str
    vehicle_capacity: int
    available_from: Optional[datetime]
    available_to: Optional[datetime]
    base_zone_id: Optional[str] = None
    languages: Sequence[str] = ()
    primary_tour_ids: Sequence[str] = ()
    availability_windows: Sequence[AvailabilityWindow] = ()
    current_assignments: Sequence[GuideScheduleEntry] = ()
    vehicle_description: Optional[str] = None

    def is_primary_for(self, tour_id: str) -> bool:
        return tour_id in self.primary_tour_ids

    def speaks(self, language: Optional[str]) -> bool:
        return bool(language) and language in self.languages


@dataclass(slots=True)
class ZoneTravelTime:
    from_zone_id: str
    to_zone_id: str
    estimated_minutes: int


@dataclass(slots=True)
class ScoreBreakdown:
    total: float
    primary_guide_bonus: float
    zone_proximity: float
    capacity_fit: float
    workload_balance: float
    language_match: float


@dataclass(slots=True)
class ProposedAssignment:
    booking_id: str
    guide_id: str
    pickup_order: int
    calculated_pickup_time: str
    drive_time_minutes: float
    confidence: AssignmentConfidence
    score_breakdown: ScoreBreakdown
    tour_run_id: str
    is_lead_guide: bool


@dataclass(slots=True)
class SuggestedResolution:
    resolution_id: str
    type: ResolutionType
    label: str
    additional_drive_minutes: Optional[float] = None
    guide_id: Optional[str] = None
    guide_name: Optional[str] = None


@dataclass(slots=True)
class OptimizationWarning:
    warning_id: str
    type: WarningType
    severity: WarningSeverity
    message: str
    tour_run_id: Optional[str] = None
    booking_id: Optional[str] = None
    guide_id: Optional[str] = None
    suggested_resolutions: List[SuggestedResolution] = field(default_factory=list)


@dataclass(slots=True)
class OptimizationInput:
    date: date
    tour_runs: Sequence[TourRun]
    available_guides: Sequence[Guide]
    travel_matrix: "TravelMatrix"
    organization_id: str


@dataclass(slots=True)
class OptimizationMetadata:
    optimized_at: datetime
    algorithm_version: str
    tour_runs_processed: int
    bookings_processed: int


@dataclass(slots=True)
class OptimizationOutput:
    assignments: List[ProposedAssignment]
    warnings: List[OptimizationWarning]
    efficiency: int
    total_drive_minutes: float
    guides_used: int
    metadata: OptimizationMetadata
