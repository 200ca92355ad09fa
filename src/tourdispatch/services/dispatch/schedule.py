"""Per-pass guide schedule tracking."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from ...models.domain import Booking, Guide, ProposedAssignment, TourRun
from .sequencing import PickupStop


@dataclass(slots=True)
class GuideSchedule:
    """Mutable state for one guide, owned by a single optimization pass."""

    guide: Guide
    available_at: datetime
    current_zone_id: Optional[str] = None
    assignments: List[ProposedAssignment] = field(default_factory=list)
    total_drive_minutes: float = 0
    guests_assigned: int = 0

    @property
    def is_used(self) -> bool:
        return bool(self.assignments) or self.total_drive_minutes > 0

    def record_tour_run(
        self,
        tour_run: TourRun,
        pickups: Sequence[PickupStop],
        bookings: Sequence[Booking],
    ) -> None:
        """Advance the guide past a run they were just given."""
        self.total_drive_minutes += sum(stop.drive_minutes for stop in pickups)
        self.available_at = tour_run.ends_at
        self.current_zone_id = tour_run.meeting_point_zone_id
        self.guests_assigned += sum(booking.participant_count for booking in bookings)


def _initial_availability(guide: Guide) -> datetime:
    if guide.available_from is not None:
        return guide.available_from
    return min((window.start for window in guide.availability_windows), default=datetime.min)


def initialize_guide_schedules(guides: Sequence[Guide]) -> Dict[str, GuideSchedule]:
    return {
        guide.guide_id: GuideSchedule(
            guide=guide,
            available_at=_initial_availability(guide),
            current_zone_id=guide.base_zone_id,
        )
        for guide in guides
    }
