"""Operator-facing warnings and suggested resolutions."""

from __future__ import annotations

from typing import List, Optional, Sequence

from ...models.domain import (
    Booking,
    OptimizationWarning,
    ResolutionType,
    SuggestedResolution,
    TourRun,
    WarningSeverity,
    WarningType,
)
from ..travel.matrix import TravelMatrix
from .scoring import ScoredCandidate, target_pickup_zone


class WarningFactory:
    """Issues warnings with ids unique within one optimization pass.

    Ids look like ``warn_<token>_<n>``; ``token`` identifies the pass and
    ``n`` counts up from 1.
    """

    def __init__(self, token: str, start: int = 0) -> None:
        self.token = token
        self._counter = start

    @property
    def issued(self) -> int:
        return self._counter

    def create(
        self,
        *,
        type: WarningType,
        severity: WarningSeverity,
        message: str,
        tour_run_id: Optional[str] = None,
        booking_id: Optional[str] = None,
        guide_id: Optional[str] = None,
        suggested_resolutions: Optional[List[SuggestedResolution]] = None,
    ) -> OptimizationWarning:
        self._counter += 1
        return OptimizationWarning(
            warning_id=f"warn_{self.token}_{self._counter}",
            type=type,
            severity=severity,
            message=message,
            tour_run_id=tour_run_id,
            booking_id=booking_id,
            guide_id=guide_id,
            suggested_resolutions=list(suggested_resolutions or []),
        )

    def insufficient_guides(
        self,
        tour_run: TourRun,
        assigned_count: int,
        alternatives: Sequence[ScoredCandidate],
        travel_matrix: TravelMatrix,
        *,
        max_alternatives: int = 3,
    ) -> OptimizationWarning:
        guides_needed = tour_run.guides_needed
        return self.create(
            type=WarningType.INSUFFICIENT_GUIDES,
            severity=WarningSeverity.CRITICAL,
            message=(
                f"Need {guides_needed} guides for {tour_run.tour_name} at {tour_run.time}, "
                f"only {assigned_count} available ({guides_needed - assigned_count} short)"
            ),
            tour_run_id=tour_run.tour_run_id,
            suggested_resolutions=insufficient_guides_resolutions(
                tour_run, alternatives, travel_matrix, max_alternatives=max_alternatives
            ),
        )

    def unassigned_booking(self, tour_run: TourRun, booking: Booking, reason: str) -> OptimizationWarning:
        return self.create(
            type=WarningType.UNASSIGNED_BOOKING,
            severity=WarningSeverity.CRITICAL,
            message=f"Booking {booking.label} for {tour_run.tour_name} {reason}",
            tour_run_id=tour_run.tour_run_id,
            booking_id=booking.booking_id,
            suggested_resolutions=[external_guide_resolution(booking.booking_id)],
        )

    def long_drive_time(
        self,
        tour_run: TourRun,
        booking: Booking,
        guide_id: str,
        drive_minutes: float,
    ) -> OptimizationWarning:
        return self.create(
            type=WarningType.LONG_DRIVE_TIME,
            severity=WarningSeverity.WARNING,
            message=f"Long drive time ({drive_minutes:g}min) to pick up {booking.customer_name}",
            tour_run_id=tour_run.tour_run_id,
            booking_id=booking.booking_id,
            guide_id=guide_id,
        )

    def vehicle_capacity_exceeded(
        self,
        tour_run: TourRun,
        booking: Booking,
        guide_id: str,
        over_by: int,
    ) -> OptimizationWarning:
        return self.create(
            type=WarningType.VEHICLE_CAPACITY_EXCEEDED,
            severity=WarningSeverity.WARNING,
            message=(
                f"Booking {booking.label} ({booking.participant_count} guests) puts guide {guide_id} "
                f"{over_by} over capacity for {tour_run.tour_name} at {tour_run.time}"
            ),
            tour_run_id=tour_run.tour_run_id,
            booking_id=booking.booking_id,
            guide_id=guide_id,
            suggested_resolutions=[
                SuggestedResolution(
                    resolution_id=f"split_{booking.booking_id}",
                    type=ResolutionType.SPLIT_ACROSS_GUIDES,
                    label="Split Across Guides",
                ),
                external_guide_resolution(booking.booking_id),
            ],
        )


def external_guide_resolution(booking_id: Optional[str] = None) -> SuggestedResolution:
    return SuggestedResolution(
        resolution_id=f"ext_{booking_id}" if booking_id else "add_external",
        type=ResolutionType.ADD_EXTERNAL_GUIDE,
        label="Add External Guide",
    )


def insufficient_guides_resolutions(
    tour_run: TourRun,
    alternatives: Sequence[ScoredCandidate],
    travel_matrix: TravelMatrix,
    *,
    max_alternatives: int = 3,
) -> List[SuggestedResolution]:
    """Offer the next-best unused guides, then always an external guide."""
    pickup_zone = target_pickup_zone(tour_run)
    resolutions: List[SuggestedResolution] = []
    for candidate in alternatives[:max_alternatives]:
        guide = candidate.guide
        resolutions.append(
            SuggestedResolution(
                resolution_id=f"assign_{guide.guide_id}",
                type=ResolutionType.ASSIGN_TO_GUIDE,
                label=f"Assign to {guide.name}",
                additional_drive_minutes=travel_matrix.get(guide.base_zone_id, pickup_zone),
                guide_id=guide.guide_id,
                guide_name=guide.name,
            )
        )
    resolutions.append(external_guide_resolution())
    return resolutions
