"""Dispatch optimization orchestration.

Greedy pipeline over one day's tour runs:

1. Sort tour runs (earlier first, then larger first).
2. For each run, filter guides who are free and conflict-free.
3. Score the candidates and keep the top ``guides_needed``.
4. Distribute bookings across the chosen guides respecting capacity.
5. Order each guide's pickups and compute pickup times backwards from the
   tour start.
6. Update per-guide schedules so later runs see earlier load.

Runs are folded sequentially because every step reads the schedule state
left by the previous runs. The function performs no I/O.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence

from ...config import settings
from ...models.domain import (
    AssignmentConfidence,
    Guide,
    OptimizationInput,
    OptimizationMetadata,
    OptimizationOutput,
    OptimizationWarning,
    ProposedAssignment,
    TourRun,
    WarningSeverity,
)
from ..travel.matrix import TravelMatrix
from .candidates import find_assignable_guides
from .distribution import distribute_bookings
from .schedule import GuideSchedule, initialize_guide_schedules
from .scoring import rank_candidates, select_guides
from .sequencing import calculate_pickup_times, order_pickups
from .warnings import WarningFactory

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DispatchConstraints:
    arrival_buffer_minutes: int = settings.arrival_buffer_minutes
    long_drive_threshold_minutes: int = settings.long_drive_threshold_minutes
    efficiency_baseline_minutes: int = settings.efficiency_baseline_minutes
    max_alternative_guides: int = settings.max_alternative_guides
    warn_on_capacity_overflow: bool = settings.warn_on_capacity_overflow
    algorithm_version: str = settings.algorithm_version


@dataclass(slots=True)
class DispatchPass:
    """State carried from one tour run to the next within a single pass."""

    guides: Sequence[Guide]
    schedules: Dict[str, GuideSchedule]
    travel_matrix: TravelMatrix
    warnings: WarningFactory
    constraints: DispatchConstraints
    warning_log: List[OptimizationWarning]

    def warn(self, warning: OptimizationWarning) -> None:
        self.warning_log.append(warning)


def sort_tour_runs_by_priority(tour_runs: Sequence[TourRun]) -> List[TourRun]:
    return sorted(tour_runs, key=lambda run: (run.minutes_of_day, -run.total_guests))


def determine_confidence(score: float, drive_minutes: float) -> AssignmentConfidence:
    if score >= 100:
        return AssignmentConfidence.OPTIMAL if drive_minutes <= 20 else AssignmentConfidence.GOOD
    if score >= 50:
        return AssignmentConfidence.GOOD if drive_minutes <= 30 else AssignmentConfidence.REVIEW
    if score >= 0:
        return AssignmentConfidence.REVIEW
    return AssignmentConfidence.PROBLEM


def process_tour_run(tour_run: TourRun, state: DispatchPass) -> List[ProposedAssignment]:
    """Staff one tour run and record the result in the pass state."""

    tour_run_id = tour_run.tour_run_id
    candidates = find_assignable_guides(tour_run, state.guides, state.schedules)
    ranked = rank_candidates(candidates, tour_run, state.schedules, state.travel_matrix)
    guides_needed = tour_run.guides_needed
    selected, alternatives = select_guides(ranked, guides_needed)
    logger.debug(
        f"Tour run {tour_run_id}: {len(candidates)} candidates, {len(selected)}/{guides_needed} selected"
    )

    if len(selected) < guides_needed:
        state.warn(
            state.warnings.insufficient_guides(
                tour_run,
                len(selected),
                alternatives,
                state.travel_matrix,
                max_alternatives=state.constraints.max_alternative_guides,
            )
        )

    if not selected:
        for booking in tour_run.bookings:
            state.warn(state.warnings.unassigned_booking(tour_run, booking, "has no assigned guide"))
        return []

    distribution = distribute_bookings(
        tour_run.bookings,
        [candidate.guide for candidate in selected],
        tour_run.guests_per_guide,
    )
    for booking in distribution.unplaced:
        state.warn(state.warnings.unassigned_booking(tour_run, booking, "could not be assigned"))
    if state.constraints.warn_on_capacity_overflow:
        for overflow in distribution.overflows:
            state.warn(
                state.warnings.vehicle_capacity_exceeded(
                    tour_run, overflow.booking, overflow.guide_id, -overflow.remaining_capacity
                )
            )

    assignments: List[ProposedAssignment] = []
    is_lead_guide = True
    for candidate in selected:
        guide = candidate.guide
        guide_bookings = distribution.bookings_for(guide.guide_id)
        if not guide_bookings:
            continue

        schedule = state.schedules[guide.guide_id]
        ordered = order_pickups(guide_bookings, guide.base_zone_id, state.travel_matrix)
        pickups = calculate_pickup_times(
            ordered,
            tour_run.starts_at,
            tour_run.meeting_point_zone_id,
            state.travel_matrix,
            arrival_buffer_minutes=state.constraints.arrival_buffer_minutes,
        )
        bookings_by_id = {booking.booking_id: booking for booking in ordered}

        for pickup in pickups:
            assignment = ProposedAssignment(
                booking_id=pickup.booking_id,
                guide_id=guide.guide_id,
                pickup_order=pickup.order,
                calculated_pickup_time=pickup.time,
                drive_time_minutes=pickup.drive_minutes,
                confidence=determine_confidence(candidate.score, pickup.drive_minutes),
                score_breakdown=candidate.breakdown,
                tour_run_id=tour_run_id,
                is_lead_guide=is_lead_guide,
            )
            assignments.append(assignment)
            schedule.assignments.append(assignment)

            if pickup.drive_minutes > state.constraints.long_drive_threshold_minutes:
                state.warn(
                    state.warnings.long_drive_time(
                        tour_run, bookings_by_id[pickup.booking_id], guide.guide_id, pickup.drive_minutes
                    )
                )

        schedule.record_tour_run(tour_run, pickups, ordered)
        is_lead_guide = False

    return assignments


def calculate_total_drive_minutes(schedules: Dict[str, GuideSchedule]) -> float:
    return sum(schedule.total_drive_minutes for schedule in schedules.values())


def count_guides_used(schedules: Dict[str, GuideSchedule]) -> int:
    return sum(1 for schedule in schedules.values() if schedule.is_used)


def calculate_efficiency(
    assignments: Sequence[ProposedAssignment],
    schedules: Dict[str, GuideSchedule],
    warnings: Sequence[OptimizationWarning],
    *,
    baseline_minutes: int | None = None,
) -> int:
    """Score the plan 0-100 from drive load per guide and warning counts."""
    if not assignments:
        return 0
    baseline = baseline_minutes or settings.efficiency_baseline_minutes

    guides_used = count_guides_used(schedules)
    average_drive = calculate_total_drive_minutes(schedules) / guides_used if guides_used else 0
    efficiency = 100 - (average_drive / baseline) * 50

    critical = sum(1 for warning in warnings if warning.severity == WarningSeverity.CRITICAL)
    regular = sum(1 for warning in warnings if warning.severity == WarningSeverity.WARNING)
    efficiency -= critical * 10
    efficiency -= regular * 5

    return max(0, min(100, math.floor(efficiency + 0.5)))


def optimize_dispatch(
    payload: OptimizationInput,
    *,
    constraints: DispatchConstraints | None = None,
    clock: Callable[[], datetime] | None = None,
) -> OptimizationOutput:
    """Propose guide assignments and pickup times for one day of tour runs."""

    constraints = constraints or DispatchConstraints()
    optimized_at = (clock or (lambda: datetime.now(timezone.utc)))()

    state = DispatchPass(
        guides=list(payload.available_guides),
        schedules=initialize_guide_schedules(payload.available_guides),
        travel_matrix=payload.travel_matrix,
        warnings=WarningFactory(token=str(int(optimized_at.timestamp()))),
        constraints=constraints,
        warning_log=[],
    )

    sorted_runs = sort_tour_runs_by_priority(payload.tour_runs)
    assignments: List[ProposedAssignment] = []
    bookings_processed = 0
    for tour_run in sorted_runs:
        assignments.extend(process_tour_run(tour_run, state))
        bookings_processed += len(tour_run.bookings)

    efficiency = calculate_efficiency(
        assignments,
        state.schedules,
        state.warning_log,
        baseline_minutes=constraints.efficiency_baseline_minutes,
    )
    total_drive_minutes = calculate_total_drive_minutes(state.schedules)
    guides_used = count_guides_used(state.schedules)

    logger.info(
        f"Dispatch for {payload.organization_id} on {payload.date.isoformat()}: "
        f"{len(sorted_runs)} tour runs, {len(assignments)} assignments, "
        f"{len(state.warning_log)} warnings, efficiency {efficiency}"
    )

    return OptimizationOutput(
        assignments=assignments,
        warnings=state.warning_log,
        efficiency=efficiency,
        total_drive_minutes=total_drive_minutes,
        guides_used=guides_used,
        metadata=OptimizationMetadata(
            optimized_at=optimized_at,
            algorithm_version=constraints.algorithm_version,
            tour_runs_processed=len(sorted_runs),
            bookings_processed=bookings_processed,
        ),
    )
