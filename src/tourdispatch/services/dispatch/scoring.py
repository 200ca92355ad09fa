"""Multi-factor scoring of candidate guides for a tour run.

Higher is better. Every factor is reported separately in a
``ScoreBreakdown`` so operators can see why a guide was (not) chosen:

1. Primary guide: +100 when the guide is a primary guide for the tour.
2. Zone proximity: ``max(0, 50 - drive minutes)`` from the guide's base to
   the run's main pickup zone.
3. Capacity fit: +30 for a snug vehicle (0-2 spare seats), -100 when the
   vehicle cannot hold the per-guide share, 0 otherwise.
4. Workload: -15 per assignment already made to the guide in this pass.
5. Language: +20 when the guide speaks the run's preferred language.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from ...models.domain import Guide, ScoreBreakdown, TourRun
from ..travel.matrix import TravelMatrix, most_common_zone
from .schedule import GuideSchedule

PRIMARY_GUIDE_BONUS = 100
MAX_ZONE_PROXIMITY = 50
CAPACITY_FIT_GOOD = 30
CAPACITY_FIT_BAD = -100
SNUG_FIT_SPARE_SEATS = 2
WORKLOAD_PENALTY_PER_ASSIGNMENT = 15
LANGUAGE_MATCH_BONUS = 20


@dataclass(slots=True)
class ScoredCandidate:
    guide: Guide
    breakdown: ScoreBreakdown

    @property
    def score(self) -> float:
        return self.breakdown.total


def target_pickup_zone(tour_run: TourRun) -> Optional[str]:
    """Zone most bookings are picked up from, else the run's primary zone."""
    return most_common_zone(tour_run.bookings) or tour_run.primary_pickup_zone_id


def guests_per_assigned_guide(tour_run: TourRun) -> int:
    guides_needed = tour_run.guides_needed
    if guides_needed <= 0:
        return tour_run.guests_per_guide
    return math.ceil(tour_run.total_guests / guides_needed)


def capacity_fit_score(vehicle_capacity: int, guest_share: int) -> int:
    spare_seats = vehicle_capacity - guest_share
    if spare_seats < 0:
        return CAPACITY_FIT_BAD
    if spare_seats <= SNUG_FIT_SPARE_SEATS:
        return CAPACITY_FIT_GOOD
    return 0


def score_guide(
    guide: Guide,
    tour_run: TourRun,
    schedule: Optional[GuideSchedule],
    travel_matrix: TravelMatrix,
) -> ScoreBreakdown:
    primary_guide_bonus = PRIMARY_GUIDE_BONUS if guide.is_primary_for(tour_run.tour_id) else 0

    drive_from_base = travel_matrix.get(guide.base_zone_id, target_pickup_zone(tour_run))
    zone_proximity = max(0, MAX_ZONE_PROXIMITY - drive_from_base)

    capacity_fit = capacity_fit_score(guide.vehicle_capacity, guests_per_assigned_guide(tour_run))

    workload_balance = -(len(schedule.assignments) * WORKLOAD_PENALTY_PER_ASSIGNMENT) if schedule else 0

    language_match = LANGUAGE_MATCH_BONUS if guide.speaks(tour_run.preferred_language) else 0

    return ScoreBreakdown(
        total=primary_guide_bonus + zone_proximity + capacity_fit + workload_balance + language_match,
        primary_guide_bonus=primary_guide_bonus,
        zone_proximity=zone_proximity,
        capacity_fit=capacity_fit,
        workload_balance=workload_balance,
        language_match=language_match,
    )


def rank_candidates(
    candidates: Sequence[Guide],
    tour_run: TourRun,
    schedules: Dict[str, GuideSchedule],
    travel_matrix: TravelMatrix,
) -> List[ScoredCandidate]:
    """Score and sort candidates best-first; equal scores keep input order."""
    scored = [
        ScoredCandidate(
            guide=guide,
            breakdown=score_guide(guide, tour_run, schedules.get(guide.guide_id), travel_matrix),
        )
        for guide in candidates
    ]
    scored.sort(key=lambda candidate: candidate.score, reverse=True)
    return scored


def select_guides(
    ranked: Sequence[ScoredCandidate],
    guides_needed: int,
) -> Tuple[List[ScoredCandidate], List[ScoredCandidate]]:
    """Split ranked candidates into the chosen top-N and the rest."""
    return list(ranked[:guides_needed]), list(ranked[guides_needed:])
