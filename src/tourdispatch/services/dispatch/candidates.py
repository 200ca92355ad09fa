"""Candidate filtering: which guides may take a tour run at all."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, List, Sequence

from ...models.domain import Guide, TourRun
from .schedule import GuideSchedule

logger = logging.getLogger(__name__)


def is_within_availability(guide: Guide, starts_at: datetime, ends_at: datetime) -> bool:
    """True when the whole interval fits inside one availability window."""

    if guide.availability_windows:
        return any(window.start <= starts_at and ends_at <= window.end for window in guide.availability_windows)
    if guide.available_from is None or guide.available_to is None:
        return False
    return guide.available_from <= starts_at and ends_at <= guide.available_to


def has_conflict(
    schedule: GuideSchedule,
    starts_at: datetime,
    ends_at: datetime,
    tour_run_id: str,
    incoming_is_exclusive: bool,
) -> bool:
    for entry in schedule.guide.current_assignments:
        if entry.starts_at < ends_at and entry.ends_at > starts_at:
            # Several guides may share one run unless either side is exclusive.
            if entry.entry_id == tour_run_id and not (entry.is_exclusive or incoming_is_exclusive):
                continue
            return True

    # Runs assigned earlier in this pass
    return schedule.available_at > starts_at


def find_assignable_guides(
    tour_run: TourRun,
    guides: Sequence[Guide],
    schedules: Dict[str, GuideSchedule],
) -> List[Guide]:
    """Return guides free for the whole run, preserving input order."""

    starts_at, ends_at = tour_run.starts_at, tour_run.ends_at
    incoming_is_exclusive = tour_run.has_private_booking
    candidates: List[Guide] = []
    for guide in guides:
        if not is_within_availability(guide, starts_at, ends_at):
            logger.debug(f"Guide {guide.guide_id} unavailable for {tour_run.tour_run_id}")
            continue
        schedule = schedules.get(guide.guide_id)
        if schedule is not None and has_conflict(
            schedule, starts_at, ends_at, tour_run.tour_run_id, incoming_is_exclusive
        ):
            logger.debug(f"Guide {guide.guide_id} has a conflict with {tour_run.tour_run_id}")
            continue
        candidates.append(guide)
    return candidates
