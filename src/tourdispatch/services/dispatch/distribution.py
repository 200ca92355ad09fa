"""Greedy packing of a tour run's bookings onto its selected guides."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set

from ...models.domain import Booking, Guide

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CapacityOverflow:
    booking: Booking
    guide_id: str
    remaining_capacity: int


@dataclass(slots=True)
class Distribution:
    allocations: Dict[str, List[Booking]]
    remaining_capacity: Dict[str, int]
    exclusive_guide_ids: Set[str] = field(default_factory=set)
    overflows: List[CapacityOverflow] = field(default_factory=list)
    unplaced: List[Booking] = field(default_factory=list)

    def bookings_for(self, guide_id: str) -> List[Booking]:
        return self.allocations.get(guide_id, [])

    @property
    def placed_booking_ids(self) -> Set[str]:
        return {booking.booking_id for bookings in self.allocations.values() for booking in bookings}


def _placement_order(bookings: Sequence[Booking]) -> List[Booking]:
    """Private bookings first, then larger parties first."""
    return sorted(bookings, key=lambda booking: (not booking.is_private, -booking.participant_count))


def _pick_guide(
    booking: Booking,
    guides: Sequence[Guide],
    remaining: Dict[str, int],
    exclusive: Set[str],
    shared: Set[str],
) -> Optional[str]:
    best_guide: Optional[str] = None
    best_remaining = -1
    for guide in guides:
        if guide.guide_id in exclusive:
            continue
        if booking.is_private and guide.guide_id in shared:
            continue
        capacity = remaining[guide.guide_id]
        if not booking.is_private and capacity < booking.participant_count:
            continue
        if capacity > best_remaining:
            best_guide, best_remaining = guide.guide_id, capacity
    return best_guide


def _pick_overflow_guide(guides: Sequence[Guide], remaining: Dict[str, int], exclusive: Set[str]) -> Optional[str]:
    best_guide: Optional[str] = None
    best_remaining = -1
    for guide in guides:
        if guide.guide_id in exclusive:
            continue
        if remaining[guide.guide_id] > best_remaining:
            best_guide, best_remaining = guide.guide_id, remaining[guide.guide_id]
    return best_guide


def distribute_bookings(
    bookings: Sequence[Booking],
    guides: Sequence[Guide],
    guests_per_guide: int,
) -> Distribution:
    """Assign bookings to guides, largest first, to the roomiest guide.

    A private booking takes a guide with no other party and consumes the
    whole vehicle. A shared booking that fits nowhere goes to the roomiest
    non-exclusive guide anyway and is reported in ``overflows``, as is a
    private party larger than its guide's working capacity. Bookings
    left without any eligible guide are reported in ``unplaced``.
    """
    allocations: Dict[str, List[Booking]] = {guide.guide_id: [] for guide in guides}
    remaining: Dict[str, int] = {
        guide.guide_id: min(guide.vehicle_capacity, guests_per_guide) for guide in guides
    }
    exclusive: Set[str] = set()
    shared: Set[str] = set()
    distribution = Distribution(allocations=allocations, remaining_capacity=remaining, exclusive_guide_ids=exclusive)

    for booking in _placement_order(bookings):
        guide_id = _pick_guide(booking, guides, remaining, exclusive, shared)
        overflowed = False
        if guide_id is None and not booking.is_private:
            guide_id = _pick_overflow_guide(guides, remaining, exclusive)
            overflowed = guide_id is not None

        if guide_id is None:
            logger.warning(f"Booking {booking.booking_id} could not be placed on any selected guide")
            distribution.unplaced.append(booking)
            continue

        allocations[guide_id].append(booking)
        if booking.is_private:
            exclusive.add(guide_id)
            spare = remaining[guide_id] - booking.participant_count
            remaining[guide_id] = 0
            if spare < 0:
                logger.warning(
                    f"Private booking {booking.booking_id} ({booking.participant_count} guests) exceeds the "
                    f"capacity of guide {guide_id}; over by {-spare}"
                )
                distribution.overflows.append(
                    CapacityOverflow(booking=booking, guide_id=guide_id, remaining_capacity=spare)
                )
            continue

        shared.add(guide_id)
        remaining[guide_id] -= booking.participant_count
        if overflowed:
            logger.warning(
                f"Booking {booking.booking_id} ({booking.participant_count} guests) exceeds remaining "
                f"capacity of guide {guide_id}; over by {-remaining[guide_id]}"
            )
            distribution.overflows.append(
                CapacityOverflow(booking=booking, guide_id=guide_id, remaining_capacity=remaining[guide_id])
            )

    return distribution
