"""Pickup ordering and pickup time calculation for one guide's route."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from ...config import settings
from ...models.domain import Booking, format_time_of_day
from ..travel.matrix import TravelMatrix


@dataclass(slots=True)
class PickupStop:
    booking_id: str
    order: int
    pickup_at: datetime
    time: str
    drive_minutes: float
    zone_id: Optional[str]


def order_pickups(
    bookings: Sequence[Booking],
    start_zone_id: Optional[str],
    travel_matrix: TravelMatrix,
) -> List[Booking]:
    """Nearest-neighbour visiting order starting from ``start_zone_id``."""
    if len(bookings) <= 1:
        return list(bookings)

    ordered: List[Booking] = []
    remaining = list(bookings)
    current_zone = start_zone_id
    while remaining:
        nearest_index = 0
        nearest_minutes = float("inf")
        for index, booking in enumerate(remaining):
            minutes = travel_matrix.get(current_zone, booking.pickup_zone_id)
            if minutes < nearest_minutes:
                nearest_index, nearest_minutes = index, minutes
        nearest = remaining.pop(nearest_index)
        ordered.append(nearest)
        current_zone = nearest.pickup_zone_id
    return ordered


def calculate_pickup_times(
    ordered_bookings: Sequence[Booking],
    tour_starts_at: datetime,
    meeting_point_zone_id: Optional[str],
    travel_matrix: TravelMatrix,
    *,
    arrival_buffer_minutes: int | None = None,
) -> List[PickupStop]:
    """Work backwards from the meeting point deadline to each pickup.

    The guide must reach the meeting point ``arrival_buffer_minutes`` before
    the tour starts. Walking the route in reverse, each pickup time is the
    following stop's time minus the drive from this pickup to that stop.
    ``drive_minutes`` is therefore the leg that leaves each pickup.
    """
    if not ordered_bookings:
        return []
    buffer_minutes = settings.arrival_buffer_minutes if arrival_buffer_minutes is None else arrival_buffer_minutes

    stops: List[PickupStop] = []
    current_time = tour_starts_at - timedelta(minutes=buffer_minutes)
    current_zone = meeting_point_zone_id
    for order in range(len(ordered_bookings), 0, -1):
        booking = ordered_bookings[order - 1]
        drive_minutes = travel_matrix.get(booking.pickup_zone_id, current_zone)
        pickup_at = current_time - timedelta(minutes=drive_minutes)
        stops.append(
            PickupStop(
                booking_id=booking.booking_id,
                order=order,
                pickup_at=pickup_at,
                time=format_time_of_day(pickup_at),
                drive_minutes=drive_minutes,
                zone_id=booking.pickup_zone_id,
            )
        )
        current_time = pickup_at
        current_zone = booking.pickup_zone_id

    stops.reverse()
    return stops
