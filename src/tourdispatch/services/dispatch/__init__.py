"""Dispatch optimization services."""

from .distribution import Distribution, distribute_bookings
from .optimizer import (
    DispatchConstraints,
    determine_confidence,
    optimize_dispatch,
    sort_tour_runs_by_priority,
)
from .sequencing import PickupStop, calculate_pickup_times, order_pickups

__all__ = [
    "optimize_dispatch",
    "DispatchConstraints",
    "determine_confidence",
    "sort_tour_runs_by_priority",
    "distribute_bookings",
    "Distribution",
    "order_pickups",
    "calculate_pickup_times",
    "PickupStop",
]
