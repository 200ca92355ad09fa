"""Zone-to-zone travel time lookups.

The matrix is built once per optimization pass and never mutated. Lookups
for unknown pairs fall back to the reverse direction and then to a default,
so an empty matrix is valid and simply yields default travel times.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from ...config import settings
from ...models.domain import Booking, ZoneTravelTime

ZonePair = Tuple[str, str]


@dataclass(slots=True)
class NearestZone:
    zone_id: str
    minutes: float


@dataclass(slots=True)
class MatrixStats:
    zone_count: int
    entry_count: int
    average_minutes: int
    min_minutes: float
    max_minutes: float


class TravelMatrix:
    """Read-only travel time table keyed by ``(from_zone, to_zone)``."""

    __slots__ = ("_minutes", "default_minutes", "max_minutes")

    def __init__(
        self,
        minutes: Mapping[ZonePair, float] | None = None,
        *,
        default_minutes: float | None = None,
        max_minutes: float | None = None,
    ) -> None:
        self._minutes: Dict[ZonePair, float] = dict(minutes or {})
        self.default_minutes = settings.default_travel_minutes if default_minutes is None else default_minutes
        self.max_minutes = settings.max_travel_minutes if max_minutes is None else max_minutes

    @classmethod
    def empty(cls) -> "TravelMatrix":
        return cls()

    def __len__(self) -> int:
        return len(self._minutes)

    def __contains__(self, pair: object) -> bool:
        return pair in self._minutes

    def __iter__(self) -> Iterator[Tuple[ZonePair, float]]:
        return iter(self._minutes.items())

    def get(
        self,
        from_zone_id: Optional[str],
        to_zone_id: Optional[str],
        default: float | None = None,
    ) -> float:
        """Return travel minutes between two zones.

        Missing zones yield ``default``; identical zones yield 0. A known pair
        (in either direction) is capped at ``max_minutes``.
        """
        fallback = self.default_minutes if default is None else default
        if not from_zone_id or not to_zone_id:
            return fallback
        if from_zone_id == to_zone_id:
            return 0

        minutes = self._minutes.get((from_zone_id, to_zone_id))
        if minutes is None:
            minutes = self._minutes.get((to_zone_id, from_zone_id))
        if minutes is None:
            return fallback
        return min(minutes, self.max_minutes)

    def route_total(self, zone_ids: Sequence[Optional[str]]) -> float:
        """Sum consecutive legs over an ordered list of zones."""
        return sum(self.get(zone_ids[i], zone_ids[i + 1]) for i in range(len(zone_ids) - 1))

    def find_nearest_zone(
        self,
        from_zone_id: Optional[str],
        candidate_zone_ids: Iterable[Optional[str]],
    ) -> Optional[NearestZone]:
        nearest: Optional[NearestZone] = None
        for zone_id in candidate_zone_ids:
            if not zone_id:
                continue
            minutes = self.get(from_zone_id, zone_id)
            if nearest is None or minutes < nearest.minutes:
                nearest = NearestZone(zone_id=zone_id, minutes=minutes)
        return nearest

    def missing_pairs(self, required_zone_ids: Sequence[str]) -> List[ZonePair]:
        """List ordered zone pairs with no data in either direction."""
        missing: List[ZonePair] = []
        for from_zone in required_zone_ids:
            for to_zone in required_zone_ids:
                if from_zone == to_zone:
                    continue
                if self.get(from_zone, to_zone, default=-1) == -1:
                    missing.append((from_zone, to_zone))
        return missing

    def stats(self) -> MatrixStats:
        if not self._minutes:
            return MatrixStats(zone_count=0, entry_count=0, average_minutes=0, min_minutes=0, max_minutes=0)
        zones = {zone for pair in self._minutes for zone in pair}
        values = list(self._minutes.values())
        return MatrixStats(
            zone_count=len(zones),
            entry_count=len(values),
            average_minutes=int(sum(values) / len(values) + 0.5),
            min_minutes=min(values),
            max_minutes=max(values),
        )


def build_from_entries(
    entries: Iterable[ZoneTravelTime],
    *,
    default_minutes: float | None = None,
    max_minutes: float | None = None,
) -> TravelMatrix:
    minutes: Dict[ZonePair, float] = {}
    for entry in entries:
        minutes[(entry.from_zone_id, entry.to_zone_id)] = entry.estimated_minutes
    return TravelMatrix(minutes, default_minutes=default_minutes, max_minutes=max_minutes)


def unique_zones(bookings: Iterable[Booking]) -> set[str]:
    return {booking.pickup_zone_id for booking in bookings if booking.pickup_zone_id}


def most_common_zone(bookings: Iterable[Booking]) -> Optional[str]:
    """Return the most frequent pickup zone; the first one seen wins ties."""
    counts = Counter(booking.pickup_zone_id for booking in bookings if booking.pickup_zone_id)
    if not counts:
        return None
    return counts.most_common(1)[0][0]


def group_by_zone(bookings: Iterable[Booking]) -> Dict[Optional[str], List[Booking]]:
    groups: Dict[Optional[str], List[Booking]] = {}
    for booking in bookings:
        groups.setdefault(booking.pickup_zone_id or None, []).append(booking)
    return groups
