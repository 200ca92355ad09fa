"""Travel matrix inspection service."""

from __future__ import annotations

from ...models.domain import ZoneTravelTime
from ...schemas.travel import TravelMatrixInspectRequest, TravelMatrixInspectResponse, ZonePairModel
from .matrix import build_from_entries


def inspect_travel_matrix(payload: TravelMatrixInspectRequest) -> TravelMatrixInspectResponse:
    matrix = build_from_entries(
        ZoneTravelTime(
            from_zone_id=entry.from_zone_id,
            to_zone_id=entry.to_zone_id,
            estimated_minutes=entry.estimated_minutes,
        )
        for entry in payload.travel_times
    )
    stats = matrix.stats()
    required = list(dict.fromkeys(zone.strip() for zone in payload.required_zone_ids if zone.strip()))
    return TravelMatrixInspectResponse(
        zone_count=stats.zone_count,
        entry_count=stats.entry_count,
        average_minutes=stats.average_minutes,
        min_minutes=stats.min_minutes,
        max_minutes=stats.max_minutes,
        missing_pairs=[
            ZonePairModel(from_zone_id=from_zone, to_zone_id=to_zone)
            for from_zone, to_zone in matrix.missing_pairs(required)
        ],
    )
