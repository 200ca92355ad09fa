"""Travel matrix request/response schemas."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class ZoneTravelTimeModel(BaseModel):
    from_zone_id: str
    to_zone_id: str
    estimated_minutes: int = Field(..., ge=0)


class ZonePairModel(BaseModel):
    from_zone_id: str
    to_zone_id: str


class TravelMatrixInspectRequest(BaseModel):
    travel_times: List[ZoneTravelTimeModel] = Field(default_factory=list)
    required_zone_ids: List[str] = Field(
        default_factory=list,
        description="Zones that should have travel data between every pair.",
    )


class TravelMatrixInspectResponse(BaseModel):
    zone_count: int
    entry_count: int
    average_minutes: int
    min_minutes: float
    max_minutes: float
    missing_pairs: List[ZonePairModel]
