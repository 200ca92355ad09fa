"""Travel matrix endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...schemas.travel import TravelMatrixInspectRequest, TravelMatrixInspectResponse
from ...services.travel.service import inspect_travel_matrix

router = APIRouter(prefix="/travel-matrix", tags=["travel"])


@router.post("/inspect", response_model=TravelMatrixInspectResponse, status_code=status.HTTP_200_OK)
def inspect(payload: TravelMatrixInspectRequest) -> TravelMatrixInspectResponse:
    return inspect_travel_matrix(payload)
