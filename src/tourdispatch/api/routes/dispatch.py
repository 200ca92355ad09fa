"""Dispatch optimization endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import PlainTextResponse

from ...schemas.dispatch import DispatchRequest, DispatchResponse
from ...services.dispatch.service import optimize_request, optimize_request_csv

router = APIRouter(prefix="/dispatch", tags=["dispatch"])


@router.post("/optimize", response_model=DispatchResponse, status_code=status.HTTP_200_OK)
def optimize(payload: DispatchRequest) -> DispatchResponse:
    try:
        return optimize_request(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error optimizing dispatch: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to optimize dispatch: {str(exc)}"
        ) from exc


@router.post("/optimize/csv", response_class=PlainTextResponse, status_code=status.HTTP_200_OK)
def optimize_csv(payload: DispatchRequest) -> PlainTextResponse:
    try:
        content = optimize_request_csv(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error exporting dispatch assignments: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to export dispatch assignments: {str(exc)}"
        ) from exc
    return PlainTextResponse(
        content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="dispatch_{payload.date.isoformat()}.csv"'},
    )
