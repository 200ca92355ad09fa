"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...config import settings

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/travel-source", status_code=status.HTTP_200_OK)
def health_travel_source() -> dict:
    """Report whether a travel time file is configured and readable."""
    path = settings.travel_times_file
    if path is None:
        return {"configured": False, "readable": False}
    return {"configured": True, "readable": path.is_file(), "path": str(path)}
