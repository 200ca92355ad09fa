"""Dispatch request orchestration service."""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime
from typing import Optional

from ...models.domain import (
    AvailabilityWindow,
    Booking,
    Guide,
    GuideScheduleEntry,
    OptimizationInput,
    OptimizationOutput,
    TourRun,
    ZoneTravelTime,
)
from ...schemas.dispatch import DispatchRequest, DispatchResponse, GuideModel, TourRunModel
from ..outputs.formatter import assignments_to_csv, optimization_output_to_json
from ..travel.matrix import TravelMatrix, build_from_entries
from ..travel.source import build_travel_matrix
from .optimizer import optimize_dispatch

logger = logging.getLogger(__name__)


def _wall_clock(value: Optional[datetime]) -> Optional[datetime]:
    """Drop tz info; the engine compares operator-local wall-clock times."""
    if value is None:
        return None
    return value.replace(tzinfo=None)


def _to_tour_run(model: TourRunModel) -> TourRun:
    return TourRun(
        tour_id=model.tour_id,
        tour_name=model.tour_name,
        date=model.date,
        time=model.time,
        duration_minutes=model.duration_minutes,
        guests_per_guide=model.guests_per_guide,
        total_guests=model.total_guests,
        preferred_language=model.preferred_language,
        primary_pickup_zone_id=model.primary_pickup_zone_id,
        meeting_point_zone_id=model.meeting_point_zone_id,
        bookings=[
            Booking(
                booking_id=booking.id,
                participant_count=booking.participant_count,
                customer_name=booking.customer_name,
                pickup_zone_id=booking.pickup_zone_id,
                pickup_location=booking.pickup_location,
                reference_number=booking.reference_number,
                special_requests=booking.special_requests,
                is_private=booking.is_private,
            )
            for booking in model.bookings
        ],
    )


def _to_guide(model: GuideModel) -> Guide:
    if not model.availability_windows and (model.available_from is None or model.available_to is None):
        raise ValueError(f"Guide '{model.id}' needs available_from/available_to or availability_windows.")
    return Guide(
        guide_id=model.id,
        name=model.name,
        vehicle_capacity=model.vehicle_capacity,
        vehicle_description=model.vehicle_description,
        available_from=_wall_clock(model.available_from),
        available_to=_wall_clock(model.available_to),
        base_zone_id=model.base_zone_id,
        languages=tuple(model.languages),
        primary_tour_ids=tuple(model.primary_tour_ids),
        availability_windows=tuple(
            AvailabilityWindow(start=_wall_clock(window.start), end=_wall_clock(window.end))
            for window in model.availability_windows
        ),
        current_assignments=tuple(
            GuideScheduleEntry(
                entry_id=entry.id,
                starts_at=_wall_clock(entry.starts_at),
                ends_at=_wall_clock(entry.ends_at),
                is_exclusive=entry.is_exclusive,
                end_zone_id=entry.end_zone_id,
            )
            for entry in model.current_assignments
        ),
    )


def _resolve_matrix(payload: DispatchRequest) -> TravelMatrix:
    if payload.travel_times is None:
        return build_travel_matrix(payload.organization_id)
    return build_from_entries(
        ZoneTravelTime(
            from_zone_id=entry.from_zone_id,
            to_zone_id=entry.to_zone_id,
            estimated_minutes=entry.estimated_minutes,
        )
        for entry in payload.travel_times
    )


def build_optimization_input(payload: DispatchRequest) -> OptimizationInput:
    return OptimizationInput(
        date=payload.date,
        tour_runs=[_to_tour_run(run) for run in payload.tour_runs],
        available_guides=[_to_guide(guide) for guide in payload.guides],
        travel_matrix=_resolve_matrix(payload),
        organization_id=payload.organization_id,
    )


def run_optimization(payload: DispatchRequest) -> OptimizationOutput:
    optimization_input = build_optimization_input(payload)
    mismatched = [run.tour_run_id for run in optimization_input.tour_runs if run.date != payload.date]
    if mismatched:
        logger.warning(f"Tour runs outside requested date {payload.date.isoformat()}: {', '.join(mismatched)}")
    return optimize_dispatch(optimization_input)


def optimize_request(payload: DispatchRequest) -> DispatchResponse:
    output = run_optimization(payload)
    body = optimization_output_to_json(output)
    body["organization_id"] = payload.organization_id
    body["date"] = payload.date
    body["warning_counts"] = dict(Counter(warning.severity.value for warning in output.warnings))
    return DispatchResponse.model_validate(body)


def optimize_request_csv(payload: DispatchRequest) -> str:
    return assignments_to_csv(run_optimization(payload))
