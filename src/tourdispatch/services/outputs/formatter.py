"""Serializers for dispatch optimization outputs."""

from __future__ import annotations

import csv
import io
from dataclasses import asdict

from ...models.domain import OptimizationOutput, OptimizationWarning


def _warning_to_json(warning: OptimizationWarning) -> dict:
    return {
        "id": warning.warning_id,
        "type": warning.type.value,
        "severity": warning.severity.value,
        "message": warning.message,
        "tour_run_id": warning.tour_run_id,
        "booking_id": warning.booking_id,
        "guide_id": warning.guide_id,
        "suggested_resolutions": [
            {
                "id": resolution.resolution_id,
                "type": resolution.type.value,
                "label": resolution.label,
                "additional_drive_minutes": resolution.additional_drive_minutes,
                "guide_id": resolution.guide_id,
                "guide_name": resolution.guide_name,
            }
            for resolution in warning.suggested_resolutions
        ],
    }


def optimization_output_to_json(output: OptimizationOutput) -> dict:
    return {
        "assignments": [
            {
                "booking_id": assignment.booking_id,
                "guide_id": assignment.guide_id,
                "pickup_order": assignment.pickup_order,
                "calculated_pickup_time": assignment.calculated_pickup_time,
                "drive_time_minutes": assignment.drive_time_minutes,
                "confidence": assignment.confidence.value,
                "score_breakdown": asdict(assignment.score_breakdown),
                "tour_run_id": assignment.tour_run_id,
                "is_lead_guide": assignment.is_lead_guide,
            }
            for assignment in output.assignments
        ],
        "warnings": [_warning_to_json(warning) for warning in output.warnings],
        "efficiency": output.efficiency,
        "total_drive_minutes": output.total_drive_minutes,
        "guides_used": output.guides_used,
        "metadata": {
            "optimized_at": output.metadata.optimized_at.isoformat(),
            "algorithm_version": output.metadata.algorithm_version,
            "tour_runs_processed": output.metadata.tour_runs_processed,
            "bookings_processed": output.metadata.bookings_processed,
        },
    }


def assignments_to_csv(output: OptimizationOutput) -> str:
    buffer = io.StringIO()
    fieldnames = [
        "tour_run_id",
        "guide_id",
        "is_lead_guide",
        "pickup_order",
        "booking_id",
        "calculated_pickup_time",
        "drive_time_minutes",
        "confidence",
        "score",
    ]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()
    for assignment in output.assignments:
        writer.writerow(
            {
                "tour_run_id": assignment.tour_run_id,
                "guide_id": assignment.guide_id,
                "is_lead_guide": assignment.is_lead_guide,
                "pickup_order": assignment.pickup_order,
                "booking_id": assignment.booking_id,
                "calculated_pickup_time": assignment.calculated_pickup_time,
                "drive_time_minutes": assignment.drive_time_minutes,
                "confidence": assignment.confidence.value,
                "score": assignment.score_breakdown.total,
            }
        )
    return buffer.getvalue()
