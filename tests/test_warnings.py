from datetime import date, datetime

from tourdispatch.models.domain import (
    Booking,
    Guide,
    ResolutionType,
    TourRun,
    WarningSeverity,
    WarningType,
    ZoneTravelTime,
)
from tourdispatch.services.dispatch.schedule import initialize_guide_schedules
from tourdispatch.services.dispatch.scoring import rank_candidates
from tourdispatch.services.dispatch.warnings import WarningFactory, external_guide_resolution
from tourdispatch.services.travel.matrix import build_from_entries


def _guide(gid: str, base: str) -> Guide:
    return Guide(
        guide_id=gid,
        name=f"Guide {gid}",
        vehicle_capacity=6,
        available_from=datetime(2026, 10, 19, 6),
        available_to=datetime(2026, 10, 19, 20),
        base_zone_id=base,
    )


def _tour_run() -> TourRun:
    return TourRun(
        tour_id="desert-safari",
        tour_name="Desert Safari",
        date=date(2026, 10, 19),
        time="14:00",
        duration_minutes=240,
        guests_per_guide=6,
        total_guests=18,
        bookings=[
            Booking(booking_id="B1", participant_count=4, customer_name="Ada", pickup_zone_id="marina"),
            Booking(booking_id="B2", participant_count=2, customer_name="Lin", reference_number="REF-2"),
        ],
    )


def _matrix():
    return build_from_entries(
        [
            ZoneTravelTime(from_zone_id="downtown", to_zone_id="marina", estimated_minutes=15),
            ZoneTravelTime(from_zone_id="airport", to_zone_id="marina", estimated_minutes=35),
        ],
        default_minutes=20,
        max_minutes=120,
    )


def test_warning_ids_are_sequential_per_factory():
    factory = WarningFactory(token="1760860800")
    run = _tour_run()

    first = factory.unassigned_booking(run, run.bookings[0], "has no assigned guide")
    second = factory.unassigned_booking(run, run.bookings[1], "could not be assigned")

    assert first.warning_id == "warn_1760860800_1"
    assert second.warning_id == "warn_1760860800_2"
    assert factory.issued == 2


def test_unassigned_booking_suggests_an_external_guide():
    run = _tour_run()

    warning = WarningFactory(token="t").unassigned_booking(run, run.bookings[1], "could not be assigned")

    assert warning.type == WarningType.UNASSIGNED_BOOKING
    assert warning.severity == WarningSeverity.CRITICAL
    assert warning.booking_id == "B2"
    assert warning.tour_run_id == "desert-safari|2026-10-19|14:00"
    assert "REF-2" in warning.message
    assert [(r.resolution_id, r.type) for r in warning.suggested_resolutions] == [
        ("ext_B2", ResolutionType.ADD_EXTERNAL_GUIDE)
    ]


def test_insufficient_guides_lists_alternatives_then_external():
    run = _tour_run()
    guides = [_guide("G1", "downtown"), _guide("G2", "airport"), _guide("G3", "old_town"), _guide("G4", None)]
    ranked = rank_candidates(guides, run, initialize_guide_schedules(guides), _matrix())

    warning = WarningFactory(token="t").insufficient_guides(run, 1, ranked, _matrix(), max_alternatives=3)

    assert warning.type == WarningType.INSUFFICIENT_GUIDES
    assert warning.severity == WarningSeverity.CRITICAL
    assert "Need 3 guides" in warning.message
    assert "2 short" in warning.message
    resolutions = warning.suggested_resolutions
    assert len(resolutions) == 4
    assert [r.resolution_id for r in resolutions[:3]] == ["assign_G1", "assign_G3", "assign_G4"]
    assert [r.additional_drive_minutes for r in resolutions[:3]] == [15, 20, 20]
    assert all(r.type == ResolutionType.ASSIGN_TO_GUIDE for r in resolutions[:3])
    assert resolutions[-1] == external_guide_resolution()
    assert resolutions[-1].resolution_id == "add_external"


def test_insufficient_guides_without_alternatives_still_offers_external():
    warning = WarningFactory(token="t").insufficient_guides(_tour_run(), 0, [], _matrix())

    assert [r.resolution_id for r in warning.suggested_resolutions] == ["add_external"]


def test_long_drive_and_capacity_warnings():
    run = _tour_run()
    factory = WarningFactory(token="t")

    long_drive = factory.long_drive_time(run, run.bookings[0], "G1", 55)
    overflow = factory.vehicle_capacity_exceeded(run, run.bookings[0], "G1", 2)

    assert long_drive.severity == WarningSeverity.WARNING
    assert long_drive.guide_id == "G1"
    assert "55min" in long_drive.message
    assert long_drive.suggested_resolutions == []

    assert overflow.type == WarningType.VEHICLE_CAPACITY_EXCEEDED
    assert overflow.severity == WarningSeverity.WARNING
    assert [r.type for r in overflow.suggested_resolutions] == [
        ResolutionType.SPLIT_ACROSS_GUIDES,
        ResolutionType.ADD_EXTERNAL_GUIDE,
    ]
    assert overflow.warning_id == "warn_t_2"
