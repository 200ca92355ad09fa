from collections import defaultdict
from datetime import date, datetime, timedelta, timezone

import pytest

from tourdispatch.models.domain import (
    AssignmentConfidence,
    Booking,
    Guide,
    OptimizationInput,
    ResolutionType,
    TourRun,
    WarningSeverity,
    WarningType,
    ZoneTravelTime,
)
from tourdispatch.services.dispatch.optimizer import (
    DispatchConstraints,
    determine_confidence,
    optimize_dispatch,
    sort_tour_runs_by_priority,
)
from tourdispatch.services.travel.matrix import TravelMatrix, build_from_entries

DAY = date(2026, 10, 19)
OPTIMIZED_AT = datetime(2026, 10, 19, 5, 0, tzinfo=timezone.utc)


def _clock() -> datetime:
    return OPTIMIZED_AT


def _at(hour: int, minute: int = 0) -> datetime:
    return datetime(DAY.year, DAY.month, DAY.day, hour, minute)


def _guide(gid: str, **overrides) -> Guide:
    values = dict(
        guide_id=gid,
        name=f"Guide {gid}",
        vehicle_capacity=6,
        available_from=_at(6),
        available_to=_at(20),
        base_zone_id="downtown",
    )
    values.update(overrides)
    return Guide(**values)


def _booking(bid: str, count: int, zone: str | None = "marina", private: bool = False) -> Booking:
    return Booking(
        booking_id=bid,
        participant_count=count,
        customer_name=f"Party {bid}",
        pickup_zone_id=zone,
        is_private=private,
    )


def _tour_run(tour_id: str, time: str, bookings, **overrides) -> TourRun:
    values = dict(
        tour_id=tour_id,
        tour_name=tour_id.replace("-", " ").title(),
        date=DAY,
        time=time,
        duration_minutes=180,
        guests_per_guide=6,
        meeting_point_zone_id="downtown",
        bookings=list(bookings),
    )
    values.update(overrides)
    return TourRun(**values)


def _matrix(*extra) -> TravelMatrix:
    pairs = [("downtown", "marina", 15), *extra]
    return build_from_entries(
        [ZoneTravelTime(from_zone_id=f, to_zone_id=t, estimated_minutes=m) for f, t, m in pairs],
        default_minutes=20,
        max_minutes=120,
    )


def _optimize(tour_runs, guides, matrix=None, constraints=None):
    payload = OptimizationInput(
        date=DAY,
        tour_runs=tour_runs,
        available_guides=guides,
        travel_matrix=matrix or _matrix(),
        organization_id="org-1",
    )
    return optimize_dispatch(payload, constraints=constraints, clock=_clock)


def _warnings_of(output, warning_type: WarningType):
    return [warning for warning in output.warnings if warning.type == warning_type]


def test_simple_assignment():
    output = _optimize([_tour_run("city-tour", "09:00", [_booking("B1", 4)])], [_guide("G1")])

    assert len(output.assignments) == 1
    assignment = output.assignments[0]
    assert assignment.booking_id == "B1"
    assert assignment.guide_id == "G1"
    assert assignment.pickup_order == 1
    assert assignment.calculated_pickup_time == "08:30"
    assert assignment.drive_time_minutes == 15
    assert assignment.is_lead_guide is True
    assert assignment.tour_run_id == "city-tour|2026-10-19|09:00"
    assert assignment.score_breakdown.total == 65
    assert assignment.confidence == AssignmentConfidence.GOOD
    assert output.warnings == []
    assert output.total_drive_minutes == 15
    assert output.guides_used == 1
    assert output.efficiency == 88


def test_insufficient_guides():
    run = _tour_run("city-tour", "09:00", [_booking("B1", 5), _booking("B2", 5)])

    output = _optimize([run], [_guide("G1")])

    insufficient = _warnings_of(output, WarningType.INSUFFICIENT_GUIDES)
    assert len(insufficient) == 1
    assert insufficient[0].tour_run_id == run.tour_run_id
    assert insufficient[0].severity == WarningSeverity.CRITICAL
    assert insufficient[0].suggested_resolutions[-1].type == ResolutionType.ADD_EXTERNAL_GUIDE

    # The single guide carries both parties and the overflow is reported
    assert {a.booking_id for a in output.assignments} == {"B1", "B2"}
    assert {a.guide_id for a in output.assignments} == {"G1"}
    overflow = _warnings_of(output, WarningType.VEHICLE_CAPACITY_EXCEEDED)
    assert len(overflow) == 1
    assert overflow[0].guide_id == "G1"
    assert output.efficiency == 73


def test_capacity_overflow_warning_can_be_disabled():
    run = _tour_run("city-tour", "09:00", [_booking("B1", 5), _booking("B2", 5)])

    output = _optimize([run], [_guide("G1")], constraints=DispatchConstraints(warn_on_capacity_overflow=False))

    assert _warnings_of(output, WarningType.VEHICLE_CAPACITY_EXCEEDED) == []
    assert len(_warnings_of(output, WarningType.INSUFFICIENT_GUIDES)) == 1


def test_guests_per_guide_caps_a_larger_vehicle():
    run = _tour_run("city-tour", "09:00", [_booking("B1", 4), _booking("B2", 3)])

    output = _optimize([run], [_guide("G1", vehicle_capacity=8)])

    assert {a.booking_id for a in output.assignments} == {"B1", "B2"}
    overflow = _warnings_of(output, WarningType.VEHICLE_CAPACITY_EXCEEDED)
    assert [(w.booking_id, w.guide_id) for w in overflow] == [("B2", "G1")]
    assert "1 over capacity" in overflow[0].message


def test_private_booking_isolation():
    run = _tour_run("city-tour", "09:00", [_booking("S1", 2), _booking("P1", 6, private=True)])

    output = _optimize([run], [_guide("G1"), _guide("G2")])

    by_booking = {a.booking_id: a for a in output.assignments}
    assert by_booking["P1"].guide_id == "G1"
    assert by_booking["P1"].is_lead_guide is True
    assert by_booking["S1"].guide_id == "G2"
    assert by_booking["S1"].is_lead_guide is False
    assert output.warnings == []
    assert output.guides_used == 2


def test_no_guides_available():
    run = _tour_run("city-tour", "09:00", [_booking("B1", 2), _booking("B2", 3)])

    output = _optimize([run], [_guide("G1", available_from=_at(13))])

    assert output.assignments == []
    assert len(_warnings_of(output, WarningType.INSUFFICIENT_GUIDES)) == 1
    unassigned = _warnings_of(output, WarningType.UNASSIGNED_BOOKING)
    assert [w.booking_id for w in unassigned] == ["B1", "B2"]
    assert [w.suggested_resolutions[0].resolution_id for w in unassigned] == ["ext_B1", "ext_B2"]
    assert output.efficiency == 0
    assert output.guides_used == 0


def test_empty_input():
    output = _optimize([], [], matrix=TravelMatrix.empty())

    assert output.assignments == []
    assert output.warnings == []
    assert output.efficiency == 0
    assert output.total_drive_minutes == 0
    assert output.guides_used == 0
    assert output.metadata.optimized_at == OPTIMIZED_AT
    assert output.metadata.tour_runs_processed == 0
    assert output.metadata.bookings_processed == 0


def test_tour_runs_sorted_by_time_then_size():
    late = _tour_run("late", "10:00", [_booking("L1", 2)])
    small = _tour_run("small", "09:00", [_booking("S1", 2)])
    large = _tour_run("large", "9:00", [_booking("G1", 5)])

    assert [run.tour_id for run in sort_tour_runs_by_priority([late, small, large])] == ["large", "small", "late"]


def test_larger_concurrent_run_gets_the_only_guide():
    small = _tour_run("small", "09:00", [_booking("S1", 2)])
    large = _tour_run("large", "09:00", [_booking("L1", 5)])

    output = _optimize([small, large], [_guide("G1")])

    assert [a.booking_id for a in output.assignments] == ["L1"]
    insufficient = _warnings_of(output, WarningType.INSUFFICIENT_GUIDES)
    assert [w.tour_run_id for w in insufficient] == [small.tour_run_id]


def test_later_runs_see_earlier_load():
    morning = _tour_run("morning", "09:00", [_booking("M1", 4)])
    overlapping = _tour_run("overlap", "11:00", [_booking("O1", 4)])
    afternoon = _tour_run("afternoon", "13:00", [_booking("A1", 4)])

    output = _optimize([afternoon, overlapping, morning], [_guide("G1")])

    by_booking = {a.booking_id: a for a in output.assignments}
    assert set(by_booking) == {"M1", "A1"}
    assert by_booking["M1"].score_breakdown.workload_balance == 0
    assert by_booking["A1"].score_breakdown.workload_balance == -15
    assert [w.tour_run_id for w in _warnings_of(output, WarningType.INSUFFICIENT_GUIDES)] == [
        overlapping.tour_run_id
    ]


def test_long_drive_warning():
    run = _tour_run("city-tour", "09:00", [_booking("B1", 4)], meeting_point_zone_id="desert")

    output = _optimize([run], [_guide("G1")], matrix=_matrix(("marina", "desert", 60)))

    assignment = output.assignments[0]
    assert assignment.drive_time_minutes == 60
    assert assignment.calculated_pickup_time == "07:45"
    assert assignment.confidence == AssignmentConfidence.REVIEW
    long_drive = _warnings_of(output, WarningType.LONG_DRIVE_TIME)
    assert len(long_drive) == 1
    assert long_drive[0].booking_id == "B1"
    assert long_drive[0].guide_id == "G1"


def test_warning_ids_are_unique_and_derived_from_the_clock():
    runs = [
        _tour_run("first", "09:00", [_booking("A", 2), _booking("B", 2)]),
        _tour_run("second", "09:30", [_booking("C", 2)]),
    ]

    output = _optimize(runs, [])

    token = int(OPTIMIZED_AT.timestamp())
    ids = [warning.warning_id for warning in output.warnings]
    assert len(ids) == len(set(ids)) == 5
    assert ids[0] == f"warn_{token}_1"
    assert all(warning_id.startswith(f"warn_{token}_") for warning_id in ids)


def _pickup_at(assignment) -> datetime:
    return datetime.combine(DAY, datetime.strptime(assignment.calculated_pickup_time, "%H:%M").time())


def _mixed_day():
    runs = [
        _tour_run("city-tour", "09:00", [_booking("C1", 3), _booking("C2", 2, zone="old_town"), _booking("C3", 4)]),
        _tour_run("boat-trip", "09:00", [_booking("T1", 6, private=True), _booking("T2", 2)]),
        _tour_run("sunset", "16:00", [_booking("S1", 5, zone="old_town"), _booking("S2", 3)]),
        _tour_run("night-walk", "20:30", [_booking("N1", 2)], duration_minutes=90),
    ]
    guides = [
        _guide("G1", primary_tour_ids=("city-tour",)),
        _guide("G2", base_zone_id="marina", languages=("en",)),
        _guide("G3", vehicle_capacity=4, base_zone_id="old_town"),
        _guide("G4", available_from=_at(12), available_to=_at(22)),
        _guide("G5", vehicle_capacity=8),
    ]
    matrix = _matrix(("marina", "old_town", 25), ("old_town", "downtown", 10))
    return runs, guides, matrix


def test_plan_properties_hold_for_a_mixed_day():
    runs, guides, matrix = _mixed_day()

    output = _optimize(runs, guides, matrix=matrix)

    runs_by_id = {run.tour_run_id: run for run in runs}
    assigned = {a.booking_id for a in output.assignments}
    unassigned = {w.booking_id for w in _warnings_of(output, WarningType.UNASSIGNED_BOOKING)}
    for run in runs:
        for booking in run.bookings:
            assert (booking.booking_id in assigned) != (booking.booking_id in unassigned)

    by_guide_run = defaultdict(list)
    for assignment in output.assignments:
        by_guide_run[(assignment.guide_id, assignment.tour_run_id)].append(assignment)
        run = runs_by_id[assignment.tour_run_id]
        assert _pickup_at(assignment) <= run.starts_at - timedelta(minutes=15)

    guides_by_id = {guide.guide_id: guide for guide in guides}
    overflowed = {(w.guide_id, w.tour_run_id) for w in _warnings_of(output, WarningType.VEHICLE_CAPACITY_EXCEEDED)}
    for (guide_id, tour_run_id), group in by_guide_run.items():
        run = runs_by_id[tour_run_id]
        bookings = {b.booking_id: b for b in run.bookings}
        if any(bookings[a.booking_id].is_private for a in group):
            assert len(group) == 1
        guests = sum(bookings[a.booking_id].participant_count for a in group)
        if (guide_id, tour_run_id) not in overflowed:
            assert guests <= min(guides_by_id[guide_id].vehicle_capacity, run.guests_per_guide)
        route = sorted(group, key=lambda a: a.pickup_order)
        assert [a.pickup_order for a in route] == list(range(1, len(group) + 1))
        assert all(_pickup_at(earlier) <= _pickup_at(later) for earlier, later in zip(route, route[1:]))

    # The 8-seat vehicle is still capped at six guests per guide
    assert "G5" in {a.guide_id for a in output.assignments}

    intervals = defaultdict(list)
    for guide_id, tour_run_id in by_guide_run:
        run = runs_by_id[tour_run_id]
        intervals[guide_id].append((run.starts_at, run.ends_at))
    for spans in intervals.values():
        spans.sort()
        for (_, previous_end), (next_start, _) in zip(spans, spans[1:]):
            assert previous_end <= next_start

    assert 0 <= output.efficiency <= 100
    assert output.metadata.tour_runs_processed == 4
    assert output.metadata.bookings_processed == 8


def test_optimization_is_deterministic():
    runs, guides, matrix = _mixed_day()

    first = _optimize(runs, guides, matrix=matrix)
    second = _optimize(runs, guides, matrix=matrix)

    assert first == second


@pytest.mark.parametrize(
    ("score", "drive", "expected"),
    [
        (150, 20, AssignmentConfidence.OPTIMAL),
        (100, 21, AssignmentConfidence.GOOD),
        (65, 30, AssignmentConfidence.GOOD),
        (50, 31, AssignmentConfidence.REVIEW),
        (0, 5, AssignmentConfidence.REVIEW),
        (-1, 5, AssignmentConfidence.PROBLEM),
    ],
)
def test_determine_confidence(score, drive, expected):
    assert determine_confidence(score, drive) == expected
