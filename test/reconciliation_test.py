import pytest
from datetime import date, datetime

from models.schema import AttendanceRecord, AttendanceStatus, ShiftRule
from reconciliation import deduplicate, reconcile

MON, TUE, WED, THU, FRI = (date(2025, 7, d) for d in range(21, 26))


def morning(employee_id, work_date, **kwargs):
    return ShiftRule(employee_id=employee_id, work_date=work_date, shift_name="Morning Shift",
                     grace_period_minutes=15, **kwargs)


def off(employee_id, work_date, shift_name, **kwargs):
    return ShiftRule(employee_id=employee_id, work_date=work_date, shift_name=shift_name,
                     full_day_hours=0, half_day_hours=0, **kwargs)


def test_duplicate_with_clock_in_is_kept():
    empty = AttendanceRecord(record_id="a", employee_id="E1", date=MON)
    punched = AttendanceRecord(record_id="b", employee_id="E1", date=MON, clock_in="09:00",
                               status=AttendanceStatus.PRESENT)

    kept, discarded, warnings = deduplicate([empty, punched])

    assert [r.record_id for r in kept] == ["b"]
    assert [r.record_id for r in discarded] == ["a"]
    assert warnings == []


def test_real_record_beats_virtual():
    virtual = AttendanceRecord(employee_id="E1", date=MON, is_virtual=True, clock_in="09:00")
    real = AttendanceRecord(record_id="r", employee_id="E1", date=MON)

    kept, discarded, _ = deduplicate([virtual, real])

    assert kept == [real]
    assert discarded == [virtual]


def test_competing_punched_records_are_reported():
    first = AttendanceRecord(record_id="a", employee_id="E1", date=MON, clock_in="09:00")
    second = AttendanceRecord(record_id="b", employee_id="E1", date=MON, clock_in="09:02")
    other_day = AttendanceRecord(record_id="c", employee_id="E1", date=TUE, clock_in="09:00")

    kept, discarded, warnings = deduplicate([first, second, other_day])

    assert [r.record_id for r in kept] == ["a", "c"]
    assert [r.record_id for r in discarded] == ["b"]
    assert len(warnings) == 1
    assert warnings[0].employee_id == "E1"
    assert warnings[0].date == MON
    assert warnings[0].record_ids == ["a", "b"]


def test_duplicates_grouped_on_trimmed_employee_id():
    first = AttendanceRecord(record_id="a", employee_id="E1", date=MON, clock_in="09:00")
    padded = AttendanceRecord(record_id="b", employee_id="E1 ", date=MON, clock_in="09:02")

    kept, discarded, warnings = deduplicate([first, padded])

    assert [r.record_id for r in kept] == ["a"]
    assert [r.record_id for r in discarded] == ["b"]
    assert len(warnings) == 1
    assert warnings[0].employee_id == "E1"


def test_padded_employee_id_counts_as_recorded():
    rosters = [morning("E1", MON)]
    attendance = [AttendanceRecord(record_id="a", employee_id=" E1", date=MON, clock_in="09:00",
                                   status=AttendanceStatus.PRESENT)]

    result = reconcile(MON, MON, rosters, attendance, employee_ids=["E1"])

    assert [r.record_id for r in result.records] == ["a"]
    assert not any(r.is_virtual for r in result.records)


def test_reconcile_retains_record_with_clock_in():
    rosters = [morning("E1", MON)]
    attendance = [
        AttendanceRecord(record_id="a", employee_id="E1", date=MON),
        AttendanceRecord(record_id="b", employee_id="E1", date=MON, clock_in="09:00", clock_out="17:00",
                         status=AttendanceStatus.PRESENT, working_days=1.0),
    ]

    result = reconcile(MON, MON, rosters, attendance)

    assert [r.record_id for r in result.records] == ["b"]
    assert [r.record_id for r in result.to_delete] == ["a"]


def test_virtual_absentees_for_rostered_working_days():
    rosters = [
        morning("E1", MON),
        morning("E1", TUE),
        morning("E1", WED),
        off("E1", THU, "Holiday"),
        off("E2", MON, "Weekly Off"),
        morning("E1", FRI),
    ]
    attendance = [
        AttendanceRecord(record_id="a", employee_id="E1", date=MON, clock_in="09:00", clock_out="17:00",
                         status=AttendanceStatus.PRESENT),
    ]

    result = reconcile("2025-07-21", "2025-07-24", rosters, attendance)

    assert [(r.employee_id, r.date, r.is_virtual) for r in result.records] == [
        ("E1", MON, False),
        ("E1", TUE, True),
        ("E1", WED, True),
    ]
    virtual = result.records[1]
    assert virtual.status == AttendanceStatus.ABSENT
    assert virtual.working_days == 0
    assert virtual.rule_applied == "Roster: Morning Shift"
    assert result.to_delete == []


def test_superseded_roster_decides_synthesis():
    rosters = [
        morning("E1", TUE, assigned_at=datetime(2025, 7, 1)),
        off("E1", TUE, "Holiday", assigned_at=datetime(2025, 7, 15)),
    ]
    assert reconcile(TUE, TUE, rosters, []).records == []


def test_reconcile_filters_employees():
    rosters = [morning("E1", MON), morning("E2", MON)]

    result = reconcile(MON, MON, rosters, [], employee_ids=["E2"])

    assert [r.employee_id for r in result.records] == ["E2"]


def test_stale_virtual_records_are_rebuilt():
    rosters = [morning("E1", MON)]
    stale = AttendanceRecord(employee_id="E1", date=MON, is_virtual=True, status=AttendanceStatus.PRESENT)

    result = reconcile(MON, MON, rosters, [stale])

    assert len(result.records) == 1
    assert result.records[0].is_virtual
    assert result.records[0].status == AttendanceStatus.ABSENT
    assert result.to_delete == []


def test_records_outside_range_are_ignored():
    attendance = [AttendanceRecord(employee_id="E1", date=FRI, clock_in="09:00")]
    assert reconcile(MON, TUE, [], attendance).records == []


def test_reconcile_rejects_inverted_range():
    with pytest.raises(ValueError):
        reconcile(TUE, MON, [], [])
