import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from config import get_settings
from models.schema import (
    AttendanceRecord,
    AttendanceStatus,
    BatchFailure,
    BatchResult,
    ClassificationResult,
    Punch,
    ShiftRule,
)
from utils.errors import EngineError
from utils.helper import is_off_day, normalize_id, resolve_default_rule, resolve_rule
from utils.timeutil import MINUTES_PER_DAY, convert_to_timezone, parse_time_to_minutes, to_date, to_home_datetime
from utils.workday import attribute_punch

FULL_DAY_CREDIT = 1.0
HALF_DAY_CREDIT = 0.5


def rule_label(rule: ShiftRule) -> str:
    if not rule.is_default:
        return f"Roster: {rule.shift_name}"
    return rule.name or get_settings().FALLBACK_RULE_NAME


def shift_window(rule: ShiftRule, work_date: date) -> Tuple[int, bool]:
    """Shift start on the home clock, and whether the shift runs past home midnight."""
    start = parse_time_to_minutes(rule.start_time)
    end = parse_time_to_minutes(rule.end_time)
    if rule.timezone == get_settings().HOME_TIMEZONE:
        return start, end < start

    start_home = to_home_datetime(rule.start_time, work_date, rule.timezone)
    start = start_home.hour * 60 + start_home.minute
    end = parse_time_to_minutes(convert_to_timezone(rule.end_time, work_date, rule.timezone))
    return start, end < start or start_home.date() != work_date


def minutes_after_start(clock_in_minutes: int, start_minutes: int, overnight: bool = False) -> int:
    offset = clock_in_minutes - start_minutes
    if overnight:
        # folded to within half a day of the shift start
        offset %= MINUTES_PER_DAY
        if offset >= MINUTES_PER_DAY // 2:
            offset -= MINUTES_PER_DAY
    return offset


def worked_minutes(clock_in_minutes: int, clock_out_minutes: int) -> int:
    if clock_out_minutes < clock_in_minutes:
        # clock-out on the following day
        clock_out_minutes += MINUTES_PER_DAY
    return clock_out_minutes - clock_in_minutes


def classify(clock_in: Optional[str], clock_out: Optional[str], work_date: Union[date, str],
             rule: Optional[ShiftRule] = None,
             default_rules: Sequence[ShiftRule] = ()) -> ClassificationResult:
    work_date = to_date(work_date)
    if rule is None:
        rule = resolve_default_rule(default_rules)
    label = rule_label(rule)

    if not clock_in:
        if is_off_day(rule):
            status = AttendanceStatus.HOLIDAY if rule.shift_name == "Holiday" else AttendanceStatus.WEEKLY_OFF
        elif rule.is_default and work_date.isoweekday() in get_settings().WEEKEND_DAYS:
            status = AttendanceStatus.WEEKLY_OFF
        else:
            status = AttendanceStatus.ABSENT
        return ClassificationResult(status=status, rule_applied=label)

    thresholds = rule
    if is_off_day(rule):
        thresholds = resolve_default_rule(default_rules)
        label = f"{rule.shift_name} (worked)"

    clock_in_minutes = parse_time_to_minutes(clock_in)
    start_minutes, overnight = shift_window(thresholds, work_date)
    late_by = minutes_after_start(clock_in_minutes, start_minutes, overnight)
    is_late = late_by > thresholds.grace_period_minutes
    status = AttendanceStatus.LATE if is_late else AttendanceStatus.PRESENT

    result = ClassificationResult(
        status=status,
        rule_applied=label,
        is_late=is_late,
        late_by_minutes=late_by if is_late else 0,
    )
    if not clock_out:
        return result

    hours = worked_minutes(clock_in_minutes, parse_time_to_minutes(clock_out)) / 60.0
    if hours < thresholds.half_day_hours:
        result.status = AttendanceStatus.LWP
        result.working_days = 0.0
    elif hours < thresholds.full_day_hours:
        result.status = AttendanceStatus.HALF_DAY
        result.working_days = HALF_DAY_CREDIT
    else:
        result.working_days = FULL_DAY_CREDIT

    overtime = max(0.0, hours - thresholds.effective_overtime_threshold)
    result.work_hours = round(hours, 2)
    result.overtime_hours = round(overtime, 2)
    return result


def first_in_last_out(punches: Iterable[Punch], day_starts_at: int = 0) -> Tuple[Optional[str], Optional[str]]:
    # punches before day_starts_at (minutes) belong to the following calendar day
    def position(text):
        return (parse_time_to_minutes(text) - day_starts_at) % MINUTES_PER_DAY

    punches = list(punches)
    in_times = [p.time for p in punches if p.type.upper() == "IN"]
    out_times = [p.time for p in punches if p.type.upper() == "OUT"]
    first_in = min(in_times, key=position) if in_times else None
    last_out = max(out_times, key=position) if out_times else None
    return first_in, last_out


def apply_result(record: AttendanceRecord, result: ClassificationResult) -> AttendanceRecord:
    return record.model_copy(update={
        "status": result.status,
        "work_hours": result.work_hours,
        "working_days": result.working_days,
        "overtime_hours": result.overtime_hours,
        "rule_applied": result.rule_applied,
    })


def process_clock_in(employee_id: str, clock_in: str, ist_date: Union[date, str],
                     rosters: List[ShiftRule], rules: List[ShiftRule],
                     attendance: Sequence[AttendanceRecord] = ()) -> AttendanceRecord:
    work_date, roster = attribute_punch(employee_id, clock_in, ist_date, rosters)
    for existing in attendance:
        if existing.is_virtual or not existing.clock_in:
            continue
        if normalize_id(existing.employee_id) == normalize_id(employee_id) and existing.date == work_date:
            if not existing.clock_out:
                raise EngineError(f"Active session for employee_id: {employee_id} on {work_date}, clock out first")
            raise EngineError(f"Already clocked in for employee_id: {employee_id} on {work_date}")

    rule = roster or resolve_default_rule(rules)
    result = classify(clock_in, None, work_date, rule, rules)
    if work_date != to_date(ist_date):
        logging.info(f"Clock-in for employee_id: {employee_id} at {clock_in} filed under work date {work_date}")
    record = AttendanceRecord(employee_id=employee_id, date=work_date, ist_date=to_date(ist_date), clock_in=clock_in)
    return apply_result(record, result)


def process_clock_out(record: AttendanceRecord, clock_out: str,
                      rosters: List[ShiftRule], rules: List[ShiftRule]) -> AttendanceRecord:
    if not record.clock_in:
        raise EngineError(f"No active clock-in for employee_id: {record.employee_id} on {record.date}")
    return classify_record(record.model_copy(update={"clock_out": clock_out}), rosters, rules)


def process_punches(employee_id: str, ist_date: Union[date, str], punches: List[Punch],
                    rosters: List[ShiftRule], rules: List[ShiftRule]) -> AttendanceRecord:
    first_punch = next((p.time for p in punches if p.type.upper() == "IN"), None)
    if not first_punch:
        _, last_out = first_in_last_out(punches)
        work_date = to_date(ist_date)
        rule = resolve_rule(employee_id, work_date, rosters, rules)
        record = AttendanceRecord(employee_id=employee_id, date=work_date, clock_out=last_out)
        return apply_result(record, classify(None, last_out, work_date, rule, rules))

    # the device day runs from half a day before the shift start
    work_date, roster = attribute_punch(employee_id, first_punch, ist_date, rosters)
    start_minutes, _ = shift_window(roster or resolve_default_rule(rules), work_date)
    first_in, last_out = first_in_last_out(punches, (start_minutes - MINUTES_PER_DAY // 2) % MINUTES_PER_DAY)

    record = process_clock_in(employee_id, first_in, ist_date, rosters, rules)
    if last_out:
        record = process_clock_out(record, last_out, rosters, rules)
    return record


def classify_record(record: AttendanceRecord, rosters: List[ShiftRule],
                    rules: List[ShiftRule]) -> AttendanceRecord:
    rule = resolve_rule(record.employee_id, record.date, rosters, rules)
    result = classify(record.clock_in, record.clock_out, record.date, rule, rules)
    return apply_result(record, result)


def recalculate_all(records: List[AttendanceRecord], rosters: List[ShiftRule], rules: List[ShiftRule],
                    max_workers: Optional[int] = None) -> BatchResult:
    """Failures are collected per record; they never stop the batch."""
    def evaluate(record):
        try:
            return classify_record(record, rosters, rules), None
        except (EngineError, ValueError) as e:
            logging.error(f"Recalculation failed for employee_id: {record.employee_id} on {record.date}: {e}")
            failure = BatchFailure(
                employee_id=record.employee_id,
                date=record.date,
                record_id=record.record_id,
                error=str(e),
            )
            return None, failure

    workers = max_workers or get_settings().BATCH_MAX_WORKERS
    with ThreadPoolExecutor(max_workers=workers) as pool:
        outcomes = list(pool.map(evaluate, records))

    batch = BatchResult()
    for updated, failure in outcomes:
        if failure:
            batch.failures.append(failure)
        else:
            batch.results.append(updated)

    logging.info(f"Recalculated {len(batch.results)} attendance records, {len(batch.failures)} failed")
    return batch
