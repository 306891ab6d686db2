import logging
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from models.schema import AttendanceRecord, IntegrityWarning, ReconciliationResult, ShiftRule
from main import apply_result, classify
from utils.helper import find_roster, is_off_day, normalize_id
from utils.timeutil import to_date


def _preference(indexed):
    position, record = indexed
    # real over virtual, punched over empty, then earliest inserted
    return (record.is_virtual, not record.clock_in, position)


def deduplicate(records: Iterable[AttendanceRecord]
                ) -> Tuple[List[AttendanceRecord], List[AttendanceRecord], List[IntegrityWarning]]:
    groups: Dict[Tuple[str, date], List[AttendanceRecord]] = {}
    for record in records:
        groups.setdefault((normalize_id(record.employee_id), record.date), []).append(record)

    kept, discarded, warnings = [], [], []
    for (employee_id, day), group in groups.items():
        if len(group) == 1:
            kept.append(group[0])
            continue

        best_position, best = min(enumerate(group), key=_preference)
        kept.append(best)
        discarded.extend(r for i, r in enumerate(group) if i != best_position)
        logging.warning(f"Duplicate attendance records for employee_id: {employee_id} on {day}, keeping 1 of {len(group)}")

        contenders = [r for r in group if not r.is_virtual and r.clock_in]
        if len(contenders) > 1:
            record_ids = [r.record_id for r in contenders]
            message = f"{len(contenders)} authoritative records with clock-in, kept {best.record_id}"
            logging.warning(f"Data integrity: employee_id: {employee_id} on {day}: {message} of {record_ids}")
            warnings.append(IntegrityWarning(employee_id=employee_id, date=day, record_ids=record_ids, message=message))

    return kept, discarded, warnings


def reconcile(range_start: Union[date, str], range_end: Union[date, str], rosters: List[ShiftRule],
              attendance: List[AttendanceRecord], employee_ids: Optional[Iterable[str]] = None,
              default_rules: Sequence[ShiftRule] = ()) -> ReconciliationResult:
    """Actual attendance plus virtual absentees; duplicates are only reported in ``to_delete``."""
    start, end = to_date(range_start), to_date(range_end)
    if start > end:
        raise ValueError(f"range_start {start} is after range_end {end}")
    wanted = {normalize_id(e) for e in employee_ids} if employee_ids is not None else None

    def in_scope(employee_id, day):
        return start <= day <= end and (wanted is None or normalize_id(employee_id) in wanted)

    kept, discarded, warnings = deduplicate(r for r in attendance if in_scope(r.employee_id, r.date))
    records = [r for r in kept if not r.is_virtual]
    recorded = {(normalize_id(r.employee_id), r.date) for r in records}

    scheduled = sorted({
        (normalize_id(r.employee_id), r.work_date) for r in rosters
        if not r.is_default and r.employee_id and r.work_date and in_scope(r.employee_id, r.work_date)
    }, key=lambda key: (key[1], key[0]))

    synthesized = 0
    for employee_id, day in scheduled:
        if (employee_id, day) in recorded:
            continue
        roster = find_roster(employee_id, day, rosters)
        if is_off_day(roster):
            continue
        virtual = AttendanceRecord(employee_id=employee_id, date=day, is_virtual=True)
        records.append(apply_result(virtual, classify(None, None, day, roster, default_rules)))
        synthesized += 1

    records.sort(key=lambda r: (r.date, normalize_id(r.employee_id)))
    logging.info(f"Reconciled {start} to {end}: {len(records)} records, {synthesized} virtual, {len(discarded)} duplicates")
    return ReconciliationResult(
        records=records,
        to_delete=[r for r in discarded if not r.is_virtual],
        warnings=warnings,
    )
