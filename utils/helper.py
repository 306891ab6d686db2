import logging
from datetime import date
from typing import Iterable, List, Optional, Union

from config import get_settings
from models.schema import ShiftRule
from utils.errors import ConfigurationError
from utils.timeutil import to_date

OFF_DAY_SHIFTS = ("Holiday", "Weekly Off")


def normalize_id(value) -> Optional[str]:
    return str(value).strip() if value is not None else None


def _assignment_order(rule: ShiftRule):
    # newest assignment wins, ties broken by id so input order never matters
    assigned = rule.assigned_at.timestamp() if rule.assigned_at else float("-inf")
    return (assigned, rule.rule_id or "")


def find_roster(employee_id: str, work_date: Union[date, str], rosters: Iterable[ShiftRule]) -> Optional[ShiftRule]:
    work_date, employee_id = to_date(work_date), normalize_id(employee_id)
    matches = [
        r for r in rosters
        if not r.is_default and normalize_id(r.employee_id) == employee_id and r.work_date == work_date
    ]
    if not matches:
        return None
    return max(matches, key=_assignment_order)


def fallback_rule() -> ShiftRule:
    settings = get_settings()
    return ShiftRule(
        name=settings.FALLBACK_RULE_NAME,
        start_time=settings.FALLBACK_START_TIME,
        end_time=settings.FALLBACK_END_TIME,
        timezone=settings.HOME_TIMEZONE,
        grace_period_minutes=settings.FALLBACK_GRACE_MINUTES,
        full_day_hours=settings.FALLBACK_FULL_DAY_HOURS,
        half_day_hours=settings.FALLBACK_HALF_DAY_HOURS,
        is_default=True,
    )


def resolve_default_rule(rules: Iterable[ShiftRule]) -> ShiftRule:
    defaults = sorted((r for r in rules if r.is_default), key=lambda r: (r.rule_id or "", r.name or ""))
    if len(defaults) > 1:
        logging.warning(
            f"{len(defaults)} default attendance rules configured, using {defaults[0].rule_id or defaults[0].name}"
        )
    if defaults:
        return defaults[0]

    if get_settings().STRICT_DEFAULT_RULE:
        raise ConfigurationError("No default attendance rule configured")
    logging.warning("No default attendance rule configured, using fallback rule")
    return fallback_rule()


def resolve_rule(employee_id: str, work_date: Union[date, str], rosters: List[ShiftRule],
                 rules: List[ShiftRule]) -> ShiftRule:
    roster = find_roster(employee_id, work_date, rosters)
    if roster:
        return roster
    return resolve_default_rule(rules)


def is_off_day(rule: ShiftRule) -> bool:
    return rule.shift_name in OFF_DAY_SHIFTS or rule.full_day_hours == 0
