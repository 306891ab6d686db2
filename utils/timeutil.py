import logging
import re
from datetime import date, datetime, time, timedelta
from typing import Iterator, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from config import get_settings
from utils.errors import TimeParseError, UnknownTimezoneError

MINUTES_PER_DAY = 24 * 60

TIME_PATTERN = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::(\d{2}))?\s*([AaPp][Mm])?\s*$")


def parse_time_to_minutes(text: Optional[str], strict: bool = False) -> int:
    # malformed input is 00:00 unless strict
    match = TIME_PATTERN.match(text or "")
    if match:
        hours, minutes = int(match.group(1)), int(match.group(2))
        meridiem = (match.group(4) or "").upper()
        if meridiem and 1 <= hours <= 12:
            hours = hours % 12 + (12 if meridiem == "PM" else 0)
        elif meridiem:
            hours = -1
        if 0 <= hours <= 23 and 0 <= minutes <= 59:
            return hours * 60 + minutes

    if strict:
        raise TimeParseError(text)
    logging.warning(f"Unparseable time {text!r}, treating as 00:00")
    return 0


def get_zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, TypeError, OSError):
        raise UnknownTimezoneError(name) from None


def to_date(value: Union[date, str]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def iter_dates(start: Union[date, str], end: Union[date, str]) -> Iterator[date]:
    current, last = to_date(start), to_date(end)
    while current <= last:
        yield current
        current += timedelta(days=1)


def localize(local_time: str, local_date: Union[date, str], timezone: str) -> datetime:
    minutes = parse_time_to_minutes(local_time)
    return datetime.combine(to_date(local_date), time(minutes // 60, minutes % 60),
                            tzinfo=get_zone(timezone))


def to_home_datetime(local_time: str, local_date: Union[date, str], timezone: str) -> datetime:
    """Wall-clock ``local_time`` in ``timezone`` on ``local_date`` as a home-timezone datetime."""
    home = get_zone(get_settings().HOME_TIMEZONE)
    return localize(local_time, local_date, timezone).astimezone(home)


def convert_to_timezone(local_time: str, local_date: Union[date, str], timezone: str,
                        target: Optional[str] = None) -> str:
    """Equivalent wall-clock ``HH:MM`` in ``target`` (the home timezone by default)."""
    target_zone = get_zone(target or get_settings().HOME_TIMEZONE)
    return localize(local_time, local_date, timezone).astimezone(target_zone).strftime("%H:%M")
