from datetime import date, timedelta
from typing import List, Optional, Tuple, Union

from config import get_settings
from models.schema import ShiftRule
from utils.helper import find_roster
from utils.timeutil import get_zone, to_date, localize


def effective_work_date(clock_in_time: str, clock_in_date: Union[date, str], timezone: str) -> date:
    # e.g. 08:30 IST on 2024-01-16 is 22:00 on 2024-01-15 in New York
    home = get_settings().HOME_TIMEZONE
    if timezone == home:
        return to_date(clock_in_date)
    zone = get_zone(timezone)
    return localize(clock_in_time, clock_in_date, home).astimezone(zone).date()


def attribute_punch(employee_id: str, clock_in_time: str, ist_date: Union[date, str],
                    rosters: List[ShiftRule]) -> Tuple[date, Optional[ShiftRule]]:
    # past-midnight punches may belong to the previous day's foreign-timezone roster
    ist_date = to_date(ist_date)
    direct = find_roster(employee_id, ist_date, rosters)
    if direct and effective_work_date(clock_in_time, ist_date, direct.timezone) == ist_date:
        return ist_date, direct

    previous_date = ist_date - timedelta(days=1)
    previous = find_roster(employee_id, previous_date, rosters)
    if previous and previous.timezone != get_settings().HOME_TIMEZONE:
        if effective_work_date(clock_in_time, ist_date, previous.timezone) == previous_date:
            return previous_date, previous

    return ist_date, direct
