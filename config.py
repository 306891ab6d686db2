from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Organisation home timezone; punches are recorded on this wall-clock
    HOME_TIMEZONE: str = "Asia/Kolkata"

    # Safety rule used when no roster matches and no default rule is configured
    FALLBACK_RULE_NAME: str = "Standard Office"
    FALLBACK_START_TIME: str = "09:00"
    FALLBACK_END_TIME: str = "18:00"
    FALLBACK_GRACE_MINUTES: int = 5
    FALLBACK_FULL_DAY_HOURS: float = 8.0
    FALLBACK_HALF_DAY_HOURS: float = 4.0

    # Raise instead of falling back when no default rule exists
    STRICT_DEFAULT_RULE: bool = False

    # ISO weekday numbers (Mon=1 .. Sun=7) treated as Weekly Off without a roster
    WEEKEND_DAYS: List[int] = [6, 7]

    # Leave impact risk levels (percent of team on leave)
    IMPACT_WARNING_PERCENT: float = 10.0
    IMPACT_CRITICAL_PERCENT: float = 20.0

    BATCH_MAX_WORKERS: int = 4

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_prefix = "ATTENDANCE_"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()
