from datetime import datetime, date
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class AttendanceStatus(str, Enum):
    PRESENT = "Present"
    LATE = "Late"
    HALF_DAY = "Half Day"
    LWP = "LWP"
    ABSENT = "Absent"
    WEEKLY_OFF = "Weekly Off"
    HOLIDAY = "Holiday"


class ShiftRule(BaseModel):
    """A roster assignment (employee + work date) or an organisation-wide rule."""
    rule_id: Optional[str] = None
    name: Optional[str] = None
    employee_id: Optional[str] = None
    work_date: Optional[date] = None
    shift_name: str = "General"
    start_time: str = "09:00"
    end_time: str = "18:00"
    timezone: str = "Asia/Kolkata"
    grace_period_minutes: int = 5
    full_day_hours: float = 8.0
    half_day_hours: float = 4.0
    overtime_threshold_hours: Optional[float] = None
    is_default: bool = False
    assigned_at: Optional[datetime] = None

    @model_validator(mode="after")
    def check_thresholds(self):
        if self.half_day_hours < 0:
            raise ValueError("half_day_hours must not be negative")
        if self.full_day_hours < self.half_day_hours:
            raise ValueError("full_day_hours must be >= half_day_hours")
        return self

    @property
    def effective_overtime_threshold(self) -> float:
        if self.overtime_threshold_hours is not None:
            return self.overtime_threshold_hours
        return self.full_day_hours + 1


class Punch(BaseModel):
    time: str
    type: str


class AttendanceRecord(BaseModel):
    record_id: Optional[str] = None
    employee_id: str
    date: date
    ist_date: Optional[date] = None
    clock_in: Optional[str] = None
    clock_out: Optional[str] = None
    status: AttendanceStatus = AttendanceStatus.ABSENT
    work_hours: float = 0.0
    working_days: float = 0.0
    overtime_hours: float = 0.0
    rule_applied: Optional[str] = None
    is_virtual: bool = False
    manual_entry: bool = False
    is_regularized: bool = False


class ClassificationResult(BaseModel):
    status: AttendanceStatus
    work_hours: float = 0.0
    working_days: float = 0.0
    overtime_hours: float = 0.0
    rule_applied: Optional[str] = None
    is_late: bool = False
    late_by_minutes: int = 0


class IntegrityWarning(BaseModel):
    employee_id: str
    date: date
    record_ids: List[Optional[str]]
    message: str


class ReconciliationResult(BaseModel):
    records: List[AttendanceRecord] = Field(default_factory=list)
    to_delete: List[AttendanceRecord] = Field(default_factory=list)
    warnings: List[IntegrityWarning] = Field(default_factory=list)


class BatchFailure(BaseModel):
    employee_id: str
    date: date
    record_id: Optional[str] = None
    error: str


class BatchResult(BaseModel):
    results: List[AttendanceRecord] = Field(default_factory=list)
    failures: List[BatchFailure] = Field(default_factory=list)


class Employee(BaseModel):
    id: str
    name: Optional[str] = None
    department: Optional[str] = None


class LeaveRequest(BaseModel):
    id: str
    employee_id: str
    employee_name: Optional[str] = None
    start_date: date
    end_date: date
    status: str = "Pending"


class DayImpact(BaseModel):
    date: date
    count_on_leave: int
    percentage: float
    risk_level: str
    employees: List[str] = Field(default_factory=list)


class ImpactSummary(BaseModel):
    team_size: int
    department: Optional[str] = None
    max_impact: float
    avg_impact: float
    days: List[DayImpact]
