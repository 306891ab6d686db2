import logging
from datetime import date
from typing import List, Optional

from fastapi import BackgroundTasks, FastAPI, HTTPException
from pydantic import BaseModel, Field

from config import get_settings
from forecast import summarize_impact
from main import classify, recalculate_all
from models.schema import (
    AttendanceRecord,
    BatchResult,
    ClassificationResult,
    Employee,
    ImpactSummary,
    LeaveRequest,
    ReconciliationResult,
    ShiftRule,
)
from reconciliation import reconcile
from utils.errors import EngineError
from utils.workday import effective_work_date

logging.basicConfig(level=get_settings().LOG_LEVEL)
app = FastAPI()


class ClassifyRequest(BaseModel):
    clock_in: Optional[str] = None
    clock_out: Optional[str] = None
    date: date
    rule: Optional[ShiftRule] = None
    default_rules: List[ShiftRule] = Field(default_factory=list)


class WorkDateRequest(BaseModel):
    time: str
    date: date
    timezone: str


class ReconcileRequest(BaseModel):
    range_start: date
    range_end: date
    rosters: List[ShiftRule] = Field(default_factory=list)
    attendance: List[AttendanceRecord] = Field(default_factory=list)
    employee_ids: Optional[List[str]] = None
    default_rules: List[ShiftRule] = Field(default_factory=list)


class ForecastRequest(BaseModel):
    request: LeaveRequest
    peers: List[Employee]
    all_leaves: List[LeaveRequest] = Field(default_factory=list)


class RecalculateRequest(BaseModel):
    records: List[AttendanceRecord]
    rosters: List[ShiftRule] = Field(default_factory=list)
    rules: List[ShiftRule] = Field(default_factory=list)


@app.post("/classify", response_model=ClassificationResult)
def classify_day(body: ClassifyRequest):
    try:
        return classify(body.clock_in, body.clock_out, body.date, body.rule, body.default_rules)
    except EngineError as e:
        raise HTTPException(status_code=422, detail=str(e))


@app.post("/work-date")
def work_date(body: WorkDateRequest):
    try:
        return {"work_date": effective_work_date(body.time, body.date, body.timezone)}
    except EngineError as e:
        raise HTTPException(status_code=422, detail=str(e))


@app.post("/reconcile", response_model=ReconciliationResult)
def reconcile_range(body: ReconcileRequest):
    try:
        return reconcile(body.range_start, body.range_end, body.rosters, body.attendance,
                         body.employee_ids, body.default_rules)
    except (EngineError, ValueError) as e:
        raise HTTPException(status_code=422, detail=str(e))


@app.post("/forecast", response_model=ImpactSummary)
def forecast_leave(body: ForecastRequest):
    return summarize_impact(body.request, body.peers, body.all_leaves)


@app.post("/recalculate", response_model=BatchResult)
def recalculate(body: RecalculateRequest):
    return recalculate_all(body.records, body.rosters, body.rules)


def run_recalculation(body: RecalculateRequest):
    logging.info(f"Running background recalculation for {len(body.records)} attendance records")
    batch = recalculate_all(body.records, body.rosters, body.rules)
    logging.info(f"Background recalculation completed with {len(batch.failures)} failures.")


@app.post("/recalculate/background")
def recalculate_in_background(body: RecalculateRequest, background_tasks: BackgroundTasks):
    background_tasks.add_task(run_recalculation, body)
    return {"status": "Recalculation received, processing in background.", "records": len(body.records)}
