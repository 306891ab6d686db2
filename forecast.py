from typing import List, Optional, Set, Tuple

from config import get_settings
from models.schema import DayImpact, Employee, ImpactSummary, LeaveRequest
from utils.timeutil import iter_dates

APPROVED = "Approved"


def peer_group(request: LeaveRequest, peers: List[Employee]) -> Tuple[Optional[str], List[Employee]]:
    requester = next((p for p in peers if p.id == request.employee_id), None)
    if requester is None:
        return None, list(peers)
    return requester.department, [p for p in peers if p.department == requester.department]


def risk_level(percentage: float) -> str:
    settings = get_settings()
    if percentage >= settings.IMPACT_CRITICAL_PERCENT:
        return "critical"
    if percentage >= settings.IMPACT_WARNING_PERCENT:
        return "warning"
    return "normal"


def forecast_impact(request: LeaveRequest, peers: List[Employee], all_leaves: List[LeaveRequest]) -> List[DayImpact]:
    """Share of the requester's team on leave for each day of the request, the request included."""
    _, team = peer_group(request, peers)
    team_ids: Set[str] = {p.id for p in team} | {request.employee_id}
    names = {p.id: p.name or p.id for p in team}

    approved = [
        leave for leave in all_leaves
        if leave.id != request.id and leave.status == APPROVED and leave.employee_id in team_ids
    ]

    impact = []
    for day in iter_dates(request.start_date, request.end_date):
        away = {request.employee_id: request.employee_name or names.get(request.employee_id, request.employee_id)}
        for leave in approved:
            if leave.start_date <= day <= leave.end_date:
                away.setdefault(leave.employee_id, leave.employee_name or names.get(leave.employee_id, leave.employee_id))

        percentage = round(len(away) / len(team_ids) * 100, 1)
        impact.append(DayImpact(
            date=day,
            count_on_leave=len(away),
            percentage=percentage,
            risk_level=risk_level(percentage),
            employees=sorted(away.values()),
        ))
    return impact


def summarize_impact(request: LeaveRequest, peers: List[Employee], all_leaves: List[LeaveRequest]) -> ImpactSummary:
    department, team = peer_group(request, peers)
    days = forecast_impact(request, peers, all_leaves)
    percentages = [d.percentage for d in days]
    return ImpactSummary(
        team_size=len({p.id for p in team} | {request.employee_id}),
        department=department,
        max_impact=max(percentages, default=0.0),
        avg_impact=round(sum(percentages) / len(percentages), 1) if percentages else 0.0,
        days=days,
    )
