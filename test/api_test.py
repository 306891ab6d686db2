from fastapi.testclient import TestClient

from Background.task import app

client = TestClient(app)

MORNING = {
    "employee_id": "E1",
    "work_date": "2025-07-21",
    "shift_name": "Morning Shift",
    "start_time": "09:00",
    "end_time": "18:00",
    "grace_period_minutes": 15,
    "full_day_hours": 8,
    "half_day_hours": 4,
}


def test_classify_endpoint():
    response = client.post("/classify", json={
        "clock_in": "09:10",
        "clock_out": "17:10",
        "date": "2025-07-21",
        "rule": MORNING,
    })

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "Present"
    assert body["work_hours"] == 8.0
    assert body["working_days"] == 1.0
    assert body["overtime_hours"] == 0


def test_classify_rejects_unknown_timezone():
    response = client.post("/classify", json={
        "clock_in": "09:10",
        "date": "2025-07-21",
        "rule": dict(MORNING, timezone="Europe/Nowhere"),
    })
    assert response.status_code == 422


def test_work_date_endpoint():
    response = client.post("/work-date", json={"time": "08:30", "date": "2024-01-16", "timezone": "America/New_York"})

    assert response.status_code == 200
    assert response.json() == {"work_date": "2024-01-15"}


def test_reconcile_endpoint():
    response = client.post("/reconcile", json={
        "range_start": "2025-07-21",
        "range_end": "2025-07-22",
        "rosters": [MORNING, dict(MORNING, work_date="2025-07-22")],
        "attendance": [{"employee_id": "E1", "date": "2025-07-21", "clock_in": "09:00", "status": "Present"}],
    })

    assert response.status_code == 200
    records = response.json()["records"]
    assert [(r["date"], r["is_virtual"], r["status"]) for r in records] == [
        ("2025-07-21", False, "Present"),
        ("2025-07-22", True, "Absent"),
    ]


def test_forecast_endpoint():
    response = client.post("/forecast", json={
        "request": {"id": "L1", "employee_id": "a", "start_date": "2025-08-04", "end_date": "2025-08-05"},
        "peers": [{"id": "a", "department": "Ops"}, {"id": "b", "department": "Ops"}],
    })

    assert response.status_code == 200
    body = response.json()
    assert body["team_size"] == 2
    assert body["max_impact"] == 50.0
    assert [d["risk_level"] for d in body["days"]] == ["critical", "critical"]


def test_recalculate_endpoint():
    response = client.post("/recalculate", json={
        "records": [{"employee_id": "E1", "date": "2025-07-21", "clock_in": "11:00", "clock_out": "20:00"}],
        "rosters": [MORNING],
    })

    assert response.status_code == 200
    body = response.json()
    assert body["failures"] == []
    assert body["results"][0]["status"] == "Late"
    assert body["results"][0]["work_hours"] == 9.0


def test_recalculate_in_background():
    response = client.post("/recalculate/background", json={
        "records": [{"employee_id": "E1", "date": "2025-07-21", "clock_in": "09:00"}],
    })

    assert response.status_code == 200
    assert response.json()["records"] == 1
