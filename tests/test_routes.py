"""
HTTP surface: status codes and error mapping.
"""
from datetime import date

import pytest
from fastapi.testclient import TestClient

from flightdeck.deps import get_db, get_session_factory
from flightdeck.main import app


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def headers(student):
    return {"X-User-Id": str(student.id)}


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.parametrize("value", [None, "not-a-uuid", "00000000-0000-0000-0000-000000000000"])
def test_unauthenticated(client, value):
    headers = {"X-User-Id": value} if value else {}
    resp = client.get("/api/flight-deck", headers=headers)
    assert resp.status_code == 401
    assert resp.json() == {"error": "not_authenticated"}


def test_flight_deck_requires_setup(client, headers):
    resp = client.get("/api/flight-deck", headers=headers)
    assert resp.status_code == 503
    assert resp.json()["error"] == "setup_required"


def test_flight_deck(client, headers, catalog):
    resp = client.get("/api/flight-deck", headers=headers)
    assert resp.status_code == 200

    body = resp.json()
    assert set(body) >= {"credits", "pace", "eta", "cost", "financials", "payments", "trend", "alerts", "insights"}
    assert body["credits"]["total"] == 120
    assert body["trend"]["available"] is False


def test_plan_lifecycle(client, headers, financial_rules):
    payload = {"pace_months": 12, "sessions_actual": 2, "phase1_cost": 2000, "payment_method": "card"}

    created = client.post("/api/plans", json=payload, headers=headers)
    assert created.status_code == 201
    plan = created.json()["plan"]
    assert created.json()["financials"]["monthly_payment"] == 480.67

    regen = client.post(f"/api/plans/{plan['id']}/regenerate", json={**payload, "payment_method": "ach"}, headers=headers)
    assert regen.status_code == 200
    assert regen.json()["plan"]["version"] == 2

    stored = client.get(f"/api/plans/{plan['id']}/financials", headers=headers)
    assert stored.status_code == 200
    assert stored.json()["monthly_payment"] == 466.67


def test_unknown_plan(client, headers, financial_rules):
    resp = client.get("/api/plans/00000000-0000-0000-0000-000000000000/financials", headers=headers)
    assert resp.status_code == 404


def test_plan_rejects_out_of_range_pace(client, headers, financial_rules):
    resp = client.post("/api/plans", json={"pace_months": 0}, headers=headers)
    assert resp.status_code == 422


def test_weekly_metrics_crud(client, headers):
    resp = client.post(
        "/api/weekly-metrics",
        json={"week_of": "2025-01-16", "hours_studied": 9, "notes": "flashcards"},
        headers=headers,
    )
    assert resp.status_code == 200
    row = resp.json()
    assert row["week_of"] == "2025-01-13"

    assert client.get("/api/weekly-metrics/2025-01-19", headers=headers).json()["hours_studied"] == 9
    assert client.get("/api/weekly-metrics/2025-01-20", headers=headers).json()["hours_studied"] == 0

    assert client.delete(f"/api/weekly-metrics/{row['id']}", headers=headers).status_code == 204
    assert client.delete(f"/api/weekly-metrics/{row['id']}", headers=headers).status_code == 404


def test_unlogged_week_has_same_shape_as_logged_week(client, headers):
    client.post("/api/weekly-metrics", json={"week_of": "2025-01-13", "hours_studied": 7.5}, headers=headers)

    logged = client.get("/api/weekly-metrics/2025-01-15", headers=headers).json()
    empty = client.get("/api/weekly-metrics/2025-01-22", headers=headers).json()

    assert set(logged) == set(empty) == {"id", "week_of", "hours_studied", "notes"}
    assert logged["hours_studied"] == 7.5
    assert empty == {"id": None, "week_of": "2025-01-20", "hours_studied": 0.0, "notes": None}


def test_weekly_metrics_validation(client, headers):
    resp = client.post("/api/weekly-metrics", json={"week_of": "2025-01-13", "hours_studied": 200}, headers=headers)
    assert resp.status_code == 422


def test_recent_weekly_metrics(client, headers):
    this_week = date.today().isoformat()
    client.post("/api/weekly-metrics", json={"week_of": this_week, "hours_studied": 7}, headers=headers)
    client.post("/api/weekly-metrics", json={"week_of": "2001-01-01", "hours_studied": 30}, headers=headers)

    resp = client.get("/api/weekly-metrics?weeks=4", headers=headers)

    assert resp.status_code == 200
    assert [m["hours_studied"] for m in resp.json()] == [7]
