from __future__ import annotations

import logging

import pytest

import config.testing
import src.school_attendance.school_attendance as package
from src.school_attendance.school_attendance.core.constants import DEFAULT_QUERY_LIMIT
from src.school_attendance.school_attendance.main import create_app


@pytest.fixture()
def app(monkeypatch, container):
    monkeypatch.setenv("APP_ENV", "testing")
    return create_app(container=container)


@pytest.fixture()
def client(app):
    c = app.test_client()
    with c.session_transaction() as s:
        s["user_id"] = "teacher-1"
    return c


def test_requires_actor_in_session(app):
    res = app.test_client().get("/api/attendance")
    assert res.status_code == 401


def test_submit_and_get_attendance(client):
    res = client.post(
        "/api/attendance",
        json={
            "class_id": "7a",
            "date": "2026-10-19",
            "entries": [
                {"student_id": "7a-s1", "status": "present", "photo": "blob://P"},
                {"student_id": "7a-s2", "status": "absent", "notes": "flu"},
            ],
        },
    )
    assert res.status_code == 200
    assert res.get_json() == {"success": True, "written": 2, "failures": []}

    res = client.get("/api/attendance?class_id=7a&date=2026-10-19")
    body = res.get_json()
    assert [r["student_id"] for r in body] == ["7a-s2", "7a-s1"]
    assert body[1]["photo"] == "blob://P"
    assert body[1]["marked_by"] == "teacher-1"


def test_partial_submit_returns_207(client, attendance_repo):
    attendance_repo.fail_for = {"7a-s2"}
    res = client.post(
        "/api/attendance",
        json={
            "class_id": "7a",
            "date": "2026-10-19",
            "entries": [{"student_id": "7a-s1", "status": "present"}, {"student_id": "7a-s2", "status": "late"}],
        },
    )
    assert res.status_code == 207
    body = res.get_json()
    assert body["written"] == 1
    assert body["failures"][0]["student_id"] == "7a-s2"


def test_submit_validation_and_not_found(client):
    assert client.post("/api/attendance", json={"class_id": "7a", "date": "2026-10-19"}).status_code == 400
    res = client.post("/api/attendance", json={"class_id": "7a", "entries": []})
    assert res.status_code == 400
    assert res.get_json()["error"] == "ValidationError"
    res = client.post("/api/attendance", json={"class_id": "zz", "date": "2026-10-19", "entries": []})
    assert res.status_code == 404


def test_marking_session_flow(client, attendance_repo):
    res = client.post("/api/attendance/session/start", json={"class_id": "7a", "date": "2026-10-19"})
    assert res.status_code == 200
    assert res.get_json()["current_student_id"] == "7a-s1"

    res = client.post("/api/attendance/session/mark", json={"student_id": "7a-s1", "status": "present", "photo": "blob://1"})
    assert res.get_json()["current_student_id"] == "7a-s2"

    res = client.post("/api/attendance/session/finalize", json={})
    assert res.status_code == 409
    assert res.get_json()["error"] == "UnsavedMarksError"

    res = client.post("/api/attendance/session/submit")
    assert res.status_code == 200
    assert res.get_json()["result"]["written"] == 1
    assert len(attendance_repo.all()) == 1

    res = client.post("/api/attendance/session/finalize", json={})
    assert res.status_code == 200
    assert client.get("/api/attendance/session").status_code == 404

    # Reopening restores the saved mark.
    res = client.post("/api/attendance/session/start", json={"class_id": "7a", "date": "2026-10-19"})
    view = res.get_json()
    assert view["marks"]["7a-s1"] == {"status": "present", "photo": "blob://1", "notes": None}
    assert view["progress"]["not_marked"] == 4


def test_reports_endpoints(client, attendance_repo):
    client.post(
        "/api/attendance",
        json={
            "class_id": "7a",
            "date": "2026-10-19",
            "entries": [{"student_id": "7a-s1", "status": "present"}, {"student_id": "7a-s2", "status": "absent"}],
        },
    )

    daily = client.get("/api/reports/daily?date=2026-10-19&class_id=7a").get_json()
    assert daily["not_marked"] == 3 and daily["total"] == 5

    rng = client.get("/api/reports/students/7a-s3/range?start=2026-10-01&end=2026-10-31").get_json()
    assert rng["percentage"] == 0.0 and rng["total_days"] == 0

    monthly = client.get("/api/reports/students/7a-s1/monthly").get_json()
    assert monthly == [{"month": "2026-10", "total_days": 1, "present_days": 1, "percentage": 100.0}]

    perf = client.get("/api/reports/classes/performance?class_id=7a").get_json()
    assert len(perf) == 5

    csv_res = client.get("/api/reports/classes/performance.csv?class_id=7a")
    assert csv_res.mimetype == "text/csv"
    lines = csv_res.data.decode("utf-8-sig").strip().splitlines()
    assert lines[0].startswith("student_id,name,roll_number")
    assert len(lines) == 6

    assert client.get("/api/reports/students/7a-s1/range?start=2026-10-31&end=2026-10-01").status_code == 400
    assert client.get("/api/reports/classes/zz/daily?date=2026-10-19").status_code == 404


def test_starting_over_unsaved_marks_is_refused(client, attendance_repo):
    client.post("/api/attendance/session/start", json={"class_id": "7a", "date": "2026-10-19"})
    client.post("/api/attendance/session/mark", json={"student_id": "7a-s1", "status": "present"})
    client.post("/api/attendance/session/mark", json={"student_id": "7a-s2", "status": "absent"})

    res = client.post("/api/attendance/session/start", json={"class_id": "8b", "date": "2026-10-19"})
    assert res.status_code == 409
    assert res.get_json()["error"] == "UnsavedMarksError"

    view = client.get("/api/attendance/session").get_json()
    assert view["class_id"] == "7a"
    assert view["progress"]["present"] == 1 and view["progress"]["absent"] == 1

    res = client.post(
        "/api/attendance/session/start",
        json={"class_id": "8b", "date": "2026-10-19", "submit_pending": True},
    )
    assert res.status_code == 200
    assert res.get_json()["class_id"] == "8b"
    assert {r.student_id for r in attendance_repo.all()} == {"7a-s1", "7a-s2"}


def test_starting_over_can_discard_unsaved_marks(client, attendance_repo):
    client.post("/api/attendance/session/start", json={"class_id": "7a", "date": "2026-10-19"})
    client.post("/api/attendance/session/mark", json={"student_id": "7a-s1", "status": "late"})

    res = client.post(
        "/api/attendance/session/start",
        json={"class_id": "8b", "date": "2026-10-19", "discard": True},
    )
    assert res.status_code == 200
    assert attendance_repo.all() == []


def test_starting_over_with_failed_submit_keeps_previous_session(client, attendance_repo):
    client.post("/api/attendance/session/start", json={"class_id": "7a", "date": "2026-10-19"})
    client.post("/api/attendance/session/mark", json={"student_id": "7a-s1", "status": "present"})
    attendance_repo.fail_for = {"7a-s1"}

    res = client.post(
        "/api/attendance/session/start",
        json={"class_id": "8b", "date": "2026-10-19", "submit_pending": True},
    )
    assert res.status_code == 207
    assert res.get_json()["failures"][0]["student_id"] == "7a-s1"
    view = client.get("/api/attendance/session").get_json()
    assert view["class_id"] == "7a" and view["dirty"] is True


def test_get_attendance_applies_default_limit(client, attendance_repo):
    client.get("/api/attendance?class_id=7a")
    client.get("/api/attendance?class_id=7a&limit=2")

    assert attendance_repo.filters[0].limit == DEFAULT_QUERY_LIMIT
    assert attendance_repo.filters[1].limit == 2


def test_log_level_reaches_service_loggers(monkeypatch, container, caplog):
    monkeypatch.setenv("APP_ENV", "testing")
    monkeypatch.setattr(config.testing, "LOG_LEVEL", "INFO")
    app = create_app(container=container)
    client = app.test_client()
    with client.session_transaction() as s:
        s["user_id"] = "teacher-1"

    assert logging.getLogger(package.__name__).level == logging.INFO
    with caplog.at_level(logging.INFO):
        client.post(
            "/api/attendance",
            json={"class_id": "7a", "date": "2026-10-19", "entries": [{"student_id": "7a-s1", "status": "present"}]},
        )

    assert any("attendance submitted class=7a" in r.getMessage() for r in caplog.records)


def test_class_daily_and_period_csv_exports(client, fixed_now):
    client.post(
        "/api/attendance",
        json={
            "class_id": "7a",
            "date": "2026-10-19",
            "entries": [{"student_id": "7a-s1", "status": "present"}, {"student_id": "7a-s2", "status": "absent", "notes": "flu"}],
        },
    )

    res = client.get("/api/reports/classes/7a/daily.csv?date=2026-10-19")
    assert res.mimetype == "text/csv"
    assert "attendance_7a_2026-10-19.csv" in res.headers["Content-Disposition"]
    lines = res.data.decode("utf-8-sig").strip().splitlines()
    assert lines[0] == "student_id,name,roll_number,status,notes"
    assert len(lines) == 6
    assert "7a-s2,Aisha Khan,02,absent,flu" in lines

    res = client.get("/api/reports/period.csv?class_id=7a")
    lines = res.data.decode("utf-8-sig").strip().splitlines()
    assert lines[0].startswith("class_id,start_date,end_date,total_students")
    assert lines[1].startswith("7a,2026-09-19,2026-10-19,5,")
    assert len(lines) == 2

    assert client.get("/api/reports/classes/zz/daily.csv?date=2026-10-19").status_code == 404
