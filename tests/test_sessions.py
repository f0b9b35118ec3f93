"""Tests for routers/sessions.py: recording focus sessions and task progress."""

import logging
from datetime import datetime

import pytest
from sqlalchemy import Update
from sqlalchemy.exc import OperationalError
from sqlmodel import Session

import routers.sessions
from conftest import get_task, headers, make_task
from models import Task


def record(client, user, duration=1500, task_id=None):
    body = {"durationSeconds": duration}
    if task_id is not None:
        body["taskId"] = task_id
    return client.post("/sessions", json=body, headers=headers(user))


def list_sessions(client, user):
    res = client.get("/sessions", headers=headers(user))
    assert res.status_code == 200
    return res.json()


def test_record_without_task(client, alice):
    task = make_task(client, alice, estimated=3)
    res = record(client, alice, duration=1500)
    assert res.status_code == 201
    session = res.json()
    assert session["userId"] == alice["id"]
    assert session["taskId"] is None
    assert session["durationSeconds"] == 1500
    start = datetime.fromisoformat(session["startTime"])
    end = datetime.fromisoformat(session["endTime"])
    assert (end - start).total_seconds() == 1500

    assert len(list_sessions(client, alice)) == 1
    untouched = get_task(client, alice, task["id"])
    assert untouched["completedPomodoros"] == 0
    assert untouched["isCompleted"] is False


def test_record_increments_task_below_estimate(client, alice):
    task = make_task(client, alice, estimated=3)
    res = record(client, alice, task_id=task["id"])
    assert res.status_code == 201
    assert res.json()["taskId"] == task["id"]

    updated = get_task(client, alice, task["id"])
    assert updated["completedPomodoros"] == 1
    assert updated["isCompleted"] is False


def test_record_completes_task_at_estimate(client, alice):
    task = make_task(client, alice, estimated=1)
    assert record(client, alice, task_id=task["id"]).status_code == 201
    updated = get_task(client, alice, task["id"])
    assert updated["completedPomodoros"] == 1
    assert updated["isCompleted"] is True


def test_two_sessions_finish_two_pomodoro_task(client, alice):
    task = make_task(client, alice, estimated=2)

    assert record(client, alice, 1500, task["id"]).status_code == 201
    after_first = get_task(client, alice, task["id"])
    assert after_first["completedPomodoros"] == 1
    assert after_first["isCompleted"] is False

    assert record(client, alice, 1500, task["id"]).status_code == 201
    after_second = get_task(client, alice, task["id"])
    assert after_second["completedPomodoros"] == 2
    assert after_second["isCompleted"] is True

    sessions = list_sessions(client, alice)
    assert len(sessions) == 2
    assert all(s["durationSeconds"] == 1500 for s in sessions)


def test_resubmitting_is_not_idempotent(client, alice):
    task = make_task(client, alice, estimated=5)
    first = record(client, alice, 900, task["id"]).json()
    second = record(client, alice, 900, task["id"]).json()
    assert first["id"] != second["id"]
    assert get_task(client, alice, task["id"])["completedPomodoros"] == 2
    assert len(list_sessions(client, alice)) == 2


def test_completed_task_stays_completed_past_estimate(client, alice):
    task = make_task(client, alice, estimated=1)
    record(client, alice, task_id=task["id"])
    record(client, alice, task_id=task["id"])
    updated = get_task(client, alice, task["id"])
    assert updated["completedPomodoros"] == 2
    assert updated["isCompleted"] is True


def test_foreign_task_is_forbidden(client, alice, bob):
    task = make_task(client, bob, estimated=2)
    res = record(client, alice, task_id=task["id"])
    assert res.status_code == 403
    assert res.json()["detail"] == "You do not own this task"

    assert list_sessions(client, alice) == []
    assert list_sessions(client, bob) == []
    untouched = get_task(client, bob, task["id"])
    assert untouched["completedPomodoros"] == 0
    assert untouched["isCompleted"] is False


def test_unknown_task_is_not_found(client, alice):
    res = record(client, alice, task_id=9999)
    assert res.status_code == 404
    assert "9999" in res.json()["detail"]
    assert list_sessions(client, alice) == []


def test_storage_failure_rolls_back_everything(client, alice, monkeypatch):
    task = make_task(client, alice, estimated=2)

    def broken(db, task_id):
        raise OperationalError("UPDATE task", {}, Exception("disk I/O error"))

    monkeypatch.setattr(routers.sessions, "_advance_task", broken)
    res = record(client, alice, task_id=task["id"])
    assert res.status_code == 500
    assert res.json() == {"detail": "Internal server error"}

    assert list_sessions(client, alice) == []
    assert get_task(client, alice, task["id"])["completedPomodoros"] == 0


def test_failed_flag_update_undoes_the_increment(client, alice, monkeypatch, caplog):
    task = make_task(client, alice, estimated=1)
    real_exec = Session.exec
    updates = []

    def exec_failing_second_update(self, statement, *args, **kwargs):
        if isinstance(statement, Update):
            updates.append(statement)
            if len(updates) == 2:
                raise OperationalError("UPDATE task", {}, Exception("database is locked"))
        return real_exec(self, statement, *args, **kwargs)

    monkeypatch.setattr(Session, "exec", exec_failing_second_update)
    with caplog.at_level(logging.ERROR):
        res = record(client, alice, task_id=task["id"])
    assert res.status_code == 500
    assert len(updates) == 2

    untouched = get_task(client, alice, task["id"])
    assert untouched["completedPomodoros"] == 0
    assert untouched["isCompleted"] is False
    assert list_sessions(client, alice) == []

    handled = [r for r in caplog.records if r.name == "main"]
    assert handled and handled[0].exc_info is not None


def test_recording_touches_task_updated_at(client, alice):
    task = make_task(client, alice, estimated=3)
    before = datetime.fromisoformat(get_task(client, alice, task["id"])["updatedAt"])
    record(client, alice, task_id=task["id"])
    after = datetime.fromisoformat(get_task(client, alice, task["id"])["updatedAt"])
    assert after > before


def test_list_is_newest_first_and_per_user(client, alice, bob):
    task = make_task(client, alice, estimated=4)
    ids = [
        record(client, alice, 600).json()["id"],
        record(client, alice, 1200, task["id"]).json()["id"],
        record(client, alice, 1500).json()["id"],
    ]
    record(client, bob, 300)

    sessions = list_sessions(client, alice)
    assert [s["id"] for s in sessions] == list(reversed(ids))
    created = [datetime.fromisoformat(s["createdAt"]) for s in sessions]
    assert created == sorted(created, reverse=True)
    assert all(s["userId"] == alice["id"] for s in sessions)

    # linked task is embedded, unlinked sessions carry null
    assert sessions[1]["task"]["id"] == task["id"]
    assert sessions[1]["task"]["title"] == "Write report"
    assert sessions[0]["task"] is None

    assert [s["durationSeconds"] for s in list_sessions(client, bob)] == [300]


@pytest.mark.parametrize(
    "body",
    [
        {},
        {"durationSeconds": 0},
        {"durationSeconds": -25},
        {"durationSeconds": "1500"},
        {"durationSeconds": 1500, "taskId": "abc"},
        {"durationSeconds": 1500, "taskId": 1.5},
    ],
)
def test_invalid_body_is_bad_request(client, alice, body):
    res = client.post("/sessions", json=body, headers=headers(alice))
    assert res.status_code == 400
    assert list_sessions(client, alice) == []


def test_requires_token(client):
    assert client.post("/sessions", json={"durationSeconds": 1500}).status_code == 401
    assert client.get("/sessions").status_code == 401
    bad = {"Authorization": "Bearer not-a-token"}
    assert client.get("/sessions", headers=bad).status_code == 401


def test_lowered_estimate_completes_on_next_session(client, alice, engine):
    task = make_task(client, alice, estimated=5)
    record(client, alice, task_id=task["id"])
    record(client, alice, task_id=task["id"])

    with Session(engine) as db:
        row = db.get(Task, task["id"])
        row.estimated_pomodoros = 1
        db.add(row)
        db.commit()
    assert get_task(client, alice, task["id"])["isCompleted"] is False

    record(client, alice, task_id=task["id"])
    updated = get_task(client, alice, task["id"])
    assert updated["completedPomodoros"] == 3
    assert updated["isCompleted"] is True
