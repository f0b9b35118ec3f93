"""Shared test fixtures: an in-memory database and authenticated clients."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session

from db import get_session, init_db, make_engine
from main import app


@pytest.fixture
def engine():
    engine = make_engine("sqlite://", poolclass=StaticPool)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def client(engine):
    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


def signup(client: TestClient, email: str, name: str = "Tester", password: str = "secret123") -> dict:
    res = client.post("/auth/signup", json={"email": email, "password": password, "name": name})
    assert res.status_code == 201, res.text
    body = res.json()
    return {"Authorization": f"Bearer {body['accessToken']}", "id": body["user"]["id"]}


@pytest.fixture
def alice(client) -> dict:
    """Signed-up user: bearer header plus the user id; pass through headers() when calling."""
    return signup(client, "alice@example.com", "Alice")


@pytest.fixture
def bob(client) -> dict:
    return signup(client, "bob@example.com", "Bob")


def headers(user: dict) -> dict:
    return {"Authorization": user["Authorization"]}


def make_task(client: TestClient, user: dict, title: str = "Write report", estimated: int = 2) -> dict:
    res = client.post(
        "/tasks",
        json={"title": title, "estimatedPomodoros": estimated},
        headers=headers(user),
    )
    assert res.status_code == 201, res.text
    return res.json()


def get_task(client: TestClient, user: dict, task_id: int) -> dict:
    res = client.get("/tasks", headers=headers(user))
    assert res.status_code == 200
    return next(t for t in res.json() if t["id"] == task_id)
