"""
tests/integration/conftest.py — Fixtures and helpers for all integration tests.

Design:
  - Tests run against TEST_DATABASE_URL when it is set (PostgreSQL), otherwise
    against an in-memory SQLite database.
  - The app is created once per session using create_app("testing").
  - All tables are created once via db.create_all() at session start.
  - Before every test the default categories and cities are seeded; after it,
    every row is deleted in FK-safe order so tests are isolated.

Helper functions (not fixtures) are provided for common operations:
  - register(client, ...)        → dict with user + tokens
  - login(client, ...)           → dict with user + tokens
  - auth_headers(token)          → {"Authorization": "Bearer <token>"}
  - make_club(client, ...)       → club dict
  - add_club_member(...)         → join request + lead approval
  - make_event(client, ...)      → HTTP response
  - insert_event(app, ...)       → event id, written straight to the DB so the
                                   event can start (or end) in the past

These are plain functions (not pytest fixtures) so they can be called with
arbitrary arguments in any test without fixture parameterization overhead.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select, text

from backend.app import create_app
from backend.app.extensions import db as _db
from backend.app.models.event import Event
from backend.app.models.event_city import EventCity
from backend.app.models.event_join import EventJoin
from backend.app.models.region import Category, City
from backend.app.services import region_service

_TABLES_IN_DELETE_ORDER = (
    "reviews",
    "event_cities",
    "event_joins",
    "events",
    "club_waitings",
    "club_joins",
    "clubs",
    "refresh_tokens",
    "users",
    "categories",
    "cities",
)


# ═══════════════════════════════════════════════════════════════════════════
# Session-scoped app fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(scope="session")
def app():
    """
    Creates the Flask application in 'testing' mode once for the entire test session.
    Tables are created from the model metadata and dropped at teardown.
    """
    flask_app = create_app("testing")

    with flask_app.app_context():
        _db.create_all()

    yield flask_app

    with flask_app.app_context():
        _db.drop_all()


# ═══════════════════════════════════════════════════════════════════════════
# Function-scoped test isolation
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(autouse=True)
def clean_tables(app):
    """
    Seeds the reference data, runs the test, then deletes all rows in FK-safe
    order (children before parents).
    """
    with app.app_context():
        region_service.seed_regions(session=_db.session)
        _db.session.commit()

    yield  # run the test

    with app.app_context():
        _db.session.rollback()  # discard any uncommitted state from a failed test

        with _db.engine.connect() as conn:
            for table in _TABLES_IN_DELETE_ORDER:
                conn.execute(text(f"DELETE FROM {table}"))
            conn.commit()


# ═══════════════════════════════════════════════════════════════════════════
# Client fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def client(app):
    """Flask test client. Each test gets a fresh client (function-scoped)."""
    return app.test_client()


# ═══════════════════════════════════════════════════════════════════════════
# Shared helper functions (not fixtures)
# ═══════════════════════════════════════════════════════════════════════════

def category_ids(client) -> list[int]:
    resp = client.get("/api/v1/regions/categories")
    return [c["id"] for c in resp.get_json()["data"]]


def city_ids(client) -> list[int]:
    resp = client.get("/api/v1/regions/cities")
    return [c["id"] for c in resp.get_json()["data"]]


def register(
    client,
    name: str = "alice",
    email: str | None = None,
    password: str = "Password1",
    category_id: int | None = None,
) -> dict:
    """
    Registers a new user and returns the full response data dict.
    Returns: {"user": {...}, "access_token": "...", "refresh_token": "..."}
    """
    if email is None:
        email = f"{name}@test.com"
    if category_id is None:
        category_id = category_ids(client)[0]
    resp = client.post(
        "/api/v1/auth/register",
        json={
            "name": name,
            "email": email,
            "password": password,
            "category_id": category_id,
        },
    )
    assert resp.status_code == 201, f"register failed: {resp.get_json()}"
    return resp.get_json()["data"]


def login(client, email: str, password: str = "Password1"):
    """Logs in and returns the HTTP response."""
    return client.post(
        "/api/v1/auth/login",
        json={"email": email, "password": password},
    )


def auth_headers(token: str) -> dict:
    """Returns the Authorization header dict for use in test requests."""
    return {"Authorization": f"Bearer {token}"}


def make_club(
    client,
    token: str,
    name: str = "Hiking Club",
    max_people: int = 10,
) -> dict:
    """Creates a club and returns the club data dict. The caller becomes the lead."""
    resp = client.post(
        "/api/v1/clubs",
        json={"name": name, "description": "Weekend hikes.", "max_people": max_people},
        headers=auth_headers(token),
    )
    assert resp.status_code == 201, f"make_club failed: {resp.get_json()}"
    return resp.get_json()["data"]


def decide(client, lead_token: str, club_id: int, user_id: int, decision: str = "approve"):
    return client.post(
        f"/api/v1/clubs/{club_id}/approve",
        json={"user_id": user_id, "decision": decision},
        headers=auth_headers(lead_token),
    )


def add_club_member(client, lead_token: str, member: dict, club_id: int) -> None:
    """Files a join request as `member` and approves it as the lead."""
    resp = client.post(
        f"/api/v1/clubs/{club_id}/join",
        headers=auth_headers(member["access_token"]),
    )
    assert resp.status_code == 204, f"join failed: {resp.get_json()}"
    resp = decide(client, lead_token, club_id, member["user"]["id"])
    assert resp.status_code == 204, f"approve failed: {resp.get_json()}"


def event_payload(client, **overrides) -> dict:
    """A valid create-event body starting tomorrow; override any field."""
    start = datetime.now(timezone.utc) + timedelta(days=1)
    payload = {
        "title": "Morning run",
        "description": "5 km along the river.",
        "category_id": category_ids(client)[0],
        "city_ids": city_ids(client)[:1],
        "start_time": start.isoformat(),
        "end_time": (start + timedelta(hours=2)).isoformat(),
        "max_people": 5,
    }
    payload.update(overrides)
    return payload


def make_event(client, token: str, **overrides):
    """POST /events with a valid body. Returns the HTTP response."""
    return client.post(
        "/api/v1/events",
        json=event_payload(client, **overrides),
        headers=auth_headers(token),
    )


def insert_event(
    app,
    host_id: int,
    participant_ids: tuple[int, ...] = (),
    club_id: int | None = None,
    ended: bool = True,
    max_people: int = 10,
) -> int:
    """
    Writes an event that has already started straight to the database,
    bypassing the "start_time must not be in the past" rule.

    ended=True  → started 3h ago, ended 1h ago
    ended=False → started 1h ago, ends in 1h (ongoing)

    The host is joined automatically, like create_event does.
    """
    now = datetime.now(timezone.utc)
    if ended:
        start, end = now - timedelta(hours=3), now - timedelta(hours=1)
    else:
        start, end = now - timedelta(hours=1), now + timedelta(hours=1)

    with app.app_context():
        session = _db.session
        category_id = session.execute(select(Category.id).order_by(Category.id)).scalars().first()
        city_id = session.execute(select(City.id).order_by(City.id)).scalars().first()

        event = Event(
            host_id=host_id,
            club_id=club_id,
            category_id=category_id,
            title="Past meetup",
            description="Already underway.",
            start_time=start,
            end_time=end,
            max_people=max_people,
        )
        session.add(event)
        session.flush()
        for user_id in (host_id, *participant_ids):
            session.add(EventJoin(event_id=event.id, user_id=user_id))
        session.add(EventCity(event_id=event.id, city_id=city_id))
        session.commit()
        return event.id
