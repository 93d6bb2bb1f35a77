"""
repositories/event_repository.py — Queries and writes for events, event
participation and event cities.

Layer rules:
  - SQLAlchemy statements only. No AppError, no authorization.
  - Flush, never commit.

Events are hard-deleted with bulk DELETE statements (children first) rather
than session.delete(), so the view-only relationships on Event never try to
null out foreign keys.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from backend.app.models.event import Event
from backend.app.models.event_city import EventCity
from backend.app.models.event_join import EventJoin
from backend.app.models.review import Review
from backend.app.models.user import User


# ── Events ─────────────────────────────────────────────────────────────────

def get_event(event_id: int, session: Session) -> Event | None:
    return session.get(Event, event_id)


def list_events(
        session: Session,
        host_id: int | None = None,
        category_id: int | None = None,
        city_id: int | None = None,
        club_id: int | None = None,
) -> list[Event]:
    stmt = select(Event)
    if host_id is not None:
        stmt = stmt.where(Event.host_id == host_id)
    if category_id is not None:
        stmt = stmt.where(Event.category_id == category_id)
    if club_id is not None:
        stmt = stmt.where(Event.club_id == club_id)
    if city_id is not None:
        stmt = stmt.where(
            Event.id.in_(select(EventCity.event_id).where(EventCity.city_id == city_id))
        )
    stmt = stmt.order_by(Event.start_time.asc(), Event.id.asc())
    return list(session.execute(stmt).scalars().all())


def list_joined_events(user_id: int, session: Session) -> list[Event]:
    stmt = (
        select(Event)
        .join(EventJoin, EventJoin.event_id == Event.id)
        .where(EventJoin.user_id == user_id)
        .order_by(Event.start_time.asc(), Event.id.asc())
    )
    return list(session.execute(stmt).scalars().all())


def add_event(event: Event, session: Session) -> Event:
    session.add(event)
    session.flush()  # populate event.id before EventJoin / EventCity rows
    return event


def list_club_event_ids(
        club_id: int,
        session: Session,
        starting_after: datetime | None = None,
) -> list[int]:
    """Ids of the club's events, optionally only those starting after a moment."""
    stmt = select(Event.id).where(Event.club_id == club_id)
    if starting_after is not None:
        stmt = stmt.where(Event.start_time > starting_after)
    return list(session.execute(stmt).scalars().all())


def list_joined_club_events(
        club_id: int,
        user_id: int,
        session: Session,
        started_by: datetime | None = None,
) -> list[Event]:
    """
    Club events the user has joined. With started_by, only events whose
    start_time is at or before that moment.
    """
    stmt = (
        select(Event)
        .join(EventJoin, EventJoin.event_id == Event.id)
        .where(Event.club_id == club_id, EventJoin.user_id == user_id)
    )
    if started_by is not None:
        stmt = stmt.where(Event.start_time <= started_by)
    return list(session.execute(stmt.order_by(Event.id.asc())).scalars().all())


def delete_events(event_ids: list[int], session: Session) -> None:
    """Deletes the events with their reviews, participants and cities."""
    if not event_ids:
        return
    session.execute(delete(Review).where(Review.event_id.in_(event_ids)))
    session.execute(delete(EventJoin).where(EventJoin.event_id.in_(event_ids)))
    session.execute(delete(EventCity).where(EventCity.event_id.in_(event_ids)))
    session.execute(delete(Event).where(Event.id.in_(event_ids)))


# ── Participation ──────────────────────────────────────────────────────────

def add_participant(event_id: int, user_id: int, session: Session) -> EventJoin:
    join = EventJoin(event_id=event_id, user_id=user_id)
    session.add(join)
    session.flush()
    return join


def has_joined(event_id: int, user_id: int, session: Session) -> bool:
    return session.execute(
        select(EventJoin.id).where(
            EventJoin.event_id == event_id,
            EventJoin.user_id == user_id,
        )
    ).scalar_one_or_none() is not None


def count_participants(event_id: int, session: Session) -> int:
    """Confirmed participants, excluding soft-deleted users."""
    return session.execute(
        select(func.count(EventJoin.id))
        .join(User, User.id == EventJoin.user_id)
        .where(EventJoin.event_id == event_id, User.deleted_at.is_(None))
    ).scalar_one()


def list_participants(event_id: int, session: Session) -> list[User]:
    stmt = (
        select(User)
        .join(EventJoin, EventJoin.user_id == User.id)
        .where(EventJoin.event_id == event_id, User.deleted_at.is_(None))
        .order_by(EventJoin.id.asc())
    )
    return list(session.execute(stmt).scalars().all())


def remove_participant(event_id: int, user_id: int, session: Session) -> None:
    session.execute(
        delete(EventJoin).where(
            EventJoin.event_id == event_id,
            EventJoin.user_id == user_id,
        )
    )


# ── Cities ─────────────────────────────────────────────────────────────────

def add_cities(event_id: int, city_ids: list[int], session: Session) -> None:
    for city_id in dict.fromkeys(city_ids):
        session.add(EventCity(event_id=event_id, city_id=city_id))
    session.flush()


def replace_cities(event: Event, city_ids: list[int], session: Session) -> None:
    """Drops every EventCity row of the event and writes the new set."""
    session.execute(delete(EventCity).where(EventCity.event_id == event.id))
    add_cities(event.id, city_ids, session)
    # event.event_cities was loaded before the bulk delete
    session.expire(event, ["event_cities"])
