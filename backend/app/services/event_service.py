"""
services/event_service.py — Event, participation and event-city business logic.

Rules enforced here:
  - start_time must not be in the past when an event is created or moved
    (START_TIME_IN_PAST, 409) and must precede end_time (INVALID_TIME_RANGE, 409)
  - joined count never exceeds max_people (EVENT_FULL, 409 at current == max)
  - an ended event cannot be joined; a started event cannot be left, edited
    or deleted
  - the host is auto-joined on creation and can never leave
  - a club event may only be created or joined by a current club member

Authorization:
  - update / delete: event host only (permissions.Role.EVENT_HOST)

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.app.errors import AppError, ErrorCode
from backend.app.models.event import Event
from backend.app.repositories import club_repository, event_repository, region_repository
from backend.app.repositories.unit_of_work import run_atomically
from backend.app.services.permissions import Role, require_role

logger = logging.getLogger(__name__)


# ── Private helpers ────────────────────────────────────────────────────────

def _now() -> datetime:
    return datetime.now(timezone.utc)


def _get_event_or_404(event_id: int, session: Session) -> Event:
    """Returns the Event or raises EVENT_NOT_FOUND (404)."""
    event = event_repository.get_event(event_id, session)
    if event is None:
        raise AppError(
            ErrorCode.EVENT_NOT_FOUND,
            f"Event {event_id} does not exist.",
            404,
        )
    return event


def _validate_category(category_id: int, session: Session) -> None:
    if not region_repository.category_exists(category_id, session):
        raise AppError(
            ErrorCode.CATEGORY_NOT_FOUND,
            f"Category {category_id} does not exist.",
            404,
            field="category_id",
        )


def _validate_cities(city_ids: list[int], session: Session) -> None:
    missing = region_repository.missing_city_ids(city_ids, session)
    if missing:
        raise AppError(
            ErrorCode.CITY_NOT_FOUND,
            f"City {missing[0]} does not exist.",
            404,
            field="city_ids",
        )


def _validate_time_window(start_time: datetime, end_time: datetime, now: datetime) -> None:
    if start_time < now:
        raise AppError(
            ErrorCode.START_TIME_IN_PAST,
            "start_time must not be in the past.",
            409,
            field="start_time",
        )
    if start_time >= end_time:
        raise AppError(
            ErrorCode.INVALID_TIME_RANGE,
            "start_time must be earlier than end_time.",
            409,
            field="end_time",
        )


def _require_not_started(event: Event, now: datetime, action: str) -> None:
    if event.start_time < now:
        raise AppError(
            ErrorCode.EVENT_STARTED,
            f"Event {event.id} has already started and cannot be {action}.",
            409,
        )


def _require_club_member(club_id: int, user_id: int, session: Session) -> None:
    if not club_repository.is_member(club_id, user_id, session):
        raise AppError(
            ErrorCode.FORBIDDEN,
            f"You are not a member of club {club_id}.",
            403,
        )


def _build_event_dict(event: Event) -> dict:
    """Serialises an Event to a plain dict (list shape)."""
    return {
        "id": event.id,
        "host_id": event.host_id,
        "club_id": event.club_id,
        "category_id": event.category_id,
        "city_ids": event.city_ids,
        "title": event.title,
        "description": event.description,
        "start_time": event.start_time.isoformat(),
        "end_time": event.end_time.isoformat(),
        "max_people": event.max_people,
    }


def _build_event_detail(event: Event, session: Session) -> dict:
    """List shape plus clock-derived status and the participant list."""
    participants = event_repository.list_participants(event.id, session)
    return {
        **_build_event_dict(event),
        "status": event.status_at(_now()).value,
        "joined_users": [{"id": u.id, "name": u.name} for u in participants],
    }


# ── Public service functions ───────────────────────────────────────────────

def create_event(host_id: int, data: dict, session: Session) -> dict:
    """
    Creates an event. The host is auto-joined.

    Args:
        host_id: The authenticated user creating the event.
        data:    Validated dict from CreateEventSchema. club_id is optional;
                 None means an independent event.

    Raises:
      AppError(CATEGORY_NOT_FOUND, 404)
      AppError(CITY_NOT_FOUND, 404)        — any id in city_ids is unknown
      AppError(START_TIME_IN_PAST, 409)
      AppError(INVALID_TIME_RANGE, 409)    — start_time >= end_time
      AppError(CLUB_NOT_FOUND, 404)        — club missing or deleted
      AppError(FORBIDDEN, 403)             — host is not a member of the club
    """
    _validate_category(data["category_id"], session)
    _validate_cities(data["city_ids"], session)
    _validate_time_window(data["start_time"], data["end_time"], _now())

    club_id = data.get("club_id")
    if club_id is not None:
        if club_repository.get_active_club(club_id, session) is None:
            raise AppError(
                ErrorCode.CLUB_NOT_FOUND,
                f"Club {club_id} does not exist.",
                404,
                field="club_id",
            )
        _require_club_member(club_id, host_id, session)

    event = event_repository.add_event(
        Event(
            host_id=host_id,
            club_id=club_id,
            category_id=data["category_id"],
            title=data["title"],
            description=data["description"],
            start_time=data["start_time"],
            end_time=data["end_time"],
            max_people=data["max_people"],
        ),
        session,
    )
    event_repository.add_participant(event.id, host_id, session)
    event_repository.add_cities(event.id, data["city_ids"], session)
    session.refresh(event)

    logger.info("Event %s created by user %s (club=%s).", event.id, host_id, club_id)
    return _build_event_detail(event, session)


def list_events(filters: dict, session: Session) -> list[dict]:
    """
    Returns events matching every given filter, earliest start first.

    Supported keys: host_id, category_id, city_id, club_id.
    """
    events = event_repository.list_events(
        session,
        host_id=filters.get("host_id"),
        category_id=filters.get("category_id"),
        city_id=filters.get("city_id"),
        club_id=filters.get("club_id"),
    )
    return [_build_event_dict(e) for e in events]


def list_my_events(user_id: int, session: Session) -> list[dict]:
    """Events the user has joined, hosted ones included."""
    return [
        _build_event_dict(e)
        for e in event_repository.list_joined_events(user_id, session)
    ]


def get_event(event_id: int, session: Session) -> dict:
    event = _get_event_or_404(event_id, session)
    return _build_event_detail(event, session)


def join_event(event_id: int, user_id: int, session: Session) -> None:
    """
    Raises:
      AppError(EVENT_NOT_FOUND, 404)
      AppError(ALREADY_JOINED, 409)
      AppError(EVENT_ENDED, 409)
      AppError(FORBIDDEN, 403)    — club event and user is not a club member
      AppError(EVENT_FULL, 409)   — joined count already equals max_people
    """
    event = _get_event_or_404(event_id, session)

    if event_repository.has_joined(event_id, user_id, session):
        raise AppError(
            ErrorCode.ALREADY_JOINED,
            f"You have already joined event {event_id}.",
            409,
        )

    if event.end_time < _now():
        raise AppError(
            ErrorCode.EVENT_ENDED,
            f"Event {event_id} has already ended.",
            409,
        )

    if event.club_id is not None:
        _require_club_member(event.club_id, user_id, session)

    if event_repository.count_participants(event_id, session) >= event.max_people:
        raise AppError(
            ErrorCode.EVENT_FULL,
            f"Event {event_id} is full.",
            409,
        )

    try:
        run_atomically(session, [
            lambda: event_repository.add_participant(event_id, user_id, session),
        ])
    except IntegrityError:
        # A concurrent request inserted the same (event_id, user_id) first.
        raise AppError(
            ErrorCode.ALREADY_JOINED,
            f"You have already joined event {event_id}.",
            409,
        )


def out_event(event_id: int, user_id: int, session: Session) -> None:
    """
    Raises:
      AppError(EVENT_NOT_FOUND, 404)
      AppError(NOT_JOINED, 409)
      AppError(HOST_CANNOT_LEAVE, 409)
      AppError(EVENT_STARTED, 409)
    """
    event = _get_event_or_404(event_id, session)

    if not event_repository.has_joined(event_id, user_id, session):
        raise AppError(
            ErrorCode.NOT_JOINED,
            f"You have not joined event {event_id}.",
            409,
        )

    if event.host_id == user_id:
        raise AppError(
            ErrorCode.HOST_CANNOT_LEAVE,
            "The host cannot leave their own event.",
            409,
        )

    _require_not_started(event, _now(), "left")

    event_repository.remove_participant(event_id, user_id, session)
    session.flush()


def _update_event(event_id: int, caller_id: int, data: dict, session: Session) -> dict:
    """
    Shared by PUT (data holds every field) and PATCH (data holds only the
    fields that were sent). Fields absent from data stay unchanged.
    """
    event = _get_event_or_404(event_id, session)
    require_role(event, Role.EVENT_HOST, caller_id)

    now = _now()
    _require_not_started(event, now, "modified")

    if "category_id" in data:
        _validate_category(data["category_id"], session)
    if "city_ids" in data:
        _validate_cities(data["city_ids"], session)

    start_time = data.get("start_time", event.start_time)
    end_time = data.get("end_time", event.end_time)
    if "start_time" in data and start_time < now:
        raise AppError(
            ErrorCode.START_TIME_IN_PAST,
            "start_time must not be in the past.",
            409,
            field="start_time",
        )
    if start_time >= end_time:
        raise AppError(
            ErrorCode.INVALID_TIME_RANGE,
            "start_time must be earlier than end_time.",
            409,
            field="end_time",
        )

    if "max_people" in data:
        joined = event_repository.count_participants(event_id, session)
        if data["max_people"] < joined:
            raise AppError(
                ErrorCode.CAPACITY_BELOW_MEMBERS,
                f"max_people cannot be lower than the {joined} users already joined.",
                409,
                field="max_people",
            )

    for key in ("title", "description", "category_id", "start_time", "end_time", "max_people"):
        if key in data:
            setattr(event, key, data[key])

    if "city_ids" in data:
        run_atomically(session, [
            session.flush,
            lambda: event_repository.replace_cities(event, data["city_ids"], session),
        ])
    else:
        session.flush()

    session.refresh(event)
    return _build_event_detail(event, session)


def put_update_event(event_id: int, caller_id: int, data: dict, session: Session) -> dict:
    """Full replacement. data comes from PutEventSchema (every field required)."""
    return _update_event(event_id, caller_id, data, session)


def patch_update_event(event_id: int, caller_id: int, data: dict, session: Session) -> dict:
    """Partial update. Explicit nulls were already rejected by PatchEventSchema."""
    return _update_event(event_id, caller_id, data, session)


def delete_event(event_id: int, caller_id: int, session: Session) -> None:
    """
    Deletes the event with its participants and cities.

    Raises:
      AppError(EVENT_NOT_FOUND, 404)
      AppError(FORBIDDEN, 403)       — caller is not the host
      AppError(EVENT_STARTED, 409)
    """
    event = _get_event_or_404(event_id, session)
    require_role(event, Role.EVENT_HOST, caller_id)
    _require_not_started(event, _now(), "deleted")

    run_atomically(session, [
        lambda: event_repository.delete_events([event_id], session),
    ])
    logger.info("Event %s deleted by host %s.", event_id, caller_id)
