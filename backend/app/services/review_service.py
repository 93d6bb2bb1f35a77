"""
services/review_service.py — Review business logic.

Writing a review requires, in order:
  - no earlier review by this user for this event     (REVIEW_EXISTS, 409)
  - the event exists                                   (EVENT_NOT_FOUND, 404)
  - the user joined the event                          (NOT_JOINED, 409)
  - the event has ended                                (EVENT_NOT_ENDED, 409)
  - the user is not the host                           (SELF_REVIEW, 409)
  - for an event of an active club, current membership (FORBIDDEN, 403)

Visibility (reads):
  - independent event            → everyone
  - caller joined the event      → visible
  - event of a deleted club      → participants only
  - event of an active club      → club members
  The author always sees their own review. Reviews written by soft-deleted
  users are never returned.

Authorization:
  - put / patch / delete: author only (permissions.Role.REVIEW_AUTHOR)
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.app.errors import AppError, ErrorCode
from backend.app.models.event import Event
from backend.app.models.review import Review
from backend.app.repositories import club_repository, event_repository, review_repository
from backend.app.repositories.unit_of_work import run_atomically
from backend.app.services.permissions import Role, has_role, require_role

logger = logging.getLogger(__name__)


# ── Private helpers ────────────────────────────────────────────────────────

def _get_review_or_404(review_id: int, session: Session) -> Review:
    review = review_repository.get_review(review_id, session)
    if review is None or review.user.is_deleted:
        raise AppError(
            ErrorCode.REVIEW_NOT_FOUND,
            f"Review {review_id} does not exist.",
            404,
        )
    return review


def _can_view_event_reviews(event: Event, caller_id: int, session: Session) -> bool:
    if event.club_id is None:
        return True
    if event_repository.has_joined(event.id, caller_id, session):
        return True
    if event.club is None or event.club.is_deleted:
        return False
    return club_repository.is_member(event.club_id, caller_id, session)


def _build_review_dict(review: Review) -> dict:
    return {
        "id": review.id,
        "event_id": review.event_id,
        "user_id": review.user_id,
        "score": review.score,
        "title": review.title,
        "description": review.description,
        "created_at": review.created_at.isoformat(),
    }


# ── Public service functions ───────────────────────────────────────────────

def create_review(user_id: int, data: dict, session: Session) -> dict:
    """
    Args:
        user_id: The authenticated reviewer.
        data:    Validated dict from CreateReviewSchema.
    """
    event_id = data["event_id"]

    if review_repository.get_by_event_and_user(event_id, user_id, session) is not None:
        raise AppError(
            ErrorCode.REVIEW_EXISTS,
            f"You have already reviewed event {event_id}.",
            409,
        )

    event = event_repository.get_event(event_id, session)
    if event is None:
        raise AppError(
            ErrorCode.EVENT_NOT_FOUND,
            f"Event {event_id} does not exist.",
            404,
            field="event_id",
        )

    if not event_repository.has_joined(event_id, user_id, session):
        raise AppError(
            ErrorCode.NOT_JOINED,
            f"You did not join event {event_id}.",
            409,
        )

    if event.end_time > datetime.now(timezone.utc):
        raise AppError(
            ErrorCode.EVENT_NOT_ENDED,
            f"Event {event_id} has not ended yet.",
            409,
        )

    if event.host_id == user_id:
        raise AppError(
            ErrorCode.SELF_REVIEW,
            "You cannot review an event you hosted.",
            409,
        )

    if (
        event.club_id is not None
        and event.club is not None
        and not event.club.is_deleted
        and not club_repository.is_member(event.club_id, user_id, session)
    ):
        raise AppError(
            ErrorCode.FORBIDDEN,
            f"You are not a member of club {event.club_id}.",
            403,
        )

    review = Review(
        event_id=event_id,
        user_id=user_id,
        score=data["score"],
        title=data["title"],
        description=data.get("description"),
    )
    try:
        run_atomically(session, [lambda: review_repository.add_review(review, session)])
    except IntegrityError:
        raise AppError(
            ErrorCode.REVIEW_EXISTS,
            f"You have already reviewed event {event_id}.",
            409,
        )
    session.refresh(review)
    return _build_review_dict(review)


def list_reviews(
        caller_id: int,
        session: Session,
        event_id: int | None = None,
        user_id: int | None = None,
) -> list[dict]:
    """Reviews matching the filters that the caller is allowed to see, newest first."""
    visible_by_event: dict[int, bool] = {}
    result = []
    for review in review_repository.list_reviews(session, event_id=event_id, user_id=user_id):
        if review.user_id != caller_id:
            if review.event_id not in visible_by_event:
                visible_by_event[review.event_id] = _can_view_event_reviews(
                    review.event, caller_id, session,
                )
            if not visible_by_event[review.event_id]:
                continue
        result.append(_build_review_dict(review))
    return result


def get_review(review_id: int, caller_id: int, session: Session) -> dict:
    """
    Raises:
      AppError(REVIEW_NOT_FOUND, 404)
      AppError(FORBIDDEN, 403)   — the review is hidden from the caller
    """
    review = _get_review_or_404(review_id, session)
    if not has_role(review, Role.REVIEW_AUTHOR, caller_id) and not _can_view_event_reviews(
        review.event, caller_id, session,
    ):
        raise AppError(
            ErrorCode.FORBIDDEN,
            f"You are not allowed to read review {review_id}.",
            403,
        )
    return _build_review_dict(review)


def _update_review(review_id: int, caller_id: int, data: dict, session: Session) -> dict:
    review = _get_review_or_404(review_id, session)
    require_role(review, Role.REVIEW_AUTHOR, caller_id)

    for key in ("score", "title", "description"):
        if key in data:
            setattr(review, key, data[key])
    session.flush()
    return _build_review_dict(review)


def put_update_review(review_id: int, caller_id: int, data: dict, session: Session) -> dict:
    """Full replacement; an omitted description is cleared."""
    return _update_review(
        review_id,
        caller_id,
        {**data, "description": data.get("description")},
        session,
    )


def patch_update_review(review_id: int, caller_id: int, data: dict, session: Session) -> dict:
    return _update_review(review_id, caller_id, data, session)


def delete_review(review_id: int, caller_id: int, session: Session) -> None:
    review = _get_review_or_404(review_id, session)
    require_role(review, Role.REVIEW_AUTHOR, caller_id)
    review_repository.delete_review(review_id, session)
    session.flush()
    logger.info("Review %s deleted by user %s.", review_id, caller_id)
