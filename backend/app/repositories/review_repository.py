"""
repositories/review_repository.py — Queries and writes for reviews.

Reads never return reviews written by soft-deleted users.
"""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from backend.app.models.review import Review
from backend.app.models.user import User


def get_review(review_id: int, session: Session) -> Review | None:
    return session.get(Review, review_id)


def get_by_event_and_user(event_id: int, user_id: int, session: Session) -> Review | None:
    return session.execute(
        select(Review).where(
            Review.event_id == event_id,
            Review.user_id == user_id,
        )
    ).scalar_one_or_none()


def list_reviews(
        session: Session,
        event_id: int | None = None,
        user_id: int | None = None,
) -> list[Review]:
    stmt = (
        select(Review)
        .join(User, User.id == Review.user_id)
        .where(User.deleted_at.is_(None))
    )
    if event_id is not None:
        stmt = stmt.where(Review.event_id == event_id)
    if user_id is not None:
        stmt = stmt.where(Review.user_id == user_id)
    stmt = stmt.order_by(Review.created_at.desc(), Review.id.desc())
    return list(session.execute(stmt).scalars().all())


def add_review(review: Review, session: Session) -> Review:
    session.add(review)
    session.flush()
    return review


def delete_review(review_id: int, session: Session) -> None:
    session.execute(delete(Review).where(Review.id == review_id))
