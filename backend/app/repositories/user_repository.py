"""
repositories/user_repository.py — Queries and writes for users and their
refresh tokens.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from backend.app.models.refresh_token import RefreshToken
from backend.app.models.user import User


def get_active_user(user_id: int, session: Session) -> User | None:
    """Returns the user unless it does not exist or is soft-deleted."""
    return session.execute(
        select(User).where(User.id == user_id, User.deleted_at.is_(None))
    ).scalar_one_or_none()


def get_by_email(email: str, session: Session) -> User | None:
    """Looks at every account, deleted ones included: emails stay reserved."""
    return session.execute(
        select(User).where(User.email == email)
    ).scalar_one_or_none()


def add_user(user: User, session: Session) -> User:
    session.add(user)
    session.flush()  # populate user.id before issuing tokens
    return user


def soft_delete_user(user: User, session: Session) -> None:
    """Sets deleted_at and revokes every refresh token the user still holds."""
    user.deleted_at = datetime.now(timezone.utc)
    session.execute(
        update(RefreshToken)
        .where(RefreshToken.user_id == user.id, RefreshToken.revoked == False)  # noqa: E712
        .values(revoked=True)
    )
    session.flush()
