"""
services/user_service.py — Self-service profile read / update / delete.

Every operation is gated by "caller id == target id"
(permissions.Role.ACCOUNT_OWNER). Soft-deleted users are reported as
USER_NOT_FOUND (404).

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from backend.app.errors import AppError, ErrorCode
from backend.app.models.user import User
from backend.app.repositories import region_repository, user_repository
from backend.app.services.permissions import Role, require_role

logger = logging.getLogger(__name__)


def _get_user_or_404(user_id: int, session: Session) -> User:
    user = user_repository.get_active_user(user_id, session)
    if user is None:
        raise AppError(
            ErrorCode.USER_NOT_FOUND,
            f"User {user_id} does not exist.",
            404,
        )
    return user


def build_user_dict(user: User) -> dict:
    """Serialises a User to a plain dict. Shared with auth_service."""
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "birthday": user.birthday.isoformat() if user.birthday else None,
        "city_id": user.city_id,
        "category_id": user.category_id,
        "created_at": user.created_at.isoformat(),
    }


def validate_profile_references(data: dict, session: Session) -> None:
    """Checks category_id / city_id when present (404). Shared with auth_service."""
    if "category_id" in data and not region_repository.category_exists(data["category_id"], session):
        raise AppError(
            ErrorCode.CATEGORY_NOT_FOUND,
            f"Category {data['category_id']} does not exist.",
            404,
            field="category_id",
        )
    city_id = data.get("city_id")
    if city_id is not None and region_repository.missing_city_ids([city_id], session):
        raise AppError(
            ErrorCode.CITY_NOT_FOUND,
            f"City {city_id} does not exist.",
            404,
            field="city_id",
        )


def get_user(user_id: int, caller_id: int, session: Session) -> dict:
    user = _get_user_or_404(user_id, session)
    require_role(user, Role.ACCOUNT_OWNER, caller_id)
    return build_user_dict(user)


def patch_update_user(user_id: int, caller_id: int, data: dict, session: Session) -> dict:
    """
    Partial profile update from PatchUserSchema. Explicit nulls for name,
    email and category_id were rejected by the schema; birthday and city_id
    may be cleared with null.

    Raises:
      AppError(USER_NOT_FOUND, 404)
      AppError(FORBIDDEN, 403)
      AppError(DUPLICATE_EMAIL, 409)
      AppError(CATEGORY_NOT_FOUND / CITY_NOT_FOUND, 404)
    """
    user = _get_user_or_404(user_id, session)
    require_role(user, Role.ACCOUNT_OWNER, caller_id)

    if "email" in data and data["email"] != user.email:
        if user_repository.get_by_email(data["email"], session) is not None:
            raise AppError(
                ErrorCode.DUPLICATE_EMAIL,
                f"The email address '{data['email']}' is already registered.",
                409,
                field="email",
            )

    validate_profile_references(data, session)

    for key in ("name", "email", "birthday", "city_id", "category_id"):
        if key in data:
            setattr(user, key, data[key])
    session.flush()
    return build_user_dict(user)


def delete_user(user_id: int, caller_id: int, session: Session) -> None:
    """Soft-deletes the account and revokes its refresh tokens."""
    user = _get_user_or_404(user_id, session)
    require_role(user, Role.ACCOUNT_OWNER, caller_id)
    user_repository.soft_delete_user(user, session)
    logger.info("User %s deleted their account.", user_id)
