"""
services/permissions.py — Role checks shared by every service.

A role is "the caller's id matches this attribute of the resource":

    CLUB_LEAD      club.lead_id
    EVENT_HOST     event.host_id
    REVIEW_AUTHOR  review.user_id
    ACCOUNT_OWNER  user.id

require_role() is the only place that raises FORBIDDEN (403) for ownership.
Membership-based checks (club member joining a club event, etc.) stay in the
services because they need a database lookup.
"""

from __future__ import annotations

import enum
from typing import Any

from backend.app.errors import AppError, ErrorCode


class Role(enum.Enum):
    CLUB_LEAD     = "lead_id"
    EVENT_HOST    = "host_id"
    REVIEW_AUTHOR = "user_id"
    ACCOUNT_OWNER = "id"


_DENIED_MESSAGES = {
    Role.CLUB_LEAD:     "Only the club lead may do this.",
    Role.EVENT_HOST:    "Only the event host may do this.",
    Role.REVIEW_AUTHOR: "Only the author of the review may do this.",
    Role.ACCOUNT_OWNER: "You may only access your own account.",
}


def has_role(resource: Any, role: Role, user_id: int) -> bool:
    return getattr(resource, role.value) == user_id


def require_role(resource: Any, role: Role, user_id: int) -> None:
    """Raises FORBIDDEN (403) unless user_id holds `role` on `resource`."""
    if not has_role(resource, role, user_id):
        raise AppError(
            ErrorCode.FORBIDDEN,
            _DENIED_MESSAGES[role],
            403,
        )
