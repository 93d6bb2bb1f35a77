"""
repositories/club_repository.py — Queries and writes for clubs, memberships
and join requests.

Layer rules:
  - SQLAlchemy statements only. No AppError, no authorization.
  - Flush, never commit.

Membership is stored in two tables (club_joins for confirmed members,
club_waitings for the request lifecycle). get_membership_state() folds both
into one MembershipState; services never inspect the tables directly.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from backend.app.models.club import Club
from backend.app.models.club_join import ClubJoin
from backend.app.models.club_waiting import ClubWaiting, WaitingStatus
from backend.app.models.user import User


class MembershipState(str, enum.Enum):
    NONE     = "none"
    PENDING  = "pending"
    MEMBER   = "member"
    REJECTED = "rejected"


# ── Clubs ──────────────────────────────────────────────────────────────────

def get_active_club(club_id: int, session: Session) -> Club | None:
    """Returns the club unless it does not exist or is soft-deleted."""
    return session.execute(
        select(Club).where(Club.id == club_id, Club.deleted_at.is_(None))
    ).scalar_one_or_none()


def list_active_clubs(session: Session, lead_id: int | None = None) -> list[Club]:
    stmt = select(Club).where(Club.deleted_at.is_(None))
    if lead_id is not None:
        stmt = stmt.where(Club.lead_id == lead_id)
    stmt = stmt.order_by(Club.created_at.asc(), Club.id.asc())
    return list(session.execute(stmt).scalars().all())


def add_club(club: Club, session: Session) -> Club:
    session.add(club)
    session.flush()  # populate club.id before the lead's ClubJoin row
    return club


def soft_delete_club(club: Club, session: Session) -> None:
    club.deleted_at = datetime.now(timezone.utc)
    session.flush()


# ── Members ────────────────────────────────────────────────────────────────

def add_member(club_id: int, user_id: int, session: Session) -> ClubJoin:
    join = ClubJoin(club_id=club_id, user_id=user_id)
    session.add(join)
    session.flush()
    return join


def count_members(club_id: int, session: Session) -> int:
    """Confirmed members, excluding soft-deleted users."""
    return session.execute(
        select(func.count(ClubJoin.id))
        .join(User, User.id == ClubJoin.user_id)
        .where(ClubJoin.club_id == club_id, User.deleted_at.is_(None))
    ).scalar_one()


def count_members_by_club(club_ids: list[int], session: Session) -> dict[int, int]:
    """Member counts for several clubs in one query. Clubs with no rows map to 0."""
    if not club_ids:
        return {}
    rows = session.execute(
        select(ClubJoin.club_id, func.count(ClubJoin.id))
        .join(User, User.id == ClubJoin.user_id)
        .where(ClubJoin.club_id.in_(club_ids), User.deleted_at.is_(None))
        .group_by(ClubJoin.club_id)
    ).all()
    counts = {club_id: 0 for club_id in club_ids}
    counts.update({club_id: count for club_id, count in rows})
    return counts


def is_member(club_id: int, user_id: int, session: Session) -> bool:
    return get_membership_state(club_id, user_id, session) is MembershipState.MEMBER


def delete_member(club_id: int, user_id: int, session: Session) -> None:
    session.execute(
        delete(ClubJoin).where(
            ClubJoin.club_id == club_id,
            ClubJoin.user_id == user_id,
        )
    )


# ── Join requests ──────────────────────────────────────────────────────────

def get_waiting(club_id: int, user_id: int, session: Session) -> ClubWaiting | None:
    return session.execute(
        select(ClubWaiting).where(
            ClubWaiting.club_id == club_id,
            ClubWaiting.user_id == user_id,
        )
    ).scalar_one_or_none()


def list_pending(club_id: int, session: Session) -> list[ClubWaiting]:
    """PENDING requests from active users, oldest first."""
    stmt = (
        select(ClubWaiting)
        .join(User, User.id == ClubWaiting.user_id)
        .where(
            ClubWaiting.club_id == club_id,
            ClubWaiting.status == WaitingStatus.PENDING,
            User.deleted_at.is_(None),
        )
        .order_by(ClubWaiting.created_at.asc(), ClubWaiting.id.asc())
    )
    return list(session.execute(stmt).scalars().all())


def request_join(club_id: int, user_id: int, session: Session) -> ClubWaiting:
    """
    Stores a PENDING request. A stale APPROVED row (left behind by a member
    who has since left) is reset instead of inserting a second row.
    """
    waiting = get_waiting(club_id, user_id, session)
    if waiting is None:
        waiting = ClubWaiting(
            club_id=club_id,
            user_id=user_id,
            status=WaitingStatus.PENDING,
        )
        session.add(waiting)
    else:
        waiting.status = WaitingStatus.PENDING
        waiting.updated_at = datetime.now(timezone.utc)
    session.flush()
    return waiting


def set_waiting_status(
        waiting: ClubWaiting,
        status: WaitingStatus,
        session: Session,
) -> ClubWaiting:
    waiting.status = status
    waiting.updated_at = datetime.now(timezone.utc)
    session.flush()
    return waiting


def delete_approved_waiting(club_id: int, user_id: int, session: Session) -> None:
    session.execute(
        delete(ClubWaiting).where(
            ClubWaiting.club_id == club_id,
            ClubWaiting.user_id == user_id,
            ClubWaiting.status == WaitingStatus.APPROVED,
        )
    )


def delete_all_memberships(club_id: int, session: Session) -> None:
    """Removes every ClubJoin and ClubWaiting row of the club."""
    session.execute(delete(ClubJoin).where(ClubJoin.club_id == club_id))
    session.execute(delete(ClubWaiting).where(ClubWaiting.club_id == club_id))


# ── Unified membership state ───────────────────────────────────────────────

def get_membership_state(club_id: int, user_id: int, session: Session) -> MembershipState:
    """
    The single authoritative answer to "where is this user in this club?".

      ClubJoin row for an active user        → MEMBER
      ClubWaiting PENDING  for an active user → PENDING
      ClubWaiting REJECTED for an active user → REJECTED
      nothing, or a stale APPROVED row       → NONE
    """
    member_id = session.execute(
        select(ClubJoin.id)
        .join(User, User.id == ClubJoin.user_id)
        .where(
            ClubJoin.club_id == club_id,
            ClubJoin.user_id == user_id,
            User.deleted_at.is_(None),
        )
    ).scalar_one_or_none()
    if member_id is not None:
        return MembershipState.MEMBER

    waiting = session.execute(
        select(ClubWaiting)
        .join(User, User.id == ClubWaiting.user_id)
        .where(
            ClubWaiting.club_id == club_id,
            ClubWaiting.user_id == user_id,
            User.deleted_at.is_(None),
        )
    ).scalar_one_or_none()
    if waiting is None:
        return MembershipState.NONE
    if waiting.status == WaitingStatus.PENDING:
        return MembershipState.PENDING
    if waiting.status == WaitingStatus.REJECTED:
        return MembershipState.REJECTED
    return MembershipState.NONE
