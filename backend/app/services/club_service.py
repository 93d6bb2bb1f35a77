"""
services/club_service.py — Club lifecycle and membership workflow.

Membership state machine (per club, per user), read through
club_repository.get_membership_state():

    NONE ──join──▶ PENDING ──approve──▶ MEMBER ──out──▶ NONE
                      │
                      └──reject──▶ REJECTED   (terminal: the user may never
                                               request this club again)

Invariants enforced here:
  - member count never exceeds max_people (checked on approve: CLUB_FULL)
  - the lead is always a member and can never leave (LEAD_CANNOT_LEAVE)
  - max_people can never be lowered below the current member count

Authorization:
  - approve / reject / waiting list / change lead / update / delete:
    club lead only (permissions.Role.CLUB_LEAD)

Layer rules:
  - No Flask imports, except current_app.config for the club-exit cascade
    scope (same reasoning as auth_service reading JWT settings).
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from flask import current_app
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.app.errors import AppError, ErrorCode
from backend.app.models.club import Club
from backend.app.models.club_waiting import WaitingStatus
from backend.app.repositories import club_repository, event_repository
from backend.app.repositories.club_repository import MembershipState
from backend.app.repositories.unit_of_work import run_atomically
from backend.app.services import event_service
from backend.app.services.permissions import Role, require_role

logger = logging.getLogger(__name__)

APPROVE = "approve"
REJECT = "reject"


# ── Private helpers ────────────────────────────────────────────────────────

def _get_club_or_404(club_id: int, session: Session) -> Club:
    """Returns the active Club or raises CLUB_NOT_FOUND (404)."""
    club = club_repository.get_active_club(club_id, session)
    if club is None:
        raise AppError(
            ErrorCode.CLUB_NOT_FOUND,
            f"Club {club_id} does not exist.",
            404,
        )
    return club


def _build_club_dict(club: Club, member_count: int) -> dict:
    """Serialises a Club to a plain dict. No business logic."""
    return {
        "id": club.id,
        "lead_id": club.lead_id,
        "name": club.name,
        "description": club.description,
        "max_people": club.max_people,
        "member_count": member_count,
        "created_at": club.created_at.isoformat(),
    }


def _require_capacity(club: Club, session: Session) -> None:
    if club_repository.count_members(club.id, session) >= club.max_people:
        raise AppError(
            ErrorCode.CLUB_FULL,
            f"Club {club.id} already has {club.max_people} members.",
            409,
        )


def _exit_cascade_cutoff() -> datetime | None:
    """
    Upper bound on start_time for the events touched when a member leaves.
    None means every joined club event, regardless of when it starts.
    """
    if current_app.config.get("CLUB_EXIT_CASCADE_SCOPE", "started") == "all":
        return None
    return datetime.now(timezone.utc)


# ── Public service functions ───────────────────────────────────────────────

def create_club(lead_id: int, data: dict, session: Session) -> dict:
    """
    Creates a club. The creator becomes the lead and the first member.

    Args:
        lead_id: The authenticated user creating the club.
        data:    Validated dict from CreateClubSchema.
    """
    club = club_repository.add_club(
        Club(
            lead_id=lead_id,
            name=data["name"],
            description=data["description"],
            max_people=data["max_people"],
        ),
        session,
    )
    club_repository.add_member(club.id, lead_id, session)
    session.refresh(club)

    logger.info("Club %s created by user %s.", club.id, lead_id)
    return _build_club_dict(club, member_count=1)


def list_clubs(session: Session, lead_id: int | None = None) -> list[dict]:
    """Active clubs, oldest first, optionally only those led by lead_id."""
    clubs = club_repository.list_active_clubs(session, lead_id=lead_id)
    counts = club_repository.count_members_by_club([c.id for c in clubs], session)
    return [_build_club_dict(c, counts.get(c.id, 0)) for c in clubs]


def get_club(club_id: int, session: Session) -> dict:
    club = _get_club_or_404(club_id, session)
    return _build_club_dict(club, club_repository.count_members(club_id, session))


def join_club(club_id: int, user_id: int, session: Session) -> None:
    """
    Files a join request. Does not grant membership.

    Capacity is checked here and again when the lead approves, since other
    requests may have been approved in between.

    Raises:
      AppError(CLUB_NOT_FOUND, 404)
      AppError(ALREADY_MEMBER, 409)
      AppError(ALREADY_WAITING, 409)
      AppError(JOIN_REJECTED, 409)   — the lead rejected this user before
      AppError(CLUB_FULL, 409)       — member count already equals max_people
    """
    club = _get_club_or_404(club_id, session)

    state = club_repository.get_membership_state(club_id, user_id, session)
    if state is MembershipState.MEMBER:
        raise AppError(
            ErrorCode.ALREADY_MEMBER,
            f"You are already a member of club {club_id}.",
            409,
        )
    if state is MembershipState.PENDING:
        raise AppError(
            ErrorCode.ALREADY_WAITING,
            f"Your request to join club {club_id} is already pending.",
            409,
        )
    if state is MembershipState.REJECTED:
        raise AppError(
            ErrorCode.JOIN_REJECTED,
            f"Your request to join club {club_id} was rejected and cannot be repeated.",
            409,
        )

    _require_capacity(club, session)

    try:
        run_atomically(session, [
            lambda: club_repository.request_join(club_id, user_id, session),
        ])
    except IntegrityError:
        # A concurrent request for the same (club_id, user_id) won the insert.
        raise AppError(
            ErrorCode.ALREADY_WAITING,
            f"Your request to join club {club_id} is already pending.",
            409,
        )


def list_waiting(club_id: int, caller_id: int, session: Session) -> list[dict]:
    """PENDING join requests, oldest first. Lead only."""
    club = _get_club_or_404(club_id, session)
    require_role(club, Role.CLUB_LEAD, caller_id)

    return [
        {
            "user_id": w.user_id,
            "name": w.user.name,
            "status": w.status.value,
            "requested_at": w.created_at.isoformat(),
        }
        for w in club_repository.list_pending(club_id, session)
    ]


def decide_club_join(
        club_id: int,
        caller_id: int,
        target_user_id: int,
        decision: str,
        session: Session,
) -> None:
    """
    Approves or rejects a PENDING request.

    approve: the ClubJoin row and the APPROVED status are written in one
             unit of work, so either both exist afterwards or neither does.
    reject:  status becomes REJECTED; no ClubJoin row is created.

    Raises:
      AppError(CLUB_NOT_FOUND, 404)
      AppError(FORBIDDEN, 403)       — caller is not the lead
      AppError(NOT_WAITING, 409)     — target has no PENDING request
      AppError(CLUB_FULL, 409)       — approve while member count >= max_people
      AppError(INVALID_DECISION, 400)
    """
    club = _get_club_or_404(club_id, session)
    require_role(club, Role.CLUB_LEAD, caller_id)

    state = club_repository.get_membership_state(club_id, target_user_id, session)
    if state is not MembershipState.PENDING:
        raise AppError(
            ErrorCode.NOT_WAITING,
            f"User {target_user_id} has no pending request for club {club_id}.",
            409,
            field="user_id",
        )
    waiting = club_repository.get_waiting(club_id, target_user_id, session)

    if decision == APPROVE:
        _require_capacity(club, session)
        run_atomically(session, [
            lambda: club_repository.add_member(club_id, target_user_id, session),
            lambda: club_repository.set_waiting_status(waiting, WaitingStatus.APPROVED, session),
        ])
        logger.info("User %s approved into club %s.", target_user_id, club_id)
    elif decision == REJECT:
        club_repository.set_waiting_status(waiting, WaitingStatus.REJECTED, session)
        logger.info("User %s rejected from club %s.", target_user_id, club_id)
    else:
        raise AppError(
            ErrorCode.INVALID_DECISION,
            "decision must be 'approve' or 'reject'.",
            400,
            field="decision",
        )


def out_club(club_id: int, user_id: int, session: Session) -> None:
    """
    Leaves a club.

    Cascade, in one unit of work, over the user's joined events of this club
    (only those already started unless CLUB_EXIT_CASCADE_SCOPE is "all"):
      - events the user hosts are deleted with their joins and cities
      - other events only lose the user's EventJoin row
    Then the ClubJoin row and the stale APPROVED request are removed, so the
    user may request to join again later.

    Raises:
      AppError(CLUB_NOT_FOUND, 404)
      AppError(NOT_MEMBER, 409)
      AppError(LEAD_CANNOT_LEAVE, 409)
    """
    club = _get_club_or_404(club_id, session)

    if club_repository.get_membership_state(club_id, user_id, session) is not MembershipState.MEMBER:
        raise AppError(
            ErrorCode.NOT_MEMBER,
            f"You are not a member of club {club_id}.",
            409,
        )

    if club.lead_id == user_id:
        raise AppError(
            ErrorCode.LEAD_CANNOT_LEAVE,
            "The club lead cannot leave. Transfer the lead role or delete the club.",
            409,
        )

    events = event_repository.list_joined_club_events(
        club_id, user_id, session, started_by=_exit_cascade_cutoff(),
    )
    hosted_ids = [e.id for e in events if e.host_id == user_id]
    joined_ids = [e.id for e in events if e.host_id != user_id]

    steps = [lambda: event_repository.delete_events(hosted_ids, session)]
    for event_id in joined_ids:
        steps.append(
            lambda event_id=event_id: event_repository.remove_participant(event_id, user_id, session)
        )
    steps.append(lambda: club_repository.delete_member(club_id, user_id, session))
    steps.append(lambda: club_repository.delete_approved_waiting(club_id, user_id, session))

    run_atomically(session, steps)
    logger.info(
        "User %s left club %s (deleted %d hosted events, left %d events).",
        user_id, club_id, len(hosted_ids), len(joined_ids),
    )


def change_club_lead(
        club_id: int,
        caller_id: int,
        new_lead_id: int,
        session: Session,
) -> None:
    """
    Hands the lead role to another member.

    Raises:
      AppError(CLUB_NOT_FOUND, 404)
      AppError(FORBIDDEN, 403)    — caller is not the lead
      AppError(NOT_MEMBER, 409)   — new lead is not a member of the club
    """
    club = _get_club_or_404(club_id, session)
    require_role(club, Role.CLUB_LEAD, caller_id)

    if not club_repository.is_member(club_id, new_lead_id, session):
        raise AppError(
            ErrorCode.NOT_MEMBER,
            f"User {new_lead_id} is not a member of club {club_id}.",
            409,
            field="lead_id",
        )

    club.lead_id = new_lead_id
    session.flush()


def patch_update_club(
        club_id: int,
        caller_id: int,
        data: dict,
        session: Session,
) -> dict:
    """
    Partial update. Omitted fields stay unchanged; explicit nulls were
    already rejected by PatchClubSchema (NULL_FIELD, 400).

    Raises:
      AppError(CLUB_NOT_FOUND, 404)
      AppError(FORBIDDEN, 403)
      AppError(CAPACITY_BELOW_MEMBERS, 409)
    """
    club = _get_club_or_404(club_id, session)
    require_role(club, Role.CLUB_LEAD, caller_id)

    member_count = club_repository.count_members(club_id, session)
    if "max_people" in data and data["max_people"] < member_count:
        raise AppError(
            ErrorCode.CAPACITY_BELOW_MEMBERS,
            f"max_people cannot be lower than the current {member_count} members.",
            409,
            field="max_people",
        )

    for key in ("name", "description", "max_people"):
        if key in data:
            setattr(club, key, data[key])
    session.flush()

    return _build_club_dict(club, member_count)


def delete_club(club_id: int, caller_id: int, session: Session) -> None:
    """
    Soft-deletes the club. In the same unit of work every ClubJoin and
    ClubWaiting row is removed, along with the club's events that have not
    started yet. Started events stay attached to the deleted club so their
    reviews keep their history.

    Raises:
      AppError(CLUB_NOT_FOUND, 404)
      AppError(FORBIDDEN, 403)
    """
    club = _get_club_or_404(club_id, session)
    require_role(club, Role.CLUB_LEAD, caller_id)

    upcoming_ids = event_repository.list_club_event_ids(
        club_id, session, starting_after=datetime.now(timezone.utc),
    )
    run_atomically(session, [
        lambda: event_repository.delete_events(upcoming_ids, session),
        lambda: club_repository.delete_all_memberships(club_id, session),
        lambda: club_repository.soft_delete_club(club, session),
    ])
    logger.info(
        "Club %s deleted by lead %s (%d upcoming events removed).",
        club_id, caller_id, len(upcoming_ids),
    )


def create_club_event(club_id: int, caller_id: int, data: dict, session: Session) -> dict:
    """POST /clubs/:id/events — create_event with club_id taken from the path."""
    return event_service.create_event(
        host_id=caller_id,
        data={**data, "club_id": club_id},
        session=session,
    )
