"""
routes/clubs.py — Club and club-membership route handlers.

Layer rules:
  - Parse, validate, call ONE service, commit, return envelope.
  - No business logic. No DB queries. No bare SQL.

Endpoints (base url_prefix=/api/v1/clubs):
  POST   /clubs                 → 201  create club (caller becomes lead)
  GET    /clubs?lead_id=        → 200  list active clubs
  GET    /clubs/:id             → 200  club detail with member_count
  PATCH  /clubs/:id             → 200  partial update (lead only)
  DELETE /clubs/:id             → 204  soft delete + cascade (lead only)
  POST   /clubs/:id/join        → 204  request to join (PENDING)
  POST   /clubs/:id/approve     → 204  approve / reject a request (lead only)
  POST   /clubs/:id/out         → 204  leave the club
  GET    /clubs/:id/waiting     → 200  pending requests (lead only)
  PUT    /clubs/:id/lead        → 204  hand over the lead role (lead only)
  POST   /clubs/:id/events      → 201  create an event owned by the club
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from backend.app.extensions import db
from backend.app.middleware.auth_middleware import require_auth
from backend.app.schemas.club_schema import (
    ChangeClubLeadSchema,
    ClubListQuerySchema,
    CreateClubSchema,
    DecideClubJoinSchema,
    PatchClubSchema,
)
from backend.app.schemas.event_schema import CreateEventSchema
from backend.app.services import club_service

clubs_bp = Blueprint("clubs", __name__)


@clubs_bp.route("", methods=["POST"])
@require_auth
def create_club():
    """POST /clubs — Create a club. Caller becomes lead and first member."""
    data = CreateClubSchema().load(request.get_json(force=True) or {})
    result = club_service.create_club(
        lead_id=g.user_id,
        data=data,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201


@clubs_bp.route("", methods=["GET"])
def list_clubs():
    """GET /clubs — List active clubs, optionally filtered by lead_id. (Public.)"""
    query = ClubListQuerySchema().load(request.args.to_dict())
    result = club_service.list_clubs(
        session=db.session,
        lead_id=query.get("lead_id"),
    )
    return jsonify({"data": result, "warnings": []}), 200


@clubs_bp.route("/<int:club_id>", methods=["GET"])
def get_club(club_id: int):
    """GET /clubs/:id — Club detail. (Public.)"""
    result = club_service.get_club(club_id=club_id, session=db.session)
    return jsonify({"data": result, "warnings": []}), 200


@clubs_bp.route("/<int:club_id>", methods=["PATCH"])
@require_auth
def patch_club(club_id: int):
    """PATCH /clubs/:id — Partial update. Explicit null → 400 NULL_FIELD."""
    data = PatchClubSchema().load(request.get_json(force=True) or {})
    result = club_service.patch_update_club(
        club_id=club_id,
        caller_id=g.user_id,
        data=data,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


@clubs_bp.route("/<int:club_id>", methods=["DELETE"])
@require_auth
def delete_club(club_id: int):
    """DELETE /clubs/:id — Soft-delete the club and clean up memberships and upcoming events."""
    club_service.delete_club(
        club_id=club_id,
        caller_id=g.user_id,
        session=db.session,
    )
    db.session.commit()
    return "", 204


@clubs_bp.route("/<int:club_id>/join", methods=["POST"])
@require_auth
def join_club(club_id: int):
    """POST /clubs/:id/join — File a join request (PENDING)."""
    club_service.join_club(
        club_id=club_id,
        user_id=g.user_id,
        session=db.session,
    )
    db.session.commit()
    return "", 204


@clubs_bp.route("/<int:club_id>/approve", methods=["POST"])
@require_auth
def decide_club_join(club_id: int):
    """POST /clubs/:id/approve — {"user_id", "decision": "approve" | "reject"}. Lead only."""
    data = DecideClubJoinSchema().load(request.get_json(force=True) or {})
    club_service.decide_club_join(
        club_id=club_id,
        caller_id=g.user_id,
        target_user_id=data["user_id"],
        decision=data["decision"],
        session=db.session,
    )
    db.session.commit()
    return "", 204


@clubs_bp.route("/<int:club_id>/out", methods=["POST"])
@require_auth
def out_club(club_id: int):
    """POST /clubs/:id/out — Leave the club; cascades over the caller's club events."""
    club_service.out_club(
        club_id=club_id,
        user_id=g.user_id,
        session=db.session,
    )
    db.session.commit()
    return "", 204


@clubs_bp.route("/<int:club_id>/waiting", methods=["GET"])
@require_auth
def list_waiting(club_id: int):
    """GET /clubs/:id/waiting — Pending join requests. Lead only."""
    result = club_service.list_waiting(
        club_id=club_id,
        caller_id=g.user_id,
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200


@clubs_bp.route("/<int:club_id>/lead", methods=["PUT"])
@require_auth
def change_club_lead(club_id: int):
    """PUT /clubs/:id/lead — {"lead_id"}. New lead must already be a member."""
    data = ChangeClubLeadSchema().load(request.get_json(force=True) or {})
    club_service.change_club_lead(
        club_id=club_id,
        caller_id=g.user_id,
        new_lead_id=data["lead_id"],
        session=db.session,
    )
    db.session.commit()
    return "", 204


@clubs_bp.route("/<int:club_id>/events", methods=["POST"])
@require_auth
def create_club_event(club_id: int):
    """POST /clubs/:id/events — Create an event owned by the club. Members only."""
    data = CreateEventSchema(exclude=("club_id",)).load(request.get_json(force=True) or {})
    result = club_service.create_club_event(
        club_id=club_id,
        caller_id=g.user_id,
        data=data,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201
