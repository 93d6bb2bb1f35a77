"""
routes/events.py — Event and event-participation route handlers.

Layer rules:
  - Parse, validate, call ONE service, commit, return envelope.
  - No business logic. No DB queries. No bare SQL.

Endpoints (base url_prefix=/api/v1/events):
  POST   /events                → 201  create event (caller is host, auto-joined)
  GET    /events                → 200  list, filters host_id / category_id / city_id / club_id
  GET    /events/me             → 200  events the caller joined
  GET    /events/:id            → 200  detail with status and joined_users
  PUT    /events/:id            → 200  full update (host only)
  PATCH  /events/:id            → 200  partial update (host only)
  DELETE /events/:id            → 204  delete with joins and cities (host only)
  POST   /events/:id/join       → 204
  POST   /events/:id/out        → 204
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from backend.app.extensions import db
from backend.app.middleware.auth_middleware import require_auth
from backend.app.schemas.event_schema import (
    CreateEventSchema,
    EventListQuerySchema,
    PatchEventSchema,
    PutEventSchema,
)
from backend.app.services import event_service

events_bp = Blueprint("events", __name__)


@events_bp.route("", methods=["POST"])
@require_auth
def create_event():
    """POST /events — Create an event. club_id null or absent = independent event."""
    data = CreateEventSchema().load(request.get_json(force=True) or {})
    result = event_service.create_event(
        host_id=g.user_id,
        data=data,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201


@events_bp.route("", methods=["GET"])
def list_events():
    """GET /events — List events matching the query filters. (Public.)"""
    filters = EventListQuerySchema().load(request.args.to_dict())
    result = event_service.list_events(filters=filters, session=db.session)
    return jsonify({"data": result, "warnings": []}), 200


@events_bp.route("/me", methods=["GET"])
@require_auth
def list_my_events():
    """GET /events/me — Events the caller has joined."""
    result = event_service.list_my_events(user_id=g.user_id, session=db.session)
    return jsonify({"data": result, "warnings": []}), 200


@events_bp.route("/<int:event_id>", methods=["GET"])
def get_event(event_id: int):
    """GET /events/:id — Event detail. (Public.)"""
    result = event_service.get_event(event_id=event_id, session=db.session)
    return jsonify({"data": result, "warnings": []}), 200


@events_bp.route("/<int:event_id>", methods=["PUT"])
@require_auth
def put_event(event_id: int):
    """PUT /events/:id — Full update. Every field required."""
    data = PutEventSchema().load(request.get_json(force=True) or {})
    result = event_service.put_update_event(
        event_id=event_id,
        caller_id=g.user_id,
        data=data,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


@events_bp.route("/<int:event_id>", methods=["PATCH"])
@require_auth
def patch_event(event_id: int):
    """PATCH /events/:id — Partial update. Explicit null → 400 NULL_FIELD."""
    data = PatchEventSchema().load(request.get_json(force=True) or {})
    result = event_service.patch_update_event(
        event_id=event_id,
        caller_id=g.user_id,
        data=data,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


@events_bp.route("/<int:event_id>", methods=["DELETE"])
@require_auth
def delete_event(event_id: int):
    """DELETE /events/:id — Host only, before the event starts."""
    event_service.delete_event(
        event_id=event_id,
        caller_id=g.user_id,
        session=db.session,
    )
    db.session.commit()
    return "", 204


@events_bp.route("/<int:event_id>/join", methods=["POST"])
@require_auth
def join_event(event_id: int):
    """POST /events/:id/join"""
    event_service.join_event(
        event_id=event_id,
        user_id=g.user_id,
        session=db.session,
    )
    db.session.commit()
    return "", 204


@events_bp.route("/<int:event_id>/out", methods=["POST"])
@require_auth
def out_event(event_id: int):
    """POST /events/:id/out"""
    event_service.out_event(
        event_id=event_id,
        user_id=g.user_id,
        session=db.session,
    )
    db.session.commit()
    return "", 204
