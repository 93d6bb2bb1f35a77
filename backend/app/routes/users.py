"""
routes/users.py — Self-service account route handlers.

Endpoints (base url_prefix=/api/v1/users, caller must be the target user):
  GET    /users/:id   → 200
  PATCH  /users/:id   → 200
  DELETE /users/:id   → 204  soft delete, refresh tokens revoked
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from backend.app.extensions import db
from backend.app.middleware.auth_middleware import require_auth
from backend.app.schemas.user_schema import PatchUserSchema
from backend.app.services import user_service

users_bp = Blueprint("users", __name__)


@users_bp.route("/<int:user_id>", methods=["GET"])
@require_auth
def get_user(user_id: int):
    result = user_service.get_user(
        user_id=user_id,
        caller_id=g.user_id,
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200


@users_bp.route("/<int:user_id>", methods=["PATCH"])
@require_auth
def patch_user(user_id: int):
    data = PatchUserSchema().load(request.get_json(force=True) or {})
    result = user_service.patch_update_user(
        user_id=user_id,
        caller_id=g.user_id,
        data=data,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


@users_bp.route("/<int:user_id>", methods=["DELETE"])
@require_auth
def delete_user(user_id: int):
    user_service.delete_user(
        user_id=user_id,
        caller_id=g.user_id,
        session=db.session,
    )
    db.session.commit()
    return "", 204
