"""
routes/reviews.py — Review route handlers.

Endpoints (base url_prefix=/api/v1/reviews, all require auth):
  POST   /reviews                      → 201
  GET    /reviews?event_id=&user_id=   → 200  only reviews visible to the caller
  GET    /reviews/:id                  → 200  403 when hidden from the caller
  PUT    /reviews/:id                  → 200  author only
  PATCH  /reviews/:id                  → 200  author only
  DELETE /reviews/:id                  → 204  author only
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from backend.app.extensions import db
from backend.app.middleware.auth_middleware import require_auth
from backend.app.schemas.review_schema import (
    CreateReviewSchema,
    PatchReviewSchema,
    PutReviewSchema,
    ReviewListQuerySchema,
)
from backend.app.services import review_service

reviews_bp = Blueprint("reviews", __name__)


@reviews_bp.route("", methods=["POST"])
@require_auth
def create_review():
    data = CreateReviewSchema().load(request.get_json(force=True) or {})
    result = review_service.create_review(
        user_id=g.user_id,
        data=data,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201


@reviews_bp.route("", methods=["GET"])
@require_auth
def list_reviews():
    query = ReviewListQuerySchema().load(request.args.to_dict())
    result = review_service.list_reviews(
        caller_id=g.user_id,
        session=db.session,
        event_id=query.get("event_id"),
        user_id=query.get("user_id"),
    )
    return jsonify({"data": result, "warnings": []}), 200


@reviews_bp.route("/<int:review_id>", methods=["GET"])
@require_auth
def get_review(review_id: int):
    result = review_service.get_review(
        review_id=review_id,
        caller_id=g.user_id,
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200


@reviews_bp.route("/<int:review_id>", methods=["PUT"])
@require_auth
def put_review(review_id: int):
    data = PutReviewSchema().load(request.get_json(force=True) or {})
    result = review_service.put_update_review(
        review_id=review_id,
        caller_id=g.user_id,
        data=data,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


@reviews_bp.route("/<int:review_id>", methods=["PATCH"])
@require_auth
def patch_review(review_id: int):
    data = PatchReviewSchema().load(request.get_json(force=True) or {})
    result = review_service.patch_update_review(
        review_id=review_id,
        caller_id=g.user_id,
        data=data,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


@reviews_bp.route("/<int:review_id>", methods=["DELETE"])
@require_auth
def delete_review(review_id: int):
    review_service.delete_review(
        review_id=review_id,
        caller_id=g.user_id,
        session=db.session,
    )
    db.session.commit()
    return "", 204
