"""
middleware/auth_middleware.py — JWT authentication decorator.

The @require_auth decorator:
  1. Reads the Authorization header (expected: "Bearer <token>")
  2. Decodes and verifies the JWT signature (HS256) and expiry
  3. Attaches user_id (int) to flask.g for the duration of the request
     once the account is confirmed to still exist
  4. Raises the matching 401 AppError if any step fails

Responsibility boundary:
  - Middleware = authentication (401). It never decides whether the caller is
    a club lead, an event host or a review author.
  - Service = authorization (403), through services/permissions.py.
  - Services receive user_id as a plain integer argument, with no knowledge
    of JWT or HTTP headers.

Error codes:
  TOKEN_MISSING  (401) — no Authorization header
  TOKEN_INVALID  (401) — malformed header, invalid signature, bad payload,
                          or the account was deleted
  TOKEN_EXPIRED  (401) — valid token but exp claim is in the past
"""

from __future__ import annotations

import functools
from typing import Callable

import jwt
from flask import current_app, g, request

from backend.app.errors import AppError, ErrorCode
from backend.app.extensions import db
from backend.app.repositories import user_repository


def require_auth(f: Callable) -> Callable:
    """
    Route decorator that enforces JWT authentication.

    Usage:
        @clubs_bp.route("/<int:club_id>/join", methods=["POST"])
        @require_auth
        def join_club(club_id):
            user_id = g.user_id  # always an int when this runs
    """
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        _authenticate_request()
        return f(*args, **kwargs)

    return decorated


def _authenticate_request() -> None:
    """
    Verifies the bearer token and sets flask.g.user_id.

    Kept apart from the decorator so tests can call it inside a
    test_request_context without wrapping a view function.
    """
    auth_header = request.headers.get("Authorization", "")

    if not auth_header:
        raise AppError(
            ErrorCode.TOKEN_MISSING,
            "Authentication required. Provide a Bearer token in the Authorization header.",
            401,
        )

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "Authorization header must be in the format: Bearer <token>.",
            401,
        )

    try:
        payload = jwt.decode(
            parts[1],
            current_app.config["JWT_SECRET_KEY"],
            algorithms=[current_app.config.get("JWT_ALGORITHM", "HS256")],
        )
    except jwt.ExpiredSignatureError:
        # Client should use POST /auth/refresh.
        raise AppError(
            ErrorCode.TOKEN_EXPIRED,
            "The access token has expired. Use POST /auth/refresh to obtain a new one.",
            401,
        )
    except jwt.InvalidTokenError:
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "The access token is invalid or has been tampered with.",
            401,
        )

    try:
        g.user_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "The access token does not carry a valid 'sub' user id.",
            401,
        )

    # Soft-deleted accounts lose access immediately, not when the token expires.
    if user_repository.get_active_user(g.user_id, db.session) is None:
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "The account this access token was issued for no longer exists.",
            401,
        )
