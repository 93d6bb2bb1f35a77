"""
services/auth_service.py — Authentication business logic.

Responsibilities:
  - Account registration and credential validation (email + password)
  - JWT access token creation (HS256)
  - Refresh token lifecycle (creation, validation, revocation)
  - Password hashing (bcrypt) and verification

Layer rules:
  - No imports from routes or schemas
  - No use of flask.request, flask.g, or HTTP status codes
  - current_app.config is read ONLY for JWT settings and BCRYPT_LOG_ROUNDS;
    secrets must come from validated Flask config, never straight from env.

Token design:
  - Access token: JWT, HS256, short TTL, sub = user_id (str)
  - Refresh token: random hex string, stored as a SHA-256 hash, revoked on
    logout and when the account is deleted. The raw value is returned once.

Soft-deleted accounts cannot log in and their refresh tokens stop working.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
from datetime import datetime, timezone

import bcrypt
import jwt
from flask import current_app
from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.errors import AppError, ErrorCode
from backend.app.models.refresh_token import RefreshToken
from backend.app.models.user import User
from backend.app.repositories import user_repository
from backend.app.services.user_service import build_user_dict, validate_profile_references

logger = logging.getLogger(__name__)


# ── Private helpers ────────────────────────────────────────────────────────

def _hash_token(raw_token: str) -> str:
    """SHA-256 hex digest of a raw token string. Used for refresh token storage."""
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def _hash_password(password: str) -> str:
    rounds = current_app.config.get("BCRYPT_LOG_ROUNDS", 12)
    return bcrypt.hashpw(
        password.encode("utf-8"),
        bcrypt.gensalt(rounds=rounds),
    ).decode("utf-8")


def _create_access_token(user_id: int) -> str:
    """
    Signed JWT with sub (user_id as str), iat, exp and a random jti so two
    tokens issued in the same second still differ.
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + current_app.config["JWT_ACCESS_TOKEN_EXPIRES"],
        "jti": secrets.token_hex(8),
    }
    return jwt.encode(
        payload,
        current_app.config["JWT_SECRET_KEY"],
        algorithm=current_app.config.get("JWT_ALGORITHM", "HS256"),
    )


def _create_refresh_token(user_id: int, session: Session) -> str:
    """Stores the SHA-256 hash of a fresh refresh token and returns the raw value."""
    raw_token = secrets.token_hex(32)
    session.add(RefreshToken(
        user_id=user_id,
        token_hash=_hash_token(raw_token),
        expires_at=datetime.now(timezone.utc) + current_app.config["JWT_REFRESH_TOKEN_EXPIRES"],
    ))
    session.flush()
    return raw_token


def _build_token_pair(user_id: int, session: Session) -> dict:
    return {
        "access_token": _create_access_token(user_id),
        "refresh_token": _create_refresh_token(user_id, session),
    }


def _get_valid_refresh_record(raw_refresh_token: str, session: Session) -> RefreshToken | None:
    record = session.execute(
        select(RefreshToken).where(RefreshToken.token_hash == _hash_token(raw_refresh_token))
    ).scalar_one_or_none()
    if record is None or record.revoked:
        return None
    return record


# ── Public service functions ───────────────────────────────────────────────

def register_user(data: dict, session: Session) -> dict:
    """
    Creates an account and issues an access + refresh token pair.

    Args:
        data: Validated dict from RegisterSchema.

    Raises:
      AppError(DUPLICATE_EMAIL, 409)
      AppError(CATEGORY_NOT_FOUND / CITY_NOT_FOUND, 404)

    Returns: {"user": {...}, "access_token": "...", "refresh_token": "..."}
    """
    if user_repository.get_by_email(data["email"], session) is not None:
        raise AppError(
            ErrorCode.DUPLICATE_EMAIL,
            f"The email address '{data['email']}' is already registered.",
            409,
            field="email",
        )

    validate_profile_references(data, session)

    user = user_repository.add_user(
        User(
            name=data["name"],
            email=data["email"],
            password_hash=_hash_password(data["password"]),
            birthday=data.get("birthday"),
            city_id=data.get("city_id"),
            category_id=data["category_id"],
        ),
        session,
    )
    session.refresh(user)
    logger.info("User %s registered.", user.id)

    return {
        "user": build_user_dict(user),
        **_build_token_pair(user.id, session),
    }


def login_user(email: str, password: str, session: Session) -> dict:
    """
    Raises:
      AppError(INVALID_CREDENTIALS, 401) — unknown email, wrong password or a
      deleted account. One error for all three avoids account enumeration.
    """
    user = user_repository.get_by_email(email, session)

    if user is None or user.is_deleted or not bcrypt.checkpw(
            password.encode("utf-8"),
            user.password_hash.encode("utf-8"),
    ):
        raise AppError(
            ErrorCode.INVALID_CREDENTIALS,
            "The email or password is incorrect.",
            401,
        )

    return {
        "user": build_user_dict(user),
        **_build_token_pair(user.id, session),
    }


def refresh_access_token(raw_refresh_token: str, session: Session) -> dict:
    """
    Issues a new access token. The refresh token is not rotated.

    Raises:
      AppError(REFRESH_TOKEN_INVALID, 401) — not found, revoked, or expired.
    """
    record = _get_valid_refresh_record(raw_refresh_token, session)
    if record is None or record.expires_at <= datetime.now(timezone.utc):
        raise AppError(
            ErrorCode.REFRESH_TOKEN_INVALID,
            "The refresh token is invalid, expired, or has been revoked.",
            401,
        )
    return {"access_token": _create_access_token(record.user_id)}


def logout_user(raw_refresh_token: str, session: Session) -> None:
    """
    Revokes a refresh token. Access tokens stay valid until they expire.

    Raises:
      AppError(REFRESH_TOKEN_INVALID, 401) — token not found or already revoked.
    """
    record = _get_valid_refresh_record(raw_refresh_token, session)
    if record is None:
        raise AppError(
            ErrorCode.REFRESH_TOKEN_INVALID,
            "The refresh token is invalid or has already been revoked.",
            401,
        )
    record.revoked = True
    session.flush()
