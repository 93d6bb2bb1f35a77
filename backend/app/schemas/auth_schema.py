"""
schemas/auth_schema.py — Marshmallow schemas for authentication endpoints.

Validation responsibility:
  - This file: field types, lengths, formats, password strength.
  - services/auth_service.py: DUPLICATE_EMAIL and category / city existence
    (cross-entity: require a DB lookup — not a schema concern).

IMPORTANT: All schemas inherit from marshmallow.Schema directly.
           Do NOT use ma.Schema — it requires an active Flask app context
           and breaks unit tests. See extensions.py for the full explanation.
"""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validates, validate


class RegisterSchema(Schema):
    """
    POST /auth/register

    Field rules:
      name        : 1–50 chars, not blank
      email       : valid email format, max 255
      password    : min 8 chars, at least one letter and one digit
      category_id : required (interest category)
      birthday    : optional ISO date
      city_id     : optional
    """

    name = fields.Str(
        required=True,
        validate=validate.Length(
            min=1,
            max=50,
            error="Name must be between 1 and 50 characters.",
        ),
    )

    # marshmallow's Email field applies RFC-5322-compatible validation.
    email = fields.Email(
        required=True,
        validate=validate.Length(max=255),
    )

    # Validated in @validates below to produce a clear message per missing rule.
    password = fields.Str(required=True, load_only=True)

    category_id = fields.Int(
        required=True,
        strict=True,
        validate=validate.Range(min=1, error="category_id must be a positive integer."),
    )

    birthday = fields.Date(required=False, allow_none=True, load_default=None)

    city_id = fields.Int(
        required=False,
        strict=True,
        allow_none=True,
        load_default=None,
        validate=validate.Range(min=1, error="city_id must be a positive integer."),
    )

    @validates("name")
    def validate_name_not_blank(self, value: str, **kwargs) -> None:
        if not value.strip():
            raise ValidationError("Name must not be blank.")

    @validates("password")
    def validate_password_strength(self, value: str, **kwargs) -> None:
        """Min 8 chars, at least one letter and one digit."""
        if len(value) < 8:
            raise ValidationError("Password must be at least 8 characters long.")
        if not any(c.isalpha() for c in value):
            raise ValidationError("Password must contain at least one letter.")
        if not any(c.isdigit() for c in value):
            raise ValidationError("Password must contain at least one digit.")


class LoginSchema(Schema):
    """
    POST /auth/login

    Credential correctness is checked in auth_service.py
    (INVALID_CREDENTIALS, 401).
    """

    email = fields.Email(required=True)
    password = fields.Str(required=True, load_only=True)


class RefreshTokenSchema(Schema):
    """
    POST /auth/refresh, POST /auth/logout

    Token validity (revoked, expired, not found) is checked in
    auth_service.py (REFRESH_TOKEN_INVALID, 401).
    """

    refresh_token = fields.Str(required=True)
