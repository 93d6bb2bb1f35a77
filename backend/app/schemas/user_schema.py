"""
schemas/user_schema.py — Marshmallow schema for PATCH /users/:id.

name, email and category_id may be omitted but never nulled (NULL_FIELD).
birthday and city_id are optional on the account, so null clears them.
Duplicate email and category / city existence are service checks.

IMPORTANT: Inherits from marshmallow.Schema directly — never ma.Schema.
"""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validate

from backend.app.errors import ErrorCode


def _validate_non_empty_after_trim(value: str) -> None:
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


_NOT_NULL = {"null": ErrorCode.NULL_FIELD}


class PatchUserSchema(Schema):

    name = fields.Str(
        error_messages=_NOT_NULL,
        validate=[
            validate.Length(min=1, max=50, error="Name must be between 1 and 50 characters."),
            _validate_non_empty_after_trim,
        ],
    )
    email = fields.Email(error_messages=_NOT_NULL, validate=validate.Length(max=255))
    category_id = fields.Int(
        strict=True,
        error_messages=_NOT_NULL,
        validate=validate.Range(min=1, error="category_id must be a positive integer."),
    )
    birthday = fields.Date(allow_none=True)
    city_id = fields.Int(
        strict=True,
        allow_none=True,
        validate=validate.Range(min=1, error="city_id must be a positive integer."),
    )
