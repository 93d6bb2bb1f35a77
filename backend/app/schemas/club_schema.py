"""
schemas/club_schema.py — Marshmallow schemas for club endpoints.

Validation responsibility:
  - This file: field types, lengths, ranges, non-empty checks, explicit-null
    rejection on PATCH (NULL_FIELD), the approve/reject decision value.
  - services/club_service.py: everything that needs the database
    (CLUB_NOT_FOUND, lead checks, membership state, CLUB_FULL,
    CAPACITY_BELOW_MEMBERS).

IMPORTANT: Inherits from marshmallow.Schema directly — never ma.Schema.
           See extensions.py for the full explanation.
"""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, ValidationError, fields, validate

from backend.app.errors import ErrorCode


def _validate_non_empty_after_trim(value: str) -> None:
    """Mirrors the DB CHECK(LENGTH(TRIM(...)) > 0) constraint at the API layer."""
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


# PATCH semantics: omitted = unchanged, null = invalid.
_NOT_NULL = {"null": ErrorCode.NULL_FIELD}


class CreateClubSchema(Schema):
    """POST /clubs"""

    name = fields.Str(
        required=True,
        validate=[
            validate.Length(
                min=1,
                max=100,
                error="Club name must be between 1 and 100 characters.",
            ),
            _validate_non_empty_after_trim,
        ],
    )

    description = fields.Str(
        required=True,
        validate=_validate_non_empty_after_trim,
    )

    max_people = fields.Int(
        required=True,
        strict=True,
        validate=validate.Range(min=1, error="max_people must be at least 1."),
    )


class PatchClubSchema(Schema):
    """
    PATCH /clubs/:id

    All fields optional. Sending null for any of them is a 400 NULL_FIELD,
    not "clear this value".
    """

    name = fields.Str(
        required=False,
        error_messages=_NOT_NULL,
        validate=[
            validate.Length(
                min=1,
                max=100,
                error="Club name must be between 1 and 100 characters.",
            ),
            _validate_non_empty_after_trim,
        ],
    )

    description = fields.Str(
        required=False,
        error_messages=_NOT_NULL,
        validate=_validate_non_empty_after_trim,
    )

    max_people = fields.Int(
        required=False,
        strict=True,
        error_messages=_NOT_NULL,
        validate=validate.Range(min=1, error="max_people must be at least 1."),
    )


class DecideClubJoinSchema(Schema):
    """
    POST /clubs/:id/approve

    {"user_id": 7, "decision": "approve"}   or   "decision": "reject"
    """

    user_id = fields.Int(
        required=True,
        strict=True,
        validate=validate.Range(min=1, error="user_id must be a positive integer."),
    )

    decision = fields.Str(
        required=True,
        validate=validate.OneOf(["approve", "reject"], error=ErrorCode.INVALID_DECISION),
    )


class ChangeClubLeadSchema(Schema):
    """PUT /clubs/:id/lead"""

    lead_id = fields.Int(
        required=True,
        strict=True,
        validate=validate.Range(min=1, error="lead_id must be a positive integer."),
    )


class ClubListQuerySchema(Schema):
    """GET /clubs?lead_id= — query-string values arrive as strings, so not strict."""

    class Meta:
        unknown = EXCLUDE

    lead_id = fields.Int(
        required=False,
        validate=validate.Range(min=1, error="lead_id must be a positive integer."),
    )
