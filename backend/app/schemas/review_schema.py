"""
schemas/review_schema.py — Marshmallow schemas for review endpoints.

Validation responsibility:
  - This file: score range (1–5), title length, explicit-null rejection.
  - services/review_service.py: participation, timing, uniqueness,
    visibility and author checks.

IMPORTANT: Inherits from marshmallow.Schema directly — never ma.Schema.
"""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, ValidationError, fields, validate

from backend.app.errors import ErrorCode


def _validate_non_empty_after_trim(value: str) -> None:
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


_NOT_NULL = {"null": ErrorCode.NULL_FIELD}

_SCORE = validate.Range(min=1, max=5, error="score must be between 1 and 5.")
_TITLE_RULES = [
    validate.Length(min=1, max=100, error="Title must be between 1 and 100 characters."),
    _validate_non_empty_after_trim,
]


class CreateReviewSchema(Schema):
    """POST /reviews"""

    event_id = fields.Int(
        required=True,
        strict=True,
        validate=validate.Range(min=1, error="event_id must be a positive integer."),
    )
    score = fields.Int(required=True, strict=True, validate=_SCORE)
    title = fields.Str(required=True, validate=_TITLE_RULES)
    description = fields.Str(required=False, allow_none=True, load_default=None)


class PutReviewSchema(Schema):
    """PUT /reviews/:id — score and title required; description may be null."""

    score = fields.Int(required=True, strict=True, error_messages=_NOT_NULL, validate=_SCORE)
    title = fields.Str(required=True, error_messages=_NOT_NULL, validate=_TITLE_RULES)
    description = fields.Str(required=False, allow_none=True)


class PatchReviewSchema(Schema):
    """PATCH /reviews/:id — null score or title is a 400 NULL_FIELD."""

    score = fields.Int(strict=True, error_messages=_NOT_NULL, validate=_SCORE)
    title = fields.Str(error_messages=_NOT_NULL, validate=_TITLE_RULES)
    description = fields.Str(allow_none=True)


class ReviewListQuerySchema(Schema):
    """GET /reviews?event_id=&user_id="""

    class Meta:
        unknown = EXCLUDE

    event_id = fields.Int(validate=validate.Range(min=1))
    user_id = fields.Int(validate=validate.Range(min=1))
