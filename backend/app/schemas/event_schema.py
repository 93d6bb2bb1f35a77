"""
schemas/event_schema.py — Marshmallow schemas for event endpoints.

Validation responsibility:
  - This file: field types, lengths, ranges, timezone-aware datetimes,
    non-empty city list, explicit-null rejection on PATCH (NULL_FIELD).
  - services/event_service.py: anything compared with the clock or the
    database (START_TIME_IN_PAST, INVALID_TIME_RANGE, CATEGORY_NOT_FOUND,
    CITY_NOT_FOUND, EVENT_STARTED, CAPACITY_BELOW_MEMBERS, host checks).

Datetimes without an offset are read as UTC.

IMPORTANT: Inherits from marshmallow.Schema directly — never ma.Schema.
           See extensions.py for the full explanation.
"""

from __future__ import annotations

from datetime import timezone

from marshmallow import EXCLUDE, Schema, ValidationError, fields, validate

from backend.app.errors import ErrorCode


def _validate_non_empty_after_trim(value: str) -> None:
    """Mirrors the DB CHECK(LENGTH(TRIM(...)) > 0) constraint at the API layer."""
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


_NOT_NULL = {"null": ErrorCode.NULL_FIELD}

_TITLE_RULES = [
    validate.Length(min=1, max=100, error="Title must be between 1 and 100 characters."),
    _validate_non_empty_after_trim,
]
_POSITIVE_ID = validate.Range(min=1, error="Ids must be positive integers.")
_CAPACITY = validate.Range(min=1, error="max_people must be at least 1.")
_CITY_COUNT = validate.Length(min=1, error="city_ids must contain at least one city.")


class CreateEventSchema(Schema):
    """
    POST /events          (club_id optional; null or absent = independent event)
    POST /clubs/:id/events (loaded with exclude=("club_id",))
    """

    title = fields.Str(required=True, validate=_TITLE_RULES)
    description = fields.Str(required=True, validate=_validate_non_empty_after_trim)
    category_id = fields.Int(required=True, strict=True, validate=_POSITIVE_ID)
    city_ids = fields.List(
        fields.Int(strict=True, validate=_POSITIVE_ID),
        required=True,
        validate=_CITY_COUNT,
    )
    start_time = fields.AwareDateTime(required=True, default_timezone=timezone.utc)
    end_time = fields.AwareDateTime(required=True, default_timezone=timezone.utc)
    max_people = fields.Int(required=True, strict=True, validate=_CAPACITY)
    club_id = fields.Int(
        required=False,
        strict=True,
        allow_none=True,
        load_default=None,
        validate=_POSITIVE_ID,
    )


class PutEventSchema(Schema):
    """PUT /events/:id — full replacement; every field is required."""

    title = fields.Str(required=True, error_messages=_NOT_NULL, validate=_TITLE_RULES)
    description = fields.Str(
        required=True,
        error_messages=_NOT_NULL,
        validate=_validate_non_empty_after_trim,
    )
    category_id = fields.Int(
        required=True, strict=True, error_messages=_NOT_NULL, validate=_POSITIVE_ID,
    )
    city_ids = fields.List(
        fields.Int(strict=True, validate=_POSITIVE_ID),
        required=True,
        error_messages=_NOT_NULL,
        validate=_CITY_COUNT,
    )
    start_time = fields.AwareDateTime(
        required=True, default_timezone=timezone.utc, error_messages=_NOT_NULL,
    )
    end_time = fields.AwareDateTime(
        required=True, default_timezone=timezone.utc, error_messages=_NOT_NULL,
    )
    max_people = fields.Int(
        required=True, strict=True, error_messages=_NOT_NULL, validate=_CAPACITY,
    )


class PatchEventSchema(Schema):
    """PATCH /events/:id — omitted = unchanged, null = 400 NULL_FIELD."""

    title = fields.Str(error_messages=_NOT_NULL, validate=_TITLE_RULES)
    description = fields.Str(
        error_messages=_NOT_NULL,
        validate=_validate_non_empty_after_trim,
    )
    category_id = fields.Int(strict=True, error_messages=_NOT_NULL, validate=_POSITIVE_ID)
    city_ids = fields.List(
        fields.Int(strict=True, validate=_POSITIVE_ID),
        error_messages=_NOT_NULL,
        validate=_CITY_COUNT,
    )
    start_time = fields.AwareDateTime(default_timezone=timezone.utc, error_messages=_NOT_NULL)
    end_time = fields.AwareDateTime(default_timezone=timezone.utc, error_messages=_NOT_NULL)
    max_people = fields.Int(strict=True, error_messages=_NOT_NULL, validate=_CAPACITY)


class EventListQuerySchema(Schema):
    """GET /events?host_id=&category_id=&city_id=&club_id="""

    class Meta:
        unknown = EXCLUDE

    host_id = fields.Int(validate=_POSITIVE_ID)
    category_id = fields.Int(validate=_POSITIVE_ID)
    city_id = fields.Int(validate=_POSITIVE_ID)
    club_id = fields.Int(validate=_POSITIVE_ID)
