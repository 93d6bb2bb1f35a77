"""
models/types.py — Shared column types.

UTCDateTime stores timestamps as UTC and always hands back timezone-aware
values. PostgreSQL TIMESTAMPTZ already round-trips the offset; SQLite (used by
the in-memory test database) drops it, and comparing a naive value with
datetime.now(timezone.utc) raises TypeError in the service layer.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator


class UTCDateTime(TypeDecorator):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value: datetime | None, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def enum_values(enum_cls) -> list[str]:
    """Ensure SQLAlchemy stores enum values (e.g. 'pending'), not names ('PENDING')."""
    return [member.value for member in enum_cls]
