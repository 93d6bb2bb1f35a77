"""
models/event.py — Event table definition.

No business logic. No imports from services or routes.

Key design points:
  - club_id is NULL for independent events. Club events keep pointing at a
    soft-deleted club once it has been removed.
  - CHECK(start_time < end_time) backs the service-level INVALID_TIME_RANGE.
  - Events are hard-deleted together with their EventJoin / EventCity rows
    (see repositories/event_repository.py). The read-side relationships
    below are view-only; writes go through explicit statements.
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.extensions import db
from backend.app.models.types import UTCDateTime


class EventStatus(str, enum.Enum):
    """Derived from the clock, never stored."""
    PENDING   = "PENDING"
    ONGOING   = "ONGOING"
    COMPLETED = "COMPLETED"


class Event(db.Model):
    __tablename__ = "events"

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_events_time_range"),
        CheckConstraint("max_people > 0", name="ck_events_max_people_positive"),
        CheckConstraint(
            "LENGTH(TRIM(title)) > 0",
            name="ck_events_title_nonempty",
        ),
        Index("idx_events_club_start", "club_id", "start_time"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    host_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    club_id: Mapped[int | None] = mapped_column(
        ForeignKey("clubs.id", ondelete="RESTRICT"),
        nullable=True,
    )

    category_id: Mapped[int] = mapped_column(
        ForeignKey("categories.id", ondelete="RESTRICT"),
        nullable=False,
    )

    title: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    start_time: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
    )

    end_time: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
    )

    max_people: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        server_default=func.now(),
    )

    # ── Relationships (read-only navigation) ───────────────────────────────

    club: Mapped["Club | None"] = relationship(  # noqa: F821
        "Club",
        viewonly=True,
    )

    event_cities: Mapped[list["EventCity"]] = relationship(  # noqa: F821
        "EventCity",
        viewonly=True,
        order_by="EventCity.city_id",
    )

    joins: Mapped[list["EventJoin"]] = relationship(  # noqa: F821
        "EventJoin",
        viewonly=True,
        order_by="EventJoin.id",
    )

    @property
    def city_ids(self) -> list[int]:
        return [ec.city_id for ec in self.event_cities]

    def status_at(self, now: datetime) -> EventStatus:
        if now > self.end_time:
            return EventStatus.COMPLETED
        if now > self.start_time:
            return EventStatus.ONGOING
        return EventStatus.PENDING

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Event id={self.id} "
            f"host_id={self.host_id} "
            f"club_id={self.club_id} "
            f"start={self.start_time.isoformat() if self.start_time else None}>"
        )
