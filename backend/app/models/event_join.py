"""
models/event_join.py — EventJoin junction table (confirmed participation).

The host is auto-joined when the event is created.
UNIQUE(event_id, user_id) is the storage-level guard against double joins.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.extensions import db
from backend.app.models.types import UTCDateTime


class EventJoin(db.Model):
    __tablename__ = "event_joins"

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_joins_event_user"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    event_id: Mapped[int] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        server_default=func.now(),
    )

    user: Mapped["User"] = relationship("User", viewonly=True)  # noqa: F821

    def __repr__(self) -> str:  # pragma: no cover
        return f"<EventJoin event_id={self.event_id} user_id={self.user_id}>"
