"""
models/review.py — Review table definition.

One review per (event, user). Only participants who are not the host may
write one, and only after the event has ended; both rules live in
services/review_service.py. The CHECK on score mirrors the schema range.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.extensions import db
from backend.app.models.types import UTCDateTime


class Review(db.Model):
    __tablename__ = "reviews"

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_reviews_event_user"),
        CheckConstraint("score BETWEEN 1 AND 5", name="ck_reviews_score_range"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    event_id: Mapped[int] = mapped_column(
        ForeignKey("events.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    score: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    title: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        server_default=func.now(),
    )

    event: Mapped["Event"] = relationship("Event", viewonly=True)  # noqa: F821
    user: Mapped["User"] = relationship("User", viewonly=True)  # noqa: F821

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Review id={self.id} "
            f"event_id={self.event_id} "
            f"user_id={self.user_id} "
            f"score={self.score}>"
        )
