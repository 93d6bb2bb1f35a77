"""
models/club_waiting.py — ClubWaiting table (join requests).

Lifecycle per (club_id, user_id):
    PENDING  → APPROVED   (lead approves; a ClubJoin row is created alongside)
    PENDING  → REJECTED   (lead rejects; terminal, the user may never re-request)

The row is deleted when an approved member leaves the club, so a later
request starts from scratch.
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import Enum, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.extensions import db
from backend.app.models.types import UTCDateTime, enum_values


class WaitingStatus(str, enum.Enum):
    PENDING  = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ClubWaiting(db.Model):
    __tablename__ = "club_waitings"

    __table_args__ = (
        UniqueConstraint("club_id", "user_id", name="uq_club_waitings_club_user"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    club_id: Mapped[int] = mapped_column(
        ForeignKey("clubs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )

    # Stored as VARCHAR + CHECK so the same model runs on PostgreSQL and SQLite.
    status: Mapped[WaitingStatus] = mapped_column(
        Enum(
            WaitingStatus,
            name="waiting_status_enum",
            native_enum=False,
            create_constraint=True,
            length=16,
            values_callable=enum_values,
        ),
        nullable=False,
        default=WaitingStatus.PENDING,
    )

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        server_default=func.now(),
    )

    updated_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(),
        nullable=True,
    )

    user: Mapped["User"] = relationship("User", viewonly=True)  # noqa: F821

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<ClubWaiting club_id={self.club_id} "
            f"user_id={self.user_id} "
            f"status={self.status.value}>"
        )
