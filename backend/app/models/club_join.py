"""
models/club_join.py — ClubJoin junction table (confirmed club membership).

A row exists for the lead from the moment the club is created and for every
user whose waiting request was approved. Rows are hard-deleted when a member
leaves or the club is deleted.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.extensions import db
from backend.app.models.types import UTCDateTime


class ClubJoin(db.Model):
    __tablename__ = "club_joins"

    __table_args__ = (
        # A user can hold at most one membership per club; also the storage-level
        # guard against two concurrent approvals for the same request.
        UniqueConstraint("club_id", "user_id", name="uq_club_joins_club_user"),
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
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        server_default=func.now(),
    )

    user: Mapped["User"] = relationship("User", viewonly=True)  # noqa: F821

    def __repr__(self) -> str:  # pragma: no cover
        return f"<ClubJoin club_id={self.club_id} user_id={self.user_id}>"
