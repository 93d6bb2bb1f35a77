"""
models/club.py — Club table definition.

No business logic. No imports from services or routes.

A club has exactly one lead (lead_id), who is also a ClubJoin member.
Clubs are soft-deleted: deleted_at is set by DELETE /clubs/:id and the row
stays so that events which already ran under the club keep their history.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.extensions import db
from backend.app.models.types import UTCDateTime


class Club(db.Model):
    __tablename__ = "clubs"

    __table_args__ = (
        CheckConstraint(
            "LENGTH(TRIM(name)) > 0",
            name="ck_clubs_name_nonempty",
        ),
        CheckConstraint("max_people > 0", name="ck_clubs_max_people_positive"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    # ON DELETE RESTRICT: users are soft-deleted, never removed under a club.
    lead_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    description: Mapped[str] = mapped_column(
        Text,
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

    deleted_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(),
        nullable=True,
    )

    lead: Mapped["User"] = relationship(  # noqa: F821
        "User",
        foreign_keys=[lead_id],
        viewonly=True,
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Club id={self.id} name={self.name!r} lead_id={self.lead_id}>"
