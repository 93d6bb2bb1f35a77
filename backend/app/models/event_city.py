"""
models/event_city.py — EventCity association (event ↔ city, many-to-many).
"""

from __future__ import annotations

from sqlalchemy import ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.extensions import db


class EventCity(db.Model):
    __tablename__ = "event_cities"

    __table_args__ = (
        UniqueConstraint("event_id", "city_id", name="uq_event_cities_event_city"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    event_id: Mapped[int] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    city_id: Mapped[int] = mapped_column(
        ForeignKey("cities.id", ondelete="RESTRICT"),
        nullable=False,
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<EventCity event_id={self.event_id} city_id={self.city_id}>"
