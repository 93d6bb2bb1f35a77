"""
repositories/region_repository.py — Category and City lookups.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.models.region import Category, City


def list_categories(session: Session) -> list[Category]:
    return list(session.execute(select(Category).order_by(Category.id.asc())).scalars().all())


def list_cities(session: Session) -> list[City]:
    return list(session.execute(select(City).order_by(City.id.asc())).scalars().all())


def category_exists(category_id: int, session: Session) -> bool:
    return session.get(Category, category_id) is not None


def missing_city_ids(city_ids: list[int], session: Session) -> list[int]:
    """Returns the ids in city_ids that have no City row, in request order."""
    if not city_ids:
        return []
    found = set(
        session.execute(select(City.id).where(City.id.in_(city_ids))).scalars().all()
    )
    return [city_id for city_id in city_ids if city_id not in found]


def get_or_create_category(name: str, session: Session) -> tuple[Category, bool]:
    category = session.execute(
        select(Category).where(Category.name == name)
    ).scalar_one_or_none()
    if category is not None:
        return category, False
    category = Category(name=name)
    session.add(category)
    session.flush()
    return category, True


def get_or_create_city(name: str, session: Session) -> tuple[City, bool]:
    city = session.execute(
        select(City).where(City.name == name)
    ).scalar_one_or_none()
    if city is not None:
        return city, False
    city = City(name=name)
    session.add(city)
    session.flush()
    return city, True
