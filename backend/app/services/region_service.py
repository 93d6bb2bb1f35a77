"""
services/region_service.py — Category / City lookups and reference data seeding.
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from backend.app.repositories import region_repository

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = (
    "Sports",
    "Music",
    "Study",
    "Travel",
    "Food",
    "Games",
    "Culture",
    "Volunteering",
)

DEFAULT_CITIES = (
    "Seoul",
    "Busan",
    "Incheon",
    "Daegu",
    "Daejeon",
    "Gwangju",
    "Ulsan",
    "Suwon",
)


def list_categories(session: Session) -> list[dict]:
    return [{"id": c.id, "name": c.name} for c in region_repository.list_categories(session)]


def list_cities(session: Session) -> list[dict]:
    return [{"id": c.id, "name": c.name} for c in region_repository.list_cities(session)]


def seed_regions(
        session: Session,
        categories: tuple[str, ...] = DEFAULT_CATEGORIES,
        cities: tuple[str, ...] = DEFAULT_CITIES,
) -> dict:
    """
    Inserts any missing category / city by name. Running it twice is a no-op.

    Returns: {"categories_created": int, "cities_created": int}
    """
    categories_created = sum(
        1 for name in categories if region_repository.get_or_create_category(name, session)[1]
    )
    cities_created = sum(
        1 for name in cities if region_repository.get_or_create_city(name, session)[1]
    )
    logger.info(
        "Seeded regions: %d categories, %d cities created.",
        categories_created,
        cities_created,
    )
    return {
        "categories_created": categories_created,
        "cities_created": cities_created,
    }
