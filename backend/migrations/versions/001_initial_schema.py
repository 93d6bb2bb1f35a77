"""Initial schema — all tables, constraints, and indexes.

Revision: 001_initial_schema
Created:  2026-10-19

Append-only:
  This file must NEVER be edited after it has been applied to any database.
  If a schema change is required, create a NEW migration file.

Creation order:
  1. Lookup tables (categories, cities)
  2. users, refresh_tokens
  3. clubs, club_joins, club_waitings
  4. events, event_cities, event_joins
  5. reviews
  6. Indexes

Enums:
  club_waitings.status is a VARCHAR guarded by a CHECK constraint rather than a
  PostgreSQL enum type, so the same schema runs on SQLite for local tests.

ON DELETE policies:
  refresh_tokens.user_id      → CASCADE   (token owned by user)
  users.city_id               → SET NULL  (optional profile field)
  club_joins / club_waitings  → CASCADE on club, RESTRICT on user
  events.club_id              → RESTRICT  (clubs are soft-deleted)
  event_joins / event_cities  → CASCADE on event
  reviews.*                   → RESTRICT  (reviews are removed explicitly)
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# ── Alembic revision identifiers ──────────────────────────────────────────
revision: str = "001_initial_schema"
down_revision: str | None = None      # first migration, no parent
branch_labels: tuple | None = None
depends_on: tuple | None = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    )


def upgrade() -> None:

    # ── Step 1: lookup tables ─────────────────────────────────────────────

    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_categories"),
        sa.UniqueConstraint("name", name="uq_categories_name"),
    )

    op.create_table(
        "cities",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_cities"),
        sa.UniqueConstraint("name", name="uq_cities_name"),
    )

    # ── Step 2: users ──────────────────────────────────────────────────────
    # deleted_at IS NULL = active; non-null = soft-deleted.

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("birthday", sa.Date(), nullable=True),
        sa.Column(
            "city_id",
            sa.Integer(),
            sa.ForeignKey("cities.id", ondelete="SET NULL", name="fk_users_city"),
            nullable=True,
        ),
        sa.Column(
            "category_id",
            sa.Integer(),
            sa.ForeignKey("categories.id", ondelete="RESTRICT", name="fk_users_category"),
            nullable=False,
        ),
        _created_at(),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.CheckConstraint(
            "LENGTH(TRIM(name)) > 0",
            name="ck_users_name_nonempty",
        ),
        sa.CheckConstraint(
            "email LIKE '%@%'",
            name="ck_users_email_format",
        ),
    )

    # ── Step 3: refresh_tokens ─────────────────────────────────────────────

    op.create_table(
        "refresh_tokens",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE", name="fk_refresh_tokens_user"),
            nullable=False,
        ),
        sa.Column("token_hash", sa.String(255), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "revoked",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_refresh_tokens"),
        sa.UniqueConstraint("token_hash", name="uq_refresh_tokens_hash"),
    )

    # ── Step 4: clubs ──────────────────────────────────────────────────────

    op.create_table(
        "clubs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "lead_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="RESTRICT", name="fk_clubs_lead"),
            nullable=False,
        ),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("max_people", sa.Integer(), nullable=False),
        _created_at(),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_clubs"),
        sa.CheckConstraint(
            "LENGTH(TRIM(name)) > 0",
            name="ck_clubs_name_nonempty",
        ),
        sa.CheckConstraint("max_people > 0", name="ck_clubs_max_people_positive"),
    )

    # ── Step 5: club_joins (members) ───────────────────────────────────────

    op.create_table(
        "club_joins",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "club_id",
            sa.Integer(),
            sa.ForeignKey("clubs.id", ondelete="CASCADE", name="fk_club_joins_club"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="RESTRICT", name="fk_club_joins_user"),
            nullable=False,
        ),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_club_joins"),
        sa.UniqueConstraint("club_id", "user_id", name="uq_club_joins_club_user"),
    )

    # ── Step 6: club_waitings (join requests) ──────────────────────────────

    op.create_table(
        "club_waitings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "club_id",
            sa.Integer(),
            sa.ForeignKey("clubs.id", ondelete="CASCADE", name="fk_club_waitings_club"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="RESTRICT", name="fk_club_waitings_user"),
            nullable=False,
        ),
        sa.Column("status", sa.String(16), nullable=False),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_club_waitings"),
        sa.UniqueConstraint("club_id", "user_id", name="uq_club_waitings_club_user"),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="waiting_status_enum",
        ),
    )

    # ── Step 7: events ─────────────────────────────────────────────────────
    # club_id NULL = independent event.

    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "host_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="RESTRICT", name="fk_events_host"),
            nullable=False,
        ),
        sa.Column(
            "club_id",
            sa.Integer(),
            sa.ForeignKey("clubs.id", ondelete="RESTRICT", name="fk_events_club"),
            nullable=True,
        ),
        sa.Column(
            "category_id",
            sa.Integer(),
            sa.ForeignKey("categories.id", ondelete="RESTRICT", name="fk_events_category"),
            nullable=False,
        ),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("max_people", sa.Integer(), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_events"),
        sa.CheckConstraint("start_time < end_time", name="ck_events_time_range"),
        sa.CheckConstraint("max_people > 0", name="ck_events_max_people_positive"),
        sa.CheckConstraint(
            "LENGTH(TRIM(title)) > 0",
            name="ck_events_title_nonempty",
        ),
    )

    # ── Step 8: event_cities, event_joins ──────────────────────────────────

    op.create_table(
        "event_cities",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "event_id",
            sa.Integer(),
            sa.ForeignKey("events.id", ondelete="CASCADE", name="fk_event_cities_event"),
            nullable=False,
        ),
        sa.Column(
            "city_id",
            sa.Integer(),
            sa.ForeignKey("cities.id", ondelete="RESTRICT", name="fk_event_cities_city"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id", name="pk_event_cities"),
        sa.UniqueConstraint("event_id", "city_id", name="uq_event_cities_event_city"),
    )

    op.create_table(
        "event_joins",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "event_id",
            sa.Integer(),
            sa.ForeignKey("events.id", ondelete="CASCADE", name="fk_event_joins_event"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="RESTRICT", name="fk_event_joins_user"),
            nullable=False,
        ),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_event_joins"),
        sa.UniqueConstraint("event_id", "user_id", name="uq_event_joins_event_user"),
    )

    # ── Step 9: reviews ────────────────────────────────────────────────────
    # One review per (event, user).

    op.create_table(
        "reviews",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "event_id",
            sa.Integer(),
            sa.ForeignKey("events.id", ondelete="RESTRICT", name="fk_reviews_event"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="RESTRICT", name="fk_reviews_user"),
            nullable=False,
        ),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_reviews"),
        sa.UniqueConstraint("event_id", "user_id", name="uq_reviews_event_user"),
        sa.CheckConstraint("score BETWEEN 1 AND 5", name="ck_reviews_score_range"),
    )

    # ── Step 10: Indexes ───────────────────────────────────────────────────

    op.create_index("ix_refresh_tokens_user_id", "refresh_tokens", ["user_id"])
    op.create_index("ix_clubs_lead_id",          "clubs",          ["lead_id"])
    op.create_index("ix_club_joins_club_id",     "club_joins",     ["club_id"])
    op.create_index("ix_club_joins_user_id",     "club_joins",     ["user_id"])
    op.create_index("ix_club_waitings_club_id",  "club_waitings",  ["club_id"])
    op.create_index("ix_events_host_id",         "events",         ["host_id"])
    # Club cascades scan a club's events by start time.
    op.create_index("idx_events_club_start",     "events",         ["club_id", "start_time"])
    op.create_index("ix_event_cities_event_id",  "event_cities",   ["event_id"])
    op.create_index("ix_event_joins_event_id",   "event_joins",    ["event_id"])
    op.create_index("ix_event_joins_user_id",    "event_joins",    ["user_id"])
    op.create_index("ix_reviews_event_id",       "reviews",        ["event_id"])
    op.create_index("ix_reviews_user_id",        "reviews",        ["user_id"])


def downgrade() -> None:
    """
    Drop all objects created in upgrade(), in reverse dependency order.
    Intended for local development resets only.
    """
    op.drop_index("ix_reviews_user_id",        table_name="reviews")
    op.drop_index("ix_reviews_event_id",       table_name="reviews")
    op.drop_index("ix_event_joins_user_id",    table_name="event_joins")
    op.drop_index("ix_event_joins_event_id",   table_name="event_joins")
    op.drop_index("ix_event_cities_event_id",  table_name="event_cities")
    op.drop_index("idx_events_club_start",     table_name="events")
    op.drop_index("ix_events_host_id",         table_name="events")
    op.drop_index("ix_club_waitings_club_id",  table_name="club_waitings")
    op.drop_index("ix_club_joins_user_id",     table_name="club_joins")
    op.drop_index("ix_club_joins_club_id",     table_name="club_joins")
    op.drop_index("ix_clubs_lead_id",          table_name="clubs")
    op.drop_index("ix_refresh_tokens_user_id", table_name="refresh_tokens")

    op.drop_table("reviews")
    op.drop_table("event_joins")
    op.drop_table("event_cities")
    op.drop_table("events")
    op.drop_table("club_waitings")
    op.drop_table("club_joins")
    op.drop_table("clubs")
    op.drop_table("refresh_tokens")
    op.drop_table("users")
    op.drop_table("cities")
    op.drop_table("categories")
