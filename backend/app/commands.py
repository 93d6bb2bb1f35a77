"""
commands.py — Flask CLI commands.

    flask --app "backend.app:create_app('development')" seed-regions

seed-regions inserts the default categories and cities that registration,
profiles and events refer to. Existing names are left alone, so the command
can be re-run after every deploy.
"""

from __future__ import annotations

import click
from flask import Flask
from flask.cli import with_appcontext

from backend.app.extensions import db
from backend.app.services import region_service


@click.command("seed-regions")
@with_appcontext
def seed_regions_command() -> None:
    """Insert the default categories and cities (idempotent)."""
    result = region_service.seed_regions(session=db.session)
    db.session.commit()
    click.echo(
        f"Seeded regions: {result['categories_created']} categories, "
        f"{result['cities_created']} cities created."
    )


def register_commands(app: Flask) -> None:
    app.cli.add_command(seed_regions_command)
