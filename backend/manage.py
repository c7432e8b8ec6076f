"""Management helpers for the user registry.

Wraps Flask-Migrate so the schema can be applied without invoking the Flask
CLI directly, and exposes a few operator commands backed by the users
repository.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import click
import structlog
from app import app
from flask_migrate import migrate as flask_migrate_migrate  # type: ignore[import]
from flask_migrate import upgrade as flask_migrate_upgrade  # type: ignore[import]
from models import UserRole
from repositories import users_repo

logger = structlog.get_logger("registry.manage")
MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"


@click.group()
def cli():
    """Manage the user registry database."""


@cli.command("migrate")
@click.option("--message", "-m", default="auto", help="Migration message")
def migrate_command(message: str):
    """Generate a new migration based on current models."""

    with app.app_context():
        flask_migrate_migrate(directory=str(MIGRATIONS_DIR), message=message or "auto")
    click.echo("Migration script generated in migrations/versions.")


@cli.command("upgrade")
@click.option("--revision", default="head", help="Target revision (default: head)")
def upgrade_command(revision: str):
    """Apply migrations up to the selected revision."""

    with app.app_context():
        flask_migrate_upgrade(directory=str(MIGRATIONS_DIR), revision=revision)
    logger.info("migrations.upgraded", revision=revision)
    click.echo(f"Database upgraded to revision {revision}.")


@cli.command("count-users")
def count_users_command():
    """Print the number of registered users."""

    with app.app_context():
        click.echo(str(users_repo.get_user_count()))


@cli.command("list-users")
@click.option("--page", type=int, default=1, show_default=True)
@click.option("--limit", type=click.IntRange(min=0), default=20, show_default=True)
def list_users_command(page: int, limit: int):
    """List users newest first, one JSON document per line."""

    with app.app_context():
        users = users_repo.get_users(page, limit)
    for user in users:
        click.echo(json.dumps(user.public_dict()))


@cli.command("set-role")
@click.option("--user-id", help="Target user id.")
@click.option("--name", help="Target user name.")
@click.option("--email", help="Target user email.")
@click.argument("role", type=click.Choice([member.value for member in UserRole]))
def set_role_command(
    user_id: Optional[str], name: Optional[str], email: Optional[str], role: str
):
    """Change a user's role. The first of --user-id, --name, --email given wins."""

    if not (user_id or name or email):
        raise click.ClickException("Specify --user-id, --name or --email.")

    with app.app_context():
        try:
            user = users_repo.get_user(user_id=user_id, name=name, email=email)
        except ValueError as exc:
            raise click.ClickException(str(exc)) from exc
        if user is None:
            raise click.ClickException("User not found.")

        updated = users_repo.update_user_role(user.id, role)

    logger.info(
        "users.role_updated",
        user_id=str(updated.id),
        previous_role=user.role.value,
        role=updated.role.value,
    )
    click.echo(f"User '{updated.name}' (id={updated.id}) now has role '{updated.role.value}'.")


if __name__ == "__main__":
    cli()
