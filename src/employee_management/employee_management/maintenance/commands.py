"""Administrative maintenance commands, exposed as ``flask ems <command>``.

Each command takes its parameters explicitly and goes through the same services as the HTTP API.
"""

from __future__ import annotations

from datetime import date

import click
from flask import Flask

from ..common.datetime_utils import parse_iso_date
from ..container import Container
from ..core.exceptions import ValidationError
from ..database.bootstrap import SCHEMA_PATH, apply_schema, ensure_demo_users, list_tables


def register(app: Flask, container: Container) -> None:
    group = click.Group("ems", help="Employee Management System maintenance commands.")

    @group.command("init-db")
    @click.option("--schema", "schema_path", type=click.Path(exists=True, dir_okay=False), default=str(SCHEMA_PATH))
    def init_db(schema_path: str) -> None:
        """Create the database and apply schema.sql (idempotent)."""
        apply_schema(container.conn, schema_path=schema_path)
        click.echo(f"OK: schema applied (tables={len(list_tables(container.conn))})")

    @group.command("seed-demo")
    def seed_demo() -> None:
        """Upsert the demo directory users."""
        count = ensure_demo_users(container.conn)
        click.echo(f"OK: {count} demo users ready")

    @group.command("clear-attendance")
    @click.option("--date", "day", required=True, help="Day to clear, YYYY-MM-DD.")
    @click.option("--yes", is_flag=True, help="Skip the confirmation prompt.")
    def clear_attendance(day: str, yes: bool) -> None:
        """Delete every attendance record of one day."""
        try:
            work_date: date = parse_iso_date(day)
        except ValidationError as e:
            raise click.BadParameter(str(e), param_hint="--date")
        if not yes:
            click.confirm(f"Delete all attendance records for {work_date}?", abort=True)
        deleted = container.attendance_service.clear_day(work_date)
        click.echo(f"OK: deleted {deleted} attendance records for {work_date}")

    app.cli.add_command(group)
