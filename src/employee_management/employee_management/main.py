from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .common.http import ok, register_error_handlers
from .container import Container, build_container
from .database.bootstrap import apply_schema, ensure_demo_users, list_tables

from .announcements.controller import register as register_announcements
from .attendance.controller import register as register_attendance
from .leaderboard.controller import register as register_leaderboard
from .maintenance.commands import register as register_maintenance
from .users.controller import register as register_users
from .worksheets.controller import register as register_worksheets

logger = logging.getLogger(__name__)


def create_app(container: Optional[Container] = None, *, settings_module: Optional[str] = None) -> Flask:
    """Build the Flask app.

    When ``container`` is given (tests, embedding) no database bootstrap runs.
    """
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )
        container = build_container(db_config=db_config, settings=settings)

        if getattr(settings, "AUTO_INIT_DB", False):
            apply_schema(container.conn)
            logger.info("schema ready (tables=%d)", len(list_tables(container.conn)))
        if getattr(settings, "AUTO_SEED_DB", False):
            ensure_demo_users(container.conn)
            logger.info("demo users ready")

    app.extensions["ems_container"] = container

    register_error_handlers(app)

    @app.route("/api/health", methods=["GET"])
    def health():
        return ok({"status": "ok"})

    register_users(app, container)
    register_attendance(app, container)
    register_announcements(app, container)
    register_worksheets(app, container)
    register_leaderboard(app, container)
    register_maintenance(app, container)

    return app
