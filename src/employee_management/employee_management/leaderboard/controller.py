from __future__ import annotations

from flask import Blueprint, Flask

from ..common.http import login_required, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    bp = Blueprint("leaderboard", __name__, url_prefix="/api/leaderboard")

    @bp.route("", methods=["GET"])
    @login_required
    def get_leaderboard():
        return ok(container.leaderboard_service.build().to_dict())

    app.register_blueprint(bp)
