from __future__ import annotations

from datetime import timedelta

from flask import Blueprint, Flask, session

from ..common.http import current_user_id, json_body, login_required, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    bp = Blueprint("auth", __name__, url_prefix="/api/auth")
    app.permanent_session_lifetime = timedelta(days=7)

    @bp.route("/login", methods=["POST"])
    def login():
        body = json_body()
        s_user = container.auth_service.authenticate(str(body.get("username", "")), str(body.get("password", "")))

        session.clear()
        session.permanent = bool(body.get("remember_me"))

        session["user_id"] = s_user.user_id
        session["name"] = s_user.full_name
        session["role"] = s_user.role
        session["department"] = s_user.department
        return ok(
            {
                "user_id": s_user.user_id,
                "full_name": s_user.full_name,
                "role": s_user.role,
                "department": s_user.department,
            },
            message="Logged in",
        )

    @bp.route("/logout", methods=["POST"])
    def logout():
        session.clear()
        return ok(message="Logged out")

    @bp.route("/me", methods=["GET"])
    @login_required
    def me():
        return ok(container.user_service.get(current_user_id()).to_public_dict())

    app.register_blueprint(bp)
