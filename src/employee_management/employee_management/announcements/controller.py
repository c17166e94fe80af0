from __future__ import annotations

from flask import Blueprint, Flask, Response, request, stream_with_context

from ..common.http import current_user_id, json_body, login_required, ok, roles_required
from ..container import Container
from ..core.enums import Role
from ..notifications.push import sse_stream


def register(app: Flask, container: Container) -> None:
    bp = Blueprint("announcements", __name__, url_prefix="/api/announcements")
    service = container.announcement_service

    def _me():
        return container.user_service.get(current_user_id())

    @bp.route("", methods=["GET"])
    @login_required
    def list_mine():
        listing = service.list_for_user(
            _me(),
            type=request.args.get("type"),
            priority=request.args.get("priority"),
            status=request.args.get("status"),
            search=request.args.get("search"),
        )
        return ok({"announcements": listing.announcements, "stats": listing.stats})

    @bp.route("", methods=["POST"])
    @roles_required(Role.ADMIN, Role.HR)
    def create():
        announcement = service.create(_me(), json_body())
        return ok(announcement.to_dict(), message="Announcement created successfully", status=201)

    @bp.route("/admin", methods=["GET"])
    @roles_required(Role.ADMIN, Role.HR)
    def list_admin():
        listing = service.list_admin(
            _me(),
            type=request.args.get("type"),
            priority=request.args.get("priority"),
            target_type=request.args.get("target_type"),
            is_active=request.args.get("is_active"),
            search=request.args.get("search"),
        )
        return ok({"announcements": listing.announcements, "stats": listing.stats})

    @bp.route("/stream", methods=["GET"])
    @login_required
    def stream():
        user_id = current_user_id()
        return Response(
            stream_with_context(sse_stream(container.push_broadcaster, user_id)),
            mimetype="text/event-stream",
            headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
        )

    @bp.route("/<int:announcement_id>", methods=["GET"])
    @login_required
    def get_one(announcement_id: int):
        return ok(service.get(_me(), announcement_id))

    @bp.route("/<int:announcement_id>/read", methods=["POST"])
    @login_required
    def mark_read(announcement_id: int):
        service.mark_read(_me(), announcement_id)
        return ok(message="Announcement marked as read")

    @bp.route("/<int:announcement_id>/acknowledge", methods=["POST"])
    @login_required
    def acknowledge(announcement_id: int):
        service.acknowledge(_me(), announcement_id)
        return ok(message="Announcement acknowledged successfully")

    @bp.route("/<int:announcement_id>/engagement", methods=["GET"])
    @roles_required(Role.ADMIN, Role.HR)
    def engagement(announcement_id: int):
        return ok(service.engagement(_me(), announcement_id))

    @bp.route("/<int:announcement_id>", methods=["PUT", "PATCH"])
    @roles_required(Role.ADMIN, Role.HR)
    def update(announcement_id: int):
        announcement = service.update(_me(), announcement_id, json_body())
        return ok(announcement.to_dict(), message="Announcement updated successfully")

    @bp.route("/<int:announcement_id>", methods=["DELETE"])
    @roles_required(Role.ADMIN, Role.HR)
    def delete(announcement_id: int):
        service.delete(_me(), announcement_id)
        return ok(message="Announcement deleted successfully")

    app.register_blueprint(bp)
