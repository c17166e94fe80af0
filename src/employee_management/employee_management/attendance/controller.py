from __future__ import annotations

from dataclasses import asdict
from datetime import date

from flask import Blueprint, Flask, request, session

from ..common.datetime_utils import parse_iso_date, parse_iso_datetime
from ..common.http import current_user_id, json_body, login_required, ok, roles_required
from ..core.enums import MANAGER_ROLES, Role
from ..core.exceptions import AuthorizationError, ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    bp = Blueprint("attendance", __name__, url_prefix="/api/attendance")
    service = container.attendance_service

    def _target_user_id() -> int:
        """Admin/HR may look at another employee via ?employee_id=; everyone else sees themselves."""
        employee_id = request.args.get("employee_id")
        if not employee_id:
            return current_user_id()
        if session.get("role") not in MANAGER_ROLES:
            raise AuthorizationError("Not authorized to view this employee's attendance")
        try:
            return int(employee_id)
        except ValueError:
            raise ValidationError("employee_id must be a number")

    @bp.route("/clock-in", methods=["POST"])
    @login_required
    def clock_in():
        body = json_body()
        record = service.clock_in(current_user_id(), location=body.get("location"), notes=body.get("notes"))
        return ok(record.to_dict(), message="Clocked in successfully", status=201)

    @bp.route("/break/start", methods=["POST"])
    @login_required
    def start_break():
        body = json_body()
        record = service.start_break(current_user_id(), reason=body.get("reason"))
        return ok(record.to_dict(), message="Break started successfully")

    @bp.route("/break/end", methods=["POST"])
    @login_required
    def end_break():
        record = service.end_break(current_user_id())
        return ok(record.to_dict(), message="Break ended successfully")

    @bp.route("/clock-out", methods=["POST"])
    @login_required
    def clock_out():
        body = json_body()
        record = service.clock_out(current_user_id(), notes=body.get("notes"))
        return ok(record.to_dict(), message="Clocked out successfully")

    @bp.route("/today", methods=["GET"])
    @login_required
    def today():
        record = service.get_today_record(current_user_id())
        return ok({"attendance": record.to_dict() if record else None})

    @bp.route("/history", methods=["GET"])
    @login_required
    def history():
        today_ = date.today()
        start_s = request.args.get("start") or today_.replace(day=1).isoformat()
        end_s = request.args.get("end") or today_.isoformat()
        records = service.get_history(_target_user_id(), start=parse_iso_date(start_s), end=parse_iso_date(end_s))
        return ok({"records": [r.to_dict() for r in records], "count": len(records)})

    @bp.route("/stats", methods=["GET"])
    @login_required
    def stats():
        try:
            period = int(request.args.get("period", "30"))
        except ValueError:
            raise ValidationError("period must be a number of days")
        data = service.get_stats(_target_user_id(), period_days=period)
        return ok(asdict(data))

    @bp.route("/<int:attendance_id>", methods=["PATCH"])
    @roles_required(Role.ADMIN, Role.HR)
    def correct(attendance_id: int):
        body = json_body()
        actor = container.user_service.get(current_user_id())
        record = service.admin_correct(
            actor,
            attendance_id,
            clock_in=parse_iso_datetime(body.get("clock_in")),
            clock_out=parse_iso_datetime(body.get("clock_out")),
            status=body.get("status"),
            notes=body.get("notes"),
        )
        return ok(record.to_dict(), message="Attendance updated")

    app.register_blueprint(bp)
