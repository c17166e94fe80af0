from __future__ import annotations

from datetime import date

from flask import Blueprint, Flask, request

from ..common.datetime_utils import parse_iso_date
from ..common.http import current_user_id, json_body, login_required, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    bp = Blueprint("worksheets", __name__, url_prefix="/api/worksheets")
    service = container.worksheet_service

    @bp.route("", methods=["POST"])
    @login_required
    def submit():
        body = json_body()
        work_date = parse_iso_date(body["date"]) if body.get("date") else None
        worksheet = service.submit(current_user_id(), work_date=work_date, time_slots=body.get("time_slots"))
        return ok(worksheet.to_dict(), message="Worksheet submitted", status=201)

    @bp.route("", methods=["GET"])
    @login_required
    def list_mine():
        today = date.today()
        start = parse_iso_date(request.args.get("start") or today.replace(day=1).isoformat())
        end = parse_iso_date(request.args.get("end") or today.isoformat())
        items = service.list_for_user(current_user_id(), start=start, end=end)
        return ok({"worksheets": [w.to_dict() for w in items]})

    app.register_blueprint(bp)
