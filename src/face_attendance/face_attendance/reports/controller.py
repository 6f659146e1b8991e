from __future__ import annotations

from flask import Flask, request

from ..attendance.controller import log_to_json
from ..common.datetime_utils import parse_iso_date
from ..common.http import json_endpoint, ok
from ..common.validators import optional_int
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.report_service

    @app.route("/api/reports/dashboard", methods=["GET"], endpoint="api_reports_dashboard")
    @json_endpoint
    def api_reports_dashboard():
        stats = service.dashboard(event_id=optional_int(request.args.get("eventId"), "eventId"))
        return ok(
            {
                "totalMembers": stats.total_members,
                "present": stats.present,
                "absent": stats.absent,
                "late": stats.late,
                "date": stats.on_date.isoformat(),
                "eventId": stats.event_id,
            }
        )

    @app.route("/api/reports/attendance", methods=["GET"], endpoint="api_reports_attendance")
    @json_endpoint
    def api_reports_attendance():
        args = request.args
        rows = service.attendance_report(
            event_id=optional_int(args.get("eventId"), "eventId"),
            on_date=parse_iso_date(args["date"]) if args.get("date") else None,
            search=args.get("search"),
            sort=args.get("sort") or "time",
            direction=args.get("direction") or "desc",
        )
        out = []
        for row in rows:
            item = log_to_json(row.log)
            item["status"] = row.status
            out.append(item)
        return ok(out)
