from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import format_timestamp, now_local, parse_iso_date, parse_timestamp
from ..common.http import json_body, json_endpoint, ok
from ..common.validators import optional_int, parse_attendance_kind
from ..container import Container
from ..core.exceptions import ValidationError
from .model import AttendanceFilter, AttendanceLogView, AttendanceRecord


def record_to_json(r: AttendanceRecord) -> dict:
    return {
        "logId": r.log_id,
        "userId": r.member_id,
        "fullName": r.full_name,
        "eventId": r.event_id,
        "attendanceType": r.kind.value,
        "attendanceTime": format_timestamp(r.timestamp),
        "isLate": r.is_late,
    }


def log_to_json(v: AttendanceLogView) -> dict:
    out = record_to_json(v)  # type: ignore[arg-type]
    out.update(
        {
            "role": v.role,
            "eventName": v.event_name,
            "eventDate": v.event_date.isoformat() if v.event_date else None,
        }
    )
    return out


def filter_from_args(args) -> AttendanceFilter:
    on_date = None
    if args.get("date"):
        on_date = parse_iso_date(args["date"])
    elif "today" in args:
        on_date = now_local().date()

    kind = parse_attendance_kind(args.get("attendanceType")) if args.get("attendanceType") else None
    return AttendanceFilter(
        member_id=args.get("userId") or None,
        event_id=optional_int(args.get("eventId"), "eventId"),
        on_date=on_date,
        kind=kind,
        limit=optional_int(args.get("limit"), "limit"),
    )


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    @app.route("/api/attendance", methods=["GET"], endpoint="api_attendance_list")
    @json_endpoint
    def api_attendance_list():
        logs = service.list_logs(filter_from_args(request.args))
        return ok([log_to_json(v) for v in logs])

    @app.route("/api/attendance", methods=["POST"], endpoint="api_attendance_create")
    @json_endpoint
    def api_attendance_create():
        data = json_body()
        missing = [k for k in ("userId", "fullName") if not str(data.get(k) or "").strip()]
        if missing:
            raise ValidationError("Missing required fields: " + ", ".join(missing))
        time_value = data.get("time")

        record = service.record(
            member_id=data["userId"],
            full_name=data["fullName"],
            kind=parse_attendance_kind(data.get("attendanceType")),
            event_id=optional_int(data.get("eventId"), "eventId"),
            at=parse_timestamp(time_value) if time_value else None,
        )
        return ok(record_to_json(record), message="Attendance logged successfully", status=201)
