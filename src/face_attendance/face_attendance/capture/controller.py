from __future__ import annotations

from flask import Flask, request

from ..attendance.controller import record_to_json
from ..common.http import json_body, json_endpoint, ok
from ..common.validators import optional_int, parse_attendance_kind, require_non_empty
from ..container import Container
from .frames import decode_image
from .session import CaptureSnapshot

DEFAULT_CONTEXT = "default"


def snapshot_to_json(s: CaptureSnapshot) -> dict:
    return {
        "state": s.state.value,
        "status": s.status,
        "source": s.source,
        "attendanceType": s.kind.value,
        "eventId": s.event_id,
        "userId": s.member_id,
        "fullName": s.full_name,
        "awaitingWrite": s.awaiting_write,
        "error": s.error,
        "record": record_to_json(s.record) if s.record else None,
    }


def _context(data: dict) -> str:
    return str(data.get("context") or DEFAULT_CONTEXT)


def register(app: Flask, container: Container) -> None:
    manager = container.capture_manager

    @app.route("/api/capture/start", methods=["POST"], endpoint="api_capture_start")
    @json_endpoint
    def api_capture_start():
        data = json_body()
        source = data.get("source")
        source = require_non_empty(str(source) if source is not None else "", "source")
        snap = manager.start(
            _context(data),
            source=source,
            event_id=optional_int(data.get("eventId"), "eventId"),
            kind=parse_attendance_kind(data.get("attendanceType")),
        )
        return ok(snapshot_to_json(snap))

    @app.route("/api/capture/frame", methods=["POST"], endpoint="api_capture_frame")
    @json_endpoint
    def api_capture_frame():
        data = json_body()
        frame = decode_image(data.get("image"))
        return ok(snapshot_to_json(manager.push_frame(_context(data), frame)))

    @app.route("/api/capture/confirm", methods=["POST"], endpoint="api_capture_confirm")
    @json_endpoint
    def api_capture_confirm():
        return ok(snapshot_to_json(manager.confirm(_context(json_body()))))

    @app.route("/api/capture/submit", methods=["POST"], endpoint="api_capture_submit")
    @json_endpoint
    def api_capture_submit():
        snap = manager.submit(_context(json_body()))
        return ok(snapshot_to_json(snap), message="Attendance logged successfully")

    @app.route("/api/capture/cancel", methods=["POST"], endpoint="api_capture_cancel")
    @json_endpoint
    def api_capture_cancel():
        return ok(snapshot_to_json(manager.cancel(_context(json_body()))))

    @app.route("/api/capture/status", methods=["GET"], endpoint="api_capture_status")
    @json_endpoint
    def api_capture_status():
        return ok(snapshot_to_json(manager.status(_context(request.args))))
