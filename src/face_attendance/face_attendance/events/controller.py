from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import format_timestamp, parse_clock_time, parse_iso_date
from ..common.http import json_body, json_endpoint, ok
from ..common.validators import optional_int
from ..container import Container
from ..core.exceptions import ValidationError
from .model import Event

_REQUIRED = ("eventName", "eventDate", "timeInStart", "timeInEnd", "timeOutStart", "timeOutEnd")


def event_to_json(e: Event) -> dict:
    return {
        "eventId": e.event_id,
        "eventName": e.event_name,
        "eventDate": e.event_date.isoformat(),
        "timeInStart": e.time_in_window.start.strftime("%H:%M:%S"),
        "timeInEnd": e.time_in_window.end.strftime("%H:%M:%S"),
        "timeOutStart": e.time_out_window.start.strftime("%H:%M:%S"),
        "timeOutEnd": e.time_out_window.end.strftime("%H:%M:%S"),
        "isActive": e.is_active,
        "createdAt": format_timestamp(e.created_at) if e.created_at else None,
        "updatedAt": format_timestamp(e.updated_at) if e.updated_at else None,
    }


def _optional_time(data: dict, key: str):
    value = data.get(key)
    return parse_clock_time(value) if value not in (None, "") else None


def _optional_bool(value):
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def register(app: Flask, container: Container) -> None:
    service = container.event_service

    @app.route("/api/events", methods=["GET"], endpoint="api_events_get")
    @json_endpoint
    def api_events_get():
        event_id = optional_int(request.args.get("id"), "id")
        if event_id is not None:
            return ok(event_to_json(service.get(event_id)))
        active_only = "active" in request.args
        return ok([event_to_json(e) for e in service.list(active_only=active_only)])

    @app.route("/api/events", methods=["POST"], endpoint="api_events_create")
    @json_endpoint
    def api_events_create():
        data = json_body()
        missing = [k for k in _REQUIRED if data.get(k) in (None, "")]
        if missing:
            raise ValidationError("Missing required fields: " + ", ".join(missing))

        is_active = _optional_bool(data.get("isActive"))
        event = service.create(
            event_name=data["eventName"],
            event_date=parse_iso_date(data["eventDate"]),
            time_in_start=parse_clock_time(data["timeInStart"]),
            time_in_end=parse_clock_time(data["timeInEnd"]),
            time_out_start=parse_clock_time(data["timeOutStart"]),
            time_out_end=parse_clock_time(data["timeOutEnd"]),
            is_active=True if is_active is None else is_active,
        )
        return ok({"eventId": event.event_id}, message="Event created successfully", status=201)

    @app.route("/api/events", methods=["PUT"], endpoint="api_events_update")
    @json_endpoint
    def api_events_update():
        data = json_body()
        event_id = optional_int(data.get("eventId"), "eventId")
        if event_id is None:
            raise ValidationError("Event ID is required")

        event_date = data.get("eventDate")
        event = service.update(
            event_id,
            event_name=data.get("eventName"),
            event_date=parse_iso_date(event_date) if event_date else None,
            time_in_start=_optional_time(data, "timeInStart"),
            time_in_end=_optional_time(data, "timeInEnd"),
            time_out_start=_optional_time(data, "timeOutStart"),
            time_out_end=_optional_time(data, "timeOutEnd"),
            is_active=_optional_bool(data.get("isActive")),
        )
        return ok({"eventId": event.event_id}, message="Event updated successfully")

    @app.route("/api/events", methods=["DELETE"], endpoint="api_events_delete")
    @json_endpoint
    def api_events_delete():
        event_id = optional_int(request.args.get("id"), "id")
        if event_id is None:
            raise ValidationError("Event ID is required")
        service.delete(event_id)
        return ok({"eventId": event_id}, message="Event deleted successfully")
