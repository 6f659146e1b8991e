from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import format_timestamp
from ..common.http import json_body, json_endpoint, ok
from ..container import Container
from ..core.exceptions import ValidationError
from .model import Member


def member_to_json(m: Member) -> dict:
    return {
        "id": m.member_id,
        "fullName": m.full_name,
        "role": m.role,
        "descriptor": list(m.face_descriptor) if m.face_descriptor is not None else None,
        "photo": m.photo,
        "createdAt": format_timestamp(m.created_at) if m.created_at else None,
        "updatedAt": format_timestamp(m.updated_at) if m.updated_at else None,
    }


def register(app: Flask, container: Container) -> None:
    service = container.member_service

    @app.route("/api/users", methods=["GET"], endpoint="api_users_get")
    @json_endpoint
    def api_users_get():
        member_id = request.args.get("id")
        if member_id:
            return ok(member_to_json(service.get(member_id)))
        return ok([member_to_json(m) for m in service.list()])

    @app.route("/api/users", methods=["POST"], endpoint="api_users_create")
    @json_endpoint
    def api_users_create():
        data = json_body()
        member = service.enroll(
            member_id=data.get("id"),
            full_name=data.get("fullName"),
            role=data.get("role"),
            photo=data.get("photo"),
            descriptor=data.get("descriptor"),
        )
        return ok({"id": member.member_id}, message="User added successfully", status=201)

    @app.route("/api/users", methods=["PUT"], endpoint="api_users_update")
    @json_endpoint
    def api_users_update():
        data = json_body()
        member_id = data.get("id")
        if not member_id:
            raise ValidationError("User ID is required")
        member = service.update(
            member_id,
            full_name=data.get("fullName"),
            role=data.get("role"),
            descriptor=data.get("descriptor"),
            photo=data.get("photo"),
        )
        return ok({"id": member.member_id}, message="User updated successfully")

    @app.route("/api/users", methods=["DELETE"], endpoint="api_users_delete")
    @json_endpoint
    def api_users_delete():
        member_id = request.args.get("id")
        if not member_id:
            raise ValidationError("User ID is required")
        service.delete(member_id)
        return ok({"id": member_id}, message="User deleted successfully")
