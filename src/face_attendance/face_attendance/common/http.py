from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Optional

from flask import jsonify, request

from ..core.exceptions import (
    ConflictError,
    DomainError,
    NotFoundError,
    ResourceUnavailableError,
    TransientStoreError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Order matters: first match wins.
STATUS_BY_ERROR = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (ConflictError, 409),
    (ResourceUnavailableError, 503),
    (TransientStoreError, 503),
)


def ok(data: Any = None, *, message: Optional[str] = None, status: int = 200):
    body: dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    return jsonify(body), status


def fail(error: str, status: int):
    return jsonify({"success": False, "error": error}), status


def status_for(exc: DomainError) -> int:
    for error_type, status in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 400


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def json_endpoint(view):
    """Translate the domain error taxonomy to the JSON envelope + HTTP status."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except DomainError as e:
            return fail(str(e), status_for(e))
        except Exception:
            logger.exception("Unhandled error in %s", request.path)
            return fail("Internal server error", 500)

    return wrapper
