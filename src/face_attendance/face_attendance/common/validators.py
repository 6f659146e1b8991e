from __future__ import annotations

import re

from ..core.constants import MEMBER_ID_PATTERN
from ..core.enums import AttendanceKind
from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_member_id(value: str) -> str:
    value = require_non_empty(value, "ID number")
    if not re.match(MEMBER_ID_PATTERN, value):
        raise ValidationError("ID number must look like 1234-5678")
    return value


def optional_int(value, field_name: str):
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")


def parse_attendance_kind(value, default: AttendanceKind = AttendanceKind.CHECK_IN) -> AttendanceKind:
    if value is None or value == "":
        return default
    try:
        return AttendanceKind(str(value).strip())
    except ValueError:
        raise ValidationError("Invalid attendance type. Must be time_in or time_out")
