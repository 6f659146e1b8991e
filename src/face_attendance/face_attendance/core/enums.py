from __future__ import annotations

from enum import Enum


class AttendanceKind(str, Enum):
    """Loại chấm công; giá trị là dạng lưu trong CSDL và trên API."""

    CHECK_IN = "time_in"
    CHECK_OUT = "time_out"


class CaptureState(str, Enum):
    """Trạng thái của một phiên quét QR + xác thực khuôn mặt."""

    IDLE = "IDLE"
    SCANNING_CODE = "SCANNING_CODE"
    IDENTITY_RESOLVED = "IDENTITY_RESOLVED"
    VERIFYING_FACE = "VERIFYING_FACE"
    COMPLETED = "COMPLETED"
    UNKNOWN_IDENTITY = "UNKNOWN_IDENTITY"


TERMINAL_STATES = frozenset({CaptureState.COMPLETED, CaptureState.UNKNOWN_IDENTITY})
