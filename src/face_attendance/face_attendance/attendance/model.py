from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceKind


@dataclass(frozen=True)
class AttendanceRecord:
    """Thực thể miền (domain): Bản ghi chấm công (bất biến sau khi tạo)."""

    log_id: int
    member_id: str
    full_name: str
    event_id: Optional[int]
    kind: AttendanceKind
    timestamp: datetime
    is_late: bool


@dataclass(frozen=True)
class AttendanceLogView:
    """Read-model phục vụ danh sách/báo cáo (join với users + events)."""

    log_id: int
    member_id: str
    full_name: str
    event_id: Optional[int]
    kind: AttendanceKind
    timestamp: datetime
    is_late: bool
    role: Optional[str] = None
    event_name: Optional[str] = None
    event_date: Optional[date] = None


@dataclass(frozen=True)
class AttendanceFilter:
    member_id: Optional[str] = None
    event_id: Optional[int] = None
    on_date: Optional[date] = None
    kind: Optional[AttendanceKind] = None
    limit: Optional[int] = None


def dedup_key(*, member_id: str, kind: AttendanceKind, event_id: Optional[int], timestamp: datetime) -> str:
    """Uniqueness key of a record, fixed at insert time.

    One record per (member, event, kind) when an event is set, otherwise one
    per (member, kind, calendar day).
    """

    if event_id is not None:
        return f"event:{int(event_id)}:{member_id}:{kind.value}"
    return f"day:{timestamp.date().isoformat()}:{member_id}:{kind.value}"


def duplicate_message(event_id: Optional[int]) -> str:
    if event_id is not None:
        return "Attendance already marked for this event and type"
    return "Attendance already marked for today"
