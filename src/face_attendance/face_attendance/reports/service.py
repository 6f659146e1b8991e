from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Optional

from ..attendance.model import AttendanceFilter, AttendanceLogView
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import now_local
from ..core.enums import AttendanceKind
from ..core.exceptions import ValidationError
from ..members.repository import MemberRepository

STATUS_LATE = "Late"
STATUS_ON_TIME = "On Time"
NO_EVENT_LABEL = "N/A"

SORT_COLUMNS = ("fullName", "userId", "role", "eventName", "attendanceType", "status", "time")


@dataclass(frozen=True)
class DashboardStats:
    total_members: int
    present: int
    absent: int
    late: int
    on_date: date
    event_id: Optional[int] = None


@dataclass(frozen=True)
class ReportRow:
    log: AttendanceLogView
    status: str


def status_label(log: AttendanceLogView) -> str:
    """Only a late check-in is shown as late; early check-outs read "On Time"."""

    if log.is_late and log.kind == AttendanceKind.CHECK_IN:
        return STATUS_LATE
    return STATUS_ON_TIME


def _sort_key(column: str):
    if column == "fullName":
        return lambda v: (v.full_name or "").lower()
    if column == "userId":
        return lambda v: v.member_id or ""
    if column == "role":
        return lambda v: (v.role or "").lower()
    if column == "eventName":
        return lambda v: (v.event_name or NO_EVENT_LABEL).lower()
    if column == "attendanceType":
        return lambda v: v.kind.value
    if column == "status":
        return lambda v: 1 if v.is_late else 0
    return lambda v: v.timestamp


class ReportService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        members: MemberRepository,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._members = members
        self._clock = clock

    def dashboard(self, *, event_id: Optional[int] = None) -> DashboardStats:
        """Today's figures; present and late count distinct members with a check-in."""

        today = self._clock().date()
        total = len(self._members.list_all())
        check_ins = self._attendance.list_logs(
            AttendanceFilter(event_id=event_id, on_date=today, kind=AttendanceKind.CHECK_IN)
        )

        present = {v.member_id for v in check_ins}
        late = {v.member_id for v in check_ins if v.is_late}
        return DashboardStats(
            total_members=total,
            present=len(present),
            absent=max(total - len(present), 0),
            late=len(late),
            on_date=today,
            event_id=event_id,
        )

    def attendance_report(
        self,
        *,
        event_id: Optional[int] = None,
        on_date: Optional[date] = None,
        search: Optional[str] = None,
        sort: str = "time",
        direction: str = "desc",
    ) -> list[ReportRow]:
        if sort not in SORT_COLUMNS:
            raise ValidationError(f"Cannot sort by {sort!r}")
        direction = (direction or "desc").lower()
        if direction not in {"asc", "desc"}:
            raise ValidationError("Sort direction must be asc or desc")

        # event > date > everything; with an event the date narrows further
        if event_id is not None:
            flt = AttendanceFilter(event_id=event_id, on_date=on_date)
        elif on_date is not None:
            flt = AttendanceFilter(on_date=on_date)
        else:
            flt = AttendanceFilter()
        logs = list(self._attendance.list_logs(flt))

        term = (search or "").strip().lower()
        if term:
            logs = [v for v in logs if term in (v.full_name or "").lower() or term in (v.member_id or "").lower()]

        logs.sort(key=_sort_key(sort), reverse=direction == "desc")
        return [ReportRow(log=v, status=status_label(v)) for v in logs]
