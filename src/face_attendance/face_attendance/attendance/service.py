from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_local
from ..core.enums import AttendanceKind
from ..core.exceptions import NotFoundError, ValidationError
from ..events.repository import EventRepository
from ..members.repository import MemberRepository
from .factory import LatenessStrategyFactory
from .lateness import compute_is_late
from .model import AttendanceFilter, AttendanceLogView, AttendanceRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        members: MemberRepository,
        events: EventRepository,
        *,
        strategy_factory: LatenessStrategyFactory | None = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._members = members
        self._events = events
        self._factory = strategy_factory or LatenessStrategyFactory()
        self._clock = clock

    def record(
        self,
        *,
        member_id: str,
        kind: AttendanceKind = AttendanceKind.CHECK_IN,
        event_id: Optional[int] = None,
        at: Optional[datetime] = None,
        full_name: Optional[str] = None,
    ) -> AttendanceRecord:
        """Write one attendance record; the store rejects duplicates with ConflictError."""

        if not member_id or not str(member_id).strip():
            raise ValidationError("userId is required")
        member_id = str(member_id).strip()
        # Stored as DATETIME; lateness and the dedup day use the stored value.
        at = (at or self._clock()).replace(microsecond=0)

        member = self._members.get_by_id(member_id)
        if not member:
            raise NotFoundError("Member not found")

        event = None
        if event_id is not None:
            event = self._events.get_by_id(int(event_id))
            if not event:
                raise NotFoundError("Event not found")

        is_late = compute_is_late(kind, at, event, factory=self._factory)

        snapshot_name = full_name.strip() if isinstance(full_name, str) and full_name.strip() else member.full_name
        record = self._attendance.create(
            member_id=member.member_id,
            full_name=snapshot_name,
            event_id=event.event_id if event else None,
            kind=kind,
            timestamp=at,
            is_late=is_late,
        )
        logger.info(
            "Attendance %s logged for %s (event=%s, late=%s)",
            kind.value,
            member.member_id,
            record.event_id,
            record.is_late,
        )
        return record

    def list_logs(self, flt: AttendanceFilter | None = None) -> Sequence[AttendanceLogView]:
        return self._attendance.list_logs(flt or AttendanceFilter())
