from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceKind
from .model import AttendanceFilter, AttendanceLogView, AttendanceRecord


class AttendanceRepository(Protocol):
    def create(
        self,
        *,
        member_id: str,
        full_name: str,
        event_id: Optional[int],
        kind: AttendanceKind,
        timestamp: datetime,
        is_late: bool,
    ) -> AttendanceRecord:
        """Insert atomically; raises ConflictError when the uniqueness key is taken."""

        raise NotImplementedError

    def list_logs(self, flt: AttendanceFilter) -> Sequence[AttendanceLogView]:
        """Newest first."""

        raise NotImplementedError
