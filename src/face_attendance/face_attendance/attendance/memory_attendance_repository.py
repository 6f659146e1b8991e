from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import AttendanceKind
from ..core.exceptions import ConflictError, NotFoundError
from ..database.memory import MemoryDatabase
from .model import AttendanceFilter, AttendanceLogView, AttendanceRecord, dedup_key, duplicate_message
from .repository import AttendanceRepository


class MemoryAttendanceRepository(AttendanceRepository):
    def __init__(self, db: MemoryDatabase):
        self._db = db

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
        key = dedup_key(member_id=member_id, kind=kind, event_id=event_id, timestamp=timestamp)

        # Check-and-insert under one lock, the in-memory counterpart of the UNIQUE key.
        with self._db.lock:
            if member_id not in self._db.members:
                raise NotFoundError("Member not found")
            if event_id is not None and int(event_id) not in self._db.events:
                raise NotFoundError("Event not found")
            if key in self._db.dedup_keys:
                raise ConflictError(duplicate_message(event_id))

            log_id = self._db.next_log_id()
            self._db.attendance[log_id] = {
                "log_id": log_id,
                "user_id": member_id,
                "full_name": full_name,
                "event_id": int(event_id) if event_id is not None else None,
                "attendance_type": kind.value,
                "attendance_time": timestamp,
                "is_late": bool(is_late),
                "dedup_key": key,
            }
            self._db.dedup_keys[key] = log_id

        return AttendanceRecord(
            log_id=log_id,
            member_id=member_id,
            full_name=full_name,
            event_id=int(event_id) if event_id is not None else None,
            kind=kind,
            timestamp=timestamp,
            is_late=bool(is_late),
        )

    def list_logs(self, flt: AttendanceFilter) -> Sequence[AttendanceLogView]:
        with self._db.lock:
            out: list[AttendanceLogView] = []
            for r in self._db.attendance.values():
                if flt.member_id is not None and r["user_id"] != flt.member_id:
                    continue
                if flt.event_id is not None and r["event_id"] != int(flt.event_id):
                    continue
                if flt.on_date is not None and r["attendance_time"].date() != flt.on_date:
                    continue
                if flt.kind is not None and r["attendance_type"] != flt.kind.value:
                    continue

                member = self._db.members.get(r["user_id"])
                event = self._db.events.get(r["event_id"]) if r["event_id"] is not None else None
                out.append(
                    AttendanceLogView(
                        log_id=r["log_id"],
                        member_id=r["user_id"],
                        full_name=r["full_name"],
                        event_id=r["event_id"],
                        kind=AttendanceKind(r["attendance_type"]),
                        timestamp=r["attendance_time"],
                        is_late=r["is_late"],
                        role=member["role"] if member else None,
                        event_name=event["event_name"] if event else None,
                        event_date=event["event_date"] if event else None,
                    )
                )

        out.sort(key=lambda v: (v.timestamp, v.log_id), reverse=True)
        if flt.limit is not None:
            out = out[: max(int(flt.limit), 0)]
        return out
