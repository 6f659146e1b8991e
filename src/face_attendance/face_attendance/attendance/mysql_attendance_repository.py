from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

import mysql.connector

from ..core.enums import AttendanceKind
from ..core.exceptions import ConflictError, NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import ER_DUP_ENTRY, ER_NO_REFERENCED_ROW, db_cursor, fetchall
from .model import AttendanceFilter, AttendanceLogView, AttendanceRecord, dedup_key, duplicate_message
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_logs(user_id, full_name, event_id, attendance_type,
                                                attendance_time, is_late, dedup_key)
                    VALUES(%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (member_id, full_name, event_id, kind.value, timestamp, 1 if is_late else 0, key),
                )
                log_id = int(cur.lastrowid)
        except mysql.connector.IntegrityError as e:
            if e.errno == ER_DUP_ENTRY:
                raise ConflictError(duplicate_message(event_id)) from e
            if e.errno == ER_NO_REFERENCED_ROW:
                raise NotFoundError("Member or event not found") from e
            raise

        return AttendanceRecord(
            log_id=log_id,
            member_id=member_id,
            full_name=full_name,
            event_id=event_id,
            kind=kind,
            timestamp=timestamp,
            is_late=bool(is_late),
        )

    def list_logs(self, flt: AttendanceFilter) -> Sequence[AttendanceLogView]:
        clauses: list[str] = []
        params: list[object] = []

        if flt.member_id is not None:
            clauses.append("al.user_id=%s")
            params.append(flt.member_id)
        if flt.event_id is not None:
            clauses.append("al.event_id=%s")
            params.append(int(flt.event_id))
        if flt.on_date is not None:
            clauses.append("DATE(al.attendance_time)=%s")
            params.append(flt.on_date)
        if flt.kind is not None:
            clauses.append("al.attendance_type=%s")
            params.append(flt.kind.value)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        limit = ""
        if flt.limit is not None:
            limit = "LIMIT %s"
            params.append(max(int(flt.limit), 0))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT al.log_id, al.user_id, al.full_name, al.event_id, al.attendance_type,
                       al.attendance_time, al.is_late,
                       u.role, e.event_name, e.event_date
                FROM attendance_logs al
                LEFT JOIN users u ON u.id = al.user_id
                LEFT JOIN events e ON e.event_id = al.event_id
                {where}
                ORDER BY al.attendance_time DESC, al.log_id DESC
                {limit}
                """,
                tuple(params),
            )
            rows = fetchall(cur)

            return [
                AttendanceLogView(
                    log_id=int(r["log_id"]),
                    member_id=r["user_id"],
                    full_name=r["full_name"],
                    event_id=int(r["event_id"]) if r.get("event_id") is not None else None,
                    kind=AttendanceKind(r["attendance_type"]),
                    timestamp=r["attendance_time"],
                    is_late=bool(r.get("is_late")),
                    role=r.get("role"),
                    event_name=r.get("event_name"),
                    event_date=r.get("event_date"),
                )
                for r in rows
            ]
