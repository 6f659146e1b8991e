from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import Event, TimeWindow
from .repository import EventRepository

_SELECT = """
    SELECT event_id, event_name, event_date, time_in_start, time_in_end,
           time_out_start, time_out_end, is_active, created_at, updated_at
    FROM events
"""


def _to_event(r: dict) -> Event:
    return Event(
        event_id=int(r["event_id"]),
        event_name=r["event_name"],
        event_date=r["event_date"],
        time_in_window=TimeWindow(normalize_mysql_time(r["time_in_start"]), normalize_mysql_time(r["time_in_end"])),
        time_out_window=TimeWindow(normalize_mysql_time(r["time_out_start"]), normalize_mysql_time(r["time_out_end"])),
        is_active=bool(r.get("is_active", 1)),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


class MySQLEventRepository(EventRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, event_id: int) -> Optional[Event]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE event_id=%s", (int(event_id),))
            r = fetchone(cur)
            return _to_event(r) if r else None

    def list_all(self) -> Sequence[Event]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " ORDER BY event_date DESC, event_name ASC")
            return [_to_event(r) for r in fetchall(cur)]

    def list_active(self) -> Sequence[Event]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE is_active=1 ORDER BY event_date DESC, event_name ASC")
            return [_to_event(r) for r in fetchall(cur)]

    def create(
        self,
        *,
        event_name: str,
        event_date: date,
        time_in_window: TimeWindow,
        time_out_window: TimeWindow,
        is_active: bool = True,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO events(event_name, event_date, time_in_start, time_in_end,
                                   time_out_start, time_out_end, is_active)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    event_name,
                    event_date,
                    time_in_window.start,
                    time_in_window.end,
                    time_out_window.start,
                    time_out_window.end,
                    1 if is_active else 0,
                ),
            )
            return int(cur.lastrowid)

    def update(
        self,
        event_id: int,
        *,
        event_name: Optional[str] = None,
        event_date: Optional[date] = None,
        time_in_window: Optional[TimeWindow] = None,
        time_out_window: Optional[TimeWindow] = None,
        is_active: Optional[bool] = None,
    ) -> bool:
        sets: list[str] = []
        params: list[object] = []
        if event_name is not None:
            sets.append("event_name=%s")
            params.append(event_name)
        if event_date is not None:
            sets.append("event_date=%s")
            params.append(event_date)
        if time_in_window is not None:
            sets += ["time_in_start=%s", "time_in_end=%s"]
            params += [time_in_window.start, time_in_window.end]
        if time_out_window is not None:
            sets += ["time_out_start=%s", "time_out_end=%s"]
            params += [time_out_window.start, time_out_window.end]
        if is_active is not None:
            sets.append("is_active=%s")
            params.append(1 if is_active else 0)
        if not sets:
            return False

        params.append(int(event_id))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE events SET {', '.join(sets)} WHERE event_id=%s", tuple(params))
            return cur.rowcount > 0

    def delete_by_id(self, event_id: int) -> bool:
        # attendance_logs.event_id -> NULL (FK ON DELETE SET NULL).
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM events WHERE event_id=%s", (int(event_id),))
            return cur.rowcount > 0
