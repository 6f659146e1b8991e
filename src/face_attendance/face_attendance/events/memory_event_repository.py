from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..common.datetime_utils import now_local
from ..database.memory import MemoryDatabase
from .model import Event, TimeWindow
from .repository import EventRepository


def _sort_key(e: Event):
    # event_date DESC, event_name ASC
    return (-e.event_date.toordinal(), e.event_name)


class MemoryEventRepository(EventRepository):
    def __init__(self, db: MemoryDatabase):
        self._db = db

    @staticmethod
    def _to_event(r: dict) -> Event:
        return Event(**r)

    def get_by_id(self, event_id: int) -> Optional[Event]:
        with self._db.lock:
            r = self._db.events.get(int(event_id))
            return self._to_event(r) if r else None

    def list_all(self) -> Sequence[Event]:
        with self._db.lock:
            return sorted((self._to_event(r) for r in self._db.events.values()), key=_sort_key)

    def list_active(self) -> Sequence[Event]:
        return [e for e in self.list_all() if e.is_active]

    def create(
        self,
        *,
        event_name: str,
        event_date: date,
        time_in_window: TimeWindow,
        time_out_window: TimeWindow,
        is_active: bool = True,
    ) -> int:
        with self._db.lock:
            event_id = self._db.next_event_id()
            now = now_local()
            self._db.events[event_id] = {
                "event_id": event_id,
                "event_name": event_name,
                "event_date": event_date,
                "time_in_window": time_in_window,
                "time_out_window": time_out_window,
                "is_active": bool(is_active),
                "created_at": now,
                "updated_at": now,
            }
            return event_id

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
        changes = {
            "event_name": event_name,
            "event_date": event_date,
            "time_in_window": time_in_window,
            "time_out_window": time_out_window,
            "is_active": is_active,
        }
        with self._db.lock:
            r = self._db.events.get(int(event_id))
            if not r:
                return False
            for key, value in changes.items():
                if value is not None:
                    r[key] = value
            r["updated_at"] = now_local()
            return True

    def delete_by_id(self, event_id: int) -> bool:
        with self._db.lock:
            if self._db.events.pop(int(event_id), None) is None:
                return False
            for log in self._db.attendance.values():
                if log["event_id"] == int(event_id):
                    log["event_id"] = None
            return True
