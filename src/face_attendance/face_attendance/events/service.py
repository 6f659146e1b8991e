from __future__ import annotations

import logging
from datetime import date, time
from typing import Optional, Sequence

from ..common.validators import require_non_empty
from ..core.exceptions import NotFoundError, ValidationError
from .model import Event, TimeWindow
from .repository import EventRepository

logger = logging.getLogger(__name__)


def _require_window(window: TimeWindow, label: str) -> TimeWindow:
    if not window.is_valid():
        raise ValidationError(f"{label} start must be before its end")
    return window


class EventService:
    """Use case: manage events and their time windows."""

    def __init__(self, events: EventRepository):
        self._events = events

    def create(
        self,
        *,
        event_name: str,
        event_date: date,
        time_in_start: time,
        time_in_end: time,
        time_out_start: time,
        time_out_end: time,
        is_active: bool = True,
    ) -> Event:
        event_name = require_non_empty(event_name, "Event name")
        if event_date is None:
            raise ValidationError("Event date is required")
        time_in = _require_window(TimeWindow(time_in_start, time_in_end), "Time-in window")
        time_out = _require_window(TimeWindow(time_out_start, time_out_end), "Time-out window")

        event_id = self._events.create(
            event_name=event_name,
            event_date=event_date,
            time_in_window=time_in,
            time_out_window=time_out,
            is_active=bool(is_active),
        )
        logger.info("Created event %s (%s on %s)", event_id, event_name, event_date)
        return self.get(event_id)

    def get(self, event_id: int) -> Event:
        event = self._events.get_by_id(int(event_id))
        if not event:
            raise NotFoundError("Event not found")
        return event

    def list(self, *, active_only: bool = False) -> Sequence[Event]:
        return self._events.list_active() if active_only else self._events.list_all()

    def update(
        self,
        event_id: int,
        *,
        event_name: Optional[str] = None,
        event_date: Optional[date] = None,
        time_in_start: Optional[time] = None,
        time_in_end: Optional[time] = None,
        time_out_start: Optional[time] = None,
        time_out_end: Optional[time] = None,
        is_active: Optional[bool] = None,
    ) -> Event:
        current = self.get(event_id)

        if event_name is not None:
            event_name = require_non_empty(event_name, "Event name")

        time_in = None
        if time_in_start is not None or time_in_end is not None:
            time_in = _require_window(
                TimeWindow(
                    time_in_start if time_in_start is not None else current.time_in_window.start,
                    time_in_end if time_in_end is not None else current.time_in_window.end,
                ),
                "Time-in window",
            )

        time_out = None
        if time_out_start is not None or time_out_end is not None:
            time_out = _require_window(
                TimeWindow(
                    time_out_start if time_out_start is not None else current.time_out_window.start,
                    time_out_end if time_out_end is not None else current.time_out_window.end,
                ),
                "Time-out window",
            )

        if event_name is None and event_date is None and time_in is None and time_out is None and is_active is None:
            raise ValidationError("No fields to update")

        self._events.update(
            current.event_id,
            event_name=event_name,
            event_date=event_date,
            time_in_window=time_in,
            time_out_window=time_out,
            is_active=is_active,
        )
        return self.get(current.event_id)

    def delete(self, event_id: int) -> None:
        if not self._events.delete_by_id(int(event_id)):
            raise NotFoundError("Event not found")
        logger.info("Deleted event %s", event_id)
