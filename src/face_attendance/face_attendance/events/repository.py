from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import Event, TimeWindow


class EventRepository(Protocol):
    def get_by_id(self, event_id: int) -> Optional[Event]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Event]:
        """Newest event date first, then by name."""

        raise NotImplementedError

    def list_active(self) -> Sequence[Event]:
        raise NotImplementedError

    def create(
        self,
        *,
        event_name: str,
        event_date: date,
        time_in_window: TimeWindow,
        time_out_window: TimeWindow,
        is_active: bool = True,
    ) -> int:
        raise NotImplementedError

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
        raise NotImplementedError

    def delete_by_id(self, event_id: int) -> bool:
        """Delete an event; attendance records that referenced it keep existing with event_id=None."""

        raise NotImplementedError
