from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional


@dataclass(frozen=True)
class TimeWindow:
    start: time
    end: time

    def is_valid(self) -> bool:
        return self.start < self.end


@dataclass(frozen=True)
class Event:
    """Thực thể miền (domain): Sự kiện với khung giờ vào/ra dùng để tính đi muộn."""

    event_id: int
    event_name: str
    event_date: date
    time_in_window: TimeWindow
    time_out_window: TimeWindow
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
