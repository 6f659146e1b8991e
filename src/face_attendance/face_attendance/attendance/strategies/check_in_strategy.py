from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...events.model import Event
from .base import LatenessStrategy


class CheckInStrategy(LatenessStrategy):
    """Late when checking in after the time-in window has closed."""

    def is_late(self, *, at: datetime, event: Optional[Event]) -> bool:
        if event is None:
            return False
        return at.time() > event.time_in_window.end
