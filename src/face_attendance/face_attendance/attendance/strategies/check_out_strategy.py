from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...events.model import Event
from .base import LatenessStrategy


class CheckOutStrategy(LatenessStrategy):
    """Checking out before the time-out window opens is flagged as late (early departure)."""

    def is_late(self, *, at: datetime, event: Optional[Event]) -> bool:
        if event is None:
            return False
        return at.time() < event.time_out_window.start
