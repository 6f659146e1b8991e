from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...events.model import Event
from .base import LatenessStrategy


class NoEventStrategy(LatenessStrategy):
    """General attendance: lateness only means something against an event's windows."""

    def is_late(self, *, at: datetime, event: Optional[Event]) -> bool:
        return False
