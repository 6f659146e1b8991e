from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import AttendanceKind
from ..events.model import Event
from .strategies.base import LatenessStrategy
from .strategies.check_in_strategy import CheckInStrategy
from .strategies.check_out_strategy import CheckOutStrategy
from .strategies.no_event_strategy import NoEventStrategy


@dataclass
class LatenessStrategyFactory:
    """Factory Pattern: choose the lateness rule for an attendance kind."""

    def for_kind(self, *, kind: AttendanceKind, event: Optional[Event]) -> LatenessStrategy:
        if event is None:
            return NoEventStrategy()
        if kind == AttendanceKind.CHECK_OUT:
            return CheckOutStrategy()
        return CheckInStrategy()

