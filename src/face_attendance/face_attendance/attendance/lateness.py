from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..core.enums import AttendanceKind
from ..events.model import Event
from .factory import LatenessStrategyFactory


def compute_is_late(
    kind: AttendanceKind,
    at: datetime,
    event: Optional[Event],
    *,
    factory: Optional[LatenessStrategyFactory] = None,
) -> bool:
    """Pure lateness rule used by AttendanceService.record."""

    strategy = (factory or LatenessStrategyFactory()).for_kind(kind=kind, event=event)
    return strategy.is_late(at=at, event=event)
