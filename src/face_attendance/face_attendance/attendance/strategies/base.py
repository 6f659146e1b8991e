from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from ...events.model import Event


class LatenessStrategy(ABC):
    """Strategy Pattern: encapsulate how we decide whether an attendance is late."""

    @abstractmethod
    def is_late(self, *, at: datetime, event: Optional[Event]) -> bool:
        raise NotImplementedError
