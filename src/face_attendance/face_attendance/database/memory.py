"""Process-local record store.

Backs the testing settings and quick demos without a MySQL server. All three
tables live in one object guarded by a single lock so that check-and-insert
and the delete cascades are atomic, matching what the MySQL schema enforces
with UNIQUE keys and foreign keys.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class MemoryDatabase:
    members: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    events: Dict[int, Dict[str, Any]] = field(default_factory=dict)
    attendance: Dict[int, Dict[str, Any]] = field(default_factory=dict)
    dedup_keys: Dict[str, int] = field(default_factory=dict)
    lock: threading.RLock = field(default_factory=threading.RLock)
    _next_event_id: int = 1
    _next_log_id: int = 1

    def next_event_id(self) -> int:
        with self.lock:
            value = self._next_event_id
            self._next_event_id += 1
            return value

    def next_log_id(self) -> int:
        with self.lock:
            value = self._next_log_id
            self._next_log_id += 1
            return value
