from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Optional

import numpy as np

from ..core.constants import DEFAULT_FRAME_INTERVAL
from ..core.enums import TERMINAL_STATES, AttendanceKind, CaptureState
from ..core.exceptions import DomainError, NotFoundError
from .camera import BROWSER_SOURCE
from .session import CaptureSession, CaptureSnapshot

logger = logging.getLogger(__name__)


class SessionRunner:
    """Drives a session's polling loops on a background thread.

    The cancellation token is checked before every iteration; once it is set
    no further iteration is scheduled. The runner idles while the session waits
    for the operator (identity confirmation, write retry).
    """

    def __init__(self, session: CaptureSession, *, interval: float = DEFAULT_FRAME_INTERVAL):
        self._session = session
        self._interval = float(interval)
        self._cancelled = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self.run, name="capture-session-runner", daemon=True)
        self._thread.start()

    def run(self) -> None:
        while not self._cancelled.is_set():
            try:
                snap = self._session.step()
            except DomainError as e:
                logger.warning("Capture session stopped: %s", e)
                return
            except Exception:
                logger.exception("Unexpected error in capture session")
                self._session.cancel()
                return

            if snap.state == CaptureState.IDLE or snap.state in TERMINAL_STATES:
                return
            if self._cancelled.wait(self._interval):
                return

    def cancel(self, *, timeout: Optional[float] = 1.0) -> None:
        self._cancelled.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()


@dataclass
class _Entry:
    session: CaptureSession
    runner: Optional[SessionRunner] = None


class CaptureSessionManager:
    """One capture session per context (kiosk, browser tab).

    Starting a session in a context cancels the one already there.
    """

    def __init__(
        self,
        session_factory: Callable[[], CaptureSession],
        *,
        frame_interval: float = DEFAULT_FRAME_INTERVAL,
    ):
        self._session_factory = session_factory
        self._frame_interval = float(frame_interval)
        self._lock = threading.Lock()
        self._entries: Dict[str, _Entry] = {}

    def start(
        self,
        context: str,
        *,
        source: str,
        event_id: Optional[int] = None,
        kind: AttendanceKind = AttendanceKind.CHECK_IN,
    ) -> CaptureSnapshot:
        # Joining a runner and opening a camera happen outside the lock.
        with self._lock:
            previous = self._entries.pop(context, None)
        if previous is not None:
            self._stop(previous)

        session = self._session_factory()
        snap = session.start(source, event_id=event_id, kind=kind)
        entry = _Entry(session=session)
        if str(source) != BROWSER_SOURCE:
            entry.runner = SessionRunner(session, interval=self._frame_interval)
            entry.runner.start()

        with self._lock:
            displaced = self._entries.get(context)
            self._entries[context] = entry
        if displaced is not None:
            self._stop(displaced)
        return snap

    def push_frame(self, context: str, frame: np.ndarray) -> CaptureSnapshot:
        session = self._get(context).session
        if session.push_frame(frame):
            return session.step()
        return session.snapshot()

    def confirm(self, context: str) -> CaptureSnapshot:
        return self._get(context).session.confirm()

    def submit(self, context: str) -> CaptureSnapshot:
        return self._get(context).session.submit()

    def cancel(self, context: str) -> CaptureSnapshot:
        with self._lock:
            entry = self._entries.pop(context, None)
        if entry is None:
            return CaptureSnapshot(state=CaptureState.IDLE)
        return self._stop(entry)

    def status(self, context: str) -> CaptureSnapshot:
        with self._lock:
            entry = self._entries.get(context)
        if entry is None:
            return CaptureSnapshot(state=CaptureState.IDLE)
        return entry.session.snapshot()

    def shutdown(self) -> None:
        with self._lock:
            entries = list(self._entries.values())
            self._entries.clear()
        for entry in entries:
            self._stop(entry)

    def _get(self, context: str) -> _Entry:
        with self._lock:
            entry = self._entries.get(context)
        if entry is None:
            raise NotFoundError("No capture session in this context")
        return entry

    @staticmethod
    def _stop(entry: _Entry) -> CaptureSnapshot:
        if entry.runner is not None:
            entry.runner.cancel()
        return entry.session.cancel()
