"""Attendance capture session: QR identification, face verification, attendance write.

A session owns all of its state (current camera, resolved member, selected
event, attendance kind, pending write). ``scan_frame`` and ``verify_frame`` are
single iterations of the polling loops; ``SessionRunner`` drives them for
server-attached cameras and the HTTP layer drives them frame by frame for
browser cameras.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Sequence, Tuple

import numpy as np

from ..attendance.model import AttendanceRecord
from ..attendance.service import AttendanceService
from ..common.datetime_utils import now_local
from ..common.descriptors import Descriptor
from ..core.constants import (
    DEFAULT_FACE_MATCH_THRESHOLD,
    STATUS_AWAITING_SCAN,
    STATUS_MISMATCH,
    STATUS_NO_FACE,
    STATUS_UNKNOWN_MEMBER,
)
from ..core.enums import TERMINAL_STATES, AttendanceKind, CaptureState
from ..core.exceptions import (
    ConflictError,
    DomainError,
    ResourceUnavailableError,
    TransientStoreError,
    ValidationError,
)
from ..events.model import Event
from ..events.service import EventService
from ..members.model import Member
from ..members.service import MemberService
from .camera import Camera, PushedFrameCamera
from .decoder import CodeDecoder
from .face_matcher import FaceMatcher

logger = logging.getLogger(__name__)

CameraFactory = Callable[[str], Camera]
DecoderFactory = Callable[[], CodeDecoder]
MatcherFactory = Callable[[Sequence[Tuple[str, Descriptor]]], FaceMatcher]


@dataclass(frozen=True)
class CaptureSnapshot:
    state: CaptureState
    status: str = ""
    source: Optional[str] = None
    kind: AttendanceKind = AttendanceKind.CHECK_IN
    event_id: Optional[int] = None
    member_id: Optional[str] = None
    full_name: Optional[str] = None
    awaiting_write: bool = False
    error: Optional[str] = None
    record: Optional[AttendanceRecord] = None


class CaptureSession:
    def __init__(
        self,
        *,
        members: MemberService,
        events: EventService,
        attendance: AttendanceService,
        camera_factory: CameraFactory,
        decoder_factory: DecoderFactory,
        matcher_factory: MatcherFactory,
        threshold: float = DEFAULT_FACE_MATCH_THRESHOLD,
        clock: Callable[[], datetime] = now_local,
    ):
        self._members = members
        self._events = events
        self._attendance = attendance
        self._camera_factory = camera_factory
        self._decoder_factory = decoder_factory
        self._matcher_factory = matcher_factory
        self._threshold = float(threshold)
        self._clock = clock

        self._lock = threading.RLock()
        self._state = CaptureState.IDLE
        self._status = ""
        self._error: Optional[str] = None
        self._source: Optional[str] = None
        self._kind = AttendanceKind.CHECK_IN
        self._event: Optional[Event] = None
        self._member: Optional[Member] = None
        self._camera: Optional[Camera] = None
        self._decoder: Optional[CodeDecoder] = None
        self._matcher: Optional[FaceMatcher] = None
        self._awaiting_write = False
        self._write_error: Optional[DomainError] = None
        self._record: Optional[AttendanceRecord] = None

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def camera(self) -> Optional[Camera]:
        return self._camera

    def snapshot(self) -> CaptureSnapshot:
        with self._lock:
            return CaptureSnapshot(
                state=self._state,
                status=self._status,
                source=self._source,
                kind=self._kind,
                event_id=self._event.event_id if self._event else None,
                member_id=self._member.member_id if self._member else None,
                full_name=self._member.full_name if self._member else None,
                awaiting_write=self._awaiting_write,
                error=self._error,
                record=self._record,
            )

    # ----- transitions -----

    def start(
        self,
        source: str,
        *,
        event_id: Optional[int] = None,
        kind: AttendanceKind = AttendanceKind.CHECK_IN,
    ) -> CaptureSnapshot:
        with self._lock:
            if self._state != CaptureState.IDLE and self._state not in TERMINAL_STATES:
                raise ConflictError("A capture session is already running; cancel it first")

            self._reset()
            event = self._events.get(event_id) if event_id is not None else None

            try:
                decoder = self._decoder_factory()
                camera = self._camera_factory(source)
            except ResourceUnavailableError as e:
                self._reset(error=str(e))
                logger.warning("Capture session could not start: %s", e)
                raise

            self._source = str(source)
            self._event = event
            self._kind = kind
            self._decoder = decoder
            self._camera = camera
            self._state = CaptureState.SCANNING_CODE
            self._status = STATUS_AWAITING_SCAN
            logger.info("Capture session started (source=%s, event=%s, kind=%s)", source, event_id, kind.value)
            return self.snapshot()

    def scan_frame(self) -> CaptureSnapshot:
        with self._lock:
            if self._state != CaptureState.SCANNING_CODE:
                return self.snapshot()

            code = self._decode_next_frame()
            if not code:
                self._status = STATUS_AWAITING_SCAN
                return self.snapshot()

            self._release_camera()
            try:
                member = self._members.find(code)
            except DomainError as e:
                self._reset(error=str(e))
                raise

            if member is None:
                self._state = CaptureState.UNKNOWN_IDENTITY
                self._status = STATUS_UNKNOWN_MEMBER
                logger.info("Scanned code %r does not match any member", code)
            else:
                self._member = member
                self._state = CaptureState.IDENTITY_RESOLVED
                self._status = f"Member found: {member.full_name}"
                logger.info("Scanned member %s", member.member_id)
            return self.snapshot()

    def confirm(self) -> CaptureSnapshot:
        with self._lock:
            if self._state != CaptureState.IDENTITY_RESOLVED:
                raise ValidationError("No identified member to verify")

            references = self._members.reference_descriptors()
            try:
                matcher = self._matcher_factory(references)
                camera = self._camera_factory(self._source or "")
            except ResourceUnavailableError as e:
                self._reset(error=str(e))
                logger.warning("Face verification could not start: %s", e)
                raise

            self._matcher = matcher
            self._camera = camera
            self._state = CaptureState.VERIFYING_FACE
            self._status = "Verifying face..."
            return self.snapshot()

    def verify_frame(self) -> CaptureSnapshot:
        with self._lock:
            if self._state != CaptureState.VERIFYING_FACE or self._awaiting_write:
                return self.snapshot()

            match = None
            frame = self._read_frame()
            if frame is not None:
                try:
                    match = self._matcher.best_match(frame)
                except Exception:
                    logger.debug("Face matcher failed on frame", exc_info=True)

            if match is None:
                self._status = STATUS_NO_FACE
                return self.snapshot()

            if match.label != self._member.member_id or match.distance >= self._threshold:
                self._status = STATUS_MISMATCH
                logger.debug("Face mismatch for %s (label=%s, distance=%.3f)", self._member.member_id, match.label, match.distance)
                return self.snapshot()

            self._release_camera()
            self._matcher = None
            self._write()
            return self.snapshot()

    def submit(self) -> CaptureSnapshot:
        """Retry the attendance write after a conflict or store failure."""

        with self._lock:
            if self._state != CaptureState.VERIFYING_FACE or not self._awaiting_write:
                raise ValidationError("There is no pending attendance to submit")
            self._write()
            if self._awaiting_write and self._write_error is not None:
                raise self._write_error
            return self.snapshot()

    def step(self) -> CaptureSnapshot:
        """One polling iteration for whatever loop the session is in."""

        with self._lock:
            if self._state == CaptureState.SCANNING_CODE:
                return self.scan_frame()
            if self._state == CaptureState.VERIFYING_FACE:
                return self.verify_frame()
            return self.snapshot()

    def push_frame(self, frame: np.ndarray) -> bool:
        with self._lock:
            if not isinstance(self._camera, PushedFrameCamera):
                return False
            self._camera.push(frame)
            return True

    def cancel(self) -> CaptureSnapshot:
        with self._lock:
            if self._state != CaptureState.IDLE:
                logger.info("Capture session cancelled in state %s", self._state.value)
            self._reset()
            return self.snapshot()

    # ----- internals -----

    def _write(self) -> None:
        member = self._member
        try:
            record = self._attendance.record(
                member_id=member.member_id,
                full_name=member.full_name,
                kind=self._kind,
                event_id=self._event.event_id if self._event else None,
                at=self._clock(),
            )
        except (ConflictError, TransientStoreError) as e:
            self._awaiting_write = True
            self._write_error = e
            self._error = str(e)
            self._status = str(e)
            logger.warning("Attendance write for %s failed: %s", member.member_id, e)
            return
        except DomainError as e:
            self._reset(error=str(e))
            raise

        self._awaiting_write = False
        self._write_error = None
        self._error = None
        self._record = record
        self._state = CaptureState.COMPLETED
        self._status = f"Attendance recorded for {member.full_name}"

    def _read_frame(self) -> Optional[np.ndarray]:
        if self._camera is None:
            return None
        try:
            return self._camera.read()
        except Exception:
            logger.debug("Camera read failed", exc_info=True)
            return None

    def _decode_next_frame(self) -> Optional[str]:
        frame = self._read_frame()
        if frame is None:
            return None
        try:
            return self._decoder.decode(frame)
        except Exception:
            logger.debug("Code decoder failed on frame", exc_info=True)
            return None

    def _release_camera(self) -> None:
        camera, self._camera = self._camera, None
        if camera is not None:
            camera.release()

    def _reset(self, *, error: Optional[str] = None) -> None:
        self._release_camera()
        self._state = CaptureState.IDLE
        self._status = error or ""
        self._error = error
        self._source = None
        self._event = None
        self._member = None
        self._decoder = None
        self._matcher = None
        self._awaiting_write = False
        self._write_error = None
        self._record = None
