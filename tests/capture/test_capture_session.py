from __future__ import annotations

import pytest

from conftest import MEMBER_ID, OTHER_ID, at, create_event, enroll, match

from src.face_attendance.face_attendance.attendance.model import AttendanceFilter
from src.face_attendance.face_attendance.capture.session import CaptureSession
from src.face_attendance.face_attendance.core.constants import (
    STATUS_AWAITING_SCAN,
    STATUS_MISMATCH,
    STATUS_NO_FACE,
    STATUS_UNKNOWN_MEMBER,
)
from src.face_attendance.face_attendance.core.enums import AttendanceKind, CaptureState
from src.face_attendance.face_attendance.core.exceptions import (
    ConflictError,
    NotFoundError,
    ResourceUnavailableError,
    TransientStoreError,
    ValidationError,
)


def _session(kiosk, **kwargs) -> CaptureSession:
    c = kiosk.container
    return CaptureSession(
        members=c.member_service,
        events=c.event_service,
        attendance=c.attendance_service,
        camera_factory=kiosk.cameras,
        decoder_factory=lambda: kiosk.decoder,
        matcher_factory=kiosk.matchers,
        clock=kwargs.pop("clock", lambda: at(8, 15)),
        **kwargs,
    )


def _logs(kiosk):
    return kiosk.container.attendance_service.list_logs(AttendanceFilter())


def _resolve(kiosk, session, event_id=None, kind=AttendanceKind.CHECK_IN):
    kiosk.decoder.results = [MEMBER_ID]
    session.start("0", event_id=event_id, kind=kind)
    snap = session.scan_frame()
    assert snap.state == CaptureState.IDENTITY_RESOLVED
    return snap


def test_scanning_without_code_keeps_waiting(kiosk):
    enroll(kiosk.container)
    s = _session(kiosk)

    snap = s.start("0")
    assert snap.state == CaptureState.SCANNING_CODE
    snap = s.scan_frame()
    assert snap.state == CaptureState.SCANNING_CODE
    assert snap.status == STATUS_AWAITING_SCAN
    assert not kiosk.cameras.opened[0].released


def test_unknown_code_ends_in_unknown_identity_without_writing(kiosk):
    event = create_event(kiosk.container)
    kiosk.decoder.results = [None, MEMBER_ID]
    s = _session(kiosk)
    s.start("0", event_id=event.event_id)

    s.scan_frame()
    snap = s.scan_frame()

    assert snap.state == CaptureState.UNKNOWN_IDENTITY
    assert snap.status == STATUS_UNKNOWN_MEMBER
    assert kiosk.cameras.opened[0].released
    assert _logs(kiosk) == []


def test_confident_match_completes_with_one_record(kiosk):
    enroll(kiosk.container)
    enroll(kiosk.container, member_id=OTHER_ID, full_name="Tran Thi B", seed=0.2)
    event = create_event(kiosk.container)
    s = _session(kiosk, clock=lambda: at(8, 31))

    snap = _resolve(kiosk, s, event_id=event.event_id)
    assert snap.member_id == MEMBER_ID
    assert kiosk.cameras.opened[0].released

    kiosk.matchers.results = [match(distance=0.4)]
    s.confirm()
    assert s.state == CaptureState.VERIFYING_FACE
    assert {mid for mid, _ in kiosk.matchers.created[0].references} == {MEMBER_ID, OTHER_ID}

    snap = s.verify_frame()
    assert snap.state == CaptureState.COMPLETED
    assert snap.record.member_id == MEMBER_ID
    assert snap.record.event_id == event.event_id
    assert snap.record.is_late is True
    assert kiosk.cameras.opened[1].released
    assert len(_logs(kiosk)) == 1


def test_distant_match_stays_in_verifying_face(kiosk):
    enroll(kiosk.container)
    s = _session(kiosk)
    _resolve(kiosk, s)
    kiosk.matchers.results = [match(distance=0.8), match(distance=0.6), match(label=OTHER_ID, distance=0.1), None]
    s.confirm()

    for _ in range(3):
        snap = s.verify_frame()
        assert snap.state == CaptureState.VERIFYING_FACE
        assert snap.status == STATUS_MISMATCH

    snap = s.verify_frame()
    assert snap.state == CaptureState.VERIFYING_FACE
    assert snap.status == STATUS_NO_FACE
    assert _logs(kiosk) == []
    assert not kiosk.cameras.opened[1].released


def test_per_frame_errors_are_treated_as_no_result(kiosk):
    enroll(kiosk.container)
    kiosk.decoder.results = [RuntimeError("bad frame"), MEMBER_ID]
    s = _session(kiosk)
    s.start("0")

    assert s.scan_frame().state == CaptureState.SCANNING_CODE
    assert s.scan_frame().state == CaptureState.IDENTITY_RESOLVED

    kiosk.matchers.results = [ValueError("dlib hiccup"), match()]
    s.confirm()
    assert s.verify_frame().status == STATUS_NO_FACE
    assert s.verify_frame().state == CaptureState.COMPLETED


def test_conflict_keeps_identity_and_retry_goes_through_submit(kiosk):
    enroll(kiosk.container)
    event = create_event(kiosk.container)
    kiosk.container.attendance_service.record(member_id=MEMBER_ID, event_id=event.event_id, at=at(8, 1))

    s = _session(kiosk)
    _resolve(kiosk, s, event_id=event.event_id)
    kiosk.matchers.results = [match()]
    s.confirm()

    snap = s.verify_frame()
    assert snap.state == CaptureState.VERIFYING_FACE
    assert snap.awaiting_write is True
    assert "already marked" in snap.error
    assert snap.member_id == MEMBER_ID
    assert kiosk.cameras.opened[1].released

    # further frames do nothing while the write is pending
    assert s.verify_frame().awaiting_write is True

    with pytest.raises(ConflictError):
        s.submit()
    assert s.state == CaptureState.VERIFYING_FACE


def test_store_failure_is_retried_without_rescanning(kiosk, monkeypatch):
    enroll(kiosk.container)
    s = _session(kiosk)
    _resolve(kiosk, s)
    kiosk.matchers.results = [match()]
    s.confirm()

    svc = kiosk.container.attendance_service
    real_record = svc.record
    calls = {"n": 0}

    def flaky(**kwargs):
        calls["n"] += 1
        if calls["n"] == 1:
            raise TransientStoreError("Database error, please retry")
        return real_record(**kwargs)

    monkeypatch.setattr(svc, "record", flaky)

    snap = s.verify_frame()
    assert snap.awaiting_write is True
    assert snap.state == CaptureState.VERIFYING_FACE

    snap = s.submit()
    assert snap.state == CaptureState.COMPLETED
    assert snap.record.member_id == MEMBER_ID
    assert len(kiosk.cameras.opened) == 2
    assert len(_logs(kiosk)) == 1


def test_submit_without_pending_write_is_rejected(kiosk):
    s = _session(kiosk)
    with pytest.raises(ValidationError):
        s.submit()
    with pytest.raises(ValidationError):
        s.confirm()


def test_cancel_releases_camera_from_any_state(kiosk):
    enroll(kiosk.container)
    s = _session(kiosk)

    s.start("0")
    snap = s.cancel()
    assert snap.state == CaptureState.IDLE
    assert kiosk.cameras.opened[0].released

    _resolve(kiosk, s)
    s.confirm()
    s.cancel()
    assert s.state == CaptureState.IDLE
    assert all(cam.released for cam in kiosk.cameras.opened)
    assert all(cam.release_count == 1 for cam in kiosk.cameras.opened)


def test_camera_failure_on_start_leaves_session_idle(kiosk):
    kiosk.cameras.fail = True
    s = _session(kiosk)
    with pytest.raises(ResourceUnavailableError):
        s.start("0")
    snap = s.snapshot()
    assert snap.state == CaptureState.IDLE
    assert "could not be opened" in snap.error


def test_model_failure_on_confirm_returns_to_idle(kiosk):
    enroll(kiosk.container)
    kiosk.matchers.fail = True
    s = _session(kiosk)
    _resolve(kiosk, s)

    with pytest.raises(ResourceUnavailableError):
        s.confirm()
    assert s.state == CaptureState.IDLE
    assert s.camera is None


def test_start_requires_known_event_and_idle_session(kiosk):
    s = _session(kiosk)
    with pytest.raises(NotFoundError):
        s.start("0", event_id=42)
    assert s.state == CaptureState.IDLE
    assert kiosk.cameras.opened == []

    s.start("0")
    with pytest.raises(ConflictError):
        s.start("0")


def test_restart_after_terminal_state(kiosk):
    kiosk.decoder.results = ["0000-0000"]
    s = _session(kiosk)
    s.start("0")
    assert s.scan_frame().state == CaptureState.UNKNOWN_IDENTITY

    snap = s.start("0")
    assert snap.state == CaptureState.SCANNING_CODE
    assert snap.member_id is None
