from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Optional

from .attendance.factory import LatenessStrategyFactory
from .attendance.memory_attendance_repository import MemoryAttendanceRepository
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .capture.camera import open_camera
from .capture.decoder import PyzbarCodeDecoder
from .capture.face_matcher import FaceRecognitionEncoder, FaceRecognitionMatcher
from .capture.runner import CaptureSessionManager
from .capture.session import CameraFactory, CaptureSession, DecoderFactory, MatcherFactory
from .core.constants import DEFAULT_FACE_MATCH_THRESHOLD, DEFAULT_FRAME_INTERVAL, DESCRIPTOR_LENGTH
from .core.exceptions import ValidationError
from .database.connection import DBConfig, DatabaseConnection
from .database.memory import MemoryDatabase
from .events.memory_event_repository import MemoryEventRepository
from .events.mysql_event_repository import MySQLEventRepository
from .events.repository import EventRepository
from .events.service import EventService
from .members.memory_member_repository import MemoryMemberRepository
from .members.mysql_member_repository import MySQLMemberRepository
from .members.repository import MemberRepository
from .members.service import FaceEncoder, MemberService
from .reports.service import ReportService


@dataclass(frozen=True)
class Container:
    backend: str

    members_repo: MemberRepository
    events_repo: EventRepository
    attendance_repo: AttendanceRepository

    member_service: MemberService
    event_service: EventService
    attendance_service: AttendanceService
    report_service: ReportService
    capture_manager: CaptureSessionManager


def build_container(
    *,
    db_config: Optional[dict] = None,
    backend: str = "mysql",
    memory_db: Optional[MemoryDatabase] = None,
    face_match_threshold: float = DEFAULT_FACE_MATCH_THRESHOLD,
    descriptor_length: int = DESCRIPTOR_LENGTH,
    frame_interval: float = DEFAULT_FRAME_INTERVAL,
    face_encoder: Optional[FaceEncoder] = None,
    camera_factory: CameraFactory = open_camera,
    decoder_factory: DecoderFactory = PyzbarCodeDecoder,
    matcher_factory: Optional[MatcherFactory] = None,
) -> Container:
    """Wire repositories, services and the capture manager.

    Hardware-facing collaborators (camera, decoder, matcher, encoder) can be
    swapped for fakes in tests.
    """

    backend = str(backend).lower()
    if backend == "mysql":
        if not db_config:
            raise ValidationError("DB_CONFIG is required for the mysql backend")
        conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))
        members_repo = MySQLMemberRepository(conn, descriptor_length=descriptor_length)
        events_repo = MySQLEventRepository(conn)
        attendance_repo = MySQLAttendanceRepository(conn)
    elif backend == "memory":
        db = memory_db or MemoryDatabase()
        members_repo = MemoryMemberRepository(db)
        events_repo = MemoryEventRepository(db)
        attendance_repo = MemoryAttendanceRepository(db)
    else:
        raise ValidationError(f"Unknown DB_BACKEND: {backend!r}")

    member_service = MemberService(
        members_repo,
        face_encoder=face_encoder if face_encoder is not None else FaceRecognitionEncoder(),
        descriptor_length=descriptor_length,
    )
    event_service = EventService(events_repo)
    attendance_service = AttendanceService(
        attendance_repo,
        members_repo,
        events_repo,
        strategy_factory=LatenessStrategyFactory(),
    )
    report_service = ReportService(attendance_repo, members_repo)

    session_factory = partial(
        CaptureSession,
        members=member_service,
        events=event_service,
        attendance=attendance_service,
        camera_factory=camera_factory,
        decoder_factory=decoder_factory,
        matcher_factory=matcher_factory or FaceRecognitionMatcher,
        threshold=face_match_threshold,
    )
    capture_manager = CaptureSessionManager(session_factory, frame_interval=frame_interval)

    return Container(
        backend=backend,
        members_repo=members_repo,
        events_repo=events_repo,
        attendance_repo=attendance_repo,
        member_service=member_service,
        event_service=event_service,
        attendance_service=attendance_service,
        report_service=report_service,
        capture_manager=capture_manager,
    )
