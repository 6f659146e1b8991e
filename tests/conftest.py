from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Optional

import numpy as np
import pytest

from src.face_attendance.face_attendance.capture.face_matcher import FaceMatch
from src.face_attendance.face_attendance.container import build_container
from src.face_attendance.face_attendance.core.exceptions import ResourceUnavailableError
from src.face_attendance.face_attendance.database.memory import MemoryDatabase

MEMBER_ID = "1234-5678"
OTHER_ID = "8765-4321"
EVENT_DAY = date(2024, 5, 6)


def descriptor(seed: float = 0.1) -> list[float]:
    return [round(seed + i / 1000, 6) for i in range(128)]


class FakeCamera:
    def __init__(self, frames: Optional[list] = None):
        self.frames = list(frames or [])
        self.release_count = 0

    @property
    def released(self) -> bool:
        return self.release_count > 0

    def read(self):
        if not self.frames:
            return None
        return self.frames.pop(0)

    def release(self) -> None:
        self.release_count += 1


@dataclass
class FakeCameraFactory:
    """Hands out one FakeCamera per acquisition, each frame a tiny numpy image."""

    frames_per_camera: int = 5
    fail: bool = False
    opened: list[FakeCamera] = field(default_factory=list)

    def __call__(self, source: str) -> FakeCamera:
        if self.fail:
            raise ResourceUnavailableError(f"Camera {source} could not be opened")
        cam = FakeCamera([np.zeros((4, 4, 3), dtype=np.uint8) for _ in range(self.frames_per_camera)])
        self.opened.append(cam)
        return cam


@dataclass
class FakeDecoder:
    """Yields the queued results in order, one per frame; an Exception is raised."""

    results: list = field(default_factory=list)

    def decode(self, frame):
        if not self.results:
            return None
        value = self.results.pop(0)
        if isinstance(value, Exception):
            raise value
        return value


@dataclass
class FakeMatcher:
    results: list = field(default_factory=list)
    references: list = field(default_factory=list)

    def best_match(self, frame):
        if not self.results:
            return None
        value = self.results.pop(0)
        if isinstance(value, Exception):
            raise value
        return value


@dataclass
class FakeMatcherFactory:
    results: list = field(default_factory=list)
    fail: bool = False
    created: list[FakeMatcher] = field(default_factory=list)

    def __call__(self, references):
        if self.fail:
            raise ResourceUnavailableError("Face recognition models are unavailable")
        matcher = FakeMatcher(results=self.results, references=list(references))
        self.created.append(matcher)
        return matcher


class FakeEncoder:
    def __init__(self, result=None):
        self.result = result
        self.calls = 0

    def encode_photo(self, photo: str):
        self.calls += 1
        return self.result


@dataclass
class Kiosk:
    container: object
    db: MemoryDatabase
    cameras: FakeCameraFactory
    decoder: FakeDecoder
    matchers: FakeMatcherFactory
    encoder: FakeEncoder


@pytest.fixture
def kiosk() -> Kiosk:
    db = MemoryDatabase()
    cameras = FakeCameraFactory()
    decoder = FakeDecoder()
    matchers = FakeMatcherFactory()
    encoder = FakeEncoder()
    container = build_container(
        backend="memory",
        memory_db=db,
        face_encoder=encoder,
        camera_factory=cameras,
        decoder_factory=lambda: decoder,
        matcher_factory=matchers,
        frame_interval=0.001,
    )
    return Kiosk(container=container, db=db, cameras=cameras, decoder=decoder, matchers=matchers, encoder=encoder)


@pytest.fixture
def container(kiosk):
    return kiosk.container


def enroll(container, member_id: str = MEMBER_ID, full_name: str = "Nguyen Van A", role: str = "Student", seed: float = 0.1):
    return container.member_service.enroll(
        member_id=member_id,
        full_name=full_name,
        role=role,
        photo="data:image/png;base64,AAAA",
        descriptor=descriptor(seed),
    )


def create_event(container, *, event_date: date = EVENT_DAY, name: str = "Morning class"):
    return container.event_service.create(
        event_name=name,
        event_date=event_date,
        time_in_start=time(8, 0),
        time_in_end=time(8, 30),
        time_out_start=time(16, 0),
        time_out_end=time(17, 0),
    )


def at(hour: int, minute: int, day: date = EVENT_DAY) -> datetime:
    return datetime.combine(day, time(hour, minute))


def match(label: str = MEMBER_ID, distance: float = 0.4) -> FaceMatch:
    return FaceMatch(label=label, distance=distance)
