"""Face detection and matching with face_recognition (dlib).

The library is imported on first use so that the HTTP API and the store work on
hosts without dlib; a load failure is a ResourceUnavailableError.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence, Tuple

import numpy as np

from ..common.descriptors import Descriptor
from ..core.exceptions import ResourceUnavailableError
from .frames import decode_image

logger = logging.getLogger(__name__)

UNKNOWN_LABEL = "unknown"


@dataclass(frozen=True)
class FaceMatch:
    label: str
    distance: float


class FaceMatcher(Protocol):
    def best_match(self, frame: np.ndarray) -> Optional[FaceMatch]:
        """Closest reference for the first face in the frame; None when no face is detected."""

        raise NotImplementedError


def load_face_recognition():
    try:
        import face_recognition
    except (ImportError, OSError, RuntimeError) as e:
        raise ResourceUnavailableError("Face recognition models are unavailable") from e
    return face_recognition


class FaceRecognitionMatcher:
    def __init__(self, references: Sequence[Tuple[str, Descriptor]]):
        self._fr = load_face_recognition()
        self._labels = [member_id for member_id, _ in references]
        self._known = np.array([d for _, d in references], dtype=np.float64)
        logger.debug("Face matcher ready with %d references", len(self._labels))

    def best_match(self, frame: np.ndarray) -> Optional[FaceMatch]:
        boxes = self._fr.face_locations(frame)
        if not boxes:
            return None
        encodings = self._fr.face_encodings(frame, boxes)
        if not encodings:
            return None
        if not self._labels:
            return FaceMatch(label=UNKNOWN_LABEL, distance=float("inf"))

        distances = self._fr.face_distance(self._known, encodings[0])
        best = int(np.argmin(distances))
        return FaceMatch(label=self._labels[best], distance=float(distances[best]))


class FaceRecognitionEncoder:
    """Computes an enrollment descriptor from a photo (see members.service.FaceEncoder)."""

    def __init__(self):
        self._fr = None

    def encode_photo(self, photo: str) -> Optional[Descriptor]:
        rgb = decode_image(photo)
        if self._fr is None:
            self._fr = load_face_recognition()

        boxes = self._fr.face_locations(rgb)
        if not boxes:
            return None
        encodings = self._fr.face_encodings(rgb, boxes)
        if not encodings:
            return None
        return tuple(float(x) for x in encodings[0])
