from __future__ import annotations

import logging
from typing import Any, Optional, Protocol, Sequence

from ..common.descriptors import Descriptor, normalize_descriptor
from ..common.validators import require_member_id, require_non_empty
from ..core.constants import DESCRIPTOR_LENGTH
from ..core.exceptions import NotFoundError, ValidationError
from .model import Member
from .repository import MemberRepository

logger = logging.getLogger(__name__)


class FaceEncoder(Protocol):
    def encode_photo(self, photo: str) -> Optional[Descriptor]:
        """Return the descriptor of the single face in the photo, or None when no face is found."""

        raise NotImplementedError


class MemberService:
    """Use case: enroll and manage members."""

    def __init__(
        self,
        members: MemberRepository,
        *,
        face_encoder: Optional[FaceEncoder] = None,
        descriptor_length: int = DESCRIPTOR_LENGTH,
    ):
        self._members = members
        self._encoder = face_encoder
        self._descriptor_length = int(descriptor_length)

    def _descriptor_from(self, descriptor: Any, photo: Optional[str]) -> Descriptor:
        if descriptor is not None:
            return normalize_descriptor(descriptor, length=self._descriptor_length)

        if not photo or self._encoder is None:
            raise ValidationError("Face descriptor is required")

        encoded = self._encoder.encode_photo(photo)
        if encoded is None:
            raise ValidationError("No face detected. Please ensure the face is clearly visible.")
        return normalize_descriptor(encoded, length=self._descriptor_length)

    def enroll(
        self,
        *,
        member_id: str,
        full_name: str,
        role: str,
        photo: str,
        descriptor: Any = None,
    ) -> Member:
        member_id = require_member_id(member_id)
        full_name = require_non_empty(full_name, "Full name")
        role = require_non_empty(role, "Role")
        photo = require_non_empty(photo, "Photo")

        face_descriptor = self._descriptor_from(descriptor, photo)
        self._members.create(
            member_id=member_id,
            full_name=full_name,
            role=role,
            face_descriptor=face_descriptor,
            photo=photo,
        )
        logger.info("Enrolled member %s (%s)", member_id, role)
        return self.get(member_id)

    def get(self, member_id: str) -> Member:
        member = self._members.get_by_id(str(member_id).strip())
        if not member:
            raise NotFoundError("Member not found")
        return member

    def find(self, member_id: str) -> Optional[Member]:
        return self._members.get_by_id(str(member_id).strip())

    def list(self) -> Sequence[Member]:
        return self._members.list_all()

    def update(
        self,
        member_id: str,
        *,
        full_name: Optional[str] = None,
        role: Optional[str] = None,
        descriptor: Any = None,
        photo: Optional[str] = None,
    ) -> Member:
        member_id = str(member_id).strip()
        self.get(member_id)

        if full_name is not None:
            full_name = require_non_empty(full_name, "Full name")
        if role is not None:
            role = require_non_empty(role, "Role")
        if photo is not None:
            photo = require_non_empty(photo, "Photo")

        face_descriptor = None
        if descriptor is not None or (photo is not None and self._encoder is not None):
            face_descriptor = self._descriptor_from(descriptor, photo)

        if full_name is None and role is None and face_descriptor is None and photo is None:
            raise ValidationError("No fields to update")

        updated = self._members.update(
            member_id,
            full_name=full_name,
            role=role,
            face_descriptor=face_descriptor,
            photo=photo,
        )
        if not updated:
            raise NotFoundError("Member not found")
        return self.get(member_id)

    def delete(self, member_id: str) -> None:
        if not self._members.delete_by_id(str(member_id).strip()):
            raise NotFoundError("Member not found")
        logger.info("Deleted member %s and its attendance history", member_id)

    def reference_descriptors(self) -> list[tuple[str, Descriptor]]:
        """(member_id, descriptor) for every member usable by the face matcher."""

        out: list[tuple[str, Descriptor]] = []
        for m in self._members.list_all():
            if m.face_descriptor is None or len(m.face_descriptor) != self._descriptor_length:
                logger.warning("Skipping member %s with invalid descriptor", m.member_id)
                continue
            out.append((m.member_id, m.face_descriptor))
        return out
