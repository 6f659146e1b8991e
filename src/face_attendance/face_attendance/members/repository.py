from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..common.descriptors import Descriptor
from .model import Member


class MemberRepository(Protocol):
    """Giao diện repository cho Member.

    Lưu ý (DIP): tầng service phụ thuộc vào interface này, không phụ thuộc trực tiếp DB cụ thể.
    """

    def get_by_id(self, member_id: str) -> Optional[Member]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Member]:
        """All members ordered by full name."""

        raise NotImplementedError

    def create(
        self,
        *,
        member_id: str,
        full_name: str,
        role: str,
        face_descriptor: Descriptor,
        photo: str,
    ) -> str:
        """Insert a member; raises ConflictError when the id is taken."""

        raise NotImplementedError

    def update(
        self,
        member_id: str,
        *,
        full_name: Optional[str] = None,
        role: Optional[str] = None,
        face_descriptor: Optional[Descriptor] = None,
        photo: Optional[str] = None,
    ) -> bool:
        raise NotImplementedError

    def delete_by_id(self, member_id: str) -> bool:
        """Delete a member together with its attendance history."""

        raise NotImplementedError
