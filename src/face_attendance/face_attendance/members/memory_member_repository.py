from __future__ import annotations

from typing import Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.descriptors import Descriptor
from ..core.exceptions import ConflictError
from ..database.memory import MemoryDatabase
from .model import Member
from .repository import MemberRepository


class MemoryMemberRepository(MemberRepository):
    def __init__(self, db: MemoryDatabase):
        self._db = db

    @staticmethod
    def _to_member(r: dict) -> Member:
        return Member(
            member_id=r["id"],
            full_name=r["full_name"],
            role=r["role"],
            face_descriptor=r["descriptor"],
            photo=r["photo"],
            created_at=r["created_at"],
            updated_at=r["updated_at"],
        )

    def get_by_id(self, member_id: str) -> Optional[Member]:
        with self._db.lock:
            r = self._db.members.get(member_id)
            return self._to_member(r) if r else None

    def list_all(self) -> Sequence[Member]:
        with self._db.lock:
            rows = sorted(self._db.members.values(), key=lambda r: r["full_name"])
            return [self._to_member(r) for r in rows]

    def create(
        self,
        *,
        member_id: str,
        full_name: str,
        role: str,
        face_descriptor: Descriptor,
        photo: str,
    ) -> str:
        with self._db.lock:
            if member_id in self._db.members:
                raise ConflictError("Member with this ID already exists")
            now = now_local()
            self._db.members[member_id] = {
                "id": member_id,
                "full_name": full_name,
                "role": role,
                "descriptor": tuple(face_descriptor),
                "photo": photo,
                "created_at": now,
                "updated_at": now,
            }
        return member_id

    def update(
        self,
        member_id: str,
        *,
        full_name: Optional[str] = None,
        role: Optional[str] = None,
        face_descriptor: Optional[Descriptor] = None,
        photo: Optional[str] = None,
    ) -> bool:
        with self._db.lock:
            r = self._db.members.get(member_id)
            if not r:
                return False
            if full_name is not None:
                r["full_name"] = full_name
            if role is not None:
                r["role"] = role
            if face_descriptor is not None:
                r["descriptor"] = tuple(face_descriptor)
            if photo is not None:
                r["photo"] = photo
            r["updated_at"] = now_local()
            return True

    def delete_by_id(self, member_id: str) -> bool:
        with self._db.lock:
            if self._db.members.pop(member_id, None) is None:
                return False
            for log_id, log in list(self._db.attendance.items()):
                if log["user_id"] == member_id:
                    del self._db.attendance[log_id]
                    self._db.dedup_keys.pop(log["dedup_key"], None)
            return True
