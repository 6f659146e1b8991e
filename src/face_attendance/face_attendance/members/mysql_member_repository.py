from __future__ import annotations

import logging
from typing import Optional, Sequence

import mysql.connector

from ..common.descriptors import Descriptor, descriptor_to_json, try_normalize_descriptor
from ..core.constants import DESCRIPTOR_LENGTH
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import ER_DUP_ENTRY, db_cursor, fetchall, fetchone
from .model import Member
from .repository import MemberRepository

logger = logging.getLogger(__name__)

_COLUMNS = "id, full_name, role, descriptor, photo, created_at, updated_at"


def _to_member(r: dict, descriptor_length: int) -> Member:
    descriptor = try_normalize_descriptor(r.get("descriptor"), length=descriptor_length)
    if descriptor is None:
        logger.warning("Member %s has a malformed face descriptor", r["id"])
    return Member(
        member_id=r["id"],
        full_name=r["full_name"],
        role=r["role"],
        face_descriptor=descriptor,
        photo=r.get("photo") or "",
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


class MySQLMemberRepository(MemberRepository):
    def __init__(self, conn_factory: DatabaseConnection, *, descriptor_length: int = DESCRIPTOR_LENGTH):
        self._conn_factory = conn_factory
        self._descriptor_length = descriptor_length

    def get_by_id(self, member_id: str) -> Optional[Member]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE id=%s", (member_id,))
            row = fetchone(cur)
            return _to_member(row, self._descriptor_length) if row else None

    def list_all(self) -> Sequence[Member]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users ORDER BY full_name ASC")
            return [_to_member(r, self._descriptor_length) for r in fetchall(cur)]

    def create(
        self,
        *,
        member_id: str,
        full_name: str,
        role: str,
        face_descriptor: Descriptor,
        photo: str,
    ) -> str:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO users(id, full_name, role, descriptor, photo)
                    VALUES(%s,%s,%s,%s,%s)
                    """,
                    (member_id, full_name, role, descriptor_to_json(face_descriptor), photo),
                )
        except mysql.connector.IntegrityError as e:
            if e.errno == ER_DUP_ENTRY:
                raise ConflictError("Member with this ID already exists") from e
            raise
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
        sets: list[str] = []
        params: list[object] = []
        if full_name is not None:
            sets.append("full_name=%s")
            params.append(full_name)
        if role is not None:
            sets.append("role=%s")
            params.append(role)
        if face_descriptor is not None:
            sets.append("descriptor=%s")
            params.append(descriptor_to_json(face_descriptor))
        if photo is not None:
            sets.append("photo=%s")
            params.append(photo)
        if not sets:
            return False

        params.append(member_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE users SET {', '.join(sets)} WHERE id=%s", tuple(params))
            return cur.rowcount > 0

    def delete_by_id(self, member_id: str) -> bool:
        # attendance_logs rows go with it (FK ON DELETE CASCADE).
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM users WHERE id=%s", (member_id,))
            return cur.rowcount > 0
