from __future__ import annotations

from datetime import datetime, time, timedelta
from pathlib import Path

import mysql.connector
import pytest

from src.face_attendance.face_attendance.attendance.model import AttendanceFilter
from src.face_attendance.face_attendance.attendance.mysql_attendance_repository import MySQLAttendanceRepository
from src.face_attendance.face_attendance.core.enums import AttendanceKind
from src.face_attendance.face_attendance.core.exceptions import ConflictError, NotFoundError, TransientStoreError
from src.face_attendance.face_attendance.database.bootstrap import split_statements
from src.face_attendance.face_attendance.database.mysql_base import normalize_mysql_time
from src.face_attendance.face_attendance.members.mysql_member_repository import MySQLMemberRepository

REPO_ROOT = Path(__file__).resolve().parents[2]


class FakeCursor:
    def __init__(self, conn):
        self._conn = conn
        self.lastrowid = 7

    def execute(self, sql, params=None):
        self._conn.executed.append((" ".join(sql.split()), params))
        if self._conn.error is not None:
            raise self._conn.error

    def fetchall(self):
        return self._conn.rows

    def fetchone(self):
        return self._conn.rows[0] if self._conn.rows else None

    def close(self):
        pass


class FakeConn:
    def __init__(self, *, error=None, rows=None):
        self.error = error
        self.rows = rows or []
        self.executed: list = []
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def cursor(self, dictionary=True):
        return FakeCursor(self)

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


class FakeConnFactory:
    def __init__(self, conn=None, connect_error=None):
        self.conn = conn
        self.connect_error = connect_error

    def connect(self):
        if self.connect_error is not None:
            raise self.connect_error
        return self.conn


def _create(repo, event_id=3):
    return repo.create(
        member_id="1234-5678",
        full_name="A",
        event_id=event_id,
        kind=AttendanceKind.CHECK_IN,
        timestamp=datetime(2024, 5, 6, 8, 31),
        is_late=True,
    )


def test_insert_writes_dedup_key_and_commits():
    conn = FakeConn()
    rec = _create(MySQLAttendanceRepository(FakeConnFactory(conn)))

    assert rec.log_id == 7
    sql, params = conn.executed[0]
    assert sql.startswith("INSERT INTO attendance_logs")
    assert params[-1] == "event:3:1234-5678:time_in"
    assert conn.committed and conn.closed


def test_duplicate_key_becomes_conflict():
    conn = FakeConn(error=mysql.connector.IntegrityError(msg="Duplicate entry", errno=1062))
    with pytest.raises(ConflictError, match="this event"):
        _create(MySQLAttendanceRepository(FakeConnFactory(conn)))
    assert conn.rolled_back and conn.closed


def test_missing_foreign_key_becomes_not_found():
    conn = FakeConn(error=mysql.connector.IntegrityError(msg="FK", errno=1452))
    with pytest.raises(NotFoundError):
        _create(MySQLAttendanceRepository(FakeConnFactory(conn)), event_id=None)


def test_other_connector_errors_are_transient():
    conn = FakeConn(error=mysql.connector.OperationalError(msg="gone away", errno=2006))
    with pytest.raises(TransientStoreError):
        _create(MySQLAttendanceRepository(FakeConnFactory(conn)))

    factory = FakeConnFactory(connect_error=mysql.connector.InterfaceError(msg="refused", errno=2003))
    with pytest.raises(TransientStoreError):
        MySQLAttendanceRepository(factory).list_logs(AttendanceFilter())


def test_list_logs_builds_parameterized_query():
    conn = FakeConn()
    MySQLAttendanceRepository(FakeConnFactory(conn)).list_logs(
        AttendanceFilter(member_id="1234-5678", kind=AttendanceKind.CHECK_OUT, limit=10)
    )
    sql, params = conn.executed[0]
    assert "al.user_id=%s" in sql
    assert "al.attendance_type=%s" in sql
    assert "ORDER BY al.attendance_time DESC" in sql
    assert "1234-5678" in params
    assert "time_out" in params


def test_member_descriptor_is_read_with_configured_length():
    row = {
        "id": "1234-5678",
        "full_name": "A",
        "role": "Student",
        "descriptor": "[1, 2, 3]",
        "photo": "data:,",
        "created_at": None,
        "updated_at": None,
    }
    member = MySQLMemberRepository(FakeConnFactory(FakeConn(rows=[row]))).get_by_id("1234-5678")
    assert member is not None
    assert member.face_descriptor is None

    repo = MySQLMemberRepository(FakeConnFactory(FakeConn(rows=[row])), descriptor_length=3)
    assert repo.get_by_id("1234-5678").face_descriptor == (1.0, 2.0, 3.0)


@pytest.mark.parametrize(
    "value, expected",
    [
        (time(8, 30), time(8, 30)),
        (timedelta(hours=16, minutes=5), time(16, 5)),
        ("08:30:15", time(8, 30, 15)),
        (b"17:00", time(17, 0)),
        (None, None),
    ],
)
def test_normalize_mysql_time(value, expected):
    assert normalize_mysql_time(value) == expected


def test_split_statements_drops_comments_and_database_selection():
    sql = (REPO_ROOT / "database" / "schema.sql").read_text(encoding="utf-8")
    statements = split_statements(sql)

    assert len(statements) == 3
    assert all(s.upper().startswith("CREATE TABLE") for s in statements)
    assert not any("--" in s for s in statements)
    assert "uq_attendance_dedup (dedup_key)" in statements[-1]
