from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import time, timedelta
from typing import Any, Dict, List, Optional

import mysql.connector

from ..common.datetime_utils import parse_clock_time
from ..core.exceptions import TransientStoreError
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)

ER_DUP_ENTRY = 1062
ER_NO_REFERENCED_ROW = 1452


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Yield (conn, cursor) for one unit of work; commit on success.

    Integrity errors are re-raised untouched so repositories can map them to
    domain errors; every other connector error becomes TransientStoreError.
    """

    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as e:
        logger.error("Database connection failed: %s", e)
        raise TransientStoreError("Database connection failed") from e

    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.IntegrityError:
        conn.rollback()
        raise
    except mysql.connector.Error as e:
        conn.rollback()
        logger.error("Database error: %s", e)
        raise TransientStoreError("Database error, please retry") from e
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    return cur.fetchone() or None


def fetchall(cur) -> List[Dict[str, Any]]:
    return list(cur.fetchall() or [])


def normalize_mysql_time(value: Any) -> Optional[time]:
    """Coerce a TIME column value to datetime.time.

    The C extension returns timedelta, the pure connector may return time or
    'HH:MM:SS' text depending on the cursor type.
    """

    if value is None or isinstance(value, time):
        return value
    if isinstance(value, timedelta):
        minutes, seconds = divmod(int(value.total_seconds()) % 86400, 60)
        hours, minutes = divmod(minutes, 60)
        return time(hours, minutes, seconds)
    if isinstance(value, (bytes, str)):
        text = value.decode() if isinstance(value, bytes) else value
        return parse_clock_time(text)
    raise TypeError(f"Unsupported TIME value: {value!r}")
