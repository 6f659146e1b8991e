from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List, Mapping

import mysql.connector

from .connection import DBConfig

logger = logging.getLogger(__name__)

REQUIRED_TABLES = ("users", "events", "attendance_logs")

_COMMENT = re.compile(r"(?m)^\s*--.*$")
# schema.sql names a database for manual use; the settings decide the real one.
_DB_SELECTION = re.compile(r"(?im)^\s*(CREATE\s+DATABASE|USE)\b[^;]*;")


def split_statements(sql: str) -> List[str]:
    """Split a schema script into executable statements.

    Comments and database selection lines are dropped. Statements are split on
    ';', so literals in the script must not contain one.
    """

    body = _DB_SELECTION.sub("", _COMMENT.sub("", sql))
    return [stmt.strip() for stmt in body.split(";") if stmt.strip()]


def _server_connection(config: DBConfig, *, with_database: bool):
    kwargs = dict(
        host=config.host,
        port=config.port,
        user=config.user,
        password=config.password,
        charset="utf8mb4",
        connection_timeout=config.connect_timeout,
    )
    if with_database:
        kwargs["database"] = config.database
    return mysql.connector.connect(**kwargs)


def apply_schema(db_config: Mapping, *, schema_path: str | Path) -> None:
    """Create the configured database if needed and run schema.sql against it."""

    config = DBConfig.from_mapping(db_config)
    statements = split_statements(Path(schema_path).read_text(encoding="utf-8"))

    conn = _server_connection(config, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{config.database}` "
            "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        cur.execute(f"USE `{config.database}`")
        for stmt in statements:
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()
    logger.info("Schema applied to %s (%d statements)", config.describe(), len(statements))


def missing_tables(db_config: Mapping) -> List[str]:
    config = DBConfig.from_mapping(db_config)
    conn = _server_connection(config, with_database=True)
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        present = {row[0] for row in cur.fetchall()}
    finally:
        conn.close()
    return [name for name in REQUIRED_TABLES if name not in present]
