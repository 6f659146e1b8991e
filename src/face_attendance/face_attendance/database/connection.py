from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

import mysql.connector
from mysql.connector.constants import ClientFlag


@dataclass(frozen=True)
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    connect_timeout: int = 5

    @classmethod
    def from_mapping(cls, db_config: Mapping) -> "DBConfig":
        """Build from the DB_CONFIG dict of the settings modules."""

        return cls(
            host=str(db_config["host"]),
            port=int(db_config.get("port", 3306)),
            user=str(db_config["user"]),
            password=str(db_config.get("password", "")),
            database=str(db_config["database"]),
            connect_timeout=int(db_config.get("connect_timeout", 5)),
        )

    def describe(self) -> str:
        return f"{self.user}@{self.host}:{self.port}/{self.database}"


class DatabaseConnection:
    """Connection factory shared by the MySQL repositories.

    Each unit of work opens a short-lived connection (see mysql_base.db_cursor);
    the shared instance is rebuilt when the settings point somewhere else.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self._config = config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None or cls._instance._config != config:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    @property
    def config(self) -> DBConfig:
        return self._config

    def connect(self):
        c = self._config
        return mysql.connector.connect(
            host=c.host,
            port=c.port,
            user=c.user,
            password=c.password,
            database=c.database,
            charset="utf8mb4",
            connection_timeout=c.connect_timeout,
            # rowcount reports matched rows, so an UPDATE to identical values still counts.
            client_flags=[ClientFlag.FOUND_ROWS],
        )
