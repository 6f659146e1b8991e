from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .common.logging_utils import configure_logging
from .database.bootstrap import apply_schema, missing_tables
from .database.connection import DBConfig

from .container import Container, build_container
from .attendance.controller import register as register_attendance
from .capture.controller import register as register_capture
from .events.controller import register as register_events
from .members.controller import register as register_members
from .reports.controller import register as register_reports

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    backend = str(getattr(settings, "DB_BACKEND", "mysql")).lower()
    db_config = getattr(settings, "DB_CONFIG", None)

    logger.debug(
        "settings=%s backend=%s db=%s",
        settings_module,
        backend,
        DBConfig.from_mapping(db_config).describe() if db_config else "-",
    )

    if container is None:
        if backend == "mysql" and bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=SCHEMA_PATH)
            missing = missing_tables(db_config)
            if missing:
                logger.warning("tables still missing after schema apply: %s", ", ".join(missing))

        container = build_container(
            db_config=db_config,
            backend=backend,
            face_match_threshold=float(getattr(settings, "FACE_MATCH_THRESHOLD", 0.6)),
            descriptor_length=int(getattr(settings, "DESCRIPTOR_LENGTH", 128)),
            frame_interval=float(getattr(settings, "FRAME_INTERVAL", 0.05)),
        )
    app.extensions["face_attendance"] = container

    register_members(app, container)
    register_events(app, container)
    register_attendance(app, container)
    register_capture(app, container)
    register_reports(app, container)

    return app
