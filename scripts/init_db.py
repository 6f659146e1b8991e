from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.face_attendance.face_attendance.database.bootstrap import apply_schema, missing_tables
from src.face_attendance.face_attendance.database.connection import DBConfig


def main() -> int:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    if str(getattr(settings, "DB_BACKEND", "mysql")).lower() != "mysql":
        print(f"Skip: {settings.__name__} uses the {settings.DB_BACKEND} backend, nothing to initialize")
        return 0

    db_config = dict(settings.DB_CONFIG)
    target = DBConfig.from_mapping(db_config).describe()

    apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
    missing = missing_tables(db_config)
    if missing:
        print(f"FAIL: {target} is missing tables: {', '.join(missing)}")
        return 1
    print(f"OK: schema.sql applied to {target}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
