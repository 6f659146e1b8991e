"""Run one capture session against a server-attached camera.

Usage: python scripts/run_kiosk.py [--camera 0] [--event-id 3] [--type time_out]
"""

from __future__ import annotations

import argparse
import importlib
import sys
import time
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.face_attendance.face_attendance.common.logging_utils import configure_logging
from src.face_attendance.face_attendance.common.validators import parse_attendance_kind
from src.face_attendance.face_attendance.container import build_container
from src.face_attendance.face_attendance.core.enums import TERMINAL_STATES, CaptureState
from src.face_attendance.face_attendance.core.exceptions import DomainError

CONTEXT = "kiosk"


def main() -> int:
    parser = argparse.ArgumentParser(description="QR + face attendance kiosk")
    parser.add_argument("--camera", default="0", help="camera index")
    parser.add_argument("--event-id", type=int, default=None)
    parser.add_argument("--type", default="time_in", help="time_in or time_out")
    args = parser.parse_args()

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    container = build_container(
        db_config=getattr(settings, "DB_CONFIG", None),
        backend=getattr(settings, "DB_BACKEND", "mysql"),
        face_match_threshold=float(getattr(settings, "FACE_MATCH_THRESHOLD", 0.6)),
        frame_interval=float(getattr(settings, "FRAME_INTERVAL", 0.05)),
    )
    manager = container.capture_manager

    try:
        snap = manager.start(
            CONTEXT,
            source=str(args.camera),
            event_id=args.event_id,
            kind=parse_attendance_kind(args.type),
        )
        print(snap.status)

        last_status = snap.status
        while True:
            snap = manager.status(CONTEXT)
            if snap.status != last_status:
                print(snap.status)
                last_status = snap.status

            if snap.state == CaptureState.IDENTITY_RESOLVED:
                answer = input(f"Member {snap.member_id} ({snap.full_name}). Proceed with face check? [Y/n] ")
                if answer.strip().lower() in {"n", "no"}:
                    break
                manager.confirm(CONTEXT)
            elif snap.awaiting_write:
                answer = input(f"{snap.error}. Retry? [y/N] ")
                if answer.strip().lower() not in {"y", "yes"}:
                    break
                try:
                    manager.submit(CONTEXT)
                except DomainError as e:
                    print(f"Retry failed: {e}")
            elif snap.state in TERMINAL_STATES or snap.state == CaptureState.IDLE:
                if snap.record:
                    print(f"OK: logId={snap.record.log_id} late={snap.record.is_late}")
                return 0 if snap.state == CaptureState.COMPLETED else 1
            time.sleep(0.2)
    except KeyboardInterrupt:
        pass
    except DomainError as e:
        print(f"Error: {e}")
        return 1
    finally:
        manager.shutdown()
    return 1


if __name__ == "__main__":
    sys.exit(main())
