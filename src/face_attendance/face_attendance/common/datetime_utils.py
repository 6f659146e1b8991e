from __future__ import annotations

from datetime import date, datetime, time

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date: {value!r} (expected YYYY-MM-DD)")


def parse_clock_time(value: str) -> time:
    """Parse HH:MM or HH:MM:SS into time."""
    for fmt in ("%H:%M:%S", "%H:%M"):
        try:
            return datetime.strptime(str(value).strip(), fmt).time()
        except ValueError:
            continue
    raise ValidationError(f"Invalid time: {value!r} (expected HH:MM or HH:MM:SS)")


def parse_timestamp(value: str) -> datetime:
    """Parse 'YYYY-MM-DD HH:MM:SS' (or ISO 8601) into a naive local datetime."""
    text = str(value).strip()
    try:
        return datetime.strptime(text, "%Y-%m-%d %H:%M:%S")
    except ValueError:
        pass
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError(f"Invalid time: {value!r} (expected YYYY-MM-DD HH:MM:SS)")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed.replace(microsecond=0)


def format_timestamp(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S")


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier. Truncated to whole
    seconds like the DATETIME columns.
    """
    return datetime.now().replace(microsecond=0)
