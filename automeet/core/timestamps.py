"""
Timestamp parsing and normalization.

Meetings store start/end times as UTC ISO-8601 strings with millisecond
precision (``2026-03-02T09:30:00.000Z``). Inputs may be ISO strings,
datetimes, or epoch milliseconds; naive values are read in the configured
timezone.
"""

from datetime import datetime, timezone
from typing import Any
from zoneinfo import ZoneInfo

from automeet.config import settings


def get_timezone(name: str | None = None) -> ZoneInfo:
    """Resolve a timezone name, defaulting to the configured one."""
    return ZoneInfo(name or settings.timezone)


def parse_timestamp(value: Any, tz: ZoneInfo | None = None) -> datetime:
    """
    Parse a timestamp into an aware datetime.

    Args:
        value: ISO-8601 string, datetime, or epoch milliseconds
        tz: Zone for naive values (configured timezone if omitted)

    Returns:
        Timezone-aware datetime

    Raises:
        ValueError: If the value cannot be read as a timestamp
    """
    tz = tz or get_timezone()

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError) as e:
            raise ValueError(f"Timestamp out of range: {value!r}") from e
    elif isinstance(value, str) and value.strip():
        dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    else:
        raise ValueError(f"Invalid timestamp: {value!r}")

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=tz)
    return dt


def normalize_timestamp(value: Any, tz: ZoneInfo | None = None) -> str:
    """Convert a timestamp to the stored UTC string form."""
    try:
        dt = parse_timestamp(value, tz).astimezone(timezone.utc)
    except OverflowError as e:
        raise ValueError(f"Timestamp out of range: {value!r}") from e
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def local_hour(value: Any, tz: ZoneInfo | None = None) -> int:
    """Hour of the timestamp in the given (or configured) timezone."""
    tz = tz or get_timezone()
    try:
        return parse_timestamp(value, tz).astimezone(tz).hour
    except OverflowError as e:
        raise ValueError(f"Timestamp out of range: {value!r}") from e


def utc_now_iso() -> str:
    """Current time in the stored UTC string form."""
    return normalize_timestamp(datetime.now(timezone.utc))
