import time
from datetime import datetime, timezone

DAY_MS = 86_400_000


def now_ms() -> int:
    """Current wall-clock time as epoch milliseconds."""
    return int(time.time() * 1000)


def ms_to_datetime(ms: int | None) -> datetime | None:
    """Epoch milliseconds to a tz-aware UTC datetime (None passes through)."""
    if ms is None:
        return None
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)


def to_iso_utc(dt: datetime | None) -> str | None:
    """
    Serialize a datetime to UTC ISO 8601 with trailing 'Z'.
    - If dt is None: return None.
    - If dt is naive: assume it is already UTC and set tzinfo=UTC.
    - If dt has TZ: convert to UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)
    return dt.isoformat().replace("+00:00", "Z")


def ms_to_iso_utc(ms: int | None) -> str | None:
    return to_iso_utc(ms_to_datetime(ms))


def days_until(timestamp_ms: int, now: int) -> int:
    """Whole days from ``now`` until ``timestamp_ms``, never negative."""
    return max(0, (timestamp_ms - now) // DAY_MS)
