"""
Watering schedule rules.

Rules:
- The watering interval is ``watering_days`` in milliseconds; a non-positive
  value falls back to the 7-day default.
- A plant that has been watered before may not be watered again until the
  last third of its interval (threshold inclusive).
- Editing the interval never pushes the next watering further out than the
  time already remaining, but a shorter interval applies immediately.
"""

from ..schemas.plant import DEFAULT_WATERING_DAYS
from ..utils.date_time import DAY_MS


def watering_interval_ms(watering_days: int) -> int:
    days = watering_days if watering_days > 0 else DEFAULT_WATERING_DAYS
    return days * DAY_MS


def early_watering_threshold(next_watering_date: int, watering_days: int) -> int:
    """Earliest moment a re-watering is accepted."""
    return next_watering_date - watering_interval_ms(watering_days) // 3


def can_water(next_watering_date: int, last_watered: int | None, watering_days: int, now: int) -> bool:
    if last_watered is None:
        return True
    return now >= early_watering_threshold(next_watering_date, watering_days)


def remaining_days(next_watering_date: int, now: int) -> int:
    return max(0, (next_watering_date - now) // DAY_MS)


def rescheduled_watering_date(next_watering_date: int, new_watering_days: int, now: int) -> int:
    """Next watering date after the interval is changed to ``new_watering_days``.

    Whole days remaining on the current schedule cap the new interval; with
    less than a day left the new interval applies in full.
    """
    remaining = remaining_days(next_watering_date, now)
    days = min(new_watering_days, remaining if remaining > 0 else new_watering_days)
    return now + days * DAY_MS
