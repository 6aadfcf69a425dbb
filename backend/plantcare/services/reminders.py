"""
Watering due-check.

``run_due_check`` is the single entry point a periodic scheduler calls
(roughly once a day). It gathers the user's private plants plus the plants of
every household on the user's record and reports those that are due.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional

from ..db import DocumentStore, chunked
from ..schemas.plant import Plant
from ..utils.date_time import now_ms
from .households import USERS
from .plants import PLANTS


def collect_plants_for_user(store: DocumentStore, user_id: str) -> list[Plant]:
    docs = store.where(PLANTS, "owner_id", user_id)
    user = store.get(USERS, user_id) or {}
    household_ids = list(user.get("households") or [])
    for batch in chunked(household_ids):
        docs.extend(store.where_in(PLANTS, "household_id", batch))
    return [Plant(**d) for d in docs]


def due_plants(store: DocumentStore, user_id: str, now: int) -> list[Plant]:
    plants = [p for p in collect_plants_for_user(store, user_id) if p.next_watering_date <= now]
    return sorted(plants, key=lambda p: p.next_watering_date)


def reminder_text(plant_names: list[str]) -> Optional[str]:
    if not plant_names:
        return None
    if len(plant_names) == 1:
        return f"Time to water {plant_names[0]}!"
    return f"You have {len(plant_names)} plants that need watering!"


def run_due_check(
    store: DocumentStore,
    user_id: str,
    clock: Callable[[], int] = now_ms,
    notify: Callable[[str], None] | None = None,
) -> list[Plant]:
    """Check for due plants now and hand the reminder text to ``notify``."""
    due = due_plants(store, user_id, clock())
    text = reminder_text([p.name for p in due])
    if text:
        logging.info(f"Watering reminder for {user_id}: {text}")
        if notify is not None:
            notify(text)
    return due
