"""
Plant Schedule Manager.

Owns the plant documents: creation, deletion, edits and the watering state
machine. Household plants additionally get an activity record per watering.
Store failures on boolean operations are logged and reported as ``False``;
nothing is retried or rolled back.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Optional

from ..db import DocumentStore, Subscription
from ..errors import InvalidInputError, NotFoundError, StoreError
from ..helpers.schedule import can_water, rescheduled_watering_date, watering_interval_ms
from ..schemas.household import Activity
from ..schemas.plant import DEFAULT_WATERING_DAYS, Plant
from ..utils.date_time import DAY_MS, days_until, now_ms

PLANTS = "plants"


class WateringResult(Enum):
    WATERED = "watered"
    TOO_EARLY = "too_early"
    FAILED = "failed"


def activities_collection(household_id: str) -> str:
    return f"households/{household_id}/activities"


def _clean_name(name: str | None) -> str:
    return " ".join((name or "").split())


class PlantScheduleManager:
    """
    Usage:
      manager = PlantScheduleManager(store)
      plant = manager.add_plant(Plant(name="Fern", owner_id=uid))
      manager.mark_watered(plant, actor_id=uid)
    """

    def __init__(self, store: DocumentStore, clock: Callable[[], int] = now_ms):
        self.store = store
        self.clock = clock

    # --- queries ------------------------------------------------------------

    def get_plant(self, plant_id: str) -> Plant:
        doc = self.store.get(PLANTS, plant_id)
        if doc is None:
            raise NotFoundError("Plant not found", {"plant_id": plant_id})
        return Plant(**doc)

    def load_plants(self, user_id: str, household_id: Optional[str] = None) -> list[Plant]:
        """Private plants of ``user_id``, or every plant of ``household_id``."""
        if household_id is None:
            docs = self.store.where(PLANTS, "owner_id", user_id)
        else:
            docs = self.store.where(PLANTS, "household_id", household_id)
        return sorted((Plant(**d) for d in docs), key=lambda p: (p.next_watering_date, p.name))

    def subscribe_plants(self, user_id: str, household_id: Optional[str] = None) -> Subscription:
        """Live snapshots of the same set ``load_plants`` returns; caller closes it."""
        if household_id is None:
            return self.store.subscribe(PLANTS, "owner_id", user_id)
        return self.store.subscribe(PLANTS, "household_id", household_id)

    def days_until(self, plant: Plant) -> int:
        return days_until(plant.next_watering_date, self.clock())

    # --- commands -----------------------------------------------------------

    def add_plant(self, draft: Plant) -> Plant:
        name = _clean_name(draft.name)
        if not name:
            raise InvalidInputError("Plant name is required.")
        if draft.watering_days is None or draft.watering_days <= 0:
            raise InvalidInputError("Enter a valid number of days.")
        if (draft.owner_id is None) == (draft.household_id is None):
            raise InvalidInputError("A plant belongs either to its owner or to one household.")

        now = self.clock()
        plant = draft.model_copy(
            update={
                "id": self.store.new_id(),
                "name": name,
                "next_watering_date": now + draft.watering_days * DAY_MS,
                "last_watered": None,
                "times_watered": 0,
                "created_at": now,
            }
        )
        self.store.set(PLANTS, plant.id, plant.model_dump())
        return plant

    def delete_plant(self, plant_id: str) -> bool:
        try:
            self.store.delete(PLANTS, plant_id)
        except StoreError as e:
            logging.error(f"Failed to delete plant {plant_id}: {e}")
            return False
        return True

    def mark_watered(self, plant: Plant, actor_id: str) -> bool:
        """Advance the schedule; ``False`` when too early or the write fails."""
        return self.water(plant, actor_id) is WateringResult.WATERED

    def water(self, plant: Plant, actor_id: str) -> WateringResult:
        """Like ``mark_watered`` but tells a rejected watering from a failed write."""
        now = self.clock()
        if not can_water(plant.next_watering_date, plant.last_watered, plant.watering_days, now):
            return WateringResult.TOO_EARLY

        updated = plant.model_copy(
            update={
                "next_watering_date": now + watering_interval_ms(plant.watering_days),
                "last_watered": now,
                "times_watered": plant.times_watered + 1,
            }
        )
        try:
            self.store.set(PLANTS, plant.id, updated.model_dump())
        except StoreError as e:
            logging.error(f"Failed to record watering for plant {plant.id}: {e}")
            return WateringResult.FAILED

        if plant.household_id is not None:
            activity = Activity(plant_name=plant.name, user_id=actor_id, timestamp=now)
            try:
                activity_id = self.store.new_id()
                self.store.set(
                    activities_collection(plant.household_id),
                    activity_id,
                    activity.model_copy(update={"id": activity_id}).model_dump(),
                )
            except StoreError as e:
                # The watering itself is already persisted.
                logging.warning(f"Watering of {plant.id} saved without activity record: {e}")
        return WateringResult.WATERED

    def update_plant(self, plant: Plant, new_name: str, new_watering_days: int) -> bool:
        name = _clean_name(new_name)
        if not name:
            raise InvalidInputError("Plant name is required.")
        if new_watering_days is None or new_watering_days <= 0:
            raise InvalidInputError("Enter a valid number of days.")

        now = self.clock()
        updated = plant.model_copy(
            update={
                "name": name,
                "watering_days": new_watering_days,
                "next_watering_date": rescheduled_watering_date(plant.next_watering_date, new_watering_days, now),
            }
        )
        try:
            self.store.set(PLANTS, plant.id, updated.model_dump())
        except StoreError as e:
            logging.error(f"Failed to update plant {plant.id}: {e}")
            return False
        return True


__all__ = ["PLANTS", "DEFAULT_WATERING_DAYS", "PlantScheduleManager", "WateringResult", "activities_collection"]
