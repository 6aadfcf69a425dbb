"""
Household Manager.

Creates households with 6-digit join codes, adds members by code and removes
them again. A household with no members left is destroyed together with its
plants. None of the multi-document sequences here are transactional: a
failure partway leaves the earlier writes in place.
"""
from __future__ import annotations

import logging
import random
from typing import Optional

from ..db import ArrayRemove, ArrayUnion, DocumentStore
from ..errors import (
    DocumentNotFoundError,
    InvalidInputError,
    InvalidJoinCodeError,
    JoinCodeExhaustedError,
    NotFoundError,
    PartialWriteError,
    StoreError,
)
from ..schemas.household import Activity, Household
from .plants import PLANTS, activities_collection

HOUSEHOLDS = "households"
USERS = "users"

MAX_JOIN_CODE_ATTEMPTS = 10


class HouseholdManager:
    def __init__(self, store: DocumentStore, rng: Optional[random.Random] = None):
        self.store = store
        self.rng = rng or random.SystemRandom()

    # --- join codes ---------------------------------------------------------

    def generate_join_code(self) -> str:
        return str(self.rng.randint(100000, 999999))

    def _unique_join_code(self) -> str:
        for _ in range(MAX_JOIN_CODE_ATTEMPTS):
            code = self.generate_join_code()
            if not self.store.where(HOUSEHOLDS, "join_code", code):
                return code
        raise JoinCodeExhaustedError(
            "Could not generate a unique join code", {"attempts": MAX_JOIN_CODE_ATTEMPTS}
        )

    # --- queries ------------------------------------------------------------

    def get_household(self, household_id: str) -> Household:
        doc = self.store.get(HOUSEHOLDS, household_id)
        if doc is None:
            raise NotFoundError("Household not found", {"household_id": household_id})
        return Household(**doc)

    def find_by_name(self, name: str) -> Optional[Household]:
        docs = self.store.where(HOUSEHOLDS, "name", name)
        return Household(**docs[0]) if docs else None

    def list_households_for_user(self, user_id: str) -> list[Household]:
        """Households listed on the user's own record that still exist."""
        user = self.store.get(USERS, user_id)
        if user is None:
            return []
        households = []
        for household_id in user.get("households") or []:
            doc = self.store.get(HOUSEHOLDS, household_id)
            if doc is not None:
                households.append(Household(**doc))
        return households

    def list_activities(self, household_id: str) -> list[Activity]:
        docs = self.store.all(activities_collection(household_id))
        return sorted((Activity(**d) for d in docs), key=lambda a: a.timestamp, reverse=True)

    # --- commands -----------------------------------------------------------

    def create_household(self, name: str, owner_id: str) -> str:
        """Create a household owned by ``owner_id`` and link it to the owner.

        Raises PartialWriteError when the household was written but the
        owner's record could not be updated; the household is left in place.
        """
        name = " ".join((name or "").split())
        if not name:
            raise InvalidInputError("Household name cannot be empty")

        join_code = self._unique_join_code()
        household = Household(
            id=self.store.new_id(),
            name=name,
            join_code=join_code,
            members=[owner_id],
        )
        self.store.set(HOUSEHOLDS, household.id, household.model_dump())
        try:
            self.store.update(USERS, owner_id, {"households": ArrayUnion(household.id)})
        except StoreError as e:
            logging.warning(f"Household {household.id} created but owner {owner_id} not linked: {e}")
            raise PartialWriteError(
                "Household created but not linked to its owner",
                completed=["household"],
                details={"household_id": household.id},
            ) from e
        return household.id

    def join_household_by_code(self, code: str, user_id: str) -> str:
        matches = self.store.where(HOUSEHOLDS, "join_code", (code or "").strip())
        if not matches:
            raise InvalidJoinCodeError()
        household_id = matches[0]["id"]
        self._add_member(household_id, user_id)
        return household_id

    def join_household(self, household_id: str, user_id: str) -> str:
        """Add ``user_id`` to an existing household by id."""
        self.get_household(household_id)
        self._add_member(household_id, user_id)
        return household_id

    def _add_member(self, household_id: str, user_id: str) -> None:
        self.store.update(HOUSEHOLDS, household_id, {"members": ArrayUnion(user_id)})
        try:
            self.store.update(USERS, user_id, {"households": ArrayUnion(household_id)})
        except StoreError as e:
            logging.warning(f"User {user_id} added to {household_id} but user record not updated: {e}")
            raise PartialWriteError(
                "Joined household but the user record was not updated",
                completed=["members"],
                details={"household_id": household_id},
            ) from e

    def leave_household(self, household_id: str, user_id: str) -> bool:
        """Remove ``user_id``; the last member leaving destroys the household."""
        household = self.get_household(household_id)
        try:
            self.store.update(HOUSEHOLDS, household_id, {"members": ArrayRemove(user_id)})
            self._unlink_user(user_id, household_id)
            if not [m for m in household.members if m != user_id]:
                self._destroy(household_id)
        except StoreError as e:
            logging.error(f"Failed to leave household {household_id} for {user_id}: {e}")
            return False
        return True

    def delete_household(self, household_id: str, requester_id: str) -> bool:
        household = self.get_household(household_id)
        try:
            for member_id in household.members:
                self._unlink_user(member_id, household_id)
            self._destroy(household_id)
        except StoreError as e:
            logging.error(f"Failed to delete household {household_id}: {e}")
            return False
        logging.info(f"Household {household_id} deleted by {requester_id}")
        return True

    def _unlink_user(self, user_id: str, household_id: str) -> None:
        try:
            self.store.update(USERS, user_id, {"households": ArrayRemove(household_id)})
        except DocumentNotFoundError:
            # Member without a user record; nothing to unlink.
            pass

    def _destroy(self, household_id: str) -> None:
        """Delete the household's plants, then the household itself."""
        for plant in self.store.where(PLANTS, "household_id", household_id):
            self.store.delete(PLANTS, plant["id"])
        self.store.delete(HOUSEHOLDS, household_id)


__all__ = ["HOUSEHOLDS", "USERS", "MAX_JOIN_CODE_ATTEMPTS", "HouseholdManager"]
