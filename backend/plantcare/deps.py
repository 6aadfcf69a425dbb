"""
FastAPI dependencies wiring the services to the document store.

Tests override ``get_store`` (and ``get_clock`` where time matters) through
``app.dependency_overrides``; everything else follows from those.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Callable, Optional

from fastapi import Depends, Header

from .db import DocumentStore, get_store
from .errors import AuthenticationError
from .services.households import HouseholdManager
from .services.identification import PlantIdentifier, SpeciesCareClient
from .services.identity import AccountService, IdentityProvider
from .services.plants import PlantScheduleManager
from .utils.date_time import now_ms

def get_clock() -> Callable[[], int]:
    return now_ms


def get_identity(store: DocumentStore = Depends(get_store)) -> IdentityProvider:
    return IdentityProvider(store)


def get_plant_manager(
    store: DocumentStore = Depends(get_store),
    clock: Callable[[], int] = Depends(get_clock),
) -> PlantScheduleManager:
    return PlantScheduleManager(store, clock=clock)


def get_household_manager(store: DocumentStore = Depends(get_store)) -> HouseholdManager:
    return HouseholdManager(store)


def get_account_service(
    store: DocumentStore = Depends(get_store),
    identity: IdentityProvider = Depends(get_identity),
    households: HouseholdManager = Depends(get_household_manager),
    clock: Callable[[], int] = Depends(get_clock),
) -> AccountService:
    return AccountService(store, identity, households, clock=clock)


@lru_cache(maxsize=1)
def get_identifier() -> PlantIdentifier:
    return PlantIdentifier()


@lru_cache(maxsize=1)
def get_species_care_client() -> SpeciesCareClient:
    return SpeciesCareClient()


def bearer_token(authorization: Optional[str] = Header(default=None)) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_current_user_id(
    token: Optional[str] = Depends(bearer_token),
    identity: IdentityProvider = Depends(get_identity),
) -> str:
    user_id = identity.current_user_id(token)
    if not user_id:
        raise AuthenticationError("Not authenticated")
    return user_id
