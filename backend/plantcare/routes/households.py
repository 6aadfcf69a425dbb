from fastapi import APIRouter, Depends, HTTPException
from starlette.concurrency import run_in_threadpool

from ..db import normalize_hex_id
from ..deps import get_current_user_id, get_household_manager
from ..errors import PermissionDeniedError
from ..schemas.household import (
    Activity,
    HouseholdCreatedResponse,
    HouseholdCreateRequest,
    HouseholdItem,
    HouseholdJoinRequest,
)
from ..services.households import HouseholdManager

app = APIRouter()


def _household_id(raw: str) -> str:
    household_id = normalize_hex_id(raw)
    if household_id is None:
        raise HTTPException(status_code=400, detail="Invalid household id")
    return household_id


@app.get("/households", response_model=list[HouseholdItem])
async def list_households(
    user_id: str = Depends(get_current_user_id),
    households: HouseholdManager = Depends(get_household_manager),
) -> list[HouseholdItem]:
    def fetch():
        return [HouseholdItem(**h.model_dump()) for h in households.list_households_for_user(user_id)]

    return await run_in_threadpool(fetch)


@app.post("/households", response_model=HouseholdCreatedResponse)
async def create_household(
    payload: HouseholdCreateRequest,
    user_id: str = Depends(get_current_user_id),
    households: HouseholdManager = Depends(get_household_manager),
) -> HouseholdCreatedResponse:
    def do_create():
        household_id = households.create_household(payload.name, user_id)
        return HouseholdCreatedResponse(id=household_id, join_code=households.get_household(household_id).join_code)

    return await run_in_threadpool(do_create)


@app.post("/households/join", response_model=HouseholdCreatedResponse)
async def join_household(
    payload: HouseholdJoinRequest,
    user_id: str = Depends(get_current_user_id),
    households: HouseholdManager = Depends(get_household_manager),
) -> HouseholdCreatedResponse:
    household_id = await run_in_threadpool(households.join_household_by_code, payload.code, user_id)
    return HouseholdCreatedResponse(id=household_id)


@app.post("/households/{household_id}/leave")
async def leave_household(
    household_id: str,
    user_id: str = Depends(get_current_user_id),
    households: HouseholdManager = Depends(get_household_manager),
):
    household_id = _household_id(household_id)
    ok = await run_in_threadpool(households.leave_household, household_id, user_id)
    if not ok:
        raise HTTPException(status_code=500, detail="Failed to leave household")
    return {"ok": True}


@app.delete("/households/{household_id}")
async def delete_household(
    household_id: str,
    user_id: str = Depends(get_current_user_id),
    households: HouseholdManager = Depends(get_household_manager),
):
    household_id = _household_id(household_id)

    def do_delete():
        household = households.get_household(household_id)
        if user_id not in household.members:
            raise PermissionDeniedError("Not a member of this household")
        return households.delete_household(household_id, user_id)

    if not await run_in_threadpool(do_delete):
        raise HTTPException(status_code=500, detail="Failed to delete household")
    return {"ok": True}


@app.get("/households/{household_id}/activities", response_model=list[Activity])
async def list_activities(
    household_id: str,
    user_id: str = Depends(get_current_user_id),
    households: HouseholdManager = Depends(get_household_manager),
) -> list[Activity]:
    household_id = _household_id(household_id)

    def fetch():
        household = households.get_household(household_id)
        if user_id not in household.members:
            raise PermissionDeniedError("Not a member of this household")
        return households.list_activities(household_id)

    return await run_in_threadpool(fetch)
