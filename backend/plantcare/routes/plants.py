from typing import Callable, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from starlette.concurrency import run_in_threadpool

from ..db import normalize_hex_id
from ..deps import get_clock, get_current_user_id, get_household_manager, get_plant_manager
from ..errors import PermissionDeniedError
from ..schemas.plant import Plant, PlantCreateRequest, PlantItem, PlantUpdateRequest, WaterResponse
from ..services.households import HouseholdManager
from ..services.plants import PlantScheduleManager, WateringResult
from ..utils.date_time import days_until, ms_to_iso_utc

app = APIRouter()


def to_item(plant: Plant, now: int) -> PlantItem:
    return PlantItem(
        **plant.model_dump(),
        next_watering_at=ms_to_iso_utc(plant.next_watering_date),
        last_watered_at=ms_to_iso_utc(plant.last_watered),
        days_until_watering=days_until(plant.next_watering_date, now),
    )


def ensure_member(households: HouseholdManager, household_id: str, user_id: str) -> None:
    household = households.get_household(household_id)
    if user_id not in household.members:
        raise PermissionDeniedError("Not a member of this household")


def _load_accessible(
    plants: PlantScheduleManager,
    households: HouseholdManager,
    id_hex: str,
    user_id: str,
) -> Plant:
    plant_id = normalize_hex_id(id_hex)
    if plant_id is None:
        raise HTTPException(status_code=400, detail="Invalid plant id")
    plant = plants.get_plant(plant_id)
    if plant.household_id is not None:
        ensure_member(households, plant.household_id, user_id)
    elif plant.owner_id != user_id:
        raise PermissionDeniedError("Not your plant")
    return plant


@app.get("/plants", response_model=list[PlantItem])
async def list_plants(
    household_id: Optional[str] = Query(default=None, description="Household scope; omit for private plants"),
    user_id: str = Depends(get_current_user_id),
    plants: PlantScheduleManager = Depends(get_plant_manager),
    households: HouseholdManager = Depends(get_household_manager),
    clock: Callable[[], int] = Depends(get_clock),
) -> list[PlantItem]:
    def fetch():
        if household_id is not None:
            ensure_member(households, household_id, user_id)
        now = clock()
        return [to_item(p, now) for p in plants.load_plants(user_id, household_id)]

    return await run_in_threadpool(fetch)


@app.post("/plants", response_model=PlantItem)
async def create_plant(
    payload: PlantCreateRequest,
    user_id: str = Depends(get_current_user_id),
    plants: PlantScheduleManager = Depends(get_plant_manager),
    households: HouseholdManager = Depends(get_household_manager),
    clock: Callable[[], int] = Depends(get_clock),
) -> PlantItem:
    def do_insert():
        if payload.household_id is not None:
            ensure_member(households, payload.household_id, user_id)
        plant = plants.add_plant(
            Plant(
                name=payload.name,
                common_name=payload.common_name,
                confidence=payload.confidence,
                gbif_url=payload.gbif_url,
                image_url=payload.image_url,
                owner_id=user_id if payload.household_id is None else None,
                household_id=payload.household_id,
                watering_days=payload.watering_days,
            )
        )
        return to_item(plant, clock())

    return await run_in_threadpool(do_insert)


@app.get("/plants/{id_hex}", response_model=PlantItem)
async def get_plant(
    id_hex: str,
    user_id: str = Depends(get_current_user_id),
    plants: PlantScheduleManager = Depends(get_plant_manager),
    households: HouseholdManager = Depends(get_household_manager),
    clock: Callable[[], int] = Depends(get_clock),
) -> PlantItem:
    def fetch_one():
        return to_item(_load_accessible(plants, households, id_hex, user_id), clock())

    return await run_in_threadpool(fetch_one)


@app.put("/plants/{id_hex}", response_model=PlantItem)
async def update_plant(
    id_hex: str,
    payload: PlantUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    plants: PlantScheduleManager = Depends(get_plant_manager),
    households: HouseholdManager = Depends(get_household_manager),
    clock: Callable[[], int] = Depends(get_clock),
) -> PlantItem:
    def do_update():
        plant = _load_accessible(plants, households, id_hex, user_id)
        if not plants.update_plant(plant, payload.name, payload.watering_days):
            raise HTTPException(status_code=500, detail="Failed to update plant")
        return to_item(plants.get_plant(plant.id), clock())

    return await run_in_threadpool(do_update)


@app.delete("/plants/{id_hex}")
async def delete_plant(
    id_hex: str,
    user_id: str = Depends(get_current_user_id),
    plants: PlantScheduleManager = Depends(get_plant_manager),
    households: HouseholdManager = Depends(get_household_manager),
):
    def do_delete():
        plant = _load_accessible(plants, households, id_hex, user_id)
        if not plants.delete_plant(plant.id):
            raise HTTPException(status_code=500, detail="Failed to delete plant")

    await run_in_threadpool(do_delete)
    return {"ok": True}


@app.post("/plants/{id_hex}/water", response_model=WaterResponse)
async def water_plant(
    id_hex: str,
    user_id: str = Depends(get_current_user_id),
    plants: PlantScheduleManager = Depends(get_plant_manager),
    households: HouseholdManager = Depends(get_household_manager),
    clock: Callable[[], int] = Depends(get_clock),
) -> WaterResponse:
    def do_water():
        plant = _load_accessible(plants, households, id_hex, user_id)
        result = plants.water(plant, actor_id=user_id)
        if result is WateringResult.TOO_EARLY:
            raise HTTPException(status_code=409, detail="Too early to water")
        if result is WateringResult.FAILED:
            raise HTTPException(status_code=500, detail="Failed to record watering")
        return WaterResponse(ok=True, plant=to_item(plants.get_plant(plant.id), clock()))

    return await run_in_threadpool(do_water)
