from typing import List, Optional

from pydantic import BaseModel, Field, constr

HexID = constr(pattern=r"^[0-9a-f]{32}$")

DEFAULT_WATERING_DAYS = 7


class Plant(BaseModel):
    """Plant document as stored in the ``plants`` collection (times in epoch ms)."""

    id: str = ""
    name: str
    common_name: Optional[str] = None
    confidence: Optional[float] = None
    gbif_url: Optional[str] = None
    image_url: Optional[str] = None
    owner_id: Optional[str] = None
    household_id: Optional[str] = None
    watering_days: int = DEFAULT_WATERING_DAYS
    next_watering_date: int = 0
    last_watered: Optional[int] = None
    times_watered: int = 0
    created_at: int = 0


class PlantCreateRequest(BaseModel):
    # Exactly one scope: private (no household_id) or shared (household_id set)
    name: str
    household_id: Optional[HexID] = None
    watering_days: int = DEFAULT_WATERING_DAYS
    common_name: Optional[str] = None
    confidence: Optional[float] = Field(default=None, ge=0, le=1)
    gbif_url: Optional[str] = None
    image_url: Optional[str] = None


class PlantUpdateRequest(BaseModel):
    name: str
    watering_days: int


class PlantItem(BaseModel):
    id: HexID
    name: str
    common_name: Optional[str] = None
    confidence: Optional[float] = None
    gbif_url: Optional[str] = None
    image_url: Optional[str] = None
    owner_id: Optional[str] = None
    household_id: Optional[str] = None
    watering_days: int
    next_watering_date: int
    next_watering_at: Optional[str] = None
    last_watered: Optional[int] = None
    last_watered_at: Optional[str] = None
    times_watered: int = 0
    days_until_watering: int = 0
    created_at: int


class WaterResponse(BaseModel):
    ok: bool
    plant: PlantItem


class DailyCareResponse(BaseModel):
    status: str
    message: Optional[str] = None
    items: List[PlantItem]
