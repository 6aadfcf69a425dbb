from typing import List, Optional

from pydantic import BaseModel, constr

JoinCode = constr(pattern=r"^\d{6}$")


class Household(BaseModel):
    """Household document as stored in the ``households`` collection."""

    id: str = ""
    name: str
    join_code: str
    members: List[str] = []


class Activity(BaseModel):
    """Watering event under ``households/{id}/activities``."""

    id: str = ""
    plant_name: str
    user_id: str
    timestamp: int


class HouseholdCreateRequest(BaseModel):
    name: str


class HouseholdJoinRequest(BaseModel):
    code: str


class HouseholdItem(BaseModel):
    id: str
    name: str
    join_code: str
    members: List[str]


class HouseholdCreatedResponse(BaseModel):
    ok: bool = True
    id: str
    join_code: Optional[JoinCode] = None
