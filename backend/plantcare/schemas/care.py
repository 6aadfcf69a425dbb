from typing import List, Optional

from pydantic import BaseModel, Field


class PlantCareInfo(BaseModel):
    name: str
    common_name: str
    watering_days: int = Field(gt=0)
    sunlight: str
    oxygen_output: Optional[str] = None


class SpeciesGuess(BaseModel):
    scientific_name: str
    common_names: List[str] = []
    confidence: float = Field(ge=0, le=1)
    gbif_url: Optional[str] = None


class CareSuggestion(BaseModel):
    watering_days: int
    sunlight: Optional[str] = None
    source: str  # "api" or "lookup"


class IdentifyResponse(BaseModel):
    guess: SpeciesGuess
    care: Optional[CareSuggestion] = None
