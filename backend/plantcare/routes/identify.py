from fastapi import APIRouter, Depends, File, UploadFile
from starlette.concurrency import run_in_threadpool

from ..deps import get_current_user_id, get_identifier, get_species_care_client
from ..errors import InvalidInputError
from ..schemas.care import IdentifyResponse
from ..services.identification import PlantIdentifier, SpeciesCareClient, suggest_care

app = APIRouter()


@app.post("/identify", response_model=IdentifyResponse)
async def identify_plant(
    image: UploadFile = File(...),
    user_id: str = Depends(get_current_user_id),
    identifier: PlantIdentifier = Depends(get_identifier),
    care_client: SpeciesCareClient = Depends(get_species_care_client),
) -> IdentifyResponse:
    """Identify a plant photo and suggest a watering interval for the top guess."""
    data = await image.read()
    if not data:
        raise InvalidInputError("Image is empty")

    def do_identify():
        guess = identifier.top_guess(data, image.filename or "plant.jpg", image.content_type or "image/jpeg")
        return IdentifyResponse(guess=guess, care=suggest_care(guess, care_client))

    return await run_in_threadpool(do_identify)
