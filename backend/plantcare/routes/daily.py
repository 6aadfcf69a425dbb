from typing import Callable

from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool

from ..db import DocumentStore, get_store
from ..deps import get_clock, get_current_user_id
from ..schemas.plant import DailyCareResponse
from ..services.reminders import reminder_text, run_due_check
from .plants import to_item

app = APIRouter()


@app.get("/daily", response_model=DailyCareResponse)
async def daily_care(
    user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_store),
    clock: Callable[[], int] = Depends(get_clock),
) -> DailyCareResponse:
    """Plants due for watering now, private and household, with the reminder text."""
    due = await run_in_threadpool(run_due_check, store, user_id, clock)
    now = clock()
    return DailyCareResponse(
        status="ok",
        message=reminder_text([p.name for p in due]),
        items=[to_item(p, now) for p in due],
    )
