import os

from fastapi import APIRouter, Depends, HTTPException

from ..db import DocumentStore, get_store

app = APIRouter(prefix="/test", tags=["test-admin"])  # will be mounted under /api when enabled


def _ensure_test_mode():
    if os.getenv("TEST_MODE") != "1":
        raise HTTPException(status_code=404, detail="Not Found")


@app.post("/reset")
def reset_store(store: DocumentStore = Depends(get_store)):
    """Dangerous: wipe every document for E2E tests.
    Enabled only when TEST_MODE=1.
    """
    _ensure_test_mode()
    store.clear()
    return {"status": "ok"}
