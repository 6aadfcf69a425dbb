import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from backend.plantcare.db import get_store
from backend.plantcare.routes.test_admin import app as test_admin_router


@pytest.fixture
def admin_app(store):
    # The router is only mounted on the real app when TEST_MODE=1 at import time.
    app = FastAPI()
    app.include_router(test_admin_router, prefix="/api")
    app.dependency_overrides[get_store] = lambda: store
    return app


@pytest.mark.anyio
async def test_reset_returns_404_when_test_mode_disabled(admin_app, store, monkeypatch):
    monkeypatch.setenv("TEST_MODE", "0")
    store.set("plants", "p1", {"name": "Fern"})
    async with AsyncClient(transport=ASGITransport(app=admin_app), base_url="http://test") as client:
        resp = await client.post("/api/test/reset")
    assert resp.status_code == 404
    assert resp.json().get("detail") == "Not Found"
    assert store.get("plants", "p1") is not None


@pytest.mark.anyio
async def test_reset_clears_store_in_test_mode(admin_app, store, monkeypatch):
    monkeypatch.setenv("TEST_MODE", "1")
    store.set("plants", "p1", {"name": "Fern"})
    store.set("users", "u1", {"email": "a@b.c"})
    async with AsyncClient(transport=ASGITransport(app=admin_app), base_url="http://test") as client:
        resp = await client.post("/api/test/reset")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
    assert store.all("plants") == []
    assert store.all("users") == []
