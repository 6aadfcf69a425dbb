from typing import AsyncIterator, Iterator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from passlib.context import CryptContext

# Import the real FastAPI app
from backend.plantcare.main import app as real_app
from backend.plantcare.db import InMemoryDocumentStore, get_store
from backend.plantcare.deps import get_clock
from backend.plantcare.services import identity as identity_mod
from backend.tests.factories import FakeClock


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    # Run anyio-marked tests on asyncio only
    return "asyncio"


@pytest.fixture(scope="session")
def app() -> FastAPI:
    """Provide the FastAPI application for tests.

    Per-test dependency overrides are wired by the fixtures below.
    """
    return real_app


@pytest.fixture(autouse=True)
def _fast_password_hashing(monkeypatch: pytest.MonkeyPatch) -> None:
    # Minimum bcrypt cost keeps registration-heavy tests fast
    monkeypatch.setattr(identity_mod, "pwd_context", CryptContext(schemes=["bcrypt"], bcrypt__rounds=4))


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def _override_store(app: FastAPI, store: InMemoryDocumentStore, clock: FakeClock) -> Iterator[None]:
    """Every test gets a fresh in-memory store and a controllable clock.

    Tests must never touch the runtime database.
    """
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_clock] = lambda: clock
    yield
    app.dependency_overrides.pop(get_store, None)
    app.dependency_overrides.pop(get_clock, None)


@pytest.fixture
async def async_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """httpx AsyncClient bound to the ASGI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def register(client: AsyncClient, email: str, username: str = "gardener", household_name=None) -> dict:
    """Register a user and return ``{"user_id", "token", "headers"}``."""
    payload = {"email": email, "password": "secret1", "username": username}
    if household_name is not None:
        payload["household_name"] = household_name
    resp = await client.post("/api/auth/register", json=payload)
    assert resp.status_code == 200, resp.text
    body = resp.json()
    return {
        "user_id": body["user_id"],
        "token": body["token"],
        "headers": {"Authorization": f"Bearer {body['token']}"},
    }


@pytest.fixture
def register_user():
    return register
