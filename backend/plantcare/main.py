import os

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .errors import register_exception_handlers
from .routes.auth import app as auth_app
from .routes.daily import app as daily_app
from .routes.health import app as health_app
from .routes.households import app as households_app
from .routes.identify import app as identify_app
from .routes.plants import app as plants_app
from .routes.test_admin import app as test_admin_app

app = FastAPI(title="Plant Care")

# Register global exception handlers
register_exception_handlers(app)

origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount all routers under /api
api_router = APIRouter(prefix="/api")
api_router.include_router(auth_app)
api_router.include_router(daily_app)
api_router.include_router(health_app)
api_router.include_router(households_app)
api_router.include_router(identify_app)
api_router.include_router(plants_app)

# Conditionally include test admin endpoints when TEST_MODE=1
if os.getenv("TEST_MODE") == "1":
    api_router.include_router(test_admin_app)

app.include_router(api_router)


# Top-level health endpoint for container health checks and uptime checks
@app.get("/health")
async def health_root():
    return {"status": "ok"}
