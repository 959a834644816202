import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.lifeline.api.v1.routes_system import router as system_router_v1
from src.lifeline.api.v1.routes_navigation import router as navigation_router_v1
from src.lifeline.api.v1.routes_dashboard import router as dashboard_router_v1
from src.lifeline.api.v1.routes_accidents import router as accidents_router_v1
from src.lifeline.api.v1.routes_medical_ids import router as medical_ids_router_v1
from src.lifeline.api.v1.routes_resources import router as resources_router_v1
from src.lifeline.api.v1.routes_live import router as live_router_v1
from src.lifeline.config import settings
from src.lifeline.infra.store import registry
from src.lifeline.infra.store.bootstrap import init_table_store

logging.basicConfig(level=logging.INFO)

app = FastAPI(title="Lifeline Emergency Response Console API")


@app.on_event("startup")
async def on_startup() -> None:
    """Application startup hook.

    Switches the table store to the backend selected by STORE_BACKEND. In
    tests and local development this is a no-op and the in-memory store
    remains active.
    """

    init_table_store()


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await registry.get_table_store().aclose()

# CORS configuration – permissive by default for development. Tighten via
# CORS_ALLOW_ORIGINS in production deployments.
allow_origins = [origin.strip() for origin in settings.cors_allow_origins.split(",") if origin.strip()] or ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["system"])
async def landing() -> dict:
    """Public landing information for signed-out visitors."""
    return {
        "name": "Lifeline",
        "tagline": "Emergency Response",
        "features": [
            "Real-time incident tracking",
            "Medical ID management",
            "Ambulance and responder coordination",
            "Role-based dashboards",
            "Secure data handling",
            "Incident logs and analytics",
        ],
        "sign_in": "/auth",
    }


@app.get("/health", tags=["system"])
async def health_check() -> dict:
    """Basic liveness probe for the API root."""
    return {"status": "ok"}


# Versioned API routers
app.include_router(system_router_v1, prefix="/api/v1")
app.include_router(navigation_router_v1, prefix="/api/v1")
app.include_router(dashboard_router_v1, prefix="/api/v1")
app.include_router(accidents_router_v1, prefix="/api/v1")
app.include_router(medical_ids_router_v1, prefix="/api/v1")
app.include_router(resources_router_v1, prefix="/api/v1")
app.include_router(live_router_v1, prefix="/api/v1")
