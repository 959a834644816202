from fastapi import APIRouter

from src.lifeline.config import settings
from src.lifeline.infra.store import registry

router = APIRouter(prefix="", tags=["system"])


@router.get("/health")
async def health_check_v1() -> dict:
    """API v1 health endpoint."""
    return {"status": "ok", "version": "v1"}


@router.get("/system/store/health")
async def store_health_v1() -> dict:
    """Health check for the configured table store.

    Returns ``{"status": "ok"}`` when the backend answers and
    ``{"status": "unreachable"}`` otherwise, along with the backend kind.
    """

    reachable = await registry.get_table_store().ping()
    return {"status": "ok" if reachable else "unreachable", "backend": settings.store_backend}
