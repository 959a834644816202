from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from src.lifeline.domain.models.dashboard import DashboardStats
from src.lifeline.domain.models.user import Principal
from src.lifeline.security import get_api_key, page_principal
from src.lifeline.views.dashboard import DashboardView
from src.lifeline.api.v1.outcomes import raise_fetch_failed


router = APIRouter(
    prefix="/dashboard",
    tags=["dashboard"],
    dependencies=[Depends(get_api_key)],
)


class DashboardResponse(BaseModel):
    show_user_count: bool
    stats: DashboardStats


@router.get("/", response_model=DashboardResponse)
async def get_dashboard(principal: Principal = Depends(page_principal("/dashboard"))) -> DashboardResponse:
    view = DashboardView(principal)
    if not await view.refresh():
        raise_fetch_failed(view.fetch_failed_message)
    return DashboardResponse(show_user_count=view.show_user_count, stats=view.stats)
