from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from src.lifeline import policy
from src.lifeline.domain.models.navigation import NavigationItem
from src.lifeline.domain.models.user import Principal, Role
from src.lifeline.security import get_api_key, get_current_principal


router = APIRouter(
    prefix="/navigation",
    tags=["navigation"],
    dependencies=[Depends(get_api_key)],
)


class NavigationResponse(BaseModel):
    user_id: str
    role: Role
    items: List[NavigationItem]


@router.get("/", response_model=NavigationResponse)
async def get_navigation(principal: Principal = Depends(get_current_principal)) -> NavigationResponse:
    # Presentation only; the backend's row-level policies decide data access.
    return NavigationResponse(
        user_id=principal.id,
        role=principal.role,
        items=policy.visible_items(principal.role),
    )
