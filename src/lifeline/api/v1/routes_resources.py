from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from src.lifeline.api.v1.outcomes import raise_fetch_failed
from src.lifeline.domain.models.alert_log import AlertLog
from src.lifeline.domain.models.ambulance import Ambulance
from src.lifeline.domain.models.user import Principal, Profile
from src.lifeline.security import get_api_key, page_principal
from src.lifeline.views.filters import ALL, ListFilter
from src.lifeline.views.presentation import alert_icon
from src.lifeline.views.resources import AlertLogListView, AmbulanceListView, ProfileListView


router = APIRouter(
    tags=["resources"],
    dependencies=[Depends(get_api_key)],
)


class AlertLogItem(BaseModel):
    alert: AlertLog
    icon: Optional[str] = None


@router.get("/ambulances/", response_model=List[Ambulance])
async def list_ambulances(
    search: str = "",
    status_filter: str = Query(ALL, alias="status"),
    principal: Principal = Depends(page_principal("/ambulances")),
) -> List[Ambulance]:
    view = AmbulanceListView(principal)
    if not await view.fetch_all():
        raise_fetch_failed(view.fetch_failed_message)
    return view.set_filter(ListFilter(search=search, status=status_filter))


@router.get("/alerts/", response_model=List[AlertLogItem])
async def list_alerts(
    search: str = "",
    limit: Optional[int] = Query(None, ge=1),
    principal: Principal = Depends(page_principal("/alerts")),
) -> List[AlertLogItem]:
    view = AlertLogListView(principal, limit=limit)
    if not await view.fetch_all():
        raise_fetch_failed(view.fetch_failed_message)
    return [AlertLogItem(alert=alert, icon=alert_icon(alert.type)) for alert in view.set_filter(ListFilter(search=search))]


@router.get("/users/", response_model=List[Profile])
async def list_users(
    search: str = "",
    principal: Principal = Depends(page_principal("/users")),
) -> List[Profile]:
    view = ProfileListView(principal)
    if not await view.fetch_all():
        raise_fetch_failed(view.fetch_failed_message)
    return view.set_filter(ListFilter(search=search))
