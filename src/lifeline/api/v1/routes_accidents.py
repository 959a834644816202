from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from src.lifeline.api.v1.outcomes import raise_fetch_failed, raise_for_outcome
from src.lifeline.domain.models.accident import Accident, AccidentDraft, AccidentStatus
from src.lifeline.domain.models.user import Principal
from src.lifeline.infra.store.base import StoreError
from src.lifeline.security import get_api_key, page_principal
from src.lifeline.services.audit.service import audit_service
from src.lifeline.views.accidents import AccidentListView, StatusAction
from src.lifeline.views.filters import ALL, ListFilter
from src.lifeline.views.presentation import priority_color, status_color


router = APIRouter(
    prefix="/accidents",
    tags=["accidents"],
    dependencies=[Depends(get_api_key)],
)

emergencies_page = page_principal("/emergencies")


class AccidentListItem(BaseModel):
    accident: Accident
    actions: List[StatusAction]
    priority_color: str
    status_color: str


class AccidentListResponse(BaseModel):
    items: List[AccidentListItem]
    total: int
    filtered: bool


class AccidentStatusUpdateRequest(BaseModel):
    status: AccidentStatus


def _item(view: AccidentListView, accident: Accident) -> AccidentListItem:
    return AccidentListItem(
        accident=accident,
        actions=view.actions_for(accident),
        priority_color=priority_color(accident.priority),
        status_color=status_color(accident.status),
    )


@router.get("/", response_model=AccidentListResponse)
async def list_accidents(
    search: str = "",
    status_filter: str = Query(ALL, alias="status"),
    priority: str = ALL,
    principal: Principal = Depends(emergencies_page),
) -> AccidentListResponse:
    view = AccidentListView(principal)
    if not await view.fetch_all():
        raise_fetch_failed(view.fetch_failed_message)

    criteria = ListFilter(search=search, status=status_filter, priority=priority)
    accidents = view.set_filter(criteria)
    return AccidentListResponse(
        items=[_item(view, accident) for accident in accidents],
        total=len(view.items),
        filtered=criteria.is_active,
    )


@router.get("/{accident_id}", response_model=AccidentListItem)
async def get_accident(
    accident_id: str,
    principal: Principal = Depends(emergencies_page),
) -> AccidentListItem:
    view = AccidentListView(principal)
    try:
        accident = await view.find(accident_id)
    except StoreError:
        raise_fetch_failed(view.fetch_failed_message)
    if accident is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Emergency not found")
    return _item(view, accident)


@router.post("/", response_model=Accident, status_code=status.HTTP_201_CREATED)
async def report_accident(
    payload: AccidentDraft,
    principal: Principal = Depends(emergencies_page),
) -> Accident:
    view = AccidentListView(principal)
    view.open_dialog()
    result = await view.create(payload)
    raise_for_outcome(result)

    accident: Accident = result.record
    audit_service.log_event(
        action="create_accident",
        resource_type="accident",
        resource_id=accident.id,
        principal=principal,
        extra={"priority": accident.priority.value},
    )
    return accident


@router.post("/{accident_id}/status", response_model=Accident)
async def update_accident_status(
    accident_id: str,
    payload: AccidentStatusUpdateRequest,
    principal: Principal = Depends(emergencies_page),
) -> Accident:
    view = AccidentListView(principal)
    result = await view.update_status(accident_id, payload.status)
    raise_for_outcome(result, invalid_status=status.HTTP_409_CONFLICT)

    audit_service.log_event(
        action="update_accident_status",
        resource_type="accident",
        resource_id=accident_id,
        principal=principal,
        extra={"status": payload.status.value},
    )
    return result.record
