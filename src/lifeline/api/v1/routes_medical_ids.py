from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from src.lifeline.api.v1.outcomes import raise_fetch_failed, raise_for_outcome
from src.lifeline.domain.models.medical_id import MedicalId, MedicalIdDraft
from src.lifeline.domain.models.user import Principal
from src.lifeline.security import get_api_key, page_principal
from src.lifeline.services.audit.service import audit_service
from src.lifeline.views.entity_list import ActionOutcome
from src.lifeline.views.filters import ListFilter
from src.lifeline.views.medical_ids import MedicalIdListView
from src.lifeline.views.presentation import blood_type_color, calculate_age


router = APIRouter(
    prefix="/medical-ids",
    tags=["medical-ids"],
    dependencies=[Depends(get_api_key)],
)

medical_ids_page = page_principal("/medical-ids")


class MedicalIdListItem(BaseModel):
    medical_id: MedicalId
    age: int
    blood_type_color: str
    can_delete: bool


class MedicalIdListResponse(BaseModel):
    items: List[MedicalIdListItem]
    total: int
    filtered: bool


class MedicalIdDeleteResponse(BaseModel):
    deleted: bool


@router.get("/", response_model=MedicalIdListResponse)
async def list_medical_ids(
    search: str = "",
    principal: Principal = Depends(medical_ids_page),
) -> MedicalIdListResponse:
    view = MedicalIdListView(principal)
    if not await view.fetch_all():
        raise_fetch_failed(view.fetch_failed_message)

    criteria = ListFilter(search=search)
    items = [
        MedicalIdListItem(
            medical_id=record,
            age=calculate_age(record.date_of_birth),
            blood_type_color=blood_type_color(record.blood_type),
            can_delete=view.can_delete(record),
        )
        for record in view.set_filter(criteria)
    ]
    return MedicalIdListResponse(items=items, total=len(view.items), filtered=criteria.is_active)


@router.post("/", response_model=MedicalId, status_code=status.HTTP_201_CREATED)
async def create_medical_id(
    payload: MedicalIdDraft,
    principal: Principal = Depends(medical_ids_page),
) -> MedicalId:
    view = MedicalIdListView(principal)
    view.open_dialog()
    result = await view.create(payload)
    raise_for_outcome(result)

    record: MedicalId = result.record
    audit_service.log_event(
        action="create_medical_id",
        resource_type="medical_id",
        resource_id=record.id,
        principal=principal,
    )
    return record


@router.delete("/{medical_id}", response_model=MedicalIdDeleteResponse)
async def delete_medical_id(
    medical_id: str,
    confirm: bool = False,
    principal: Principal = Depends(medical_ids_page),
) -> MedicalIdDeleteResponse:
    """Delete a medical ID.

    The browser asks the user first; ``confirm=true`` carries that answer.
    Without it nothing is deleted and ``deleted`` is false.
    """

    view = MedicalIdListView(principal)
    result = await view.remove(medical_id, confirm=lambda: confirm)
    raise_for_outcome(result)
    if result.outcome == ActionOutcome.DECLINED:
        return MedicalIdDeleteResponse(deleted=False)

    audit_service.log_event(
        action="delete_medical_id",
        resource_type="medical_id",
        resource_id=medical_id,
        principal=principal,
    )
    return MedicalIdDeleteResponse(deleted=True)
