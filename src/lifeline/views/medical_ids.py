from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List

from src.lifeline import policy
from src.lifeline.domain.models.medical_id import BLOOD_TYPES, MedicalId, MedicalIdDraft
from src.lifeline.infra.store.base import StoreError
from src.lifeline.views.entity_list import ActionOutcome, ActionResult, Confirm, EditableListView, blank_to_none


logger = logging.getLogger("lifeline.views.medical_ids")


class MedicalIdListView(EditableListView[MedicalId, MedicalIdDraft]):
    table = "medical_ids"
    model = MedicalId
    draft_model = MedicalIdDraft
    search_fields = ("full_name", "blood_type", "emergency_contact_name")
    required_fields = ("full_name", "date_of_birth", "blood_type")
    fetch_failed_message = "Failed to fetch medical ID data"
    create_succeeded_message = "Medical ID created successfully"
    create_failed_message = "Failed to create medical ID"
    refetch_after_create = True

    def invalid_fields(self, draft: MedicalIdDraft) -> List[str]:
        invalid = super().invalid_fields(draft)
        if "date_of_birth" not in invalid:
            try:
                date.fromisoformat(draft.date_of_birth.strip())
            except ValueError:
                invalid.append("date_of_birth")
        if "blood_type" not in invalid and draft.blood_type.strip().upper() not in BLOOD_TYPES:
            invalid.append("blood_type")
        return invalid

    def build_row(self, draft: MedicalIdDraft) -> Dict[str, Any]:
        return {
            "full_name": draft.full_name.strip(),
            "date_of_birth": draft.date_of_birth.strip(),
            "blood_type": draft.blood_type.strip().upper(),
            "allergies": blank_to_none(draft.allergies),
            "medications": blank_to_none(draft.medications),
            "medical_conditions": blank_to_none(draft.medical_conditions),
            "emergency_contact_name": draft.emergency_contact_name.strip(),
            "emergency_contact_phone": draft.emergency_contact_phone.strip(),
            "created_by": self.principal.id,
        }

    def can_delete(self, record: MedicalId) -> bool:
        return policy.can_delete_medical_id(self.principal, record.created_by)

    async def remove(self, medical_id: str, confirm: Confirm) -> ActionResult:
        """Delete a medical ID after the user confirms.

        A declined confirmation aborts silently.
        """

        if self.submitting:
            return ActionResult(ActionOutcome.BUSY)
        try:
            record = await self.find(medical_id)
        except StoreError:
            logger.exception("Error loading medical ID %s", medical_id)
            await self.notifier.error("Failed to delete medical ID")
            return ActionResult(ActionOutcome.FAILED, message="Failed to delete medical ID")
        if record is None:
            return ActionResult(ActionOutcome.NOT_FOUND)
        if not self.can_delete(record):
            return ActionResult(ActionOutcome.FORBIDDEN, record=record)

        if not await self._confirmed(confirm):
            return ActionResult(ActionOutcome.DECLINED, record=record)

        result = await self._submit(
            lambda: self._delete(medical_id),
            success_message="Medical ID deleted successfully",
            failure_message="Failed to delete medical ID",
        )
        if result.ok:
            result.record = record
            await self.fetch_all()
        return result
