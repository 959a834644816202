from __future__ import annotations

import logging
from typing import Any, Dict, List, Union

from pydantic import BaseModel

from src.lifeline import policy
from src.lifeline.domain.models.accident import (
    ALLOWED_TRANSITIONS,
    Accident,
    AccidentDraft,
    AccidentStatus,
    can_transition,
)
from src.lifeline.domain.models.user import Role
from src.lifeline.infra.store.base import StoreError
from src.lifeline.views.entity_list import ActionOutcome, ActionResult, EditableListView, blank_to_none


logger = logging.getLogger("lifeline.views.accidents")


ACTION_LABELS = {
    AccidentStatus.RESPONDED: "Respond",
    AccidentStatus.RESOLVED: "Resolve",
}


class StatusAction(BaseModel):
    label: str
    target: AccidentStatus


def status_actions(role: Union[Role, str, None], accident: Accident) -> List[StatusAction]:
    """Status buttons shown next to an accident for ``role``."""

    if not policy.can_transition_accident_status(role):
        return []
    target = ALLOWED_TRANSITIONS.get(accident.status)
    if target is None:
        return []
    return [StatusAction(label=ACTION_LABELS[target], target=target)]


class AccidentListView(EditableListView[Accident, AccidentDraft]):
    table = "accidents"
    model = Accident
    draft_model = AccidentDraft
    search_fields = ("type", "description", "location")
    required_fields = ("type", "description", "location")
    fetch_failed_message = "Failed to fetch emergency data"
    create_succeeded_message = "Emergency report submitted successfully"
    create_failed_message = "Failed to submit emergency report"

    def build_row(self, draft: AccidentDraft) -> Dict[str, Any]:
        return {
            "type": draft.type.strip(),
            "description": draft.description.strip(),
            "location": draft.location.strip(),
            "priority": draft.priority.value,
            "reporter_name": blank_to_none(draft.reporter_name),
            "reporter_phone": blank_to_none(draft.reporter_phone),
            "reporter_id": self.principal.id,
            "status": AccidentStatus.ACTIVE.value,
        }

    def actions_for(self, accident: Accident) -> List[StatusAction]:
        return status_actions(self.principal.role, accident)

    async def update_status(self, accident_id: str, next_status: Union[AccidentStatus, str]) -> ActionResult:
        """Advance an accident one step along active -> responded -> resolved.

        Callers without the dispatch role, and any transition outside that
        chain, are rejected here without contacting the backend.
        """

        if not policy.can_transition_accident_status(self.principal.role):
            return ActionResult(ActionOutcome.FORBIDDEN)
        try:
            target = AccidentStatus(next_status)
        except ValueError:
            return ActionResult(ActionOutcome.INVALID, message=f"Unknown emergency status {next_status}")
        if self.submitting:
            return ActionResult(ActionOutcome.BUSY)

        try:
            accident = await self.find(accident_id)
        except StoreError:
            logger.exception("Error loading accident %s", accident_id)
            await self.notifier.error("Failed to update emergency status")
            return ActionResult(ActionOutcome.FAILED, message="Failed to update emergency status")
        if accident is None:
            return ActionResult(ActionOutcome.NOT_FOUND)

        if not can_transition(accident.status, target):
            message = f"Cannot change emergency status from {accident.status.value} to {target.value}"
            await self.notifier.error(message)
            return ActionResult(ActionOutcome.INVALID, record=accident, message=message)

        return await self._submit(
            lambda: self._update(accident_id, {"status": target.value}),
            success_message=f"Emergency status updated to {target.value}",
            failure_message="Failed to update emergency status",
        )
