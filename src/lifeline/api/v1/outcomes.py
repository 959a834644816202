from __future__ import annotations

from typing import Dict

from fastapi import HTTPException, status

from src.lifeline.views.entity_list import ActionOutcome, ActionResult


_OUTCOME_STATUS: Dict[ActionOutcome, int] = {
    ActionOutcome.INVALID: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ActionOutcome.FAILED: status.HTTP_502_BAD_GATEWAY,
    ActionOutcome.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ActionOutcome.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ActionOutcome.BUSY: status.HTTP_409_CONFLICT,
}

_DEFAULT_DETAIL: Dict[ActionOutcome, str] = {
    ActionOutcome.FORBIDDEN: "Not authorized to perform this action",
    ActionOutcome.NOT_FOUND: "Record not found",
    ActionOutcome.BUSY: "Another action is in progress",
}


def raise_for_outcome(result: ActionResult, *, invalid_status: int = status.HTTP_422_UNPROCESSABLE_ENTITY) -> None:
    """Translate a failed view action into an HTTPException.

    Succeeded and declined actions pass through untouched.
    """

    if result.outcome in {ActionOutcome.SUCCEEDED, ActionOutcome.DECLINED}:
        return
    code = invalid_status if result.outcome == ActionOutcome.INVALID else _OUTCOME_STATUS[result.outcome]
    detail = result.message or _DEFAULT_DETAIL.get(result.outcome, "Request failed")
    raise HTTPException(status_code=code, detail=detail)


def raise_fetch_failed(detail: str) -> None:
    raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail)
