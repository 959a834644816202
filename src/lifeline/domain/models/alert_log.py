from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from src.lifeline.domain.models.accident import Accident


class AlertType(str, Enum):
    EMERGENCY_CALL = "emergency_call"
    MEDICAL_ALERT = "medical_alert"
    SYSTEM_ALERT = "system_alert"


class AlertLog(BaseModel):
    """Read-only alert entry, joined with the accident that raised it."""

    id: str
    accident_id: Optional[str] = None
    type: AlertType = AlertType.SYSTEM_ALERT
    message: str
    created_at: datetime
    accident: Optional[Accident] = None
