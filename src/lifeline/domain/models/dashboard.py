from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

from src.lifeline.domain.models.accident import Accident
from src.lifeline.domain.models.alert_log import AlertLog


class DashboardStats(BaseModel):
    """Aggregate shown on the dashboard; derived on every refresh, never stored."""

    active_emergencies: int = 0
    available_ambulances: int = 0
    total_medical_ids: int = 0
    total_users: int = 0
    recent_alerts: List[AlertLog] = Field(default_factory=list)
    active_accidents: List[Accident] = Field(default_factory=list)
