from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel


class AccidentPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AccidentStatus(str, Enum):
    ACTIVE = "active"
    RESPONDED = "responded"
    RESOLVED = "resolved"


# Status only moves forward, one step at a time.
ALLOWED_TRANSITIONS: Dict[AccidentStatus, AccidentStatus] = {
    AccidentStatus.ACTIVE: AccidentStatus.RESPONDED,
    AccidentStatus.RESPONDED: AccidentStatus.RESOLVED,
}


def can_transition(current: AccidentStatus, target: AccidentStatus) -> bool:
    return ALLOWED_TRANSITIONS.get(current) == target


class Accident(BaseModel):
    """An emergency incident report.

    Reports are created by any authenticated user with status forced to
    ``active``; dispatchers and admins advance the status afterwards. Reports
    are never deleted from the console.
    """

    id: str
    type: str
    description: str
    location: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    priority: AccidentPriority = AccidentPriority.MEDIUM
    status: AccidentStatus = AccidentStatus.ACTIVE
    reporter_name: Optional[str] = None
    reporter_phone: Optional[str] = None
    reporter_id: Optional[str] = None
    assigned_ambulance_id: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class AccidentDraft(BaseModel):
    """Form state of the "Report Emergency" dialog."""

    type: str = ""
    description: str = ""
    location: str = ""
    priority: AccidentPriority = AccidentPriority.MEDIUM
    reporter_name: str = ""
    reporter_phone: str = ""
