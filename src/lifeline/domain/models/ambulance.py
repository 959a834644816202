from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class AmbulanceStatus(str, Enum):
    AVAILABLE = "available"
    DISPATCHED = "dispatched"
    EN_ROUTE = "en_route"
    OUT_OF_SERVICE = "out_of_service"


class Ambulance(BaseModel):
    id: str
    call_sign: str
    status: AmbulanceStatus = AmbulanceStatus.AVAILABLE
    location: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
