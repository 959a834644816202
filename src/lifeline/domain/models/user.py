from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class Role(str, Enum):
    ADMIN = "admin"
    DISPATCHER = "dispatcher"
    RESPONDER = "responder"


class Principal(BaseModel):
    """The authenticated session context.

    The role comes from the session metadata issued by the hosted backend; no
    role table is consulted on this side.
    """

    id: str
    role: Role = Role.RESPONDER


class Profile(BaseModel):
    """A registered system user as listed on the admin Users page."""

    id: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    role: Role = Role.RESPONDER
    created_at: Optional[datetime] = None
