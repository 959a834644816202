from __future__ import annotations

from typing import FrozenSet

from pydantic import BaseModel, ConfigDict

from src.lifeline.domain.models.user import Role


class NavigationItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    path: str
    icon: str
    allowed_roles: FrozenSet[Role]
