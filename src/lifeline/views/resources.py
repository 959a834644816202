"""Read-only list pages: ambulances, alert logs and users."""

from __future__ import annotations

from typing import Dict, List, Optional

from src.lifeline.domain.models.alert_log import AlertLog
from src.lifeline.domain.models.ambulance import Ambulance
from src.lifeline.domain.models.user import Profile
from src.lifeline.infra.store.base import Row, TableStore
from src.lifeline.infra.store.changes import ChangeEvent
from src.lifeline.views.entity_list import EntityListView


class AmbulanceListView(EntityListView[Ambulance]):
    table = "ambulances"
    model = Ambulance
    search_fields = ("call_sign", "location")
    fetch_failed_message = "Failed to fetch ambulance data"


class ProfileListView(EntityListView[Profile]):
    table = "profiles"
    model = Profile
    search_fields = ("full_name", "email", "role")
    fetch_failed_message = "Failed to fetch user data"


async def load_alert_logs(store: TableStore, *, limit: Optional[int] = None) -> List[Row]:
    """Newest alert logs, each joined with its originating accident."""

    rows = await store.select("alert_logs", order_by="created_at", descending=True, limit=limit)
    accidents: Dict[str, Optional[Row]] = {}
    for row in rows:
        accident_id = row.get("accident_id")
        if accident_id and accident_id not in accidents:
            found = await store.select("accidents", eq={"id": accident_id})
            accidents[accident_id] = found[0] if found else None
    return [dict(row, accident=accidents.get(row.get("accident_id"))) for row in rows]


class AlertLogListView(EntityListView[AlertLog]):
    table = "alert_logs"
    model = AlertLog
    search_fields = ("message", "type")
    fetch_failed_message = "Failed to fetch alert logs"

    async def _load_rows(self) -> List[Row]:
        return await load_alert_logs(self._store, limit=self._limit)

    def _apply_patch(self, change: ChangeEvent) -> bool:
        # Change events carry the bare row without its accident.
        return False
