from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional, Sequence

from src.lifeline import policy
from src.lifeline.config import settings
from src.lifeline.domain.models.accident import Accident, AccidentStatus
from src.lifeline.domain.models.alert_log import AlertLog
from src.lifeline.domain.models.ambulance import AmbulanceStatus
from src.lifeline.domain.models.dashboard import DashboardStats
from src.lifeline.domain.models.user import Principal
from src.lifeline.infra.store import registry
from src.lifeline.infra.store.base import Row, StoreError, TableStore
from src.lifeline.infra.store.changes import ChangeEvent, Subscription
from src.lifeline.services.notifications.service import Notifier
from src.lifeline.views.entity_list import ChangeCallback, validate_rows
from src.lifeline.views.resources import load_alert_logs


logger = logging.getLogger("lifeline.views.dashboard")


def project_dashboard_stats(
    *,
    active_accidents: Sequence[Row],
    available_ambulances: Sequence[Row],
    medical_ids: Sequence[Row],
    profiles: Optional[Sequence[Row]],
    recent_alerts: Iterable[Row],
) -> DashboardStats:
    """Derive the dashboard aggregate from freshly fetched rows.

    ``profiles`` is None when the caller may not see the user count.
    """

    return DashboardStats(
        active_emergencies=len(active_accidents),
        available_ambulances=len(available_ambulances),
        total_medical_ids=len(medical_ids),
        total_users=len(profiles) if profiles is not None else 0,
        recent_alerts=validate_rows(AlertLog, recent_alerts, "alert_logs"),
        active_accidents=validate_rows(Accident, active_accidents, "accidents"),
    )


class DashboardView:
    """Dashboard page: stats recomputed from scratch on every refresh.

    Refreshes on any change to the accidents table. Like the list views, a
    refresh that has been superseded or that completes after ``close`` is
    dropped.
    """

    fetch_failed_message = "Failed to fetch dashboard data"

    def __init__(
        self,
        principal: Principal,
        *,
        store: Optional[TableStore] = None,
        notifier: Optional[Notifier] = None,
        recent_alerts_limit: Optional[int] = None,
        on_change: Optional[ChangeCallback] = None,
    ) -> None:
        self.principal = principal
        self.stats = DashboardStats()
        self.loading = True
        self.notifier = notifier or Notifier()
        self._store = store or registry.get_table_store()
        self._recent_alerts_limit = recent_alerts_limit or settings.dashboard_recent_alerts_limit
        self.on_change = on_change
        self._generation = 0
        self._closed = False
        self._subscription: Optional[Subscription] = None

    @property
    def show_user_count(self) -> bool:
        return policy.can_view_user_count(self.principal.role)

    async def open(self) -> "DashboardView":
        if self._subscription is None:
            self._subscription = self._store.change_feed.subscribe(
                "accidents",
                self._handle_change,
                channel="dashboard-updates",
            )
        await self.refresh()
        return self

    def close(self) -> None:
        self._closed = True
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    async def _handle_change(self, change: ChangeEvent) -> None:
        if self._closed:
            return
        await self.refresh()

    async def refresh(self) -> bool:
        self._generation += 1
        generation = self._generation
        try:
            accidents = await self._store.select(
                "accidents",
                eq={"status": AccidentStatus.ACTIVE.value},
                order_by="created_at",
                descending=True,
            )
            ambulances = await self._store.select("ambulances", eq={"status": AmbulanceStatus.AVAILABLE.value})
            medical_ids = await self._store.select("medical_ids", columns=("id",))
            profiles: Optional[List[Any]] = None
            if self.show_user_count:
                profiles = await self._store.select("profiles", columns=("id",))
            alerts = await load_alert_logs(self._store, limit=self._recent_alerts_limit)
            stats = project_dashboard_stats(
                active_accidents=accidents,
                available_ambulances=ambulances,
                medical_ids=medical_ids,
                profiles=profiles,
                recent_alerts=alerts,
            )
        except StoreError:
            if self._closed or generation != self._generation:
                return False
            logger.exception("Error fetching dashboard data")
            self.loading = False
            await self.notifier.error(self.fetch_failed_message)
            return False

        if self._closed or generation != self._generation:
            return False
        self.stats = stats
        self.loading = False
        if self.on_change is not None:
            await self.on_change()
        return True
