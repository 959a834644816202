"""Live pages over WebSocket.

A connection mounts one page view for the requested resource: a list view
for ``accidents``, ``medical-ids``, ``ambulances`` and ``alerts``, or the
dashboard for ``dashboard``. The client receives a ``snapshot`` message on
connect, after every change on the underlying table and after each message
it sends. List snapshots carry the filtered items; dashboard snapshots carry
the stats. Notifications raised by the view are forwarded as
``notification`` messages. The view and its change-feed subscription are
torn down when the socket closes.

Client messages::

    {"type": "filter", "search": "car", "status": "active", "priority": "all"}
    {"type": "refresh"}

Frames that are not JSON objects are logged and ignored.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Tuple, Type, Union

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect, status
from fastapi.encoders import jsonable_encoder

from src.lifeline import policy
from src.lifeline.domain.models.user import Principal
from src.lifeline.security import check_api_key, principal_from_session
from src.lifeline.services.notifications.service import Notification, Notifier
from src.lifeline.views.accidents import AccidentListView
from src.lifeline.views.dashboard import DashboardView
from src.lifeline.views.entity_list import EntityListView
from src.lifeline.views.filters import ALL, ListFilter
from src.lifeline.views.medical_ids import MedicalIdListView
from src.lifeline.views.resources import AlertLogListView, AmbulanceListView


logger = logging.getLogger("lifeline.live")

router = APIRouter(prefix="/ws", tags=["live"])


DASHBOARD = "dashboard"

LIVE_RESOURCES: Dict[str, Tuple[Type[EntityListView], str]] = {
    "accidents": (AccidentListView, "/emergencies"),
    "medical-ids": (MedicalIdListView, "/medical-ids"),
    "ambulances": (AmbulanceListView, "/ambulances"),
    "alerts": (AlertLogListView, "/alerts"),
}

LivePage = Union[EntityListView, DashboardView]


def _page_path(resource: str) -> Optional[str]:
    if resource == DASHBOARD:
        return "/dashboard"
    entry = LIVE_RESOURCES.get(resource)
    return entry[1] if entry else None


def _build_view(resource: str, principal: Principal, notifier: Notifier) -> LivePage:
    if resource == DASHBOARD:
        return DashboardView(principal, notifier=notifier)
    view_class, _ = LIVE_RESOURCES[resource]
    return view_class(principal, notifier=notifier)


def _snapshot(resource: str, view: LivePage) -> Dict[str, Any]:
    if isinstance(view, DashboardView):
        return {
            "type": "snapshot",
            "resource": resource,
            "show_user_count": view.show_user_count,
            "stats": jsonable_encoder(view.stats),
        }
    return {
        "type": "snapshot",
        "resource": resource,
        "items": jsonable_encoder(view.filtered()),
        "total": len(view.items),
        "filtered": view.filter.is_active,
    }


def _parse_message(raw: str) -> Optional[Dict[str, Any]]:
    try:
        message = json.loads(raw)
    except ValueError:
        return None
    return message if isinstance(message, dict) else None


@router.websocket("/{resource}")
async def live_page(websocket: WebSocket, resource: str) -> None:
    page_path = _page_path(resource)
    if page_path is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    # Browsers cannot set headers on WebSocket requests, so the session may
    # also arrive as query parameters.
    params = websocket.query_params
    headers = websocket.headers
    try:
        check_api_key(params.get("api_key") or headers.get("x-api-key"))
        principal = principal_from_session(
            params.get("user_id") or headers.get("x-user-id"),
            params.get("role") or headers.get("x-user-role"),
        )
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    if not policy.can_access_path(principal.role, page_path):
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()

    async def forward_notification(notification: Notification) -> None:
        await websocket.send_json({"type": "notification", **notification.model_dump(mode="json")})

    view = _build_view(resource, principal, Notifier(sink=forward_notification))

    async def send_snapshot() -> None:
        await websocket.send_json(_snapshot(resource, view))

    try:
        await view.open()
        await send_snapshot()
        view.on_change = send_snapshot

        while True:
            raw = await websocket.receive_text()
            message = _parse_message(raw)
            if message is None:
                logger.warning("Ignoring malformed live frame on %s from %s", resource, principal.id)
                continue

            kind = message.get("type")
            if kind == "filter" and isinstance(view, EntityListView):
                view.set_filter(
                    ListFilter(
                        search=str(message.get("search") or ""),
                        status=str(message.get("status") or ALL),
                        priority=str(message.get("priority") or ALL),
                    )
                )
                await send_snapshot()
            elif kind == "refresh":
                if isinstance(view, DashboardView):
                    await view.refresh()
                else:
                    await view.fetch_all()
            else:
                logger.debug("Ignoring live message %r on %s", kind, resource)
    except WebSocketDisconnect:
        logger.debug("Live %s connection closed for %s", resource, principal.id)
    finally:
        view.close()
