"""Role-based navigation and action policy.

Everything here is a pure function of the caller's role (and, for ownership
rules, the record owner). The decisions only shape what the console offers a
user: menu entries, stat cards, action buttons. They are NOT an authorization
boundary. Actual data access is enforced by the backend's row-level policies,
and any caller that talks to the backend directly bypasses this module.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

from src.lifeline.domain.models.navigation import NavigationItem
from src.lifeline.domain.models.user import Principal, Role


ALL_ROLES = frozenset(Role)
COMMAND_ROLES = frozenset({Role.ADMIN, Role.DISPATCHER})
ADMIN_ONLY = frozenset({Role.ADMIN})


NAVIGATION_ITEMS: Tuple[NavigationItem, ...] = (
    NavigationItem(title="Dashboard", path="/dashboard", icon="layout-dashboard", allowed_roles=ALL_ROLES),
    NavigationItem(title="Active Emergencies", path="/emergencies", icon="alert-triangle", allowed_roles=ALL_ROLES),
    NavigationItem(title="Medical IDs", path="/medical-ids", icon="heart", allowed_roles=ALL_ROLES),
    NavigationItem(title="Ambulances", path="/ambulances", icon="ambulance", allowed_roles=COMMAND_ROLES),
    NavigationItem(title="Alert Logs", path="/alerts", icon="activity", allowed_roles=COMMAND_ROLES),
    NavigationItem(title="Communication", path="/communication", icon="message-square", allowed_roles=ALL_ROLES),
    NavigationItem(title="Live Map", path="/map", icon="map-pin", allowed_roles=COMMAND_ROLES),
    NavigationItem(title="Users", path="/users", icon="users", allowed_roles=ADMIN_ONLY),
    NavigationItem(title="Settings", path="/settings", icon="settings", allowed_roles=ALL_ROLES),
)


def resolve_role(value: Union[Role, str, Mapping[str, Any], None]) -> Role:
    """Return the role for a raw role value or a session metadata mapping.

    Anything missing or unrecognized resolves to ``responder``, the least
    privileged role.
    """

    if isinstance(value, Mapping):
        value = value.get("role")
    if isinstance(value, Role):
        return value
    if isinstance(value, str):
        try:
            return Role(value.strip().lower())
        except ValueError:
            return Role.RESPONDER
    return Role.RESPONDER


def is_allowed(role: Union[Role, str, None], item: NavigationItem) -> bool:
    return resolve_role(role) in item.allowed_roles


def visible_items(
    role: Union[Role, str, None],
    items: Iterable[NavigationItem] = NAVIGATION_ITEMS,
) -> List[NavigationItem]:
    """Filter ``items`` down to what ``role`` may see, keeping their order."""

    resolved = resolve_role(role)
    return [item for item in items if resolved in item.allowed_roles]


def find_item(path: str, items: Iterable[NavigationItem] = NAVIGATION_ITEMS) -> Optional[NavigationItem]:
    for item in items:
        if item.path == path:
            return item
    return None


def can_access_path(role: Union[Role, str, None], path: str) -> bool:
    """Whether the page at ``path`` is in the role's navigation.

    Paths that are not part of the static navigation are not gated here.
    """

    item = find_item(path)
    if item is None:
        return True
    return is_allowed(role, item)


def can_view_user_count(role: Union[Role, str, None]) -> bool:
    return resolve_role(role) == Role.ADMIN


def can_transition_accident_status(role: Union[Role, str, None]) -> bool:
    return resolve_role(role) in COMMAND_ROLES


def can_delete_medical_id(principal: Principal, owner_id: Optional[str]) -> bool:
    """Admins may delete any medical ID; everybody else only their own."""

    if resolve_role(principal.role) == Role.ADMIN:
        return True
    return owner_id is not None and owner_id == principal.id
