import pytest

from src.lifeline import policy
from src.lifeline.domain.models.user import Principal, Role


def _titles(role):
    return [item.title for item in policy.visible_items(role)]


def test_responder_navigation_hides_command_and_admin_pages():
    titles = _titles(Role.RESPONDER)
    assert titles == ["Dashboard", "Active Emergencies", "Medical IDs", "Communication", "Settings"]


def test_dispatcher_sees_command_pages_but_not_users():
    titles = _titles(Role.DISPATCHER)
    assert "Ambulances" in titles
    assert "Alert Logs" in titles
    assert "Live Map" in titles
    assert "Users" not in titles


def test_admin_sees_every_page_in_order():
    assert _titles(Role.ADMIN) == [item.title for item in policy.NAVIGATION_ITEMS]


@pytest.mark.parametrize("raw", [None, "", "superuser", {"full_name": "No Role"}, {"role": "chief"}])
def test_missing_or_unknown_role_is_treated_as_responder(raw):
    assert policy.resolve_role(raw) == Role.RESPONDER
    assert _titles(raw) == _titles(Role.RESPONDER)


def test_role_is_read_from_session_metadata():
    assert policy.resolve_role({"role": "dispatcher"}) == Role.DISPATCHER
    assert policy.resolve_role(" Admin ") == Role.ADMIN


def test_custom_navigation_list_is_filtered_in_order():
    items = [policy.find_item("/users"), policy.find_item("/dashboard")]
    assert [i.path for i in policy.visible_items("admin", items)] == ["/users", "/dashboard"]
    assert [i.path for i in policy.visible_items("responder", items)] == ["/dashboard"]


def test_page_access_follows_navigation():
    assert policy.can_access_path("responder", "/emergencies")
    assert not policy.can_access_path("responder", "/ambulances")
    assert not policy.can_access_path("dispatcher", "/users")
    assert policy.can_access_path("responder", "/not-in-navigation")


def test_named_action_rules():
    assert policy.can_view_user_count("admin")
    assert not policy.can_view_user_count("dispatcher")
    assert policy.can_transition_accident_status("dispatcher")
    assert policy.can_transition_accident_status("admin")
    assert not policy.can_transition_accident_status("responder")
    assert not policy.can_transition_accident_status(None)


def test_medical_id_deletion_is_limited_to_owner_or_admin():
    owner = Principal(id="user-a", role=Role.RESPONDER)
    other = Principal(id="user-b", role=Role.DISPATCHER)
    admin = Principal(id="user-c", role=Role.ADMIN)

    assert policy.can_delete_medical_id(owner, "user-a")
    assert not policy.can_delete_medical_id(other, "user-a")
    assert policy.can_delete_medical_id(admin, "user-a")
    assert not policy.can_delete_medical_id(owner, None)
