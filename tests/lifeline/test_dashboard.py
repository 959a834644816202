from src.lifeline.domain.models.user import Principal, Role
from src.lifeline.infra.store.changes import ChangeEvent, ChangeType
from src.lifeline.views.dashboard import DashboardView, project_dashboard_stats


async def _seed(store):
    accidents = await store.insert(
        "accidents",
        [
            {"type": "Fire", "description": "Kitchen fire", "location": "Elm St", "priority": "critical", "status": "active"},
            {"type": "Fall", "description": "Hip injury", "location": "Park", "priority": "medium", "status": "active"},
            {"type": "Flood", "description": "Basement", "location": "River Rd", "priority": "low", "status": "resolved"},
        ],
    )
    await store.insert(
        "ambulances",
        [
            {"call_sign": "MEDIC-1", "status": "available"},
            {"call_sign": "MEDIC-2", "status": "dispatched"},
        ],
    )
    await store.insert(
        "medical_ids",
        [{"full_name": "Jane Doe", "date_of_birth": "1990-05-01", "blood_type": "O-"}],
    )
    await store.insert("profiles", [{"full_name": "Ada", "role": "admin"}, {"full_name": "Ben", "role": "responder"}])
    await store.insert(
        "alert_logs",
        [{"accident_id": accidents[0]["id"], "type": "emergency_call", "message": f"Call {i}"} for i in range(7)],
    )
    return accidents


def test_projection_counts_rows():
    stats = project_dashboard_stats(
        active_accidents=[],
        available_ambulances=[{"id": "a"}, {"id": "b"}],
        medical_ids=[{"id": "m"}],
        profiles=None,
        recent_alerts=[],
    )
    assert stats.available_ambulances == 2
    assert stats.total_medical_ids == 1
    assert stats.total_users == 0
    assert stats.active_accidents == []


async def test_admin_dashboard_includes_user_count(store):
    await _seed(store)
    view = DashboardView(Principal(id="admin-1", role=Role.ADMIN))

    assert await view.refresh()

    assert view.show_user_count
    assert view.stats.active_emergencies == 2
    assert view.stats.available_ambulances == 1
    assert view.stats.total_medical_ids == 1
    assert view.stats.total_users == 2
    assert len(view.stats.recent_alerts) == 5
    assert view.stats.recent_alerts[0].accident.type == "Fire"
    assert {a.type for a in view.stats.active_accidents} == {"Fire", "Fall"}


async def test_non_admin_dashboard_skips_profiles(recording_store):
    await _seed(recording_store)
    view = DashboardView(Principal(id="dispatcher-1", role=Role.DISPATCHER))

    assert await view.refresh()

    assert not view.show_user_count
    assert view.stats.total_users == 0
    assert recording_store.count("select", "profiles") == 0


async def test_dashboard_refreshes_on_accident_changes(recording_store):
    view = DashboardView(Principal(id="admin-1", role=Role.ADMIN))
    await view.open()
    assert view.stats.active_emergencies == 0

    row = (await recording_store.insert(
        "accidents",
        [{"type": "Fire", "description": "Smoke", "location": "Elm St", "status": "active"}],
    ))[0]
    await recording_store.change_feed.drain()
    assert view.stats.active_emergencies == 1

    await recording_store.update("accidents", row["id"], {"status": "responded"})
    await recording_store.change_feed.drain()
    assert view.stats.active_emergencies == 0

    view.close()
    await recording_store.update("accidents", row["id"], {"status": "active"})
    assert view.stats.active_emergencies == 0


async def test_dashboard_failure_notifies_and_keeps_stats(recording_store):
    view = DashboardView(Principal(id="admin-1", role=Role.ADMIN))
    recording_store.fail_selects = True

    assert await view.refresh() is False
    assert view.notifier.last.description == "Failed to fetch dashboard data"
    assert view.stats.active_emergencies == 0


async def test_closed_dashboard_ignores_late_changes(recording_store):
    view = DashboardView(Principal(id="admin-1", role=Role.ADMIN))
    await view.open()
    view.close()
    selects = recording_store.count("select")

    await view._handle_change(ChangeEvent(table="accidents", type=ChangeType.INSERT, record={"id": "late"}))

    assert recording_store.count("select") == selects


async def test_malformed_accident_is_left_out_of_the_dashboard(store):
    await store.insert(
        "accidents",
        [
            {"type": "Fire", "description": "Smoke", "location": "Elm St", "priority": "high", "status": "active"},
            {"type": "Flood", "description": "Basement", "location": "River Rd", "priority": "urgent", "status": "active"},
        ],
    )
    view = DashboardView(Principal(id="admin-1", role=Role.ADMIN))

    assert await view.refresh()
    assert [a.type for a in view.stats.active_accidents] == ["Fire"]
