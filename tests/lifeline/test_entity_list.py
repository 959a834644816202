import asyncio

from src.lifeline.domain.models.accident import AccidentStatus
from src.lifeline.domain.models.user import Principal, Role
from src.lifeline.infra.store.changes import ChangeEvent, ChangeType
from src.lifeline.views.accidents import AccidentListView
from src.lifeline.views.entity_list import SyncMode
from src.lifeline.views.filters import ListFilter
from src.lifeline.views.resources import AlertLogListView


ADMIN = Principal(id="admin-1", role=Role.ADMIN)


def _row(**overrides):
    values = dict(type="Fall", description="Slipped on stairs", location="Library", priority="low", status="active")
    values.update(overrides)
    return values


async def test_fetch_completing_after_close_is_discarded(recording_store):
    await recording_store.insert("accidents", [_row()])
    view = AccidentListView(ADMIN)
    gate = recording_store.hold_next_select()

    pending = asyncio.create_task(view.fetch_all())
    await asyncio.sleep(0)
    view.close()
    gate.set()

    assert await pending is False
    assert view.items == []
    assert view.loading


async def test_older_fetch_never_overwrites_newer_one(recording_store):
    view = AccidentListView(ADMIN)
    gate = recording_store.hold_next_select()

    # The first fetch reads an empty table, then stalls.
    first = asyncio.create_task(view.fetch_all())
    await asyncio.sleep(0)
    await recording_store.insert("accidents", [_row()])
    assert await view.fetch_all() is True
    gate.set()

    assert await first is False
    assert len(view.items) == 1


async def test_fetch_failure_keeps_previous_items(recording_store):
    await recording_store.insert("accidents", [_row()])
    view = AccidentListView(ADMIN)
    assert await view.fetch_all()

    recording_store.fail_selects = True
    assert await view.fetch_all() is False

    assert len(view.items) == 1
    assert not view.loading
    assert view.notifier.last.description == "Failed to fetch emergency data"


async def test_patch_and_refetch_modes_converge(recording_store):
    patched = AccidentListView(ADMIN, sync_mode=SyncMode.PATCH)
    refetched = AccidentListView(ADMIN, sync_mode=SyncMode.REFETCH)
    await patched.open()
    await refetched.open()

    first, second = await recording_store.insert("accidents", [_row(type="Fire"), _row(type="Flood")])
    await recording_store.update("accidents", first["id"], {"status": AccidentStatus.RESPONDED})
    await recording_store.insert("accidents", [_row(type="Collision")])
    await recording_store.delete("accidents", second["id"])
    await recording_store.change_feed.drain()

    fresh = AccidentListView(ADMIN)
    await fresh.fetch_all()

    def snapshot(view):
        return sorted((a.id, a.type, a.status.value) for a in view.items)

    assert snapshot(patched) == snapshot(fresh)
    assert snapshot(refetched) == snapshot(fresh)
    patched.close()
    refetched.close()


async def test_scoped_view_ignores_rows_outside_its_scope(recording_store):
    view = AccidentListView(ADMIN, eq={"status": "active"})
    await view.open()

    row = (await recording_store.insert("accidents", [_row()]))[0]
    await recording_store.change_feed.drain()
    assert [a.id for a in view.items] == [row["id"]]

    await recording_store.update("accidents", row["id"], {"status": "responded"})
    await recording_store.change_feed.drain()
    assert view.items == []
    view.close()


async def test_closed_view_stops_receiving_changes(recording_store):
    calls = []

    async def on_change():
        calls.append(True)

    view = AccidentListView(ADMIN, on_change=on_change)
    await view.open()
    view.close()

    await recording_store.insert("accidents", [_row()])
    assert view.items == []
    assert len(calls) == 1
    assert recording_store.change_feed.subscriptions("accidents") == []


async def test_events_without_rows_fall_back_to_refetch(recording_store):
    view = AccidentListView(ADMIN)
    await view.open()
    await recording_store.insert("accidents", [_row()])
    await recording_store.change_feed.drain()
    selects = recording_store.count("select")

    await recording_store.change_feed.publish(ChangeEvent(table="accidents", type=ChangeType.UPDATE))
    await recording_store.change_feed.drain()

    assert recording_store.count("select") == selects + 1
    assert len(view.items) == 1
    view.close()


async def test_filter_changes_do_not_touch_the_store(recording_store):
    await recording_store.insert("accidents", [_row(type="Car Accident"), _row(type="Fall")])
    view = AccidentListView(ADMIN)
    await view.fetch_all()
    selects = recording_store.count("select")

    assert [a.type for a in view.set_filter(ListFilter(search="car"))] == ["Car Accident"]
    assert len(view.set_filter(ListFilter())) == 2
    assert recording_store.count("select") == selects


async def test_alert_logs_are_joined_with_their_accident(recording_store):
    accident = (await recording_store.insert("accidents", [_row(type="Fire")]))[0]
    await recording_store.insert(
        "alert_logs",
        [
            {"accident_id": accident["id"], "type": "emergency_call", "message": "Caller reports smoke"},
            {"accident_id": None, "type": "system_alert", "message": "Shift change"},
        ],
    )

    view = AlertLogListView(ADMIN)
    await view.open()

    joined = {alert.message: alert.accident for alert in view.items}
    assert joined["Caller reports smoke"].type == "Fire"
    assert joined["Shift change"] is None

    await recording_store.insert("alert_logs", [{"type": "medical_alert", "message": "Low oxygen"}])
    await recording_store.change_feed.drain()
    assert len(view.items) == 3
    view.close()


async def test_malformed_row_does_not_hide_the_rest(recording_store):
    await recording_store.insert("accidents", [_row(type="Fall", priority="medium"), _row(type="Flood", priority="urgent")])
    view = AccidentListView(ADMIN)

    assert await view.fetch_all() is True

    assert [a.type for a in view.items] == ["Fall"]
    assert view.notifier.last is None
