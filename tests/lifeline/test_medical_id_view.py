from src.lifeline.domain.models.medical_id import MedicalIdDraft
from src.lifeline.domain.models.user import Principal, Role
from src.lifeline.views.entity_list import ActionOutcome
from src.lifeline.views.medical_ids import MedicalIdListView


OWNER = Principal(id="user-a", role=Role.RESPONDER)
OTHER = Principal(id="user-b", role=Role.RESPONDER)
ADMIN = Principal(id="user-c", role=Role.ADMIN)


def _draft(**overrides) -> MedicalIdDraft:
    values = dict(
        full_name="Jane Doe",
        date_of_birth="1990-05-01",
        blood_type="O-",
        allergies="Penicillin",
        emergency_contact_name="John Doe",
        emergency_contact_phone="555-0100",
    )
    values.update(overrides)
    return MedicalIdDraft(**values)


async def _create_as_owner():
    view = MedicalIdListView(OWNER)
    result = await view.create(_draft())
    assert result.ok
    return result.record


async def test_create_stores_blank_optionals_as_null_and_refetches(recording_store):
    view = MedicalIdListView(OWNER)
    result = await view.create(_draft(allergies="", medications="  "))

    assert result.ok
    assert result.record.allergies is None
    assert result.record.medications is None
    assert result.record.created_by == "user-a"
    assert [m.id for m in view.items] == [result.record.id]
    assert recording_store.count("select", "medical_ids") == 1


async def test_create_rejects_bad_dates_and_blood_types(recording_store):
    view = MedicalIdListView(OWNER)

    result = await view.create(_draft(date_of_birth="01/05/1990", blood_type="Z+"))

    assert result.outcome == ActionOutcome.INVALID
    assert result.invalid_fields == ["date_of_birth", "blood_type"]
    assert recording_store.count("insert") == 0


async def test_declined_confirmation_deletes_nothing(recording_store):
    record = await _create_as_owner()
    view = MedicalIdListView(OWNER)
    notifications = len(view.notifier.history)

    result = await view.remove(record.id, confirm=lambda: False)

    assert result.outcome == ActionOutcome.DECLINED
    assert recording_store.count("delete") == 0
    assert len(view.notifier.history) == notifications


async def test_other_user_cannot_delete(recording_store):
    record = await _create_as_owner()
    view = MedicalIdListView(OTHER)
    asked = []

    result = await view.remove(record.id, confirm=lambda: asked.append(True) or True)

    assert result.outcome == ActionOutcome.FORBIDDEN
    assert asked == []
    assert recording_store.count("delete") == 0
    assert not view.can_delete(record)


async def test_owner_and_admin_can_delete(recording_store):
    first = await _create_as_owner()
    second = await _create_as_owner()

    owner_view = MedicalIdListView(OWNER)
    result = await owner_view.remove(first.id, confirm=lambda: True)
    assert result.ok
    assert owner_view.notifier.last.description == "Medical ID deleted successfully"

    async def confirm():
        return True

    admin_view = MedicalIdListView(ADMIN)
    result = await admin_view.remove(second.id, confirm=confirm)
    assert result.ok
    assert admin_view.items == []
    assert recording_store.count("delete", "medical_ids") == 2


async def test_remove_missing_record(recording_store):
    result = await MedicalIdListView(ADMIN).remove("missing", confirm=lambda: True)
    assert result.outcome == ActionOutcome.NOT_FOUND


async def test_lowercase_blood_type_is_normalised(recording_store):
    view = MedicalIdListView(OWNER)

    result = await view.create(_draft(blood_type=" o+ "))

    assert result.ok
    assert result.record.blood_type == "O+"
    assert recording_store.count("insert", "medical_ids") == 1
