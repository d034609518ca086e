import pytest
from pydantic import ValidationError

from repairdesk import crud
from repairdesk.errors import InvariantViolation, NotFound
from repairdesk.schemas import EquipmentIn, EquipmentKind, WorkshopIn


def equipment(number, serial, **extra):
    return EquipmentIn(equipment_number=number, serial_number=serial, **extra)


async def test_create_equipment(ctx, sheet):
    created = await crud.create_equipment(ctx.store, equipment("EQ1", "SN1", make="Volvo"))

    row = sheet.tables["Equipments"][-1]
    assert row["serialNumber"] == "SN1"
    assert row["equipmentType"] == "Shovel"
    assert ctx.store.get_equipment(created.id).make == "Volvo"


async def test_duplicate_serial_rejected_before_remote_call(ctx, sheet):
    await crud.create_equipment(ctx.store, equipment("EQ1", "SN1"))
    before = list(ctx.store.equipments)
    sheet.calls.clear()

    with pytest.raises(InvariantViolation):
        await crud.create_equipment(ctx.store, equipment("EQ2", "SN1"))

    assert sheet.calls == []
    assert ctx.store.equipments == before


async def test_update_keeps_own_serial_but_not_anothers(ctx, sheet):
    await crud.update_equipment(ctx.store, "e1", equipment("LD-08", "CAT950-1"))
    assert ctx.store.get_equipment("e1").equipment_number == "LD-08"

    other = await crud.create_equipment(ctx.store, equipment("EQ1", "SN1"))
    sheet.calls.clear()
    with pytest.raises(InvariantViolation):
        await crud.update_equipment(ctx.store, other.id, equipment("EQ1", "CAT950-1"))
    assert sheet.calls == []


async def test_delete_equipment_reports_orphans(ctx, sheet):
    sheet.add("RepairRequests", {
        "id": "262001", "equipmentId": "e1", "driverName": "Hassan",
        "faults": [], "dateIn": "2024-04-01", "timeIn": "08:00:00", "status": "Completed",
    })
    await ctx.store.refresh()

    assert crud.requests_for_equipment(ctx.store, "e1") == 1
    assert await crud.delete_equipment(ctx.store, "e1") == 1
    assert ctx.store.get_equipment("e1") is None
    # the job card stays behind
    assert ctx.store.get_request("262001") is not None


async def test_missing_equipment(ctx):
    with pytest.raises(NotFound):
        await crud.delete_equipment(ctx.store, "nope")


def test_equipment_form_validation():
    with pytest.raises(ValidationError):
        equipment("EQ1", "   ")
    with pytest.raises(ValidationError):
        equipment("", "SN1")
    with pytest.raises(ValidationError):
        equipment("EQ1", "SN1", equipment_type="  ")

    custom = equipment("EQ1", "SN1", equipment_type="Crane")
    assert custom.is_custom_type and custom.type_label == "Crane"
    preset = equipment("EQ1", "SN1", equipment_type="Dump Truck")
    assert preset.equipment_type is EquipmentKind.DUMP_TRUCK


async def test_search_matches_number_or_serial(ctx):
    assert [e.id for e in crud.search_equipment(ctx.store.equipments, "ld-0")] == ["e1"]
    assert [e.id for e in crud.search_equipment(ctx.store.equipments, "cat950")] == ["e1"]
    assert crud.search_equipment(ctx.store.equipments, "zzz") == []


async def test_workshop_crud(ctx, sheet):
    ws = await crud.create_workshop(ctx.store, WorkshopIn(sub_name="  Tyres ", foreman="Kamal"))
    assert sheet.tables["Workshops"][-1]["subName"] == "Tyres"

    await crud.update_workshop(ctx.store, ws.id, WorkshopIn(sub_name="Tyres", foreman="Nabil"))
    assert ctx.store.get_workshop(ws.id).foreman == "Nabil"

    await crud.delete_workshop(ctx.store, ws.id)
    assert ctx.store.get_workshop(ws.id) is None


def test_workshop_requires_name_and_foreman():
    with pytest.raises(ValidationError):
        WorkshopIn(sub_name="Tyres", foreman=" ")


async def test_workshop_in_use_cannot_be_deleted(ctx, sheet):
    sheet.add("RepairRequests", {
        "id": "262001", "equipmentId": "e1", "driverName": "Hassan",
        "faults": [{"id": "f1", "description": "Leak", "workshopId": "w2"}],
        "dateIn": "2024-04-01", "timeIn": "08:00:00", "status": "Completed", "workshopId": "w1",
    })
    await ctx.store.refresh()
    sheet.calls.clear()

    with pytest.raises(InvariantViolation):
        await crud.delete_workshop(ctx.store, "w2")

    assert sheet.calls == []
    assert ctx.store.get_workshop("w2") is not None
