# repairdesk/crud.py
from __future__ import annotations

from typing import Iterable

from .errors import InvariantViolation, NotFound
from .schemas import Equipment, EquipmentIn, SheetName, Workshop, WorkshopIn, new_id
from .store import DataStore


# -------------------------
# Equipment
# -------------------------
def get_equipment(store: DataStore, equipment_id: str) -> Equipment:
    obj = store.get_equipment(equipment_id)
    if not obj:
        raise NotFound("Equipment not found")
    return obj


def _check_serial(store: DataStore, serial_number: str, *, exclude: str | None = None) -> None:
    if any(e.serial_number == serial_number and e.id != exclude for e in store.equipments):
        raise InvariantViolation("An equipment with this serial number already exists.")


async def create_equipment(store: DataStore, data: EquipmentIn) -> Equipment:
    _check_serial(store, data.serial_number)
    obj = Equipment(id=new_id(), **data.model_dump())
    await store.create_data(SheetName.EQUIPMENTS, obj.to_payload())
    return obj


async def update_equipment(store: DataStore, equipment_id: str, data: EquipmentIn) -> Equipment:
    get_equipment(store, equipment_id)
    _check_serial(store, data.serial_number, exclude=equipment_id)
    obj = Equipment(id=equipment_id, **data.model_dump())
    await store.update_data(SheetName.EQUIPMENTS, obj.to_payload())
    return obj


def requests_for_equipment(store: DataStore, equipment_id: str) -> int:
    return sum(1 for r in store.repair_requests if r.equipment_id == equipment_id)


async def delete_equipment(store: DataStore, equipment_id: str) -> int:
    """Delete even when job cards point at it; returns how many were orphaned."""
    get_equipment(store, equipment_id)
    orphaned = requests_for_equipment(store, equipment_id)
    await store.delete_data(SheetName.EQUIPMENTS, equipment_id)
    return orphaned


# -------------------------
# Workshops
# -------------------------
def get_workshop(store: DataStore, workshop_id: str) -> Workshop:
    ws = store.get_workshop(workshop_id)
    if not ws:
        raise NotFound("Workshop not found")
    return ws


def workshop_in_use(store: DataStore, workshop_id: str) -> bool:
    return any(f.workshop_id == workshop_id for r in store.repair_requests for f in r.faults)


async def create_workshop(store: DataStore, data: WorkshopIn) -> Workshop:
    ws = Workshop(id=new_id(), **data.model_dump())
    await store.create_data(SheetName.WORKSHOPS, ws.to_payload())
    return ws


async def update_workshop(store: DataStore, workshop_id: str, data: WorkshopIn) -> Workshop:
    get_workshop(store, workshop_id)
    ws = Workshop(id=workshop_id, **data.model_dump())
    await store.update_data(SheetName.WORKSHOPS, ws.to_payload())
    return ws


async def delete_workshop(store: DataStore, workshop_id: str) -> None:
    get_workshop(store, workshop_id)
    if workshop_in_use(store, workshop_id):
        raise InvariantViolation("This workshop is used by repair requests and cannot be deleted.")
    await store.delete_data(SheetName.WORKSHOPS, workshop_id)


def search_equipment(equipments: Iterable[Equipment], query: str) -> list[Equipment]:
    q = query.strip().lower()
    return [
        e for e in equipments
        if q in e.equipment_number.lower() or q in e.serial_number.lower()
    ]
