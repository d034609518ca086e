# repairdesk/routers/equipment.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends
import pandas as pd

from .. import crud, exports, utils
from ..context import AppContext
from ..dependencies import get_context, get_current_user
from ..schemas import Equipment, EquipmentIn

router = APIRouter(prefix="/equipment", tags=["Equipment"], dependencies=[Depends(get_current_user)])


# -------------------------
# CRUD
# -------------------------
@router.get("/", response_model=List[Equipment])
def list_equipment(
    q: Optional[str] = None,              # equipment number or serial, case-insensitive
    equipment_type: Optional[str] = None,
    branch_location: Optional[str] = None,
    ctx: AppContext = Depends(get_context),
):
    rows = crud.search_equipment(ctx.store.equipments, q) if q else list(ctx.store.equipments)
    if equipment_type:
        rows = [e for e in rows if e.type_label.lower() == equipment_type.lower()]
    if branch_location:
        rows = [e for e in rows if branch_location.lower() in e.branch_location.lower()]
    return rows


# export must be registered before /{equipment_id}
@router.get("/export.xlsx")
def export_equipment(ctx: AppContext = Depends(get_context)):
    df = pd.DataFrame(
        [
            {
                "Type": e.type_label,
                "Equipment Number": e.equipment_number,
                "Make": e.make,
                "Model": e.model_number,
                "Serial Number": e.serial_number,
                "Location": e.branch_location,
            }
            for e in ctx.store.equipments
        ],
        columns=["Type", "Equipment Number", "Make", "Model", "Serial Number", "Location"],
    )
    return utils.excel_response(df, "equipment.xlsx", sheet_name="Equipment")


@router.get("/{equipment_id}", response_model=Equipment)
def get_equipment(equipment_id: str, ctx: AppContext = Depends(get_context)):
    return crud.get_equipment(ctx.store, equipment_id)


@router.post("/", response_model=Equipment, status_code=201)
async def create_equipment(payload: EquipmentIn, ctx: AppContext = Depends(get_context)):
    return await crud.create_equipment(ctx.store, payload)


@router.put("/{equipment_id}", response_model=Equipment)
async def update_equipment(equipment_id: str, payload: EquipmentIn, ctx: AppContext = Depends(get_context)):
    return await crud.update_equipment(ctx.store, equipment_id, payload)


@router.get("/{equipment_id}/delete-check")
def delete_check(equipment_id: str, ctx: AppContext = Depends(get_context)):
    """What the confirmation dialog warns about before a delete."""
    equipment = crud.get_equipment(ctx.store, equipment_id)
    return {
        "equipmentNumber": equipment.equipment_number,
        "associatedRequests": crud.requests_for_equipment(ctx.store, equipment_id),
    }


@router.delete("/{equipment_id}")
async def delete_equipment(equipment_id: str, ctx: AppContext = Depends(get_context)):
    orphaned = await crud.delete_equipment(ctx.store, equipment_id)
    return {"ok": True, "orphanedRequests": orphaned}


@router.get("/{equipment_id}/share")
def share_equipment(equipment_id: str, ctx: AppContext = Depends(get_context)):
    equipment = crud.get_equipment(ctx.store, equipment_id)
    return {"url": exports.whatsapp_link(exports.equipment_message(equipment))}
