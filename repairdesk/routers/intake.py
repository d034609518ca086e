# repairdesk/routers/intake.py
"""The new repair request form, one step per call."""
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from pydantic.alias_generators import to_snake

from ..context import AppContext
from ..dependencies import get_context, get_current_user
from ..schemas import CamelModel, Equipment, EquipmentIn, Fault, Purpose, RepairRequest, Workshop, WorkshopIn
from ..workflow import DuplicateChoice, IntakeDraft

router = APIRouter(prefix="/intake", tags=["Intake"], dependencies=[Depends(get_current_user)])


class DetailsIn(CamelModel):
    driver_name: Optional[str] = None
    mileage: Optional[str] = None
    purpose: Optional[Purpose] = None


class FaultFieldIn(CamelModel):
    field: str          # description | workshopId | mechanicName| workshop_id | mechanic_name
    value: str


class ChoiceIn(BaseModel):
    choice: DuplicateChoice


@router.get("/", response_model=IntakeDraft)
def get_draft(ctx: AppContext = Depends(get_context)):
    return ctx.intake.draft


@router.delete("/", response_model=IntakeDraft)
def reset_draft(ctx: AppContext = Depends(get_context)):
    ctx.intake.reset()
    return ctx.intake.draft


# -------------------------
# Equipment
# -------------------------
@router.get("/equipment", response_model=List[Equipment])
def search_equipment(q: str = "", ctx: AppContext = Depends(get_context)):
    return ctx.intake.search(q)


@router.post("/equipment/{equipment_id}/select", response_model=IntakeDraft)
def select_equipment(equipment_id: str, ctx: AppContext = Depends(get_context)):
    # a pending job card for it shows up as draft.pendingDuplicate
    ctx.intake.select_equipment(equipment_id)
    return ctx.intake.draft


@router.post("/duplicate", response_model=IntakeDraft)
def resolve_duplicate(payload: ChoiceIn, ctx: AppContext = Depends(get_context)):
    ctx.intake.resolve_duplicate(payload.choice)
    return ctx.intake.draft


@router.delete("/duplicate", response_model=IntakeDraft)
def dismiss_duplicate(ctx: AppContext = Depends(get_context)):
    ctx.intake.dismiss_duplicate()
    return ctx.intake.draft


@router.post("/equipment", response_model=Equipment, status_code=201)
async def add_equipment(payload: EquipmentIn, ctx: AppContext = Depends(get_context)):
    return await ctx.intake.add_equipment(payload)


# -------------------------
# Details and faults
# -------------------------
@router.patch("/details", response_model=IntakeDraft)
def set_details(payload: DetailsIn, ctx: AppContext = Depends(get_context)):
    ctx.intake.set_details(
        driver_name=payload.driver_name,
        mileage=payload.mileage,
        purpose=payload.purpose,
    )
    return ctx.intake.draft


@router.post("/faults", response_model=Fault, status_code=201)
def add_fault(ctx: AppContext = Depends(get_context)):
    return ctx.intake.add_fault_row()


@router.patch("/faults/{fault_id}", response_model=IntakeDraft)
def set_fault_field(fault_id: str, payload: FaultFieldIn, ctx: AppContext = Depends(get_context)):
    ctx.intake.set_fault_field(fault_id, to_snake(payload.field), payload.value)
    return ctx.intake.draft


@router.delete("/faults/{fault_id}", response_model=IntakeDraft)
def remove_fault(fault_id: str, ctx: AppContext = Depends(get_context)):
    ctx.intake.remove_fault_row(fault_id)
    return ctx.intake.draft


@router.post("/workshops", response_model=Workshop, status_code=201)
async def add_workshop(payload: WorkshopIn, ctx: AppContext = Depends(get_context)):
    return await ctx.intake.add_workshop(payload)


# -------------------------
# Submit
# -------------------------
@router.post("/submit", response_model=RepairRequest)
async def submit(ctx: AppContext = Depends(get_context)):
    return await ctx.intake.submit()


@router.get("/last", response_model=Optional[RepairRequest])
def last_job_card(ctx: AppContext = Depends(get_context)):
    return ctx.intake.last_job_card
