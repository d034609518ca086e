# repairdesk/routers/workshops.py
from __future__ import annotations

import re
from typing import List, Optional

from fastapi import APIRouter, Depends

from .. import crud, exports, utils, views
from ..context import AppContext
from ..dependencies import get_context, get_current_user
from ..errors import NotFound
from ..schemas import RepairRequest, Workshop, WorkshopIn

router = APIRouter(prefix="/workshops", tags=["Workshops"], dependencies=[Depends(get_current_user)])


# -------------------------
# CRUD
# -------------------------
@router.get("/", response_model=List[Workshop])
def list_workshops(
    sub_name: Optional[str] = None,
    foreman: Optional[str] = None,
    ctx: AppContext = Depends(get_context),
):
    rows = list(ctx.store.workshops)
    if sub_name:
        rows = [w for w in rows if sub_name.lower() in w.sub_name.lower()]
    if foreman:
        rows = [w for w in rows if foreman.lower() in w.foreman.lower()]
    return rows


@router.get("/{workshop_id}", response_model=Workshop)
def get_workshop(workshop_id: str, ctx: AppContext = Depends(get_context)):
    return crud.get_workshop(ctx.store, workshop_id)


@router.post("/", response_model=Workshop, status_code=201)
async def create_workshop(payload: WorkshopIn, ctx: AppContext = Depends(get_context)):
    return await crud.create_workshop(ctx.store, payload)


@router.put("/{workshop_id}", response_model=Workshop)
async def update_workshop(workshop_id: str, payload: WorkshopIn, ctx: AppContext = Depends(get_context)):
    return await crud.update_workshop(ctx.store, workshop_id, payload)


@router.delete("/{workshop_id}")
async def delete_workshop(workshop_id: str, ctx: AppContext = Depends(get_context)):
    await crud.delete_workshop(ctx.store, workshop_id)
    return {"ok": True}


# -------------------------
# History
# -------------------------
@router.get("/{workshop_id}/history", response_model=List[RepairRequest])
def workshop_history(workshop_id: str, ctx: AppContext = Depends(get_context)):
    crud.get_workshop(ctx.store, workshop_id)
    return views.workshop_history(ctx.store.repair_requests, workshop_id)


@router.get("/{workshop_id}/history.csv")
def download_workshop_history(workshop_id: str, ctx: AppContext = Depends(get_context)):
    workshop = crud.get_workshop(ctx.store, workshop_id)
    requests = views.workshop_history(ctx.store.repair_requests, workshop_id)
    if not requests:
        raise NotFound("No history to download.")
    rows = exports.history_rows(requests, ctx.store.equipments, ctx.store.workshops, workshop_id=workshop_id)
    slug = re.sub(r"\s+", "-", workshop.sub_name)
    filename = f"workshop-history-{slug}.csv"
    return utils.file_response(exports.history_csv(rows), "text/csv; charset=utf-8", filename)
