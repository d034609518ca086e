# repairdesk/routers/requests.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from .. import exports, jobcard, translation, utils, views
from ..context import AppContext
from ..dependencies import get_context, get_current_user
from ..errors import NotFound
from ..schemas import RepairRequest, RequestStatus
from ..workflow import CompletionForm, complete_request, find_job_card

router = APIRouter(prefix="/requests", tags=["Repair requests"], dependencies=[Depends(get_current_user)])


class TranslateIn(BaseModel):
    text: str
    target_language: str = "English"


def _history(ctx: AppContext, equipment_id, workshop_id, month, status):
    return views.filter_requests(
        ctx.store.repair_requests,
        equipment_id=equipment_id,
        workshop_id=workshop_id,
        month=month,
        status=status,
    )


def _get(ctx: AppContext, request_id: str) -> RepairRequest:
    req = ctx.store.get_request(request_id)
    if req is None:
        raise NotFound(f"Job card {request_id} not found")
    return req


# -------------------------
# Lists
# -------------------------
@router.get("/", response_model=List[RepairRequest])
def list_requests(
    equipment_id: Optional[str] = None,
    workshop_id: Optional[str] = None,
    month: Optional[str] = None,          # YYYY-MM
    status: Optional[RequestStatus] = None,
    ctx: AppContext = Depends(get_context),
):
    return _history(ctx, equipment_id, workshop_id, month, status)


@router.get("/pending", response_model=List[RepairRequest])
def list_pending(ctx: AppContext = Depends(get_context)):
    return views.pending_requests(ctx.store)


@router.get("/completed", response_model=List[RepairRequest])
def list_completed(ctx: AppContext = Depends(get_context)):
    return views.completed_requests(ctx.store)


@router.get("/search", response_model=RepairRequest)
def search_job_card(job_card: str, ctx: AppContext = Depends(get_context)):
    req = find_job_card(ctx.store, job_card)
    if req is None:
        raise NotFound(f"Job card {job_card.strip()} not found")
    return req


# -------------------------
# Export (.csv / .xlsx)
# -------------------------
@router.get("/history.csv")
def export_history_csv(
    equipment_id: Optional[str] = None,
    workshop_id: Optional[str] = None,
    month: Optional[str] = None,
    ctx: AppContext = Depends(get_context),
):
    requests = _history(ctx, equipment_id, workshop_id, month, None)
    if not requests:
        raise NotFound("No history to download.")
    rows = exports.history_rows(requests, ctx.store.equipments, ctx.store.workshops, workshop_id=workshop_id)
    return utils.file_response(exports.history_csv(rows), "text/csv; charset=utf-8", "repair-history.csv")


@router.get("/history.xlsx")
def export_history_xlsx(
    equipment_id: Optional[str] = None,
    workshop_id: Optional[str] = None,
    month: Optional[str] = None,
    ctx: AppContext = Depends(get_context),
):
    requests = _history(ctx, equipment_id, workshop_id, month, None)
    if not requests:
        raise NotFound("No history to download.")
    rows = exports.history_rows(requests, ctx.store.equipments, ctx.store.workshops, workshop_id=workshop_id)
    return utils.excel_response(exports.history_dataframe(rows), "workshop_history.xlsx", sheet_name="History")


@router.post("/translate")
async def translate(payload: TranslateIn, ctx: AppContext = Depends(get_context)):
    text = await translation.translate_text(
        payload.text, payload.target_language, url=ctx.settings.TRANSLATE_URL
    )
    return {"translation": text}


# -------------------------
# Single job card
# -------------------------
@router.get("/{request_id}", response_model=RepairRequest)
def get_request(request_id: str, ctx: AppContext = Depends(get_context)):
    return _get(ctx, request_id)


@router.post("/{request_id}/complete", response_model=RepairRequest)
async def complete(request_id: str, form: CompletionForm, ctx: AppContext = Depends(get_context)):
    return await complete_request(ctx.store, request_id, form)


@router.get("/{request_id}/jobcard.pdf")
def job_card_pdf(request_id: str, ctx: AppContext = Depends(get_context)):
    req = _get(ctx, request_id)
    content = jobcard.job_card_pdf(req, ctx.store.get_equipment(req.equipment_id), ctx.store.workshops)
    return utils.file_response(content, "application/pdf", f"JobCard-{req.id}.pdf")


@router.get("/{request_id}/jobcard.png")
def job_card_png(request_id: str, ctx: AppContext = Depends(get_context)):
    req = _get(ctx, request_id)
    content = jobcard.job_card_png(req, ctx.store.get_equipment(req.equipment_id), ctx.store.workshops)
    return utils.file_response(content, "image/png", f"JobCard-{req.id}.png", inline=True)


@router.post("/{request_id}/share")
def share_job_card(request_id: str, ctx: AppContext = Depends(get_context)):
    """Saves the PDF first, then hands back the WhatsApp link to open."""
    req = _get(ctx, request_id)
    equipment = ctx.store.get_equipment(req.equipment_id)
    path = jobcard.save_job_card_pdf(ctx.settings.EXPORT_DIR, req, equipment, ctx.store.workshops)
    return {
        "pdf": str(path),
        "url": exports.whatsapp_link(exports.job_card_message(req, equipment)),
    }
