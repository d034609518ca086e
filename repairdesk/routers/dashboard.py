# repairdesk/routers/dashboard.py
from fastapi import APIRouter, Depends

from .. import views
from ..context import AppContext
from ..dependencies import get_context, get_current_user

router = APIRouter(prefix="/dashboard", tags=["Dashboard"], dependencies=[Depends(get_current_user)])


@router.get("/")
def dashboard(ctx: AppContext = Depends(get_context)):
    counts = views.dashboard(ctx.store)
    error = ctx.store.error
    counts.update(loading=ctx.store.loading, error=str(error) if error else None)
    return counts


@router.post("/refresh")
async def refresh(ctx: AppContext = Depends(get_context)):
    """Reload the whole snapshot from the sheet."""
    ok = await ctx.store.refresh()
    return {"ok": ok, "error": None if ok else str(ctx.store.error)}
