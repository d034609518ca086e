# repairdesk/routers/auth.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from ..context import AppContext
from ..dependencies import get_context, get_current_user, require_role
from ..errors import InvariantViolation
from ..schemas import CamelModel, User, UserOut, UserRole, UserStatus

router = APIRouter(prefix="/auth", tags=["Auth"])


class LoginIn(CamelModel):
    user_id: str
    password: str
    remember: bool = False


class RegisterIn(CamelModel):
    user_id: str
    password: str


class PasswordChangeIn(CamelModel):
    old_password: str
    new_password: str


class StatusIn(CamelModel):
    status: UserStatus


class UserEditIn(CamelModel):
    user_id: str
    password: Optional[str] = None


def _out(user: User) -> UserOut:
    return UserOut(id=user.id, role=user.role, status=user.status)


# -------------------------
# Session
# -------------------------
@router.get("/users", response_model=List[UserOut])
def login_choices(ctx: AppContext = Depends(get_context)):
    """Active accounts for the login picker."""
    return [_out(u) for u in ctx.auth.login_choices()]


@router.post("/login", response_model=UserOut)
def login(payload: LoginIn, ctx: AppContext = Depends(get_context)):
    if ctx.auth.login(payload.user_id, payload.password, payload.remember):
        return _out(ctx.auth.current_user)

    user = ctx.auth.find_user(payload.user_id)
    if user is not None and user.status is UserStatus.PENDING:
        detail = "Your account is waiting for admin approval."
    else:
        detail = "Invalid user ID or password."
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


@router.post("/logout")
def logout(ctx: AppContext = Depends(get_context)):
    ctx.logout()
    return {"ok": True}


@router.get("/me", response_model=UserOut)
def me(user: User = Depends(get_current_user)):
    return _out(user)


@router.post("/register", response_model=UserOut, status_code=201)
async def register(payload: RegisterIn, ctx: AppContext = Depends(get_context)):
    if not await ctx.auth.create_user(payload.user_id, payload.password):
        raise InvariantViolation("User ID already exists.")
    return UserOut(id=payload.user_id.strip(), role=UserRole.USER, status=UserStatus.PENDING)


@router.post("/change-password")
async def change_password(
    payload: PasswordChangeIn,
    ctx: AppContext = Depends(get_context),
    user: User = Depends(get_current_user),
):
    if not await ctx.auth.change_password(payload.old_password, payload.new_password):
        raise HTTPException(status_code=400, detail="Old password is incorrect.")
    return {"ok": True}


# -------------------------
# User administration
# -------------------------
admin_only = [Depends(require_role("admin"))]


@router.get("/users/all", response_model=List[UserOut], dependencies=admin_only)
def list_users(ctx: AppContext = Depends(get_context)):
    return [_out(u) for u in ctx.auth.users]


@router.post("/users/{user_id}/approve", response_model=UserOut, dependencies=admin_only)
async def approve_user(user_id: str, ctx: AppContext = Depends(get_context)):
    return _out(await ctx.auth.approve(user_id))


@router.put("/users/{user_id}/status", response_model=UserOut, dependencies=admin_only)
async def set_user_status(user_id: str, payload: StatusIn, ctx: AppContext = Depends(get_context)):
    return _out(await ctx.auth.set_status(user_id, payload.status))


@router.patch("/users/{user_id}", response_model=UserOut, dependencies=admin_only)
async def edit_user(user_id: str, payload: UserEditIn, ctx: AppContext = Depends(get_context)):
    return _out(await ctx.auth.update_user(user_id, payload.user_id, payload.password or None))


@router.delete("/users/{user_id}", dependencies=admin_only)
async def delete_user(user_id: str, ctx: AppContext = Depends(get_context)):
    await ctx.auth.delete_user(user_id)
    return {"ok": True}
