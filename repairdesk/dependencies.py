# repairdesk/dependencies.py
from fastapi import Depends, HTTPException, Request, status

from .context import AppContext
from .schemas import User


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_current_user(ctx: AppContext = Depends(get_context)) -> User:
    if ctx.auth.current_user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not logged in")
    return ctx.auth.current_user


def require_role(*roles):
    def role_checker(user: User = Depends(get_current_user)):
        if user.role.value not in roles:
            raise HTTPException(status_code=403, detail="Unauthorized for this role")
        return user
    return role_checker
