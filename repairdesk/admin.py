# repairdesk/admin.py
from fastapi import Request
from sqladmin import Admin, ModelView
from sqladmin.authentication import AuthenticationBackend

from . import models
from .auth import verify_password
from .context import AppContext
from .schemas import UserStatus


class SheetAuth(AuthenticationBackend):
    """Admin panel login against the user roster: active admins only."""

    def __init__(self, secret_key: str, context: AppContext):
        super().__init__(secret_key=secret_key)
        self.context = context

    async def login(self, request: Request) -> bool:
        form = await request.form()
        user = self.context.auth.find_user(str(form.get("username", "")))
        if (
            user is not None
            and user.is_admin
            and user.status is UserStatus.ACTIVE
            and verify_password(str(form.get("password", "")), user.password)
        ):
            request.session.update({"user": user.id})
            return True
        return False

    async def logout(self, request: Request) -> bool:
        request.session.clear()
        return True

    async def authenticate(self, request: Request) -> bool:
        user = self.context.auth.find_user(request.session.get("user", ""))
        return user is not None and user.is_admin and user.status is UserStatus.ACTIVE


# --- Admin Views ---
class StoredValueAdmin(ModelView, model=models.StoredValue):
    name = "Stored value"
    name_plural = "Local state"
    column_list = [
        models.StoredValue.key,
        models.StoredValue.value,
        models.StoredValue.updated_at,
    ]
    column_searchable_list = [models.StoredValue.key]
    column_sortable_list = [models.StoredValue.key, models.StoredValue.updated_at]
    can_create = False


def setup_admin(app, engine, context: AppContext, secret_key: str) -> Admin:
    admin = Admin(app, engine, authentication_backend=SheetAuth(secret_key, context), base_url="/admin")
    admin.add_view(StoredValueAdmin)
    return admin
