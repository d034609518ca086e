# repairdesk/auth.py
from __future__ import annotations

import hmac
import logging
from typing import List, Optional

from passlib.context import CryptContext
from pydantic import ValidationError

from .errors import FormError, InvariantViolation, NotFound, PermissionDenied
from .schemas import SheetName, User, UserRole, UserStatus
from .state import CURRENT_USER_KEY, KeyValueStore
from .store import DataStore

logger = logging.getLogger(__name__)

ADMIN_ID = "Admin"

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, stored: str) -> bool:
    # rows written before hashing was introduced still hold the plain text
    if pwd_context.identify(stored) is None:
        return hmac.compare_digest(plain_password.encode(), stored.encode())
    return pwd_context.verify(plain_password, stored)


class AuthSession:
    """Who is signed in on this workstation, and the user roster behind the login screen."""

    def __init__(self, store: DataStore, state: KeyValueStore, default_admin_password: str = "123"):
        self.store = store
        self.state = state
        self.current_user: Optional[User] = None
        self._default_admin = User(
            id=ADMIN_ID,
            password=hash_password(default_admin_password),
            role=UserRole.ADMIN,
            status=UserStatus.ACTIVE,
        )

    @property
    def users(self) -> List[User]:
        """Sheet users, with the built-in admin in front when the sheet has none."""
        users = list(self.store.users)
        if not any(u.id == ADMIN_ID and u.is_admin for u in users):
            users.insert(0, self._default_admin)
        return users

    def find_user(self, user_id: str) -> Optional[User]:
        return next((u for u in self.users if u.id == user_id), None)

    def login_choices(self) -> List[User]:
        active = [u for u in self.users if u.status is UserStatus.ACTIVE]
        return sorted(active, key=lambda u: (not u.is_admin, u.id))

    # -------------------------
    # Session
    # -------------------------
    def restore(self) -> None:
        saved = self.state.get(CURRENT_USER_KEY)
        if not saved:
            return
        try:
            user = User.model_validate(saved)
        except ValidationError:
            logger.error("Failed to parse saved user, forgetting it")
            self.state.delete(CURRENT_USER_KEY)
            return
        current = self.find_user(user.id)
        if current is None and self.store.error is not None:
            # roster never loaded; trust the saved copy until it does
            current = user
        if current is None or current.status is not UserStatus.ACTIVE:
            logger.info("Saved session for %s is no longer valid, forgetting it", user.id)
            self.state.delete(CURRENT_USER_KEY)
            return
        self.current_user = current
        logger.info("Restored session for %s", user.id)

    def login(self, user_id: str, password: str, remember: bool = False) -> bool:
        user = next(
            (u for u in self.users if u.id == user_id and verify_password(password, u.password)),
            None,
        )
        if user is None:
            logger.info("Login failed for %s", user_id)
            return False
        if user.status is UserStatus.PENDING:
            logger.info("Login refused for %s: pending approval", user_id)
            return False

        self.current_user = user
        if remember:
            self.state.set(CURRENT_USER_KEY, user.to_payload())
        else:
            self.state.delete(CURRENT_USER_KEY)
        logger.info("%s logged in", user_id)
        return True

    def logout(self) -> None:
        if self.current_user is not None:
            logger.info("%s logged out", self.current_user.id)
        self.current_user = None
        self.state.delete(CURRENT_USER_KEY)

    async def create_user(self, user_id: str, password: str) -> bool:
        """Self-registration. The account stays pending until an admin approves it."""
        user_id, password = user_id.strip(), password.strip()
        if not user_id or not password:
            raise FormError("Please fill in all fields.")
        if any(u.id == user_id for u in self.users):
            return False

        user = User(id=user_id, password=hash_password(password), role=UserRole.USER, status=UserStatus.PENDING)
        await self.store.create_data(SheetName.USERS, user.to_payload())
        return True

    async def change_password(self, old_password: str, new_password: str) -> bool:
        if self.current_user is None:
            return False
        if not verify_password(old_password, self.current_user.password):
            return False
        if not new_password:
            raise FormError("Please enter a new password.")

        updated = self.current_user.model_copy(update={"password": hash_password(new_password)})
        await self._save(updated)
        self.current_user = updated
        if CURRENT_USER_KEY in self.state:
            self.state.set(CURRENT_USER_KEY, updated.to_payload())
        return True

    # -------------------------
    # Administration
    # -------------------------
    def _require_admin(self) -> None:
        if self.current_user is None or not self.current_user.is_admin:
            raise PermissionDenied("Only administrators can manage users.")

    def _get(self, user_id: str) -> User:
        user = self.find_user(user_id)
        if user is None:
            raise NotFound(f"User {user_id} not found")
        return user

    async def _save(self, user: User) -> None:
        # the built-in admin only reaches the sheet the first time it is changed
        if self.store.get_user(user.id):
            await self.store.update_data(SheetName.USERS, user.to_payload())
        else:
            await self.store.create_data(SheetName.USERS, user.to_payload())

    async def set_status(self, user_id: str, status: UserStatus) -> User:
        self._require_admin()
        if user_id == ADMIN_ID:
            raise InvariantViolation("The status of the Admin account cannot be changed.")
        user = self._get(user_id).model_copy(update={"status": status})
        await self._save(user)
        return user

    async def approve(self, user_id: str) -> User:
        return await self.set_status(user_id, UserStatus.ACTIVE)

    async def update_user(self, user_id: str, new_id: str, new_password: Optional[str] = None) -> User:
        self._require_admin()
        new_id = new_id.strip()
        if not new_id:
            raise FormError("Please fill in all fields.")
        user = self._get(user_id)
        if new_id != user_id:
            if user_id == ADMIN_ID:
                raise InvariantViolation("The Admin account cannot be renamed.")
            if self.find_user(new_id):
                raise InvariantViolation(f"User {new_id} already exists.")

        updated = user.model_copy(update={
            "id": new_id,
            "password": hash_password(new_password) if new_password else user.password,
        })
        if new_id != user_id and self.store.get_user(user_id):
            await self.store.delete_data(SheetName.USERS, user_id)
        await self._save(updated)
        return updated

    async def delete_user(self, user_id: str) -> None:
        self._require_admin()
        user = self._get(user_id)
        if user.is_admin:
            raise InvariantViolation("Administrator accounts cannot be deleted.")
        await self.store.delete_data(SheetName.USERS, user_id)
