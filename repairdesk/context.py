# repairdesk/context.py
"""Composition root: everything a request handler needs, built once per application."""
from __future__ import annotations

import logging
from typing import Optional

import httpx
from sqlalchemy.orm import sessionmaker

from .auth import AuthSession
from .config import Settings
from .sheets import SheetClient
from .state import JobCardCounter, KeyValueStore
from .store import DataStore, ReloadPolicy, refetch_all
from .workflow import Intake

logger = logging.getLogger(__name__)


class AppContext:
    def __init__(
        self,
        settings: Settings,
        session_factory: sessionmaker,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        reload_policy: ReloadPolicy = refetch_all,
    ):
        self.settings = settings
        self.client = SheetClient(settings.SHEET_API_URL, timeout=settings.SHEET_TIMEOUT, transport=transport)
        self.store = DataStore(self.client, reload_policy)
        self.state = KeyValueStore(session_factory)
        self.auth = AuthSession(self.store, self.state, settings.DEFAULT_ADMIN_PASSWORD)
        self.counter = JobCardCounter(self.state, self._job_card_start)
        self.intake = Intake(self.store, self.counter)

    def _job_card_start(self) -> int:
        sheet = self.store.settings
        if sheet is not None and sheet.job_card_start_number:
            return sheet.job_card_start_number
        return self.settings.JOB_CARD_START

    async def init(self) -> None:
        if not await self.store.refresh():
            logger.error("Initial load failed: %s", self.store.error)
        self.auth.restore()

    def logout(self) -> None:
        self.auth.logout()
        self.intake.reset()
        self.intake.last_job_card = None

    async def teardown(self) -> None:
        await self.client.aclose()
