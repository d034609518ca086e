# repairdesk/store.py
"""In-memory snapshot of the sheet.

Every mutation is one remote call followed by the store's reload policy. The
default policy, :func:`refetch_all`, throws the snapshot away and loads it again,
so the cache never has to merge local edits with what the sheet holds.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from .errors import SheetError
from .schemas import (
    Equipment,
    Fault,
    RepairRequest,
    SheetName,
    SheetSettings,
    User,
    Workshop,
)
from .sheets import SheetClient

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

_fault_list = TypeAdapter(List[Fault])


@dataclass(frozen=True)
class Mutation:
    action: str
    sheet_name: SheetName
    record_id: str


ReloadPolicy = Callable[["DataStore", Mutation], Awaitable[None]]


async def refetch_all(store: "DataStore", mutation: Mutation) -> None:
    await store.refresh()


def decode_faults(record: dict[str, Any]) -> dict[str, Any]:
    """The sheet hands the fault list back as a JSON string.

    A cell that does not decode to a valid fault list becomes an empty list; the
    request itself is kept. Faults stored without an id get ``<request id>-<n>``
    so the id stays the same across reloads.
    """
    request_id = record.get("id")
    faults = record.get("faults")
    if isinstance(faults, str):
        try:
            faults = json.loads(faults) if faults.strip() else []
        except ValueError:
            logger.error("Failed to parse faults for request %s: %r", request_id, faults)
            faults = []
    if not isinstance(faults, list):
        faults = []

    faults = [
        {**f, "id": f"{request_id}-{n}"} if isinstance(f, dict) and not f.get("id") else f
        for n, f in enumerate(faults, start=1)
    ]
    try:
        faults = _fault_list.validate_python(faults)
    except ValidationError as exc:
        logger.error("Dropping invalid faults of request %s: %s", request_id, exc)
        faults = []
    return {**record, "faults": faults}


def _parse_records(model: Type[M], rows: Optional[Iterable[dict]], label: str) -> List[M]:
    parsed: List[M] = []
    for row in rows or []:
        try:
            parsed.append(model.model_validate(row))
        except ValidationError as exc:
            logger.error("Skipping malformed %s record %r: %s", label, row.get("id") if isinstance(row, dict) else row, exc)
    return parsed


class DataStore:
    def __init__(self, client: SheetClient, reload_policy: ReloadPolicy = refetch_all):
        self.client = client
        self.reload_policy = reload_policy

        self.equipments: List[Equipment] = []
        self.workshops: List[Workshop] = []
        self.repair_requests: List[RepairRequest] = []
        self.users: List[User] = []
        self.settings: Optional[SheetSettings] = None

        self.loading = False
        self.error: Optional[SheetError] = None

    # -------------------------
    # Loading
    # -------------------------
    async def fetch_all(self) -> None:
        data = await self.client.get_all_data()

        self.equipments = _parse_records(Equipment, data.get("equipments"), "equipment")
        self.workshops = _parse_records(Workshop, data.get("workshops"), "workshop")
        self.repair_requests = _parse_records(
            RepairRequest,
            (decode_faults(r) for r in data.get("repairRequests") or [] if isinstance(r, dict)),
            "repair request",
        )
        self.users = _parse_records(User, data.get("users"), "user")
        settings = _parse_records(SheetSettings, [data.get("settings") or {}], "settings")
        self.settings = settings[0] if settings else None

        logger.debug(
            "Snapshot loaded: %d equipment, %d workshops, %d requests, %d users",
            len(self.equipments), len(self.workshops), len(self.repair_requests), len(self.users),
        )

    async def refresh(self) -> bool:
        """Reload the snapshot, keeping the failure on ``self.error`` instead of raising."""
        self.loading = True
        self.error = None
        try:
            await self.fetch_all()
            return True
        except SheetError as exc:
            self.error = exc
            return False
        finally:
            self.loading = False

    # -------------------------
    # Mutations
    # -------------------------
    async def create_data(self, sheet_name: SheetName, payload: dict) -> Any:
        result = await self.client.create(payload, sheet_name)
        logger.info("Created %s in %s", payload.get("id"), sheet_name.value)
        await self.reload_policy(self, Mutation("CREATE", sheet_name, str(payload.get("id"))))
        return result

    async def update_data(self, sheet_name: SheetName, payload: dict) -> Any:
        result = await self.client.update(payload, sheet_name)
        logger.info("Updated %s in %s", payload.get("id"), sheet_name.value)
        await self.reload_policy(self, Mutation("UPDATE", sheet_name, str(payload.get("id"))))
        return result

    async def delete_data(self, sheet_name: SheetName, record_id: str) -> Any:
        result = await self.client.delete(record_id, sheet_name)
        logger.info("Deleted %s from %s", record_id, sheet_name.value)
        await self.reload_policy(self, Mutation("DELETE", sheet_name, record_id))
        return result

    # -------------------------
    # Lookups
    # -------------------------
    def get_equipment(self, equipment_id: str) -> Optional[Equipment]:
        return next((e for e in self.equipments if e.id == equipment_id), None)

    def get_workshop(self, workshop_id: str) -> Optional[Workshop]:
        return next((w for w in self.workshops if w.id == workshop_id), None)

    def get_request(self, request_id: str) -> Optional[RepairRequest]:
        return next((r for r in self.repair_requests if r.id == request_id), None)

    def get_user(self, user_id: str) -> Optional[User]:
        return next((u for u in self.users if u.id == user_id), None)
