# repairdesk/workflow.py
"""Repair request intake and completion.

The intake form is a draft kept between calls: pick the equipment, settle the
duplicate check if the equipment already has a pending job card, fill in the
operator and fault rows, submit. Submitting either opens a new job card or, in
"add fault" mode, rewrites the pending one it was started from.
"""
from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional

from pydantic import Field

from . import crud
from .errors import FormError, InvariantViolation, NotFound, SheetError
from .schemas import (
    CamelModel,
    Equipment,
    EquipmentIn,
    Fault,
    PartUsed,
    Purpose,
    RepairRequest,
    RequestStatus,
    SheetName,
    Workshop,
    WorkshopIn,
)
from .state import JobCardCounter
from .store import DataStore

logger = logging.getLogger(__name__)

MAX_FAULTS = 10
ADD_NEW_WORKSHOP = "addNew"
FAULT_FIELDS = ("description", "workshop_id", "mechanic_name")


class DuplicateChoice(str, Enum):
    ADD_FAULT = "add_fault"
    CREATE_NEW = "create_new"


class IntakeDraft(CamelModel):
    equipment_id: str = ""
    driver_name: str = ""
    mileage: str = ""
    purpose: Purpose = Purpose.REPAIRING
    faults: List[Fault] = Field(default_factory=lambda: [Fault()])
    editing_request_id: Optional[str] = None
    pending_duplicate: Optional[RepairRequest] = None
    workshop_dialog_open: bool = False


class Intake:
    def __init__(self, store: DataStore, counter: JobCardCounter, clock: Callable[[], datetime] = datetime.now):
        self.store = store
        self.counter = counter
        self.clock = clock
        self.draft = IntakeDraft()
        self.last_job_card: Optional[RepairRequest] = None

    def reset(self) -> None:
        self.draft = IntakeDraft()

    # -------------------------
    # Step 1: equipment
    # -------------------------
    def search(self, query: str) -> List[Equipment]:
        return crud.search_equipment(self.store.equipments, query)

    def select_equipment(self, equipment_id: str) -> Optional[RepairRequest]:
        """Select the equipment, or return its pending job card and wait for a duplicate choice."""
        crud.get_equipment(self.store, equipment_id)
        pending = [
            r for r in self.store.repair_requests
            if r.equipment_id == equipment_id and r.is_pending
        ]
        if pending:
            self.draft.pending_duplicate = pending[0]
            return pending[0]
        self.draft.equipment_id = equipment_id
        return None

    def resolve_duplicate(self, choice: DuplicateChoice) -> None:
        existing = self.draft.pending_duplicate
        if existing is None:
            raise FormError("There is no pending request to choose about.")

        if choice is DuplicateChoice.ADD_FAULT:
            self.draft = IntakeDraft(
                equipment_id=existing.equipment_id,
                driver_name=existing.driver_name,
                mileage=existing.mileage or "",
                purpose=existing.purpose,
                faults=[f.model_copy(deep=True) for f in existing.faults] or [Fault()],
                editing_request_id=existing.id,
            )
        else:
            self.draft.equipment_id = existing.equipment_id
            self.draft.pending_duplicate = None

    def dismiss_duplicate(self) -> None:
        self.draft.pending_duplicate = None

    async def add_equipment(self, data: EquipmentIn) -> Equipment:
        equipment = await crud.create_equipment(self.store, data)
        self.draft.equipment_id = equipment.id
        return equipment

    # -------------------------
    # Step 2 / 3: details and faults
    # -------------------------
    def set_details(
        self,
        *,
        driver_name: Optional[str] = None,
        mileage: Optional[str] = None,
        purpose: Optional[Purpose] = None,
    ) -> None:
        if driver_name is not None:
            self.draft.driver_name = driver_name
        if mileage is not None:
            self.draft.mileage = mileage
        if purpose is not None:
            self.draft.purpose = purpose

    def _fault(self, fault_id: str) -> Fault:
        for fault in self.draft.faults:
            if fault.id == fault_id:
                return fault
        raise NotFound("Fault row not found")

    def add_fault_row(self) -> Fault:
        if len(self.draft.faults) >= MAX_FAULTS:
            raise FormError(f"A job card holds at most {MAX_FAULTS} faults.")
        fault = Fault()
        self.draft.faults.append(fault)
        return fault

    def remove_fault_row(self, fault_id: str) -> None:
        self._fault(fault_id)
        if len(self.draft.faults) <= 1:
            raise FormError("A job card needs at least one fault row.")
        self.draft.faults = [f for f in self.draft.faults if f.id != fault_id]

    def set_fault_field(self, fault_id: str, field: str, value: str) -> bool:
        """Returns False when the value opened the workshop dialog instead of being stored."""
        if field not in FAULT_FIELDS:
            raise FormError(f"Unknown fault field {field!r}")
        fault = self._fault(fault_id)
        if field == "workshop_id" and value == ADD_NEW_WORKSHOP:
            self.draft.workshop_dialog_open = True
            return False
        setattr(fault, field, value)
        return True

    async def add_workshop(self, data: WorkshopIn) -> Workshop:
        workshop = await crud.create_workshop(self.store, data)
        self.draft.workshop_dialog_open = False
        return workshop

    # -------------------------
    # Submit
    # -------------------------
    def _valid_faults(self) -> List[Fault]:
        d = self.draft
        if not d.equipment_id:
            raise FormError("Please select an equipment.")
        if not d.driver_name.strip():
            raise FormError("Please enter the operator name.")

        # rows without a description are dropped, not reported
        faults = [f for f in d.faults if f.is_real]
        if not faults:
            raise FormError("Please add at least one fault.")
        if any(not f.workshop_id for f in faults):
            raise FormError("Please select a workshop for each fault.")
        return faults

    async def submit(self) -> RepairRequest:
        faults = self._valid_faults()
        if self.draft.editing_request_id:
            request = await self._update_existing(faults)
        else:
            request = await self._create(faults)
        self.last_job_card = request
        self.reset()
        return request

    async def _create(self, faults: List[Fault]) -> RepairRequest:
        d = self.draft
        number = self.counter.allocate()
        now = self.clock()
        request = RepairRequest(
            id=str(number),
            equipment_id=d.equipment_id,
            driver_name=d.driver_name.strip(),
            mileage=d.mileage,
            purpose=d.purpose,
            faults=faults,
            date_in=now.date().isoformat(),
            time_in=now.strftime("%H:%M:%S"),
            status=RequestStatus.PENDING,
            workshop_id=faults[0].workshop_id,
        )
        try:
            await self.store.create_data(SheetName.REPAIR_REQUESTS, request.to_payload())
        except SheetError:
            self.counter.release(number)
            raise
        logger.info("Job card %s created for equipment %s", request.id, request.equipment_id)
        return request

    async def _update_existing(self, faults: List[Fault]) -> RepairRequest:
        d = self.draft
        original = self.store.get_request(d.editing_request_id)
        if original is None:
            raise NotFound(f"Job card {d.editing_request_id} not found")

        request = original.model_copy(update={
            "driver_name": d.driver_name.strip(),
            "purpose": d.purpose,
            "mileage": d.mileage,
            "faults": faults,
            "workshop_id": faults[0].workshop_id or original.workshop_id,
        })
        await self.store.update_data(SheetName.REPAIR_REQUESTS, request.to_payload())
        logger.info("Job card %s updated with %d faults", request.id, len(faults))
        return request


# -------------------------
# Completion
# -------------------------
class FaultCompletion(CamelModel):
    fault_id: str
    work_done: str = ""
    parts_used: List[PartUsed] = []


class CompletionForm(CamelModel):
    faults: List[FaultCompletion] = []
    date_out: Optional[str] = None
    time_out: Optional[str] = None


async def complete_request(
    store: DataStore,
    request_id: str,
    form: CompletionForm,
    clock: Callable[[], datetime] = datetime.now,
) -> RepairRequest:
    request = store.get_request(request_id)
    if request is None:
        raise NotFound(f"Job card {request_id} not found")
    if not request.is_pending:
        raise InvariantViolation(f"Job card {request_id} is already completed.")

    now = clock()
    date_out = form.date_out if form.date_out is not None else (request.date_out or now.date().isoformat())
    time_out = form.time_out if form.time_out is not None else (request.time_out or now.strftime("%H:%M"))
    if not date_out.strip() or not time_out.strip():
        raise FormError("Please enter the date and time out.")

    known = {f.id for f in request.faults}
    entries = {c.fault_id: c for c in form.faults}
    unknown = set(entries) - known
    if unknown:
        raise FormError(f"Unknown fault ids: {', '.join(sorted(unknown))}")

    faults = []
    for fault in request.faults:
        entry = entries.get(fault.id)
        work_done = entry.work_done if entry else (fault.work_done or "")
        parts = entry.parts_used if entry else fault.parts_used
        if not work_done.strip():
            raise FormError("Please describe the work done for every fault.")
        faults.append(fault.model_copy(update={
            "work_done": work_done,
            "parts_used": [p for p in parts if not p.is_blank],
        }))

    completed = request.model_copy(update={
        "faults": faults,
        "date_out": date_out,
        "time_out": time_out,
        "status": RequestStatus.COMPLETED,
    })
    await store.update_data(SheetName.REPAIR_REQUESTS, completed.to_payload())
    logger.info("Job card %s completed", request_id)
    return completed


def find_job_card(store: DataStore, job_card_id: str) -> Optional[RepairRequest]:
    job_card_id = job_card_id.strip()
    if not job_card_id:
        return None
    return store.get_request(job_card_id)
