# repairdesk/views.py
from __future__ import annotations

import datetime as dt
from typing import Iterable, List, Optional

from .schemas import Equipment, RepairRequest, RequestStatus
from .store import DataStore
from .utils import parse_any_date, parse_any_time


def _date_in(request: RepairRequest) -> dt.date:
    return parse_any_date(request.date_in) or dt.date.min


def newest_first(requests: Iterable[RepairRequest]) -> List[RepairRequest]:
    return sorted(
        requests,
        key=lambda r: (_date_in(r), parse_any_time(r.time_in) or dt.time.min),
        reverse=True,
    )


def filter_requests(
    requests: Iterable[RepairRequest],
    *,
    equipment_id: Optional[str] = None,
    workshop_id: Optional[str] = None,
    month: Optional[str] = None,
    status: Optional[RequestStatus] = None,
) -> List[RepairRequest]:
    """History list: ``month`` is ``YYYY-MM``; the workshop filter uses the request-level workshop."""
    out = []
    for r in requests:
        if equipment_id and r.equipment_id != equipment_id:
            continue
        if workshop_id and r.workshop_id != workshop_id:
            continue
        if status and r.status is not status:
            continue
        if month:
            d = parse_any_date(r.date_in)
            if d is None or d.strftime("%Y-%m") != month:
                continue
        out.append(r)
    return newest_first(out)


def pending_requests(store: DataStore) -> List[RepairRequest]:
    return [r for r in store.repair_requests if r.status is RequestStatus.PENDING]


def completed_requests(store: DataStore) -> List[RepairRequest]:
    return [r for r in store.repair_requests if r.status is RequestStatus.COMPLETED]


def workshop_history(requests: Iterable[RepairRequest], workshop_id: str) -> List[RepairRequest]:
    return newest_first(
        r for r in requests if any(f.workshop_id == workshop_id for f in r.faults)
    )


def equipment_label(equipment: Optional[Equipment], unknown: str = "Unknown") -> str:
    if equipment is None:
        return unknown
    return f"{equipment.equipment_number} ({equipment.serial_number})"


def dashboard(store: DataStore) -> dict:
    return {
        "equipment": len(store.equipments),
        "workshops": len(store.workshops),
        "pending": len(pending_requests(store)),
        "completed": len(completed_requests(store)),
    }
