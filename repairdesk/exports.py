# repairdesk/exports.py
from __future__ import annotations

import csv
from typing import Iterable, List, Optional
from urllib.parse import quote

import pandas as pd

from .schemas import Equipment, RepairRequest, Workshop
from .views import equipment_label

CSV_COLUMNS = ["Job #", "Equipment", "Date In", "Mileage", "Status", "Workshop", "Mechanic", "Fault"]
EXCEL_COLUMNS = CSV_COLUMNS + ["Date Out", "Work Done", "Parts"]


def history_rows(
    requests: Iterable[RepairRequest],
    equipments: Iterable[Equipment],
    workshops: Iterable[Workshop],
    workshop_id: Optional[str] = None,
) -> List[dict]:
    """One row per fault (only faults of ``workshop_id`` when given); a blank row when none match."""
    equipment_by_id = {e.id: e for e in equipments}
    workshop_by_id = {w.id: w for w in workshops}

    rows = []
    for req in requests:
        base = {
            "Job #": req.id,
            "Equipment": equipment_label(equipment_by_id.get(req.equipment_id)),
            "Date In": req.date_in,
            "Mileage": req.mileage or "",
            "Status": req.status.value,
            "Date Out": req.date_out or "",
        }
        faults = req.faults
        if workshop_id:
            faults = [f for f in faults if f.workshop_id == workshop_id]

        if not faults:
            rows.append({**base, "Workshop": "", "Mechanic": "", "Fault": "", "Work Done": "", "Parts": ""})
            continue
        for fault in faults:
            workshop = workshop_by_id.get(fault.workshop_id)
            rows.append({
                **base,
                "Workshop": workshop.sub_name if workshop else "N/A",
                "Mechanic": fault.mechanic_name or "",
                "Fault": fault.description,
                "Work Done": fault.work_done or "",
                "Parts": ", ".join(f"{p.name} (x{p.quantity})" for p in fault.parts_used),
            })
    return rows


def history_dataframe(rows: List[dict], columns: List[str] = EXCEL_COLUMNS) -> pd.DataFrame:
    return pd.DataFrame(rows, columns=columns)


def history_csv(rows: List[dict]) -> bytes:
    """UTF-8 with BOM so spreadsheet apps pick the encoding, CRLF line endings, every field quoted."""
    df = history_dataframe(rows, CSV_COLUMNS)
    text = df.to_csv(index=False, lineterminator="\r\n", quoting=csv.QUOTE_ALL)
    return ("\ufeff" + text).encode("utf-8")


# -------------------------
# WhatsApp
# -------------------------
def whatsapp_link(message: str) -> str:
    return f"https://wa.me/?text={quote(message, safe='')}"


def job_card_message(request: RepairRequest, equipment: Optional[Equipment]) -> str:
    return (
        f"Repair job card for equipment {equipment_label(equipment)}. \n"
        f"Job Card No: {request.id}"
    )


def equipment_message(equipment: Equipment) -> str:
    return "\n".join([
        "*Equipment Details*",
        f"Type: {equipment.type_label}",
        f"Equipment Number: {equipment.equipment_number}",
        f"Make: {equipment.make}",
        f"Model: {equipment.model_number}",
        f"Serial Number: {equipment.serial_number}",
        f"Location: {equipment.branch_location}",
    ])
