# repairdesk/jobcard.py
"""Print layout of a job card, drawn onto an A4 page with Pillow."""
from __future__ import annotations

import logging
import textwrap
from io import BytesIO
from pathlib import Path
from typing import Iterable, Optional

from PIL import Image, ImageDraw, ImageFont

from .schemas import Equipment, RepairRequest, Workshop
from .workflow import MAX_FAULTS

logger = logging.getLogger(__name__)

DPI = 150
PAGE = (1240, 1754)  # A4 at 150 dpi
MARGIN = 70
LINE = 30


def _font(size: int):
    # Try to load a font, fall back to default if not available
    for name in ("DejaVuSans.ttf", "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf", "arial.ttf"):
        try:
            return ImageFont.truetype(name, size)
        except IOError:
            continue
    return ImageFont.load_default()


class _Page:
    def __init__(self):
        self.image = Image.new("RGB", PAGE, "white")
        self.draw = ImageDraw.Draw(self.image)
        self.y = MARGIN
        self.body = _font(20)
        self.bold = _font(24)
        self.title = _font(40)

    def text(self, x: int, text: str, font=None, fill="black"):
        self.draw.text((x, self.y), text, fill=fill, font=font or self.body)

    def rule(self):
        self.draw.line([MARGIN, self.y, PAGE[0] - MARGIN, self.y], fill="#9ca3af", width=2)
        self.y += 12

    def pairs(self, rows: Iterable[tuple[str, str]]):
        col = (PAGE[0] - 2 * MARGIN) // 2
        rows = list(rows)
        for i in range(0, len(rows), 2):
            for j, (label, value) in enumerate(rows[i:i + 2]):
                self.text(MARGIN + j * col, f"{label}: {value}")
            self.y += LINE


def render_job_card(
    request: RepairRequest,
    equipment: Optional[Equipment],
    workshops: Iterable[Workshop],
) -> Image.Image:
    workshop_by_id = {w.id: w for w in workshops}
    page = _Page()

    page.text(MARGIN, "JOB CARD", font=page.title)
    page.draw.text((PAGE[0] - MARGIN - 320, page.y + 8), f"No. {request.id}", fill="#1d4ed8", font=page.bold)
    page.y += 60
    page.rule()

    page.pairs([
        ("Date In", request.date_in),
        ("Time In", request.time_in),
        ("Date Out", request.date_out or "-"),
        ("Time Out", request.time_out or "-"),
        ("Status", request.status.value),
        ("Purpose", request.purpose.value),
    ])
    page.rule()

    if equipment is not None:
        page.pairs([
            ("Type", equipment.type_label),
            ("Equipment No.", equipment.equipment_number),
            ("Make", equipment.make or "-"),
            ("Model", equipment.model_number or "-"),
            ("Serial No.", equipment.serial_number),
            ("Location", equipment.branch_location or "-"),
        ])
    else:
        page.text(MARGIN, "Equipment: Unknown")
        page.y += LINE
    page.pairs([("Operator", request.driver_name), ("Mileage", request.mileage or "-")])
    page.rule()

    # faults table
    cols = [MARGIN, MARGIN + 50, MARGIN + 330, MARGIN + 560]
    for x, head in zip(cols, ("#", "Workshop", "Mechanic", "Fault")):
        page.text(x, head, font=page.bold)
    page.y += LINE + 6
    rows = list(request.faults)
    if request.is_pending:
        rows += [None] * max(0, MAX_FAULTS - len(rows))
    for index, fault in enumerate(rows, start=1):
        page.text(cols[0], f"{index}.")
        if fault is not None:
            workshop = workshop_by_id.get(fault.workshop_id)
            page.text(cols[1], workshop.sub_name if workshop else "N/A")
            page.text(cols[2], fault.mechanic_name or "")
            lines = textwrap.wrap(fault.description, 42) or [""]
            for n, line in enumerate(lines):
                if n:
                    page.y += LINE
                page.text(cols[3], line)
        page.y += LINE
        page.draw.line([MARGIN, page.y - 4, PAGE[0] - MARGIN, page.y - 4], fill="#e5e7eb", width=1)

    if not request.is_pending:
        page.y += 10
        page.rule()
        page.text(MARGIN, "Work Done", font=page.bold)
        page.y += LINE + 6
        for index, fault in enumerate(request.faults, start=1):
            for n, line in enumerate(textwrap.wrap(f"{index}. {fault.work_done or ''}", 90) or [""]):
                page.text(MARGIN + (30 if n else 0), line)
                page.y += LINE
            for part in fault.parts_used:
                page.text(MARGIN + 40, f"- {part.name} x{part.quantity}", fill="#374151")
                page.y += LINE

    # signatures; the first fault's workshop signs as foreman
    first = workshop_by_id.get(request.faults[0].workshop_id) if request.faults else None
    page.y = max(page.y + 40, PAGE[1] - MARGIN - 80)
    page.draw.line([MARGIN, page.y, MARGIN + 400, page.y], fill="black", width=1)
    page.draw.line([PAGE[0] - MARGIN - 400, page.y, PAGE[0] - MARGIN, page.y], fill="black", width=1)
    page.y += 8
    page.text(MARGIN, f"Foreman: {first.foreman if first else ''}")
    page.draw.text((PAGE[0] - MARGIN - 400, page.y), f"Operator: {request.driver_name}", fill="black", font=page.body)
    return page.image


def job_card_png(request, equipment, workshops) -> bytes:
    buf = BytesIO()
    render_job_card(request, equipment, workshops).save(buf, format="PNG")
    return buf.getvalue()


def job_card_pdf(request, equipment, workshops) -> bytes:
    buf = BytesIO()
    render_job_card(request, equipment, workshops).save(buf, format="PDF", resolution=DPI)
    return buf.getvalue()


def save_job_card_pdf(directory: str | Path, request, equipment, workshops) -> Path:
    path = Path(directory)
    path.mkdir(parents=True, exist_ok=True)
    target = path / f"JobCard-{request.id}.pdf"
    target.write_bytes(job_card_pdf(request, equipment, workshops))
    logger.info("Saved %s", target)
    return target
