# repairdesk/utils.py
from __future__ import annotations

import datetime as dt
from io import BytesIO

import pandas as pd
from starlette.responses import Response, StreamingResponse


# -------------------------
# Date parsing
# -------------------------
def parse_any_date(value):
    """Accept yyyy-mm-dd / m/d/yyyy / dd-mm-yyyy / dd/mm/yyyy / yyyy/mm/dd / ISO timestamps / Excel serials.

    Slashed dates are read month-first, the way the sheet's locale writes them;
    day-first is only tried when the first part cannot be a month.
    """
    if value in (None, "", "nan"):
        return None
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value

    s = str(value).strip()
    for fmt in ("%Y-%m-%d", "%m/%d/%Y", "%d-%m-%Y", "%d/%m/%Y", "%Y/%m/%d"):
        try:
            return dt.datetime.strptime(s, fmt).date()
        except ValueError:
            pass
    try:  # sheet date cells come back as ISO timestamps
        return dt.datetime.fromisoformat(s.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    try:  # Excel serials
        serial = float(s)
        excel_epoch = dt.datetime(1899, 12, 30)
        return (excel_epoch + dt.timedelta(days=serial)).date()
    except (ValueError, OverflowError):
        return None


def parse_any_time(value):
    """Accept 24-hour times and the sheet's 12-hour "9:30:00 AM" form."""
    if value in (None, "", "nan"):
        return None
    if isinstance(value, dt.time):
        return value

    s = str(value).replace("\u202f", " ").replace("\xa0", " ").strip().upper()
    for fmt in ("%H:%M:%S", "%H:%M", "%I:%M:%S %p", "%I:%M %p"):
        try:
            return dt.datetime.strptime(s, fmt).time()
        except ValueError:
            pass
    try:  # sheet time cells can come back as ISO timestamps
        return dt.datetime.fromisoformat(s.replace("Z", "+00:00")).time()
    except ValueError:
        return None


# -------------------------
# Downloads
# -------------------------
def excel_response(df: pd.DataFrame, filename: str, sheet_name: str = "Sheet1") -> StreamingResponse:
    buf = BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=sheet_name)
    buf.seek(0)
    return StreamingResponse(
        buf,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def file_response(content: bytes, media_type: str, filename: str, *, inline: bool = False) -> Response:
    disposition = "inline" if inline else "attachment"
    return Response(
        content,
        media_type=media_type,
        headers={"Content-Disposition": f'{disposition}; filename="{filename}"'},
    )
