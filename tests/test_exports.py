import io
from urllib.parse import unquote

import openpyxl

from repairdesk import exports, utils, views
from repairdesk.schemas import Equipment, Fault, PartUsed, RepairRequest, RequestStatus, Workshop

WORKSHOPS = [Workshop(id="w1", sub_name="Hydraulics", foreman="Ali"), Workshop(id="w2", sub_name="Engines")]
EQUIPMENT = [Equipment(id="e1", equipment_number="LD-07", serial_number="CAT950-1")]


def job(request_id="262001", date_in="2024-04-01", time_in="08:00:00", faults=None, equipment_id="e1", **extra):
    return RepairRequest(
        id=request_id,
        equipment_id=equipment_id,
        driver_name="Hassan",
        date_in=date_in,
        time_in=time_in,
        faults=faults or [],
        **extra,
    )


def leak_and_noise():
    return job(faults=[
        Fault(description="Leak", workshop_id="w1", mechanic_name="Sami"),
        Fault(description="Noise", workshop_id="w2"),
    ], workshop_id="w1")


def test_csv_filtered_by_workshop_keeps_matching_fault_only():
    rows = exports.history_rows([leak_and_noise()], EQUIPMENT, WORKSHOPS, workshop_id="w1")
    text = exports.history_csv(rows).decode("utf-8")

    lines = text.lstrip("\ufeff").split("\r\n")
    data = [line for line in lines[1:] if line]
    assert len(data) == 1
    assert '"Leak"' in data[0]
    assert '"Hydraulics"' in data[0]
    assert "Noise" not in text


def test_csv_format():
    rows = exports.history_rows([leak_and_noise()], EQUIPMENT, WORKSHOPS)
    raw = exports.history_csv(rows)

    assert raw.startswith("\ufeff".encode("utf-8"))
    text = raw.decode("utf-8-sig")
    assert text.split("\r\n")[0] == '"Job #","Equipment","Date In","Mileage","Status","Workshop","Mechanic","Fault"'
    assert '"LD-07 (CAT950-1)"' in text
    assert text.count("\r\n") == 3


def test_blank_row_when_no_fault_matches():
    rows = exports.history_rows([leak_and_noise()], EQUIPMENT, WORKSHOPS, workshop_id="w9")

    assert len(rows) == 1
    assert rows[0]["Fault"] == "" and rows[0]["Workshop"] == ""


def test_unknown_workshop_and_equipment_labels():
    req = job(equipment_id="gone", faults=[Fault(description="Leak", workshop_id="w9")])

    row = exports.history_rows([req], EQUIPMENT, WORKSHOPS)[0]

    assert row["Equipment"] == "Unknown"
    assert row["Workshop"] == "N/A"


def test_excel_has_single_history_sheet():
    fault = Fault(
        description="Leak",
        workshop_id="w1",
        work_done="Replaced seal",
        parts_used=[PartUsed(name="Seal", quantity="2")],
    )
    req = job(faults=[fault], status=RequestStatus.COMPLETED, date_out="2024-04-02")
    df = exports.history_dataframe(exports.history_rows([req], EQUIPMENT, WORKSHOPS))

    buf = io.BytesIO()
    df.to_excel(buf, index=False, sheet_name="History")
    buf.seek(0)
    wb = openpyxl.load_workbook(buf)

    assert wb.sheetnames == ["History"]
    header = [c.value for c in wb["History"][1]]
    assert header == exports.EXCEL_COLUMNS
    values = [c.value for c in wb["History"][2]]
    assert "Seal (x2)" in values
    assert "Replaced seal" in values


def test_whatsapp_links_are_url_encoded():
    url = exports.whatsapp_link(exports.job_card_message(leak_and_noise(), EQUIPMENT[0]))

    assert url.startswith("https://wa.me/?text=")
    assert " " not in url
    assert "Job Card No: 262001" in unquote(url.split("=", 1)[1])

    details = unquote(exports.whatsapp_link(exports.equipment_message(EQUIPMENT[0])).split("=", 1)[1])
    assert "Serial Number: CAT950-1" in details


def test_history_filters_and_sorting():
    old = job("262001", date_in="2024-03-30", workshop_id="w1")
    new = job("262002", date_in="2024-04-02", workshop_id="w2")
    same_day_later = job("262003", date_in="2024-04-02", time_in="15:00:00", workshop_id="w1",
                         status=RequestStatus.COMPLETED)
    requests = [old, new, same_day_later]

    assert [r.id for r in views.filter_requests(requests)] == ["262003", "262002", "262001"]
    assert [r.id for r in views.filter_requests(requests, month="2024-04")] == ["262003", "262002"]
    assert [r.id for r in views.filter_requests(requests, workshop_id="w1")] == ["262003", "262001"]
    assert [r.id for r in views.filter_requests(requests, status=RequestStatus.PENDING)] == ["262002", "262001"]
    assert views.filter_requests(requests, equipment_id="other") == []


def test_workshop_history_looks_at_every_fault():
    req = leak_and_noise()

    assert views.workshop_history([req], "w2") == [req]
    assert views.workshop_history([req], "w9") == []


def test_parse_any_date():
    assert str(utils.parse_any_date("2024-04-02")) == "2024-04-02"
    assert str(utils.parse_any_date("04/02/2024")) == "2024-04-02"
    assert str(utils.parse_any_date("3/15/2024")) == "2024-03-15"
    assert str(utils.parse_any_date("15/04/2024")) == "2024-04-15"
    assert str(utils.parse_any_date("2024-04-02T00:00:00.000Z")) == "2024-04-02"
    assert str(utils.parse_any_date("45384")) == "2024-04-02"
    assert utils.parse_any_date("") is None
    assert utils.parse_any_date("soon") is None


def test_parse_any_time():
    assert str(utils.parse_any_time("07:15:00")) == "07:15:00"
    assert str(utils.parse_any_time("9:30:00 AM")) == "09:30:00"
    assert str(utils.parse_any_time("2:05 pm")) == "14:05:00"
    assert str(utils.parse_any_time("12:10:00 AM")) == "00:10:00"
    assert utils.parse_any_time("") is None
    assert utils.parse_any_time("later") is None


def test_sheet_locale_dates_filter_and_sort():
    march = job("262001", date_in="3/15/2024")
    may = job("262002", date_in="5/3/2024")

    assert [r.id for r in views.filter_requests([march, may], month="2024-03")] == ["262001"]
    assert [r.id for r in views.filter_requests([march, may], month="2024-05")] == ["262002"]
    assert [r.id for r in views.filter_requests([march, may])] == ["262002", "262001"]


def test_twelve_hour_times_sort_by_clock():
    morning = job("262001", date_in="4/2/2024", time_in="9:30:00 AM")
    later = job("262002", date_in="4/2/2024", time_in="10:00:00 AM")
    afternoon = job("262003", date_in="4/2/2024", time_in="1:15:00 PM")

    assert [r.id for r in views.newest_first([morning, afternoon, later])] == ["262003", "262002", "262001"]
