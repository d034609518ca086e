import json
from datetime import datetime

import httpx
import pytest
from fastapi.testclient import TestClient

from repairdesk.config import Settings
from repairdesk.context import AppContext
from repairdesk.database import Base, make_engine, make_session_factory

SHEET_URL = "https://sheet.test/exec"
FIXED_NOW = datetime(2024, 5, 1, 9, 30, 0)


class FakeSheet:
    """In-memory stand-in for the spreadsheet API, served through httpx.MockTransport."""

    def __init__(self):
        self.tables = {"Equipments": [], "Workshops": [], "RepairRequests": [], "Users": []}
        self.settings = {}
        self.calls = []
        self.failing = set()

    def add(self, sheet_name, record):
        record = dict(record)
        if sheet_name == "RepairRequests" and not isinstance(record.get("faults"), str):
            record["faults"] = json.dumps(record.get("faults", []))
        self.tables[sheet_name].append(record)
        return record

    @property
    def mutations(self):
        return [c for c in self.calls if c[0] != "getAllData"]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            self.calls.append(("getAllData", None, None))
            if "getAllData" in self.failing:
                return httpx.Response(500, json={"error": "down"})
            return httpx.Response(200, json={
                "equipments": self.tables["Equipments"],
                "workshops": self.tables["Workshops"],
                "repairRequests": self.tables["RepairRequests"],
                "users": self.tables["Users"],
                "settings": self.settings,
            })

        body = json.loads(request.content)
        action, payload, sheet_name = body["action"], body["payload"], body["sheetName"]
        self.calls.append((action, sheet_name, payload))
        if action in self.failing:
            return httpx.Response(500, json={"error": "rejected"})

        rows = self.tables[sheet_name]
        if action == "CREATE":
            rows.append(payload)
        elif action == "UPDATE":
            self.tables[sheet_name] = [payload if r["id"] == payload["id"] else r for r in rows]
        elif action == "DELETE":
            self.tables[sheet_name] = [r for r in rows if r["id"] != payload["id"]]
        return httpx.Response(200, json={"status": "success"})


@pytest.fixture
def sheet():
    fake = FakeSheet()
    fake.add("Workshops", {"id": "w1", "subName": "Hydraulics", "foreman": "Ali", "mechanic": "Sami"})
    fake.add("Workshops", {"id": "w2", "subName": "Engines", "foreman": "Omar"})
    fake.add("Equipments", {
        "id": "e1",
        "equipmentType": "Loader",
        "equipmentNumber": "LD-07",
        "make": "CAT",
        "modelNumber": "950H",
        "serialNumber": "CAT950-1",
        "branchLocation": "North yard",
    })
    return fake


@pytest.fixture
def settings(tmp_path):
    return Settings(
        SHEET_API_URL=SHEET_URL,
        DATABASE_URL=f"sqlite:///{tmp_path / 'state.db'}",
        EXPORT_DIR=str(tmp_path / "exports"),
        JOB_CARD_START=262000,
        DEFAULT_ADMIN_PASSWORD="123",
        TRANSLATE_URL=None,
    )


@pytest.fixture
def session_factory(settings):
    engine = make_engine(settings.DATABASE_URL)
    Base.metadata.create_all(bind=engine)
    yield make_session_factory(engine)
    engine.dispose()


@pytest.fixture
async def ctx(settings, session_factory, sheet):
    context = AppContext(settings, session_factory, transport=httpx.MockTransport(sheet))
    context.intake.clock = lambda: FIXED_NOW
    await context.init()
    yield context
    await context.teardown()


@pytest.fixture
async def admin_ctx(ctx):
    assert ctx.auth.login("Admin", "123")
    return ctx


@pytest.fixture
def client(settings, sheet):
    from repairdesk.main import create_app

    app = create_app(settings, transport=httpx.MockTransport(sheet))
    with TestClient(app) as c:
        r = c.post("/auth/login", json={"userId": "Admin", "password": "123"})
        assert r.status_code == 200
        yield c
