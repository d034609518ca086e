# repairdesk/sheets.py
from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from .errors import SheetError
from .schemas import SheetName

logger = logging.getLogger(__name__)


def _json(response: httpx.Response, action: str) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        logger.error("%s returned a non-JSON body", action)
        raise SheetError(f"Unexpected response to {action}.") from exc


class SheetClient:
    """Thin client for the spreadsheet-backed API (one URL, action-based)."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self._client = httpx.AsyncClient(timeout=timeout, follow_redirects=True, transport=transport)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get_all_data(self) -> dict[str, Any]:
        try:
            response = await self._client.get(self.url, params={"action": "getAllData"})
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("getAllData failed: %s", exc)
            raise SheetError("Failed to fetch data from Google Sheet.") from exc
        return _json(response, "getAllData")

    async def _post(self, action: str, payload: dict, sheet_name: SheetName) -> Any:
        body = {"action": action, "payload": payload, "sheetName": sheet_name.value}
        try:
            response = await self._client.post(self.url, json=body)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("%s on %s failed: %s", action, sheet_name.value, exc)
            raise SheetError(f"Failed to {action} data in {sheet_name.value}.") from exc
        return _json(response, action)

    async def create(self, payload: dict, sheet_name: SheetName) -> Any:
        return await self._post("CREATE", payload, sheet_name)

    async def update(self, payload: dict, sheet_name: SheetName) -> Any:
        return await self._post("UPDATE", payload, sheet_name)

    async def delete(self, record_id: str, sheet_name: SheetName) -> Any:
        return await self._post("DELETE", {"id": record_id}, sheet_name)
