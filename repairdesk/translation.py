import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

TRANSLATION_ERROR = "Translation error"


async def translate_text(
    text: str,
    target_language: str = "English",
    *,
    url: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """Translate a fault description for display. Without a service configured the text comes back trimmed."""
    if not url:
        return text.strip()
    try:
        async with httpx.AsyncClient(transport=transport) as client:
            response = await client.post(url, json={"text": text, "target": target_language})
            response.raise_for_status()
            return str(response.json().get("translation", "")).strip() or TRANSLATION_ERROR
    except (httpx.HTTPError, ValueError, AttributeError) as exc:
        logger.error("Error translating text: %s", exc)
        return TRANSLATION_ERROR
