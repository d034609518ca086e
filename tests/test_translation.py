import httpx

from repairdesk.translation import TRANSLATION_ERROR, translate_text

URL = "https://translate.test/api"


async def test_without_service_text_is_trimmed():
    assert await translate_text("  فرامل  ") == "فرامل"


async def test_service_translation():
    def handler(request):
        assert request.url == URL
        return httpx.Response(200, json={"translation": "Brakes"})

    result = await translate_text("فرامل", url=URL, transport=httpx.MockTransport(handler))

    assert result == "Brakes"


async def test_failure_returns_marker():
    def handler(request):
        return httpx.Response(503)

    result = await translate_text("فرامل", url=URL, transport=httpx.MockTransport(handler))

    assert result == TRANSLATION_ERROR
