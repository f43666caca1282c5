import json

import httpx
import pytest

from shop_assistant.core.errors import BackendError
from shop_assistant.integrations.gemini_client import FALLBACK_RESPONSE, GeminiClient


def _client(handler) -> GeminiClient:
    return GeminiClient(api_key="k-123", model="gemini-2.5-flash", transport=httpx.MockTransport(handler))


def test_complete_returns_first_candidate_text() -> None:
    captured: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = request.url
        captured["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={"candidates": [{"content": {"parts": [{"text": "Try the blue one."}, {"text": "ignored"}]}}]},
        )

    assert _client(handler).complete("Recommend a jacket") == "Try the blue one."
    assert captured["url"].path.endswith("/models/gemini-2.5-flash:generateContent")
    assert captured["url"].params["key"] == "k-123"
    assert captured["body"] == {"contents": [{"role": "user", "parts": [{"text": "Recommend a jacket"}]}]}


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"candidates": []},
        {"candidates": [{"finishReason": "SAFETY"}]},
        {"candidates": [{"content": {"parts": []}}]},
        {"promptFeedback": {"blockReason": "OTHER"}},
    ],
)
def test_missing_candidate_text_yields_fallback(payload) -> None:
    client = _client(lambda request: httpx.Response(200, json=payload))

    assert client.complete("x") == FALLBACK_RESPONSE


def test_error_status_raises_backend_error_with_body() -> None:
    client = _client(lambda request: httpx.Response(429, text="quota exceeded"))

    with pytest.raises(BackendError) as excinfo:
        client.complete("x")

    assert excinfo.value.status == 429
    assert excinfo.value.message == "Gemini API error: 429 - quota exceeded"
