from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from ..core.errors import BackendError


log = logging.getLogger("assistant.integrations.gemini")

FALLBACK_RESPONSE = "Извините, не удалось получить ответ от AI. Попробуйте перефразировать запрос."


def extract_text(data: Any) -> Optional[str]:
    """Return ``candidates[0].content.parts[0].text`` or None when absent."""
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text if isinstance(text, str) else None


class GeminiClient:
    """Text completion through Gemini's ``generateContent`` endpoint.

    A response without candidate text (declined, filtered, empty) yields
    FALLBACK_RESPONSE instead of an error.
    """

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout_s: Optional[float] = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.api_key = api_key
        self.client = httpx.Client(timeout=timeout_s, transport=transport)

    def complete(self, prompt: str) -> str:
        url = f"{self.base_url}/models/{self.model}:generateContent"
        payload: Dict[str, Any] = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        log.debug("POST %s (prompt chars=%d)", url, len(prompt))
        try:
            resp = self.client.post(
                url,
                params={"key": self.api_key},
                headers={"Content-Type": "application/json"},
                json=payload,
            )
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            body = exc.response.text
            log.error("Gemini API Raw Error (%s): %s", status, body)
            raise BackendError(f"Gemini API error: {status} - {body}", status=status, body=body) from exc
        except httpx.HTTPError as exc:
            # str(exc.request.url) would carry the key; log the bare endpoint
            log.error("Gemini request failed for %s: %s", url, type(exc).__name__)
            raise BackendError(f"Gemini API request failed: {type(exc).__name__}") from exc

        try:
            data = resp.json()
        except ValueError:
            log.warning("Gemini returned a non-JSON body; using fallback response")
            return FALLBACK_RESPONSE
        text = extract_text(data)
        if text is None:
            log.warning("Gemini response carried no candidate text; using fallback response")
            return FALLBACK_RESPONSE
        return text

    def close(self) -> None:
        self.client.close()
