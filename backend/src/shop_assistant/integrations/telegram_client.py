from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from ..core.errors import TransportError


log = logging.getLogger("assistant.integrations.telegram")


class TelegramClient:
    """Outbound side of the bot: only ``sendMessage`` is needed."""

    def __init__(
        self,
        *,
        token: str,
        api_url: str = "https://api.telegram.org",
        parse_mode: Optional[str] = "Markdown",
        timeout_s: Optional[float] = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = f"{api_url.rstrip('/')}/bot{token}"
        self.parse_mode = parse_mode
        self.client = httpx.Client(timeout=timeout_s, transport=transport)

    def send_message(self, chat_id: int | str, text: str) -> None:
        payload: Dict[str, Any] = {"chat_id": chat_id, "text": text}
        if self.parse_mode:
            payload["parse_mode"] = self.parse_mode
        try:
            resp = self.client.post(f"{self.base_url}/sendMessage", json=payload)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            body = exc.response.text
            log.error("Telegram sendMessage returned %s for chat %s: %s", status, chat_id, body)
            raise TransportError(f"Telegram API error: {status} - {body}", status=status, body=body) from exc
        except httpx.HTTPError as exc:
            # the URL embeds the bot token, keep it out of the logs
            log.error("Telegram sendMessage failed for chat %s: %s", chat_id, type(exc).__name__)
            raise TransportError(f"Telegram request failed: {type(exc).__name__}") from exc
        log.debug("Message sent to chat %s (%d chars)", chat_id, len(text))

    def close(self) -> None:
        self.client.close()
