from __future__ import annotations

import logging
import re
from typing import Any, Protocol

from ..core.errors import AssistantError
from ..schemas.chat import ChatRequest
from ..schemas.telegram import TelegramUpdate
from .chat_service import ChatService


log = logging.getLogger("assistant.services.telegram")

ERROR_REPLY_PREFIX = "Произошла ошибка: "
INTERNAL_ERROR_REPLY = "Извините, произошла внутренняя ошибка сервера."

# "/size_advice@ShopBot 42 EU" -> ("size_advice", "42 EU")
_COMMAND_RE = re.compile(r"^/([A-Za-z0-9_]+)(?:@\w+)?(?:\s+(.*))?$", re.S)


class Notifier(Protocol):
    def send_message(self, chat_id: int | str, text: str) -> None: ...


def resolve_function(text: str, default_function_id: str) -> tuple[str, str]:
    """Split a leading bot command off ``text``; plain text keeps the default."""
    match = _COMMAND_RE.match(text)
    if not match:
        return default_function_id, text
    return match.group(1), (match.group(2) or "").strip()


class TelegramWebhookService:
    def __init__(
        self,
        *,
        chat: ChatService,
        notifier: Notifier,
        default_function_id: str,
    ) -> None:
        self.chat = chat
        self.notifier = notifier
        self.default_function_id = default_function_id

    def handle(self, raw_update: Any) -> None:
        """Answer one update. Non-text updates are ignored.

        Chat-path errors are sent to the user as a message. Anything else is
        re-raised after a best-effort generic notification.
        """
        chat_id: int | None = None
        try:
            update = TelegramUpdate.model_validate(raw_update)
            message = update.message
            if message is None or not message.text:
                return
            chat_id = message.chat.id
            function_id, text = resolve_function(message.text.strip(), self.default_function_id)
            log.info("Telegram message chat=%s function_id=%s", chat_id, function_id)

            try:
                reply = self.chat.handle(ChatRequest(message=text, function_id=function_id))
            except AssistantError as exc:
                log.warning("Chat dispatch failed for chat %s: %s", chat_id, exc.message)
                reply = f"{ERROR_REPLY_PREFIX}{exc.message}"

            self.notifier.send_message(chat_id, reply)
        except Exception:
            log.exception("Telegram Webhook Error")
            if chat_id is not None:
                self._notify_internal_error(chat_id)
            raise

    def _notify_internal_error(self, chat_id: int) -> None:
        try:
            self.notifier.send_message(chat_id, INTERNAL_ERROR_REPLY)
        except Exception:
            log.warning("Failed to notify chat %s about the internal error", chat_id, exc_info=True)
