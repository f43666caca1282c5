from __future__ import annotations

import logging
from typing import Iterator

from fastapi import Depends, Request

from ..core.config import Settings, get_settings
from ..core.errors import AuthorizationError
from ..integrations.gemini_client import GeminiClient
from ..integrations.github_client import DocumentStore, GitHubContentsClient
from ..integrations.telegram_client import TelegramClient
from ..services.chat_service import ChatService, CompletionClient
from ..services.save_service import SaveService
from ..services.telegram_service import Notifier, TelegramWebhookService


log = logging.getLogger("assistant.api.deps")


def get_document_store(settings: Settings = Depends(get_settings)) -> Iterator[DocumentStore]:
    # Owner/repo are checked by the services so the error reaches the caller as JSON
    client = GitHubContentsClient(
        owner=settings.github_owner or "",
        repo=settings.github_repo or "",
        api_url=settings.github_api_url,
        token=settings.github_pat,
        branch=settings.github_branch,
        timeout_s=settings.http_timeout_s,
    )
    try:
        yield client
    finally:
        client.close()


def get_completion_client(settings: Settings = Depends(get_settings)) -> Iterator[CompletionClient | None]:
    if not settings.gemini_api_key:
        yield None
        return
    client = GeminiClient(
        api_key=settings.gemini_api_key,
        model=settings.gemini_model,
        base_url=settings.gemini_base_url,
        timeout_s=settings.http_timeout_s,
    )
    try:
        yield client
    finally:
        client.close()


def get_notifier(settings: Settings = Depends(get_settings)) -> Iterator[Notifier | None]:
    if not settings.telegram_bot_token:
        yield None
        return
    client = TelegramClient(
        token=settings.telegram_bot_token,
        api_url=settings.telegram_api_url,
        parse_mode=settings.telegram_parse_mode,
        timeout_s=settings.http_timeout_s,
    )
    try:
        yield client
    finally:
        client.close()


def get_chat_service(
    settings: Settings = Depends(get_settings),
    store: DocumentStore = Depends(get_document_store),
    completion: CompletionClient | None = Depends(get_completion_client),
) -> ChatService:
    return ChatService(settings=settings, store=store, completion=completion)


def get_save_service(
    settings: Settings = Depends(get_settings),
    store: DocumentStore = Depends(get_document_store),
) -> SaveService:
    return SaveService(settings=settings, store=store)


def get_telegram_service(
    settings: Settings = Depends(get_settings),
    chat: ChatService = Depends(get_chat_service),
    notifier: Notifier | None = Depends(get_notifier),
) -> TelegramWebhookService | None:
    if notifier is None:
        return None
    return TelegramWebhookService(
        chat=chat,
        notifier=notifier,
        default_function_id=settings.telegram_default_function_id,
    )


def require_admin_token(request: Request, settings: Settings = Depends(get_settings)) -> None:
    expected = settings.admin_api_token
    if not expected:
        return
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or token.strip() != expected:
        log.warning("Rejected save request without a valid admin token")
        raise AuthorizationError("Admin token required.")
