from __future__ import annotations

import logging
from typing import Protocol

from ..core.config import Settings
from ..core.errors import ConfigurationError, ValidationError
from ..core.prompts import PromptDocument, build_context, known_sources, parse_prompt_document, render
from ..integrations.github_client import DocumentStore
from ..schemas.chat import ChatRequest


log = logging.getLogger("assistant.services.chat")


class CompletionClient(Protocol):
    def complete(self, prompt: str) -> str: ...


def _preview_text(text: str, *, limit: int = 120) -> str:
    """Return a single-line preview capped at ``limit`` characters."""
    compact = " ".join(text.split())
    if len(compact) <= limit:
        return compact
    return f"{compact[: max(limit - 3, 1)]}..."


class ChatService:
    """Resolve a (message, function_id) pair to a prompt and ask the model.

    The prompt document is read from the store on every call and never kept.
    """

    def __init__(
        self,
        *,
        settings: Settings,
        store: DocumentStore,
        completion: CompletionClient | None,
    ) -> None:
        self.settings = settings
        self.store = store
        self.completion = completion

    def handle(self, request: ChatRequest) -> str:
        message = request.message or ""
        function_id = request.function_id or ""
        if not message or not function_id:
            raise ValidationError("Missing 'message' or 'function_id'")
        if not self.settings.gemini_api_key or self.completion is None:
            raise ConfigurationError("GEMINI_API_KEY is not configured.")

        document = self.load_document()
        prompt = document.get(function_id)

        static_values = self.settings.static_placeholders
        context = build_context(prompt, message=message, static_values=static_values)
        final_prompt = render(prompt.prompt, context)
        log.info(
            "Chat dispatch function_id=%s version=%s prompt=%r",
            function_id,
            document.version,
            _preview_text(final_prompt),
        )
        return self.completion.complete(final_prompt)

    def load_document(self) -> PromptDocument:
        if not self.settings.store_configured:
            raise ConfigurationError("GITHUB_OWNER, GITHUB_REPO and PROMPTS_PATH must be configured.")
        stored = self.store.fetch_document(self.settings.prompts_path)
        return parse_prompt_document(
            stored.content,
            version=stored.version,
            sources=known_sources(self.settings.static_placeholders),
        )
