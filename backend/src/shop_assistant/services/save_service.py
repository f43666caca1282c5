from __future__ import annotations

from dataclasses import dataclass
import enum
import logging
from typing import Any

from ..core.config import Settings
from ..core.errors import ConfigurationError
from ..core.prompts import known_sources, serialize_prompt_document, validate_prompt_items
from ..integrations.github_client import DocumentStore


log = logging.getLogger("assistant.services.save")


class SaveState(str, enum.Enum):
    IDLE = "idle"
    FETCHING_TOKEN = "fetching_token"
    WRITING = "writing"
    COMMITTED = "committed"


@dataclass(frozen=True)
class SaveResult:
    state: SaveState
    previous_version: str
    version: str
    prompt_count: int


class SaveService:
    """Replace the whole prompt document with an optimistic-concurrency write.

    The version token is read right before the write on every call. A stale
    token surfaces as ConflictError; retrying with a fresh read is left to the
    caller.
    """

    def __init__(self, *, settings: Settings, store: DocumentStore) -> None:
        self.settings = settings
        self.store = store

    def handle(self, payload: Any) -> SaveResult:
        if not self.settings.github_pat:
            raise ConfigurationError("GITHUB_PAT secret is not configured.")
        if not self.settings.store_configured:
            raise ConfigurationError("GITHUB_OWNER, GITHUB_REPO and PROMPTS_PATH must be configured.")

        document = validate_prompt_items(
            payload,
            sources=known_sources(self.settings.static_placeholders),
        )
        content = serialize_prompt_document(document)
        path = self.settings.prompts_path

        log.debug("Save %s: %s", path, SaveState.FETCHING_TOKEN.value)
        version = self.store.fetch_version(path)

        log.debug("Save %s: %s (expected sha=%s)", path, SaveState.WRITING.value, version)
        new_version = self.store.write_document(
            path,
            content,
            expected_version=version,
            message=self.settings.commit_message,
        )
        log.info("Prompts saved: %s (%d prompts, sha=%s)", path, len(document.prompts), new_version)
        return SaveResult(
            state=SaveState.COMMITTED,
            previous_version=version,
            version=new_version,
            prompt_count=len(document.prompts),
        )
