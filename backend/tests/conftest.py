from __future__ import annotations

import hashlib
import json
from typing import Any, Callable

import pytest

from shop_assistant.core.config import Settings
from shop_assistant.core.errors import ConflictError, NotFoundError
from shop_assistant.integrations.github_client import StoredDocument


def _sha(content: bytes) -> str:
    return hashlib.sha1(content).hexdigest()


class FakeDocumentStore:
    """In-memory conditional store: writes must carry the current sha."""

    def __init__(self) -> None:
        self.files: dict[str, tuple[bytes, str]] = {}
        self.calls: list[tuple[Any, ...]] = []
        # Runs between the version read and the write, to simulate a concurrent editor
        self.before_write: Callable[[], None] | None = None

    def seed(self, path: str, prompts: list[dict[str, Any]], *, version: str | None = None) -> str:
        content = json.dumps(prompts, ensure_ascii=False).encode("utf-8")
        sha = version or _sha(content)
        self.files[path] = (content, sha)
        return sha

    def fetch_document(self, path: str) -> StoredDocument:
        self.calls.append(("fetch_document", path))
        if path not in self.files:
            raise NotFoundError(f"GitHub resource not found: 404 - {path}")
        content, sha = self.files[path]
        return StoredDocument(content=content, version=sha)

    def fetch_version(self, path: str) -> str:
        self.calls.append(("fetch_version", path))
        if path not in self.files:
            raise NotFoundError(f"GitHub resource not found: 404 - {path}")
        return self.files[path][1]

    def write_document(self, path: str, content: bytes, *, expected_version: str, message: str) -> str:
        self.calls.append(("write_document", path, expected_version, message))
        if self.before_write is not None:
            hook, self.before_write = self.before_write, None
            hook()
        current = self.files.get(path)
        if current is None or current[1] != expected_version:
            raise ConflictError(
                f"Failed to commit to GitHub (version conflict): 409 - {path} does not match {expected_version}",
                status=409,
                body="does not match",
            )
        sha = _sha(content)
        self.files[path] = (content, sha)
        return sha

    def prompts(self, path: str) -> list[dict[str, Any]]:
        return json.loads(self.files[path][0].decode("utf-8"))


class FakeCompletion:
    def __init__(self, reply: str = "AI answer") -> None:
        self.reply = reply
        self.prompts: list[str] = []

    def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.reply


class FakeNotifier:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[tuple[int | str, str]] = []

    def send_message(self, chat_id: int | str, text: str) -> None:
        self.sent.append((chat_id, text))
        if self.fail:
            raise RuntimeError("telegram down")


def build_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "GITHUB_OWNER": "acme",
        "GITHUB_REPO": "shop-prompts",
        "PROMPTS_PATH": "prompts.json",
        "GITHUB_PAT": "ghp_test",
        "GEMINI_API_KEY": "gemini-test",
        "TELEGRAM_BOT_TOKEN": "123:bot",
        "ADMIN_API_TOKEN": None,
        "STATIC_PLACEHOLDERS": None,
        "GITHUB_BRANCH": None,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)  # type: ignore[call-arg]


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    return build_settings


@pytest.fixture
def settings() -> Settings:
    return build_settings()


@pytest.fixture
def store() -> FakeDocumentStore:
    return FakeDocumentStore()


@pytest.fixture
def completion() -> FakeCompletion:
    return FakeCompletion()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def failing_notifier() -> FakeNotifier:
    return FakeNotifier(fail=True)
