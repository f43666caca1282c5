from __future__ import annotations

from dataclasses import dataclass, field
import json
import logging
import re
from typing import Any, Dict, Iterable, Mapping

from .errors import NotFoundError, ValidationError


log = logging.getLogger("assistant.core.prompts")

_PLACEHOLDER_RE = re.compile(r"{{([^{}]+)}}")

# Source name for the inbound chat message in a prompt's ``variables`` mapping
MESSAGE_SOURCE = "message"

# Placeholders bound to the inbound message when a prompt declares no mapping
MESSAGE_PLACEHOLDERS = ("user_preferences", "user_measurements", "order_number")

REQUIRED_FIELDS = ("id", "name", "description", "prompt")


@dataclass(frozen=True)
class PromptDefinition:
    id: str
    name: str
    description: str
    prompt: str
    variables: Dict[str, str] | None = None

    @property
    def placeholders(self) -> list[str]:
        return extract_placeholders(self.prompt)

    def as_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "prompt": self.prompt,
        }
        if self.variables is not None:
            payload["variables"] = dict(self.variables)
        return payload


@dataclass(frozen=True)
class PromptDocument:
    """Whole content of the prompt file, as read at ``version``."""

    prompts: tuple[PromptDefinition, ...]
    version: str | None = None
    _by_id: Dict[str, PromptDefinition] = field(default_factory=dict, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._by_id.update({p.id: p for p in self.prompts})

    def ids(self) -> list[str]:
        return [p.id for p in self.prompts]

    def get(self, prompt_id: str) -> PromptDefinition:
        try:
            return self._by_id[prompt_id]
        except KeyError:
            raise NotFoundError(f"Function ID '{prompt_id}' not found.") from None


def extract_placeholders(template: str) -> list[str]:
    return sorted({m.group(1) for m in _PLACEHOLDER_RE.finditer(template)})


def render(template: str, context: Mapping[str, Any]) -> str:
    """Substitute ``{{name}}`` tokens found in ``context``; leave the others as-is.

    A single regex pass: substituted values are never scanned again.
    """

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in context:
            return match.group(0)
        return str(context[name])

    return _PLACEHOLDER_RE.sub(_replace, template)


def build_context(
    prompt: PromptDefinition,
    *,
    message: str,
    static_values: Mapping[str, str],
) -> Dict[str, str]:
    """Bind placeholder names to values for one chat request.

    Prompts declaring ``variables`` get exactly those bindings. Others fall back
    to the fixed mapping: every name in MESSAGE_PLACEHOLDERS receives the
    message, and every static placeholder receives its configured value.
    """
    sources: Dict[str, str] = {**static_values, MESSAGE_SOURCE: message}
    if prompt.variables is not None:
        return {name: sources[source] for name, source in prompt.variables.items() if source in sources}
    context = dict(static_values)
    for name in MESSAGE_PLACEHOLDERS:
        context[name] = message
    return context


def known_sources(static_values: Iterable[str]) -> set[str]:
    return {MESSAGE_SOURCE, *static_values}


def parse_prompt_document(
    content: bytes | str,
    *,
    version: str | None = None,
    sources: set[str] | None = None,
) -> PromptDocument:
    """Decode and validate the raw JSON of the prompt file."""
    if isinstance(content, bytes):
        try:
            content = content.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ValidationError("Prompt document is not valid UTF-8.") from exc
    try:
        data = json.loads(content)
    except ValueError as exc:
        raise ValidationError(f"Prompt document is not valid JSON: {exc}") from exc
    return validate_prompt_items(data, version=version, sources=sources)


def validate_prompt_items(
    data: Any,
    *,
    version: str | None = None,
    sources: set[str] | None = None,
) -> PromptDocument:
    if not isinstance(data, list):
        raise ValidationError("Prompt document must be a JSON array.")

    seen: set[str] = set()
    prompts: list[PromptDefinition] = []
    for idx, item in enumerate(data):
        if not isinstance(item, dict):
            raise ValidationError(f"Prompt #{idx} must be an object.")
        for name in REQUIRED_FIELDS:
            if not isinstance(item.get(name), str):
                raise ValidationError(f"Prompt #{idx} is missing string field '{name}'.")
        prompt_id = item["id"]
        if not prompt_id.strip():
            raise ValidationError(f"Prompt #{idx} has an empty 'id'.")
        if prompt_id != prompt_id.strip():
            raise ValidationError(f"Prompt #{idx}: id {prompt_id!r} has surrounding whitespace.")
        if prompt_id in seen:
            raise ValidationError(f"Duplicate prompt id '{prompt_id}'.")
        seen.add(prompt_id)
        variables = _parse_variables(prompt_id, item.get("variables"), sources)
        prompts.append(
            PromptDefinition(
                id=prompt_id,
                name=item["name"],
                description=item["description"],
                prompt=item["prompt"],
                variables=variables,
            )
        )
    log.debug("Parsed prompt document (%d prompts, version=%s)", len(prompts), version)
    return PromptDocument(prompts=tuple(prompts), version=version)


def _parse_variables(
    prompt_id: str,
    raw: Any,
    sources: set[str] | None,
) -> Dict[str, str] | None:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ValidationError(f"Prompt '{prompt_id}': 'variables' must be an object.")
    out: Dict[str, str] = {}
    for name, source in raw.items():
        if not isinstance(source, str) or not _PLACEHOLDER_RE.fullmatch("{{" + name + "}}"):
            raise ValidationError(f"Prompt '{prompt_id}': invalid variable binding '{name}'.")
        if sources is not None and source not in sources:
            raise ValidationError(
                f"Prompt '{prompt_id}': unknown source '{source}' for '{name}' "
                f"(expected one of: {', '.join(sorted(sources))})."
            )
        out[name] = source
    return out


def serialize_prompt_document(document: PromptDocument) -> bytes:
    payload = [p.as_payload() for p in document.prompts]
    return json.dumps(payload, ensure_ascii=False, indent=4).encode("utf-8")
