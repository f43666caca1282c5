from __future__ import annotations


class AssistantError(RuntimeError):
    """Base of every error converted into a JSON envelope at the HTTP boundary."""

    status_code: int = 500
    kind: str = "internal"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AssistantError):
    """Malformed inbound request or prompt document."""

    status_code = 400
    kind = "validation"


class NotFoundError(AssistantError):
    """Unknown function identifier or unknown remote key."""

    status_code = 404
    kind = "not_found"


class ConfigurationError(AssistantError):
    """A credential required by the current path is not configured."""

    kind = "configuration"


class UpstreamError(AssistantError):
    """Non-success answer from a remote dependency.

    ``status`` is the upstream HTTP status, or None when the request never got
    a response (connection failure).
    """

    kind = "upstream"

    def __init__(self, message: str, *, status: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class TransportError(UpstreamError):
    kind = "transport"


class ConflictError(UpstreamError):
    """Version token mismatch on a conditional write."""

    kind = "conflict"


class BackendError(UpstreamError):
    """Completion backend failure."""

    kind = "backend"


class AuthorizationError(AssistantError):
    """Admin route called without the configured bearer token."""

    status_code = 401
    kind = "unauthorized"
