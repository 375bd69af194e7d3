"""
Error taxonomy for the generation layer.

Adapters raise these with enough context (provider, code, raw payload) for
the caller to log and decide. Business failures such as content-policy
rejections are not errors: they come back as a result with status "error".
"""

from typing import Any, Optional


class GenerationError(Exception):
    """Base class for all generation-layer failures."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        provider: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.provider = provider
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(GenerationError):
    """Missing credential, unknown provider or missing required canonical field."""


class UnknownProviderError(ConfigurationError):
    """Raised when a registry lookup names a provider that is not registered."""

    def __init__(self, name: str, available: list[str]):
        self.available = available
        super().__init__(
            f"Unknown provider: {name}. Available providers: {', '.join(available)}",
            error_code="UNKNOWN_PROVIDER",
            provider=name,
        )


class ValidationError(GenerationError):
    """A canonical value cannot be coerced to the type the upstream expects."""


class MissingFieldError(ValidationError, ConfigurationError):
    """A required canonical field is absent from the config."""

    def __init__(self, field_name: str, provider: Optional[str] = None):
        self.field_name = field_name
        super().__init__(
            f"Missing required field: {field_name}",
            error_code="MISSING_FIELD",
            provider=provider,
            details={"field": field_name},
        )


class TransportError(GenerationError):
    """The outbound call itself failed (connectivity, timeout)."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        cause: Optional[BaseException] = None,
        error_code: str = "REQUEST_ERROR",
    ):
        self.cause = cause
        super().__init__(message, error_code=error_code, provider=provider)


class ProviderError(GenerationError):
    """Upstream answered with a non-success HTTP status or an embedded error code."""

    def __init__(
        self,
        provider: str,
        status_code: int,
        message: str,
        raw: Optional[Any] = None,
    ):
        self.status_code = status_code
        self.raw = raw
        super().__init__(
            f"[{provider.upper()} API] {status_code}: {message}",
            error_code=f"{provider.upper()}_{status_code}",
            provider=provider,
            details={"raw": raw} if raw is not None else {},
        )


class DataExtractionError(GenerationError):
    """The response parsed, but a required field could not be located."""

    def __init__(
        self,
        provider: str,
        field_name: str,
        raw: Any,
        tried: Optional[list[str]] = None,
    ):
        self.field_name = field_name
        self.raw = raw
        self.tried = tried or []
        super().__init__(
            f"Could not extract {field_name} from {provider} response "
            f"(tried: {', '.join(self.tried) or 'nothing'}): {raw!r}",
            error_code="NO_" + field_name.upper(),
            provider=provider,
            details={"raw": raw, "tried": self.tried},
        )


class PollTimeoutError(GenerationError):
    """wait_for_terminal gave up before the task reached a terminal state."""

    def __init__(self, task_id: str, timeout: float, last_result: Optional[Any] = None, provider: Optional[str] = None):
        self.task_id = task_id
        self.last_result = last_result
        super().__init__(
            f"Task {task_id} did not finish within {timeout:g} seconds",
            error_code="POLL_TIMEOUT",
            provider=provider,
        )
