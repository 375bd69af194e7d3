"""
Provider capability contract.

Every upstream adapter implements the same three operations:

- transform_config: canonical config -> provider parameters (pure, no I/O)
- submit_task: one outbound call, returns a TaskHandle
- check_status: one outbound call (plus at most one content fetch for
  adapters that declare it), returns a normalized GenerationResult

Adapters never retry and never sleep. Polling policy belongs to the caller
(see generation.polling).
"""

import inspect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Union

from core.instrumentation import with_instrumentation

from ..errors import ConfigurationError, DataExtractionError, MissingFieldError, ValidationError
from ..transport import ProxyTransport
from ..types import (
    CallContext,
    CanonicalStatus,
    GenerationConfig,
    GenerationRequest,
    GenerationResult,
    MediaCategory,
    ProgressCallback,
    TaskHandle,
    VideoModelConfig,
)

logger = logging.getLogger(__name__)

ConfigInput = Union[GenerationConfig, VideoModelConfig, Mapping[str, Any]]

ASPECT_RATIOS = ("16:9", "9:16")
CANONICAL_FIELDS = ("aspect_ratio", "duration", "hd")

NO_OUTPUT_REASON = "Generation completed but no output URL could be resolved"


@dataclass(frozen=True)
class ProviderCapabilities:
    """What an adapter accepts and which optional behaviors it has."""
    text_input: bool = True
    image_input: bool = True
    durations: tuple[str, ...] = ()
    aspect_ratios: tuple[str, ...] = ASPECT_RATIOS
    content_fallback: bool = False


def orientation_for(aspect_ratio: str) -> str:
    return "landscape" if aspect_ratio == "16:9" else "portrait"


class GenerationProvider(ABC):
    """
    Base class for provider adapters.

    Subclasses set the class attributes and implement the three operations.
    The transport is injectable so tests can swap in httpx.MockTransport.
    """

    name: str = ""
    display_name: str = ""
    category: MediaCategory = MediaCategory.VIDEO
    capabilities: ProviderCapabilities = ProviderCapabilities()
    required_fields: tuple[str, ...] = CANONICAL_FIELDS

    def __init__(self, transport: Optional[ProxyTransport] = None):
        self._transport = transport

    @property
    def transport(self) -> ProxyTransport:
        if self._transport is None:
            self._transport = ProxyTransport()
        return self._transport

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------

    @abstractmethod
    def transform_config(self, config: ConfigInput) -> dict[str, Any]:
        """Translate canonical settings into this provider's parameters."""

    @abstractmethod
    async def submit_task(
        self,
        request: GenerationRequest,
        credential: str,
        context: Optional[CallContext] = None,
    ) -> TaskHandle:
        """Submit one generation task."""

    @abstractmethod
    async def check_status(
        self,
        task_id: str,
        credential: str,
        on_progress: Optional[ProgressCallback] = None,
        context: Optional[CallContext] = None,
    ) -> GenerationResult:
        """Poll one task once."""

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def coerce_config(self, config: ConfigInput) -> GenerationConfig:
        """
        Normalize any accepted config shape to a GenerationConfig.

        Raises:
            MissingFieldError: A required canonical field is absent
            ValidationError: A field is present but cannot be coerced
        """
        if config is None:
            raise MissingFieldError("config", provider=self.name)

        if isinstance(config, VideoModelConfig):
            config = config.to_generation_config()

        if isinstance(config, GenerationConfig):
            values = config.model_dump()
        elif isinstance(config, Mapping):
            values = dict(config)
            for field_name in self.required_fields:
                value = values.get(field_name)
                if value is None or (isinstance(value, str) and not value.strip()):
                    raise MissingFieldError(field_name, provider=self.name)
        else:
            raise ValidationError(
                f"Unsupported config type: {type(config).__name__}",
                error_code="INVALID_CONFIG",
                provider=self.name,
            )

        aspect_ratio = values.get("aspect_ratio", "16:9")
        if aspect_ratio not in ASPECT_RATIOS:
            raise ValidationError(
                f"aspect_ratio must be one of {', '.join(ASPECT_RATIOS)}, got {aspect_ratio!r}",
                error_code="INVALID_ASPECT_RATIO",
                provider=self.name,
            )

        hd = values.get("hd", False)
        if not isinstance(hd, bool):
            raise ValidationError(
                f"hd must be a boolean, got {hd!r}",
                error_code="INVALID_HD",
                provider=self.name,
            )

        duration = values.get("duration", "10")
        if isinstance(duration, bool) or not str(duration).strip().isdigit():
            raise ValidationError(
                f'duration "{duration}" cannot be converted to a number',
                error_code="INVALID_DURATION",
                provider=self.name,
            )

        return GenerationConfig(aspect_ratio=aspect_ratio, duration=str(duration).strip(), hd=hd)

    def require_credential(self, credential: Optional[str]) -> str:
        if not credential or not credential.strip():
            raise ConfigurationError(
                f"{self.display_name} API key is not configured",
                error_code="MISSING_CREDENTIAL",
                provider=self.name,
            )
        return credential

    def call_context(self, context: Optional[CallContext], log_type: str) -> CallContext:
        return (context or CallContext()).with_updates(
            provider=self.name,
            platform=self.display_name,
            log_type=log_type,
        )

    async def call(
        self,
        call_name: str,
        method: str,
        path: str,
        credential: str,
        body: Optional[dict[str, Any]] = None,
        params: Optional[dict[str, Any]] = None,
        metadata: Optional[dict[str, Any]] = None,
        context: Optional[CallContext] = None,
        log_type: str = "submission",
    ) -> dict[str, Any]:
        """Issue one instrumented proxy call and return the JSON object."""
        data = await with_instrumentation(
            call_name,
            lambda: self.transport.request_json(
                self.name, method, path, credential, json_body=body, params=params
            ),
            metadata,
            self.call_context(context, log_type),
        )
        if not isinstance(data, dict):
            raise DataExtractionError(provider=self.name, field_name="response object", raw=data)
        return data

    def submission_metadata(self, request: GenerationRequest, **extra: Any) -> dict[str, Any]:
        return {
            **extra,
            "has_reference_image": bool(request.reference_image_url),
            "prompt_length": len(request.prompt),
            "prompt_preview": request.prompt_preview,
        }

    async def emit_progress(self, on_progress: Optional[ProgressCallback], progress: int):
        """Invoke the caller's progress callback; callback failures are logged only."""
        if on_progress is None:
            return
        try:
            outcome = on_progress(progress)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            logger.warning(f"[{self.name}] Progress callback failed: {e}")

    async def fetch_content_urls(
        self,
        task_id: str,
        credential: str,
        context: Optional[CallContext] = None,
    ) -> list[str]:
        """Content retrieval for completed tasks without a URL. Adapters with
        capabilities.content_fallback override this."""
        return []

    async def resolve_output(
        self,
        task_id: str,
        status: CanonicalStatus,
        urls: Union[str, list[str], None],
        credential: str,
        context: Optional[CallContext] = None,
    ) -> tuple[CanonicalStatus, list[str], Optional[str]]:
        """
        Enforce that a completed result carries an output URL.

        Returns:
            (status, output_urls, violation_reason). A completed status with
            no resolvable URL comes back as ERROR with a reason.
        """
        if isinstance(urls, str):
            urls = [urls]
        urls = string_urls(urls or [])

        if status is not CanonicalStatus.COMPLETED or urls:
            return status, urls, None

        if self.capabilities.content_fallback:
            urls = await self.fetch_content_urls(task_id, credential, context)
            if urls:
                return status, urls, None

        logger.error(f"[{self.name}] Task {task_id} completed without an output URL, marking as error")
        return CanonicalStatus.ERROR, [], NO_OUTPUT_REASON

    def error_result(
        self,
        task_id: str,
        progress: int,
        reason: Optional[str],
        default_reason: str,
        raw: Optional[dict[str, Any]] = None,
        quality: str = "unknown",
    ) -> GenerationResult:
        return GenerationResult(
            task_id=task_id,
            status=CanonicalStatus.ERROR,
            progress=progress,
            quality=quality,
            is_compliant=False,
            violation_reason=str(reason) if reason else default_reason,
            raw=raw,
        )


def first_message(*candidates: Any) -> Optional[str]:
    for value in candidates:
        if value:
            return str(value)
    return None


def string_urls(values: Iterable[Any]) -> list[str]:
    return [value for value in values if isinstance(value, str) and value]
