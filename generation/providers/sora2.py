"""
sora2 video model.

Callers ask for "sora2" and configure quality rather than hd. The concrete
Sora backend is resolved on every call, either from an explicit `backend`
argument or from the backend resolver (SORA_BACKEND by default), so a
configuration change takes effect without rebuilding the registry.

The handle returned by submit_task names the backend that accepted the task
in `provider`; pass it back as `backend` when polling so a later backend
switch does not send the poll to the wrong service.
"""

import logging
from typing import Any, Callable, Mapping, Optional

from ..errors import ValidationError
from ..types import (
    CallContext,
    GenerationConfig,
    GenerationRequest,
    MediaCategory,
    ProgressCallback,
    TaskHandle,
    VideoGenerationResult,
)
from ..transport import ProxyTransport
from .base import ConfigInput, GenerationProvider, ProviderCapabilities

logger = logging.getLogger(__name__)

SECONDS_PER_VIDEO_SECOND = 10
STANDARD_RESOLUTION = "1280x720"
PRO_RESOLUTION = "1920x1080"


def configured_backend() -> str:
    from core.config import get_config

    return get_config().video.sora_backend


class Sora2Provider(GenerationProvider):
    name = "sora2"
    display_name = "Sora 2"
    category = MediaCategory.VIDEO
    capabilities = ProviderCapabilities(durations=("10", "15", "25"))

    def __init__(
        self,
        backends=None,
        backend_resolver: Optional[Callable[[], str]] = None,
        transport: Optional[ProxyTransport] = None,
    ):
        super().__init__(transport)
        if backends is None:
            from ..registry import build_sora_backends

            backends = build_sora_backends(transport)
        self.backends = backends
        self.backend_resolver = backend_resolver or configured_backend

    def resolve_backend(self, backend: Optional[str] = None) -> GenerationProvider:
        """Look up the backend to use for this call."""
        name = backend or self.backend_resolver()
        return self.backends.get(name)

    def to_generation_config(self, config: ConfigInput) -> GenerationConfig:
        """Quality-based model settings -> canonical settings (pro means hd)."""
        if isinstance(config, Mapping) and "quality" in config and "hd" not in config:
            quality = config["quality"]
            if quality not in ("standard", "pro"):
                raise ValidationError(
                    f"quality must be 'standard' or 'pro', got {quality!r}",
                    error_code="INVALID_QUALITY",
                    provider=self.name,
                )
            config = {
                "aspect_ratio": config.get("aspect_ratio"),
                "duration": config.get("duration"),
                "hd": quality == "pro",
            }
        return self.coerce_config(config)

    def transform_config(self, config: ConfigInput) -> dict[str, Any]:
        canonical = self.to_generation_config(config)
        return {
            "aspect_ratio": canonical.aspect_ratio,
            "duration": canonical.duration,
            "hd": canonical.hd,
        }

    async def submit_task(
        self,
        request: GenerationRequest,
        credential: str,
        context: Optional[CallContext] = None,
        backend: Optional[str] = None,
    ) -> TaskHandle:
        delegate = self.resolve_backend(backend)
        canonical = self.to_generation_config(request.config)

        logger.info(f"[{self.display_name}] Submitting via {delegate.name}")
        handle = await delegate.submit_task(
            request.model_copy(update={"config": canonical}),
            credential,
            context,
        )
        return handle.model_copy(
            update={"estimated_time": int(canonical.duration) * SECONDS_PER_VIDEO_SECOND}
        )

    async def check_status(
        self,
        task_id: str,
        credential: str,
        on_progress: Optional[ProgressCallback] = None,
        context: Optional[CallContext] = None,
        backend: Optional[str] = None,
    ) -> VideoGenerationResult:
        delegate = self.resolve_backend(backend)
        result = await delegate.check_status(task_id, credential, on_progress, context)

        duration = result.duration
        return VideoGenerationResult(
            **result.model_dump(),
            video_duration=int(duration) if duration and duration.isdigit() else None,
            video_resolution=STANDARD_RESOLUTION if result.quality == "standard" else PRO_RESOLUTION,
        )
