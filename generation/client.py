"""
Generation client.

Single caller-facing interface over the provider registry:
- Resolves the adapter and its API key by provider name
- Submits one task, checks it once, or waits until it finishes
- Forwards progress to an optional callback

Usage:
    client = GenerationClient()

    handle = await client.submit("dayuapi", "A lighthouse at dusk", config={
        "aspect_ratio": "16:9", "duration": "10", "hd": True,
    })
    result = await client.wait(handle)
    print(result.video_url)
"""

import logging
from typing import Any, Callable, Optional, Union

from .errors import GenerationError
from .polling import wait_for_terminal
from .providers.base import ConfigInput, GenerationProvider
from .providers.sora2 import Sora2Provider
from .registry import ProviderRegistry, build_default_registry
from .transport import ProxyTransport
from .types import CallContext, GenerationConfig, GenerationRequest, GenerationResult, TaskHandle

logger = logging.getLogger(__name__)


class GenerationClient:
    """
    Unified client for media generation.

    A sora2 handle names the backend that accepted the task; pass the handle
    (not just its id) to check/wait so the poll reaches the same backend.
    """

    def __init__(
        self,
        registry: Optional[ProviderRegistry] = None,
        config: Optional[Any] = None,
        transport: Optional[ProxyTransport] = None,
        on_progress: Optional[Callable[[str, int], None]] = None,
    ):
        """
        Initialize the generation client.

        Args:
            registry: Adapter registry (default: all adapters over `transport`)
            config: Optional config override
            transport: Shared proxy transport (default: created from config)
            on_progress: Callback for progress updates (task_id, percent)
        """
        if config is None:
            from core.config import get_config

            config = get_config()
        self.config = config
        self.transport = transport or ProxyTransport(config.api.proxy_base, config.api.request_timeout)
        self.registry = registry or build_default_registry(self.transport)
        self.on_progress = on_progress

    async def close(self):
        """Close the HTTP client."""
        await self.transport.close()

    def provider(self, name: str) -> GenerationProvider:
        return self.registry.get(name)

    def backend_for(self, provider: GenerationProvider, backend: Optional[str] = None) -> Optional[str]:
        """The concrete Sora backend name for sora2 calls, None otherwise."""
        if isinstance(provider, Sora2Provider):
            return provider.resolve_backend(backend).name
        return None

    def credential_for(self, provider_name: str, backend: Optional[str] = None) -> str:
        """
        API key for a provider; sora2 uses the key of the selected backend.

        Raises:
            ConfigurationError: Unknown provider or empty key
        """
        provider = self.provider(provider_name)
        return self.config.api.credential_for(self.backend_for(provider, backend) or provider.name)

    def _progress_callback(self, task_id: str):
        if self.on_progress is None:
            return None

        def forward(percent: int):
            self.on_progress(task_id, percent)

        return forward

    async def submit(
        self,
        provider_name: str,
        prompt: str,
        config: Optional[ConfigInput] = None,
        reference_image_url: Optional[str] = None,
        context: Optional[CallContext] = None,
        backend: Optional[str] = None,
    ) -> TaskHandle:
        """
        Submit one generation task.

        Args:
            provider_name: Registered provider (e.g. "sora2", "kie", "fal_image")
            prompt: Text description of the media to generate
            config: GenerationConfig, VideoModelConfig or a plain mapping
            reference_image_url: First frame / style reference
            backend: sora2 only, overrides SORA_BACKEND for this call

        Returns:
            TaskHandle; for sora2 its `provider` is the backend name
        """
        provider = self.provider(provider_name)
        resolved_backend = self.backend_for(provider, backend)
        credential = self.config.api.credential_for(resolved_backend or provider.name)

        if isinstance(provider, Sora2Provider):
            request_config = provider.to_generation_config(config or GenerationConfig())
        else:
            request_config = provider.coerce_config(config or GenerationConfig())

        request = GenerationRequest(
            prompt=prompt,
            reference_image_url=reference_image_url,
            config=request_config,
        )

        if resolved_backend:
            handle = await provider.submit_task(request, credential, context, backend=resolved_backend)
        else:
            handle = await provider.submit_task(request, credential, context)

        logger.info(f"Submitted {provider_name} task {handle.id} ({handle.provider})")
        return handle

    async def check(
        self,
        provider_name: str,
        task: Union[TaskHandle, str],
        context: Optional[CallContext] = None,
        backend: Optional[str] = None,
    ) -> GenerationResult:
        """Check a task once."""
        provider = self.provider(provider_name)
        task_id, backend = self._task_ref(provider, task, backend)
        resolved_backend = self.backend_for(provider, backend)
        credential = self.config.api.credential_for(resolved_backend or provider.name)
        on_progress = self._progress_callback(task_id)

        if resolved_backend:
            return await provider.check_status(task_id, credential, on_progress, context, backend=resolved_backend)
        return await provider.check_status(task_id, credential, on_progress, context)

    async def wait(
        self,
        provider_name: str,
        task: Union[TaskHandle, str],
        interval: Optional[float] = None,
        timeout: Optional[float] = None,
        context: Optional[CallContext] = None,
        backend: Optional[str] = None,
    ) -> GenerationResult:
        """
        Check a task repeatedly until it completes or fails.

        Raises:
            PollTimeoutError: The task was still running at the deadline
        """
        provider = self.provider(provider_name)
        task_id, backend = self._task_ref(provider, task, backend)

        return await wait_for_terminal(
            lambda: self.check(provider_name, task_id, context, backend),
            task_id,
            interval=interval,
            timeout=timeout,
            provider=provider_name,
        )

    async def generate(
        self,
        provider_name: str,
        prompt: str,
        config: Optional[ConfigInput] = None,
        reference_image_url: Optional[str] = None,
        interval: Optional[float] = None,
        timeout: Optional[float] = None,
        backend: Optional[str] = None,
    ) -> GenerationResult:
        """Submit and wait. Generation errors are logged and re-raised."""
        try:
            handle = await self.submit(
                provider_name,
                prompt,
                config=config,
                reference_image_url=reference_image_url,
                backend=backend,
            )
            return await self.wait(provider_name, handle, interval=interval, timeout=timeout)
        except GenerationError as e:
            logger.error(f"Generation via {provider_name} failed: {e}")
            raise

    @staticmethod
    def _task_ref(
        provider: GenerationProvider,
        task: Union[TaskHandle, str],
        backend: Optional[str],
    ) -> tuple[str, Optional[str]]:
        if isinstance(task, TaskHandle):
            if isinstance(provider, Sora2Provider) and backend is None:
                backend = task.provider
            return task.id, backend
        return task, backend
