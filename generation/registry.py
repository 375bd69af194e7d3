"""
Provider registry.

A closed, enumerable name -> adapter map. Lookups for unregistered names
fail loudly with the list of what is available instead of returning None.

Usage:
    registry = build_default_registry()
    provider = registry.get("dayuapi")
    registry.names()  # ["sutu", "yunwu", "dayuapi", "kie", ...]
"""

import logging
import re
from typing import Iterable, Iterator, Optional

from .errors import ConfigurationError, UnknownProviderError
from .providers.base import GenerationProvider
from .providers.image import FalImageProvider, KieGpt4oProvider, KieImageProvider
from .providers.video import DayuapiProvider, KieProvider, SutuProvider, YunwuProvider
from .transport import ProxyTransport
from .types import MediaCategory

logger = logging.getLogger(__name__)

_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_]*$")

SORA_BACKENDS = ("sutu", "yunwu", "dayuapi", "kie")


class ProviderRegistry:
    """Name -> adapter map with registration-order enumeration."""

    def __init__(self, providers: Iterable[GenerationProvider] = ()):
        self._providers: dict[str, GenerationProvider] = {}
        for provider in providers:
            self.register(provider)

    def register(self, provider: GenerationProvider) -> GenerationProvider:
        """
        Add an adapter.

        Raises:
            ConfigurationError: Invalid or duplicate provider name
        """
        name = provider.name
        if not name or not _NAME_PATTERN.match(name):
            raise ConfigurationError(
                f"Invalid provider name: {name!r}",
                error_code="INVALID_PROVIDER_NAME",
                provider=name or None,
            )
        if name in self._providers:
            raise ConfigurationError(
                f"Provider already registered: {name}",
                error_code="DUPLICATE_PROVIDER",
                provider=name,
            )
        self._providers[name] = provider
        logger.debug(f"Registered provider {name} ({provider.display_name})")
        return provider

    def get(self, name: str) -> GenerationProvider:
        provider = self._providers.get(name)
        if provider is None:
            raise UnknownProviderError(name, self.names())
        return provider

    def names(self, category: Optional[MediaCategory] = None) -> list[str]:
        return [p.name for p in self.all(category)]

    def all(self, category: Optional[MediaCategory] = None) -> list[GenerationProvider]:
        providers = list(self._providers.values())
        if category is not None:
            providers = [p for p in providers if p.category == category]
        return providers

    def is_available(self, name: str) -> bool:
        return name in self._providers

    def __contains__(self, name: object) -> bool:
        return name in self._providers

    def __iter__(self) -> Iterator[GenerationProvider]:
        return iter(list(self._providers.values()))

    def __len__(self) -> int:
        return len(self._providers)


def build_sora_backends(transport: Optional[ProxyTransport] = None) -> ProviderRegistry:
    """The Sora backends selectable behind the sora2 model."""
    return ProviderRegistry([
        SutuProvider(transport),
        YunwuProvider(transport),
        DayuapiProvider(transport),
        KieProvider(transport),
    ])


def build_default_registry(transport: Optional[ProxyTransport] = None) -> ProviderRegistry:
    """Every adapter plus the sora2 model, sharing one transport."""
    from .providers.sora2 import Sora2Provider

    registry = build_sora_backends(transport)
    registry.register(KieImageProvider(transport))
    registry.register(KieGpt4oProvider(transport))
    registry.register(FalImageProvider(transport))
    registry.register(Sora2Provider(backends=build_sora_backends(transport), transport=transport))
    return registry


# Global registry instance
_registry: Optional[ProviderRegistry] = None


def get_registry() -> ProviderRegistry:
    """Get the process-wide registry."""
    global _registry
    if _registry is None:
        _registry = build_default_registry()
    return _registry
