"""
Multi-provider media generation.

Provides:
- Canonical request/result types and the error taxonomy
- Provider adapters behind one submit / check contract
- Provider registry and the sora2 model
- Caller-side polling, model fallback and the remote model catalog
"""

from .errors import (
    ConfigurationError,
    DataExtractionError,
    GenerationError,
    MissingFieldError,
    PollTimeoutError,
    ProviderError,
    TransportError,
    UnknownProviderError,
    ValidationError,
)
from .types import (
    CallContext,
    CanonicalStatus,
    GenerationConfig,
    GenerationRequest,
    GenerationResult,
    MediaCategory,
    TaskHandle,
    VideoGenerationResult,
    VideoModelConfig,
)
from .client import GenerationClient
from .polling import wait_for_terminal
from .registry import ProviderRegistry, build_default_registry, get_registry

__all__ = [
    # Errors
    "GenerationError",
    "ConfigurationError",
    "UnknownProviderError",
    "ValidationError",
    "MissingFieldError",
    "TransportError",
    "ProviderError",
    "DataExtractionError",
    "PollTimeoutError",
    # Types
    "CallContext",
    "CanonicalStatus",
    "GenerationConfig",
    "GenerationRequest",
    "GenerationResult",
    "MediaCategory",
    "TaskHandle",
    "VideoGenerationResult",
    "VideoModelConfig",
    # Orchestration
    "GenerationClient",
    "ProviderRegistry",
    "build_default_registry",
    "get_registry",
    "wait_for_terminal",
]
