"""
Generation Gateway Core Components

Infrastructure shared by the generation layer:
- Environment-driven configuration
- Per-model health breaker for fallback decisions
- Call instrumentation
"""

from .circuit_breaker import CircuitState, ModelHealthBreaker, get_model_health_breaker
from .config import Config, get_config, reload_config
from .instrumentation import with_instrumentation

__all__ = [
    "CircuitState",
    "ModelHealthBreaker",
    "get_model_health_breaker",
    "Config",
    "get_config",
    "reload_config",
    "with_instrumentation",
]
