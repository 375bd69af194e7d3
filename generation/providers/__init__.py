"""
Provider adapters.

- video: Sora backends (sutu, yunwu, dayuapi, kie)
- image: Kie Market, Kie GPT-4o and fal queue image models
- sora2: the user-facing video model delegating to a Sora backend
"""

from .base import GenerationProvider, ProviderCapabilities
from .image import FalImageProvider, KieGpt4oProvider, KieImageProvider
from .sora2 import Sora2Provider
from .video import DayuapiProvider, KieProvider, SutuProvider, YunwuProvider

__all__ = [
    "GenerationProvider",
    "ProviderCapabilities",
    "SutuProvider",
    "YunwuProvider",
    "DayuapiProvider",
    "KieProvider",
    "KieImageProvider",
    "KieGpt4oProvider",
    "FalImageProvider",
    "Sora2Provider",
]
