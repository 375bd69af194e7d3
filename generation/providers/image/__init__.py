from .fal import FalImageProvider
from .kie_gpt4o import KieGpt4oProvider
from .kie_market import KieImageProvider

__all__ = ["KieImageProvider", "KieGpt4oProvider", "FalImageProvider"]
