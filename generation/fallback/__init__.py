"""
Model fallback and notification.

Detects unusable models, switches to a substitute from the catalog and
announces every switch on the "model-fallback" channel.
"""

from .board import Notification, NotificationBoard, message_for
from .catalog import ModelCatalog, ModelInfo, get_model_catalog, is_quota_error
from .events import (
    FALLBACK_TOPIC,
    FallbackChannel,
    FallbackEvent,
    FallbackReason,
    Subscription,
    get_fallback_channel,
    publish_fallback,
)
from .executor import ModelExecutionResult, execute_with_fallback

__all__ = [
    "FALLBACK_TOPIC",
    "FallbackChannel",
    "FallbackEvent",
    "FallbackReason",
    "Subscription",
    "get_fallback_channel",
    "publish_fallback",
    "Notification",
    "NotificationBoard",
    "message_for",
    "ModelCatalog",
    "ModelInfo",
    "get_model_catalog",
    "is_quota_error",
    "ModelExecutionResult",
    "execute_with_fallback",
]
