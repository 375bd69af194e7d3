"""
Model fallback events and the process-wide channel that carries them.

Whoever decides to switch models publishes exactly one FallbackEvent per
switch. Subscribers receive every event published after they subscribed,
in publication order, once. There is no replay and no persistence, and the
publisher never learns who is listening.
"""

import logging
import threading
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from ..types import MediaCategory

logger = logging.getLogger(__name__)

FALLBACK_TOPIC = "model-fallback"


class FallbackReason(str, Enum):
    QUOTA_EXHAUSTED = "quota exhausted"
    MODEL_CALL_FAILED = "model call failed"
    RECENT_FAILURES = "recent failures"


class FallbackEvent(BaseModel):
    """A one-shot record that a model substitution happened."""
    model_config = ConfigDict(frozen=True)

    event_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    category: MediaCategory
    from_model: str
    to_model: str
    reason: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_quota(self) -> bool:
        return self.reason == FallbackReason.QUOTA_EXHAUSTED.value

    def to_detail(self) -> dict[str, str]:
        """Payload shape delivered on the model-fallback topic."""
        return {
            "category": self.category.value,
            "from": self.from_model,
            "to": self.to_model,
            "reason": self.reason,
        }


Subscriber = Callable[[FallbackEvent], None]


class Subscription:
    """Handle returned by FallbackChannel.subscribe."""

    def __init__(self, channel: "FallbackChannel", callback: Subscriber):
        self._channel = channel
        self.callback = callback
        self.active = True

    def unsubscribe(self):
        if self.active:
            self._channel._remove(self)
            self.active = False


class FallbackChannel:
    """
    Publish/subscribe channel for the model-fallback topic.

    Usage:
        channel = get_fallback_channel()
        subscription = channel.subscribe(lambda event: print(event.to_detail()))
        channel.publish(FallbackEvent(category="image", from_model="a", to_model="b",
                                      reason="quota exhausted"))
        subscription.unsubscribe()
    """

    topic = FALLBACK_TOPIC

    def __init__(self):
        self._subscriptions: list[Subscription] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Subscriber) -> Subscription:
        subscription = Subscription(self, callback)
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def _remove(self, subscription: Subscription):
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def publish(self, event: FallbackEvent) -> int:
        """
        Deliver an event to current subscribers.

        A subscriber that raises is logged and skipped; the rest still
        receive the event.

        Returns:
            Number of subscribers that handled the event without raising
        """
        with self._lock:
            subscriptions = list(self._subscriptions)

        logger.info(
            f"[{self.topic}] {event.category.value}: {event.from_model} -> {event.to_model} ({event.reason})"
        )

        delivered = 0
        for subscription in subscriptions:
            try:
                subscription.callback(event)
                delivered += 1
            except Exception as e:
                logger.error(f"[{self.topic}] Subscriber {subscription.callback!r} failed: {e}")
        return delivered


def publish_fallback(
    category: Union[MediaCategory, str],
    from_model: str,
    to_model: str,
    reason: Union[FallbackReason, str],
    channel: Optional[FallbackChannel] = None,
) -> FallbackEvent:
    """Build a FallbackEvent and publish it on `channel` (default: process-wide)."""
    event = FallbackEvent(
        category=MediaCategory(category),
        from_model=from_model,
        to_model=to_model,
        reason=reason.value if isinstance(reason, FallbackReason) else reason,
    )
    (channel or get_fallback_channel()).publish(event)
    return event


# Global channel instance
_channel: Optional[FallbackChannel] = None
_channel_lock = threading.Lock()


def get_fallback_channel() -> FallbackChannel:
    """Get the process-wide fallback channel."""
    global _channel
    with _channel_lock:
        if _channel is None:
            _channel = FallbackChannel()
        return _channel
