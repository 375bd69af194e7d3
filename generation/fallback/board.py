"""
Headless notification board.

Models what a presentation layer does with fallback events: accumulate them,
let the user dismiss one, and drop each after a fixed display window. It
renders nothing; a UI polls `active()`.
"""

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Optional

from .events import FallbackChannel, FallbackEvent, Subscription

logger = logging.getLogger(__name__)

CATEGORY_LABELS = {
    "image": "Image generation",
    "video": "Video generation",
    "text": "Text generation",
    "audio": "Audio generation",
}


def message_for(event: FallbackEvent) -> str:
    """User-facing text; quota exhaustion is phrased differently from failure."""
    label = CATEGORY_LABELS.get(event.category.value, event.category.value)
    what = "ran out of quota" if event.is_quota else "failed"
    return f"{label}: model {event.from_model} {what}, switched to {event.to_model}"


@dataclass(frozen=True)
class Notification:
    event: FallbackEvent
    received_at: float
    message: str

    @property
    def id(self) -> str:
        return self.event.event_id


class NotificationBoard:
    """
    Bounded list of recent fallback notifications with timed expiry.

    Usage:
        board = NotificationBoard(get_fallback_channel())
        for notification in board.active():
            show(notification.message)
        board.dismiss(notification.id)
    """

    def __init__(
        self,
        channel: Optional[FallbackChannel] = None,
        max_size: Optional[int] = None,
        display_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_size is None or display_seconds is None:
            from core.config import get_config

            fallback = get_config().fallback
            max_size = max_size or fallback.board_size
            display_seconds = display_seconds if display_seconds is not None else fallback.display_seconds

        self.display_seconds = display_seconds
        self._clock = clock
        self._items: deque[Notification] = deque(maxlen=max_size)
        self._lock = threading.Lock()
        self._subscription: Optional[Subscription] = channel.subscribe(self.push) if channel else None

    def push(self, event: FallbackEvent) -> Notification:
        notification = Notification(event=event, received_at=self._clock(), message=message_for(event))
        with self._lock:
            self._items.append(notification)
        return notification

    def active(self, now: Optional[float] = None) -> list[Notification]:
        """Notifications still inside the display window; expired ones are dropped."""
        now = self._clock() if now is None else now
        with self._lock:
            kept = [n for n in self._items if now - n.received_at < self.display_seconds]
            expired = len(self._items) - len(kept)
            self._items.clear()
            self._items.extend(kept)

        if expired:
            logger.debug(f"Expired {expired} fallback notification(s)")
        return kept

    def dismiss(self, event_id: str) -> bool:
        with self._lock:
            for notification in self._items:
                if notification.id == event_id:
                    self._items.remove(notification)
                    return True
        return False

    def clear(self):
        with self._lock:
            self._items.clear()

    def close(self):
        """Stop receiving events from the channel."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
