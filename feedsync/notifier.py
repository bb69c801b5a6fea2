"""
Change notifier - in-process publish/subscribe for data changes.

Three channels exist: categories changed, feeds changed, and update progress.
Delivery is fire-and-forget and at most once per observer subscribed at the
moment of emission. Nothing is buffered: an event emitted while nobody is
subscribed is lost. Emitting and (un)subscribing are safe from any thread;
callbacks run synchronously on the emitting thread.
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

logger = logging.getLogger(__name__)


class Channel(str, Enum):
    CATEGORIES_CHANGED = "categories_changed"
    FEEDS_CHANGED = "feeds_changed"
    UPDATE_PROGRESS = "update_progress"


@dataclass(frozen=True)
class FeedUpdateProgress:
    """Progress of a batch update, published on UPDATE_PROGRESS."""
    total_feeds: int
    processed_feeds: int
    successful_feeds: int
    failed_feeds: int
    current_feed_title: str | None = None

    @property
    def percentage(self) -> int:
        if self.total_feeds <= 0:
            return 0
        return self.processed_feeds * 100 // self.total_feeds


class Subscription:
    """Handle returned by subscribe(); usable as a context manager."""

    def __init__(self, notifier: "ChangeNotifier", channel: Channel, callback: Callable):
        self._notifier = notifier
        self.channel = channel
        self.callback = callback
        self.active = True

    def unsubscribe(self):
        if self.active:
            self._notifier._remove(self)
            self.active = False

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info):
        self.unsubscribe()


class ChangeNotifier:
    """Observer registry with explicit subscribe/unsubscribe lifetimes."""

    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers: dict[Channel, list[Subscription]] = {
            channel: [] for channel in Channel
        }

    def subscribe(self, channel: Channel, callback: Callable) -> Subscription:
        """
        Register a callback on a channel.

        CATEGORIES_CHANGED and FEEDS_CHANGED callbacks take no arguments;
        UPDATE_PROGRESS callbacks receive a FeedUpdateProgress.
        """
        subscription = Subscription(self, Channel(channel), callback)
        with self._lock:
            self._subscribers[subscription.channel].append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription):
        subscription.unsubscribe()

    def subscriber_count(self, channel: Channel) -> int:
        with self._lock:
            return len(self._subscribers[Channel(channel)])

    def notify_categories_changed(self):
        self._emit(Channel.CATEGORIES_CHANGED)

    def notify_feeds_changed(self):
        self._emit(Channel.FEEDS_CHANGED)

    def notify_progress(self, progress: FeedUpdateProgress):
        self._emit(Channel.UPDATE_PROGRESS, progress)

    def _remove(self, subscription: Subscription):
        with self._lock:
            subscribers = self._subscribers[subscription.channel]
            if subscription in subscribers:
                subscribers.remove(subscription)

    def _emit(self, channel: Channel, *args: Any):
        with self._lock:
            targets = list(self._subscribers[channel])

        for subscription in targets:
            # Skip observers that unsubscribed after the snapshot was taken
            if not subscription.active:
                continue
            try:
                subscription.callback(*args)
            except Exception:
                logger.exception(f"Observer on {channel.value} raised")
