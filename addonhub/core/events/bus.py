"""
Event Bus - Central event broadcasting system

Architecture:
- Process-wide default instance (get_event_bus())
- Subscriber pattern (callback-based)
- Synchronous delivery on the emitting thread
"""

import logging
import threading
from typing import Callable, List, Optional

from addonhub.core.events.types import Event

logger = logging.getLogger(__name__)


class EventBus:
    """
    Central event bus

    Zero coupling: Core emits events, CLI/loggers subscribe.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers: List[Callable[[Event], None]] = []

    def subscribe(self, callback: Callable[[Event], None]):
        """
        Subscribe to all events

        Callback will be invoked on every event emission.
        """
        with self._lock:
            if callback not in self._subscribers:
                self._subscribers.append(callback)
                logger.debug(f"Subscriber registered: {_name(callback)}")

    def unsubscribe(self, callback: Callable):
        """Unsubscribe from events"""
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)
                logger.debug(f"Subscriber unregistered: {_name(callback)}")

    def emit(self, event: Event):
        """
        Emit event to all subscribers

        Subscriber errors are logged and never reach the emitter.
        """
        logger.debug(f"Event emitted: {event.type.value} (entity: {event.entity.id if event.entity else 'N/A'})")

        with self._lock:
            subscribers = list(self._subscribers)

        for callback in subscribers:
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Subscriber error ({_name(callback)}): {e}", exc_info=True)

    def subscriber_count(self) -> int:
        """Get subscriber count (for monitoring)"""
        return len(self._subscribers)


def _name(callback: Callable) -> str:
    return getattr(callback, "__name__", repr(callback))


_global_bus: Optional[EventBus] = None
_global_lock = threading.Lock()


def get_event_bus() -> EventBus:
    """Get the process-wide EventBus instance"""
    global _global_bus
    if _global_bus is None:
        with _global_lock:
            if _global_bus is None:
                _global_bus = EventBus()
                logger.debug("EventBus created")
    return _global_bus
