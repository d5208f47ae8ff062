"""Addon event notifier"""

import logging
from typing import Optional

from addonhub.core.events.bus import EventBus, get_event_bus
from addonhub.core.events.types import AddonEventKind, Event

logger = logging.getLogger(__name__)


class EventNotifier:
    """Turns install/uninstall outcomes into events on a bus"""

    def __init__(self, bus: Optional[EventBus] = None):
        self.bus = bus or get_event_bus()

    def publish(self, kind: AddonEventKind, uid: str, message: Optional[str] = None) -> Event:
        kind = AddonEventKind(kind)
        if kind == AddonEventKind.INSTALLED:
            event = Event.addon_installed(uid)
        elif kind == AddonEventKind.UNINSTALLED:
            event = Event.addon_uninstalled(uid)
        else:
            event = Event.addon_failed(uid, message or "Unknown failure")
            logger.info(f"Addon operation failed for {uid}: {event.message}")

        try:
            self.bus.emit(event)
        except Exception as e:
            logger.error(f"Failed to emit {event.type.value} for {uid}: {e}", exc_info=True)
        return event

    def installed(self, uid: str) -> Event:
        return self.publish(AddonEventKind.INSTALLED, uid)

    def uninstalled(self, uid: str) -> Event:
        return self.publish(AddonEventKind.UNINSTALLED, uid)

    def failed(self, uid: str, message: str) -> Event:
        return self.publish(AddonEventKind.FAILED, uid, message)
