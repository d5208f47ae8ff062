"""
Core Events Module - addon lifecycle events

Architecture:
- The catalog service publishes through an EventNotifier
- The notifier wraps outcomes in Event envelopes and emits them on an EventBus
- Subscribers (CLI output, loggers, integrations) never affect the caller
"""

from addonhub.core.events.types import AddonEventKind, Event, EventEntity, EventType
from addonhub.core.events.bus import EventBus, get_event_bus
from addonhub.core.events.notifier import EventNotifier

__all__ = [
    "AddonEventKind",
    "Event",
    "EventEntity",
    "EventType",
    "EventBus",
    "get_event_bus",
    "EventNotifier",
]
