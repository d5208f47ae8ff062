"""
Event Types - addon event envelope

Protocol:
{
  "type": "addon.installed",
  "ts": "2026-01-27T10:21:33.123Z",
  "source": "core",
  "entity": {
    "kind": "addon",
    "id": "marketplace:binding:mqtt"
  },
  "payload": {}
}
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Literal, Optional


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class EventType(str, Enum):
    """Event type enum (domain.action format)"""

    ADDON_INSTALLED = "addon.installed"
    ADDON_UNINSTALLED = "addon.uninstalled"
    ADDON_FAILED = "addon.failed"


class AddonEventKind(str, Enum):
    """Outcome of an install or uninstall request"""

    INSTALLED = "installed"
    UNINSTALLED = "uninstalled"
    FAILED = "failed"

    @property
    def event_type(self) -> EventType:
        return EventType(f"addon.{self.value}")


@dataclass
class EventEntity:
    """Event entity (what the event is about)"""

    kind: Literal["addon"]
    id: str

    def to_dict(self) -> Dict[str, str]:
        """Convert to dict"""
        return {"kind": self.kind, "id": self.id}


@dataclass
class Event:
    """
    Unified event envelope

    All addon events use this structure for consistency.
    """

    type: EventType
    source: Literal["core", "cli"] = "core"
    entity: Optional[EventEntity] = None
    payload: Dict[str, Any] = field(default_factory=dict)
    ts: str = field(default_factory=utc_now_iso)

    @property
    def uid(self) -> Optional[str]:
        return self.entity.id if self.entity else None

    @property
    def message(self) -> Optional[str]:
        return self.payload.get("message")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization"""
        return {
            "type": self.type.value,
            "ts": self.ts,
            "source": self.source,
            "entity": self.entity.to_dict() if self.entity else None,
            "payload": self.payload,
        }

    @classmethod
    def addon_installed(cls, uid: str) -> "Event":
        """Create addon.installed event"""
        return cls(
            type=EventType.ADDON_INSTALLED,
            entity=EventEntity(kind="addon", id=uid),
        )

    @classmethod
    def addon_uninstalled(cls, uid: str) -> "Event":
        """Create addon.uninstalled event"""
        return cls(
            type=EventType.ADDON_UNINSTALLED,
            entity=EventEntity(kind="addon", id=uid),
        )

    @classmethod
    def addon_failed(cls, uid: str, message: str) -> "Event":
        """Create addon.failed event"""
        return cls(
            type=EventType.ADDON_FAILED,
            entity=EventEntity(kind="addon", id=uid),
            payload={"message": message},
        )
