"""Data models for the addon catalog"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AddonType(str, Enum):
    """Kinds of addons a catalog can offer"""
    AUTOMATION = "automation"
    BINDING = "binding"
    MISC = "misc"
    PERSISTENCE = "persistence"
    TRANSFORMATION = "transformation"
    UI = "ui"
    VOICE = "voice"

    @property
    def label(self) -> str:
        """Human readable label"""
        return _TYPE_LABELS[self]


_TYPE_LABELS = {
    AddonType.AUTOMATION: "Automation",
    AddonType.BINDING: "Bindings",
    AddonType.MISC: "Misc",
    AddonType.PERSISTENCE: "Persistence",
    AddonType.TRANSFORMATION: "Transformations",
    AddonType.UI: "User Interfaces",
    AddonType.VOICE: "Voice",
}


def build_uid(service_id: str, addon_type: AddonType, addon_id: str) -> str:
    """Build the catalog-wide uid ``<serviceId>:<type>:<id>``"""
    return f"{service_id}:{AddonType(addon_type).value}:{addon_id}"


class Addon(BaseModel):
    """
    An installable addon as seen by the catalog.

    Instances are immutable. The reconciler derives annotated copies through
    ``with_installed``.
    """
    model_config = ConfigDict(frozen=True)

    uid: str = Field(description="Unique id, <serviceId>:<type>:<id>")
    type: AddonType
    id: str
    content_type: str = ""
    version: str = ""
    installed: bool = False
    compatible: bool = True
    label: str = ""
    description: str = ""
    detailed_description: str = ""
    link: Optional[str] = None
    image_link: Optional[str] = None
    author: str = ""
    maturity: Optional[str] = None
    properties: Dict[str, Any] = Field(default_factory=dict)

    @field_validator('uid')
    @classmethod
    def validate_uid(cls, v: str) -> str:
        """Validate uid shape"""
        if not v or v.count(":") < 2:
            raise ValueError(f"Addon uid must look like '<service>:<type>:<id>', got '{v}'")
        return v

    def with_installed(self, installed: bool) -> "Addon":
        """Return a copy with the installed flag set"""
        if self.installed == installed:
            return self
        return self.model_copy(update={"installed": installed})

    def to_record(self) -> str:
        """Serialize for the installed-record store"""
        return self.model_dump_json()

    @classmethod
    def from_record(cls, value: str) -> "Addon":
        """Deserialize a stored record (raises pydantic.ValidationError)"""
        return cls.model_validate_json(value)
