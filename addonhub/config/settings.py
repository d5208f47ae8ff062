"""AddonHub Settings: catalog configuration"""

import json
import logging
import os
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Dict, Optional

from addonhub.core.storage.paths import settings_path as default_settings_path

logger = logging.getLogger(__name__)

_TRUE = {"true", "1", "yes", "on"}
_FALSE = {"false", "0", "no", "off"}

# Environment variable -> settings field
ENV_OVERRIDES = {
    "ADDONHUB_REMOTE": "remote_enabled",
    "ADDONHUB_INCLUDE_INCOMPATIBLE": "include_incompatible",
    "ADDONHUB_CATALOG_URL": "catalog_url",
    "ADDONHUB_CORE_VERSION": "core_version",
}


def parse_bool(value, default: bool) -> bool:
    """Lenient boolean parsing; unknown values yield the default"""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    return default


@dataclass
class AddonHubSettings:
    """AddonHub settings"""

    # Catalog policy
    remote_enabled: bool = True
    include_incompatible: bool = False

    # Remote catalog
    catalog_url: str = ""
    service_id: str = "marketplace"
    core_version: str = "4.0.0"
    cache_ttl_seconds: int = 900
    request_timeout_seconds: int = 30

    # Storage root (empty: ~/.addonhub)
    data_dir: str = ""

    def to_dict(self) -> Dict:
        """Convert to dictionary"""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict) -> "AddonHubSettings":
        """Create from dictionary"""
        defaults = cls()
        return cls(
            remote_enabled=parse_bool(data.get("remote_enabled", True), defaults.remote_enabled),
            include_incompatible=parse_bool(data.get("include_incompatible", False), defaults.include_incompatible),
            catalog_url=str(data.get("catalog_url", defaults.catalog_url) or ""),
            service_id=str(data.get("service_id", defaults.service_id) or defaults.service_id),
            core_version=str(data.get("core_version", defaults.core_version) or defaults.core_version),
            cache_ttl_seconds=int(data.get("cache_ttl_seconds", defaults.cache_ttl_seconds)),
            request_timeout_seconds=int(data.get("request_timeout_seconds", defaults.request_timeout_seconds)),
            data_dir=str(data.get("data_dir", defaults.data_dir) or ""),
        )

    def apply_env(self, environ: Optional[Dict[str, str]] = None) -> "AddonHubSettings":
        """Apply ADDONHUB_* environment overrides in place"""
        environ = os.environ if environ is None else environ
        types = {f.name: f.type for f in fields(self)}
        for env_name, field_name in ENV_OVERRIDES.items():
            if env_name not in environ:
                continue
            raw = environ[env_name]
            if types[field_name] is bool:
                setattr(self, field_name, parse_bool(raw, getattr(self, field_name)))
            else:
                setattr(self, field_name, raw)
        return self


class SettingsManager:
    """Manage settings persistence"""

    def __init__(self, settings_path: Optional[Path] = None):
        """Initialize settings manager"""
        self.settings_path = Path(settings_path) if settings_path else default_settings_path()

    def load(self) -> AddonHubSettings:
        """Load settings from file, falling back to defaults"""
        if not self.settings_path.exists():
            return AddonHubSettings()

        try:
            with open(self.settings_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return AddonHubSettings.from_dict(data)
        except Exception as e:
            logger.warning(f"Failed to load settings from {self.settings_path}: {e}")
            return AddonHubSettings()

    def save(self, settings: AddonHubSettings) -> None:
        """Save settings to file"""
        self.settings_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.settings_path, "w", encoding="utf-8") as f:
            json.dump(settings.to_dict(), f, indent=2)

    def update(self, **changes) -> AddonHubSettings:
        """Update and persist selected fields"""
        settings = self.load()
        for name, value in changes.items():
            if not hasattr(settings, name):
                raise KeyError(f"Unknown setting: {name}")
            setattr(settings, name, value)
        self.save(settings)
        return settings


def load_settings(settings_path: Optional[Path] = None) -> AddonHubSettings:
    """Load settings from file with environment overrides applied"""
    return SettingsManager(settings_path).load().apply_env()
