"""AddonHub configuration"""

from addonhub.config.settings import AddonHubSettings, SettingsManager, load_settings

__all__ = ["AddonHubSettings", "SettingsManager", "load_settings"]
