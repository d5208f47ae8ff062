"""Catalog policy: which sources are consulted and what is shown"""

import logging
from dataclasses import dataclass
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AddonPolicy:
    """Per-cycle catalog policy"""
    remote_enabled: bool = True
    include_incompatible: bool = False


class PolicySource(Protocol):
    def load(self) -> AddonPolicy:
        ...


class StaticPolicySource:
    """Always returns the same policy"""

    def __init__(self, policy: AddonPolicy = AddonPolicy()):
        self.policy = policy

    def load(self) -> AddonPolicy:
        return self.policy


class SettingsPolicySource:
    """
    Derives the policy from settings, re-read on every call.

    A read failure yields the default policy.
    """

    def __init__(self, settings_loader: Callable):
        """
        Args:
            settings_loader: Returns an object with remote_enabled and
                include_incompatible attributes
        """
        self._settings_loader = settings_loader

    def load(self) -> AddonPolicy:
        try:
            settings = self._settings_loader()
            return AddonPolicy(
                remote_enabled=bool(settings.remote_enabled),
                include_incompatible=bool(settings.include_incompatible),
            )
        except Exception as e:
            logger.debug(f"Failed to read catalog policy, using defaults: {e}")
            return AddonPolicy()
