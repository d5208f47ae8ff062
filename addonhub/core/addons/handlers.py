"""
Addon handlers and the handler registry

A handler performs the actual install/uninstall for the addon types and
content types it supports. The registry keeps handlers in registration order;
the first handler that supports an addon is the one used for it.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from addonhub.core.addons.models import Addon, AddonType

logger = logging.getLogger(__name__)


class AddonHandler(ABC):
    """Installer backend for a family of addons."""

    @abstractmethod
    def supports(self, addon_type: AddonType, content_type: str) -> bool:
        pass

    @abstractmethod
    def is_installed(self, uid: str) -> bool:
        pass

    @abstractmethod
    def install(self, addon: Addon) -> None:
        """
        Install an addon.

        Raises:
            HandlerError: If installation fails
        """
        pass

    @abstractmethod
    def uninstall(self, addon: Addon) -> None:
        """
        Uninstall an addon.

        Raises:
            HandlerError: If removal fails
        """
        pass

    def is_ready(self) -> bool:
        """Whether the handler has finished restoring its own state"""
        return True

    @property
    def name(self) -> str:
        return type(self).__name__


ReadyListener = Callable[[AddonHandler], None]


class HandlerRegistry:
    """Thread-safe, ordered set of addon handlers"""

    def __init__(self, handlers: Optional[List[AddonHandler]] = None):
        self._lock = threading.RLock()
        self._handlers: List[AddonHandler] = []
        self._ready_listeners: List[ReadyListener] = []
        for handler in handlers or []:
            self.register(handler)

    def register(self, handler: AddonHandler) -> None:
        """Register a handler; registering twice is a no-op"""
        with self._lock:
            if handler in self._handlers:
                return
            self._handlers.append(handler)
        logger.info(f"Handler registered: {handler.name}")
        if handler.is_ready():
            self.handler_ready(handler)

    def unregister(self, handler: AddonHandler) -> None:
        with self._lock:
            if handler not in self._handlers:
                return
            self._handlers.remove(handler)
        logger.info(f"Handler unregistered: {handler.name}")

    def handlers(self) -> List[AddonHandler]:
        """Snapshot of registered handlers in registration order"""
        with self._lock:
            return list(self._handlers)

    def find_handler(self, addon_type: AddonType, content_type: str) -> Optional[AddonHandler]:
        for handler in self.handlers():
            if handler.supports(addon_type, content_type):
                return handler
        return None

    def all_ready(self) -> bool:
        return all(handler.is_ready() for handler in self.handlers())

    def is_installed(self, uid: str) -> bool:
        return any(handler.is_installed(uid) for handler in self.handlers())

    def add_ready_listener(self, listener: ReadyListener) -> None:
        with self._lock:
            if listener not in self._ready_listeners:
                self._ready_listeners.append(listener)

    def remove_ready_listener(self, listener: ReadyListener) -> None:
        with self._lock:
            if listener in self._ready_listeners:
                self._ready_listeners.remove(listener)

    def handler_ready(self, handler: AddonHandler) -> None:
        """Called by a handler once it has become ready"""
        with self._lock:
            listeners = list(self._ready_listeners)
        logger.debug(f"Handler ready: {handler.name}")
        for listener in listeners:
            try:
                listener(handler)
            except Exception as e:
                logger.error(f"Ready listener error ({handler.name}): {e}", exc_info=True)
