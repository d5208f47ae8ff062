"""
Remote addon service - reconciles installed records, handler state and a
remote catalog into one addon list.

Every catalog read runs a reconciliation cycle:

1. Skip the cycle until every handler is ready
2. Load installed records; any unreadable record purges the whole namespace
3. Drop records whose addon no handler reports as installed (queued for reinstall)
4. Merge the cached remote catalog when remote access is enabled
5. Filter incompatible entries and keep one entry per uid
6. Publish the result as an immutable snapshot

Example:
    from addonhub.core.addons import HandlerRegistry, MemoryRecordStore, RemoteAddonService

    service = RemoteAddonService(
        service_id="marketplace",
        record_store=MemoryRecordStore(),
        registry=HandlerRegistry([my_handler]),
        remote_fetch=fetcher,
    )
    for addon in service.get_addons():
        print(addon.uid, addon.installed)
"""

import logging
import threading
import time
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, FrozenSet, List, Optional, Set, Tuple

from addonhub.core.addons.cache import CACHE_TTL_SECONDS, ExpiringCache
from addonhub.core.addons.exceptions import HandlerError
from addonhub.core.addons.handlers import AddonHandler, HandlerRegistry
from addonhub.core.addons.merge import merge_addons
from addonhub.core.addons.models import Addon, AddonType
from addonhub.core.addons.policy import AddonPolicy, PolicySource, StaticPolicySource
from addonhub.core.addons.records import RecordStore
from addonhub.core.events import Event, EventNotifier, EventType

logger = logging.getLogger(__name__)

MSG_NOT_KNOWN_INSTALL = "Add-on can't be installed because it is not known."
MSG_NO_HANDLER_INSTALL = "Add-on can't be installed because there is no handler for it."
MSG_ALREADY_INSTALLED = "Add-on is already installed."
MSG_NOT_KNOWN_UNINSTALL = "Add-on can't be uninstalled because it is not known."
MSG_NO_HANDLER_UNINSTALL = "Add-on can't be uninstalled because there is no handler for it."
MSG_NOT_INSTALLED = "Add-on is not installed."


class ReconcileStatus(str, Enum):
    PUBLISHED = "published"
    NOT_READY = "not_ready"
    PURGED = "purged"


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of one reconciliation cycle"""
    status: ReconcileStatus
    addons: Tuple[Addon, ...] = ()
    missing_uids: Tuple[str, ...] = ()
    purged_uids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class _Snapshot:
    addons: Tuple[Addon, ...] = ()
    installed_uids: FrozenSet[str] = frozenset()

    def find(self, uid: str) -> Optional[Addon]:
        for addon in self.addons:
            if addon.uid == uid:
                return addon
        return None


class RemoteAddonService:
    """Addon catalog backed by installed records and a remote catalog"""

    def __init__(
        self,
        service_id: str,
        record_store: RecordStore,
        registry: Optional[HandlerRegistry] = None,
        notifier: Optional[EventNotifier] = None,
        policy_source: Optional[PolicySource] = None,
        remote_fetch: Optional[Callable[[], List[Addon]]] = None,
        remote_lookup: Optional[Callable[[str], Optional[Addon]]] = None,
        executor: Optional[Executor] = None,
        cache_ttl_seconds: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            service_id: Uid prefix and record namespace of this catalog
            record_store: Store of installed addon records
            registry: Handlers performing install/uninstall
            notifier: Receives install/uninstall outcomes
            policy_source: Read at the start of every cycle
            remote_fetch: Returns the full remote catalog; may raise
            remote_lookup: Resolves a single uid remotely; may raise
            executor: Runs reinstall jobs and handler-ready refreshes
            cache_ttl_seconds: Freshness window of the remote catalog
            clock: Monotonic time source for the remote cache
        """
        self.service_id = service_id
        self.record_store = record_store
        self.registry = registry or HandlerRegistry()
        self.notifier = notifier or EventNotifier()
        self.policy_source = policy_source or StaticPolicySource()
        self._remote_lookup = remote_lookup
        self.cache: ExpiringCache[Addon] = ExpiringCache(
            remote_fetch or (lambda: []),
            ttl_seconds=cache_ttl_seconds,
            clock=clock,
            name=service_id,
        )

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix=f"addonhub-{service_id}"
        )
        self._closed = False

        self._snapshot_lock = threading.Lock()
        self._snapshot: Optional[_Snapshot] = None
        self._repair_lock = threading.Lock()
        self._repairing: Set[str] = set()

        self.registry.add_ready_listener(self._on_handler_ready)

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    def refresh_source(self) -> ReconcileResult:
        """Run one reconciliation cycle and publish its result"""
        if not self.registry.all_ready():
            logger.debug(f"[{self.service_id}] Handlers not ready, skipping catalog refresh")
            return ReconcileResult(ReconcileStatus.NOT_READY)

        policy = self._load_policy()

        local, unreadable = self._load_records()
        if unreadable:
            purged = self._purge_records(unreadable)
            return ReconcileResult(ReconcileStatus.PURGED, purged_uids=purged)

        installed: List[Addon] = []
        missing: List[Addon] = []
        for addon in local:
            if self.registry.is_installed(addon.uid):
                installed.append(addon.with_installed(True))
            else:
                missing.append(addon.with_installed(False))
        for addon in missing:
            self.record_store.remove(addon.uid)
        if missing:
            logger.info(
                f"[{self.service_id}] Installed records without installed addon: "
                f"{', '.join(a.uid for a in missing)}"
            )

        remote: List[Addon] = []
        if policy.remote_enabled:
            try:
                remote = self.cache.get_value()
            except Exception as e:
                logger.warning(f"[{self.service_id}] Remote catalog unavailable, using local view: {e}")

        merged = merge_addons(
            installed,
            remote,
            include_incompatible=policy.include_incompatible,
            is_installed=self.registry.is_installed,
        )

        snapshot = _Snapshot(
            addons=tuple(merged),
            installed_uids=frozenset(a.uid for a in merged if a.installed),
        )
        with self._snapshot_lock:
            self._snapshot = snapshot

        if missing:
            self._schedule_repair(missing)

        return ReconcileResult(
            ReconcileStatus.PUBLISHED,
            addons=snapshot.addons,
            missing_uids=tuple(a.uid for a in missing),
        )

    def _load_policy(self) -> AddonPolicy:
        try:
            return self.policy_source.load()
        except Exception as e:
            logger.debug(f"[{self.service_id}] Policy unavailable, using defaults: {e}")
            return AddonPolicy()

    def _load_records(self) -> Tuple[List[Addon], List[str]]:
        addons: List[Addon] = []
        unreadable: List[str] = []
        for key, value in self.record_store.get_all():
            if value is None:
                unreadable.append(key)
                continue
            try:
                addons.append(Addon.from_record(value))
            except ValueError as e:
                logger.debug(f"[{self.service_id}] Unreadable record '{key}': {e}")
                unreadable.append(key)
        return addons, unreadable

    def _purge_records(self, unreadable: List[str]) -> Tuple[str, ...]:
        keys = sorted(self.record_store.keys())
        logger.error(
            f"[{self.service_id}] Failed to read {len(unreadable)} installed addon record(s) "
            f"({', '.join(sorted(unreadable))}), removing all {len(keys)} record(s)"
        )
        for key in keys:
            self.record_store.remove(key)
        logger.warning(
            f"[{self.service_id}] Removed installed addon records, these addons must be "
            f"reinstalled manually: {', '.join(keys)}"
        )
        return tuple(keys)

    def _current(self) -> _Snapshot:
        with self._snapshot_lock:
            return self._snapshot or _Snapshot()

    def _refresh_quietly(self) -> None:
        try:
            self.refresh_source()
        except Exception as e:
            logger.error(f"[{self.service_id}] Catalog refresh failed: {e}", exc_info=True)

    # ------------------------------------------------------------------
    # Repair and background work
    # ------------------------------------------------------------------

    def _schedule_repair(self, missing: List[Addon]) -> None:
        with self._repair_lock:
            pending = [a for a in missing if a.uid not in self._repairing]
            self._repairing.update(a.uid for a in pending)
        if not pending:
            return
        logger.info(
            f"[{self.service_id}] Scheduling reinstall of {len(pending)} addon(s): "
            f"{', '.join(a.uid for a in pending)}"
        )
        stored = {a.uid: a for a in pending}
        if not self._submit(self._repair, stored):
            with self._repair_lock:
                self._repairing.difference_update(stored)

    def _repair(self, stored: Dict[str, Addon]) -> None:
        """
        Reinstall addons whose records were dropped as drifted.

        Each uid is resolved like a user install (published snapshot, then
        remote). The dropped record is used only when nothing resolves.
        """
        logger.info(f"[{self.service_id}] Re-installing missing addons from remote repository")
        for uid, record in stored.items():
            try:
                if uid in self._current().installed_uids:
                    logger.debug(f"[{self.service_id}] {uid} is installed again, skipping reinstall")
                    continue
                addon = self.get_addon(uid)
                if addon is None:
                    logger.debug(f"[{self.service_id}] {uid} not resolvable, reinstalling from its record")
                    addon = record
                event = self._install_addon(addon.with_installed(False))
                if event.type == EventType.ADDON_FAILED:
                    logger.warning(f"[{self.service_id}] Reinstall of {uid} failed: {event.message}")
            except Exception as e:
                logger.warning(f"[{self.service_id}] Reinstall of {uid} failed: {e}", exc_info=True)
            finally:
                with self._repair_lock:
                    self._repairing.discard(uid)

    def _on_handler_ready(self, handler: AddonHandler) -> None:
        logger.debug(f"[{self.service_id}] {handler.name} became ready, scheduling refresh")
        self._submit(self._refresh_quietly)

    def _submit(self, fn: Callable, *args) -> bool:
        if self._closed:
            logger.debug(f"[{self.service_id}] Service closed, dropping background job")
            return False
        try:
            self._executor.submit(fn, *args)
            return True
        except RuntimeError as e:
            logger.debug(f"[{self.service_id}] Cannot schedule background job: {e}")
            return False

    # ------------------------------------------------------------------
    # Public surface
    # ------------------------------------------------------------------

    def get_addons(self, locale: Optional[str] = None) -> List[Addon]:
        """
        Get the reconciled addon list.

        Args:
            locale: Accepted for API compatibility; localization is done by fetchers

        Returns:
            Addons, one per uid
        """
        self._refresh_quietly()
        return list(self._current().addons)

    def get_addon(self, uid: str, locale: Optional[str] = None) -> Optional[Addon]:
        """
        Get a single addon by uid.

        The last published snapshot is consulted first, then the remote
        catalog when remote access is enabled. Unprefixed uids are accepted.
        """
        uid = self._normalize_uid(uid)
        with self._snapshot_lock:
            published = self._snapshot is not None
        if not published:
            self._refresh_quietly()

        addon = self._current().find(uid)
        if addon is not None:
            return addon
        if not self._load_policy().remote_enabled:
            return None

        try:
            if self._remote_lookup is not None:
                addon = self._remote_lookup(uid)
            else:
                addon = next((a for a in self.cache.get_value() if a.uid == uid), None)
        except Exception as e:
            logger.warning(f"[{self.service_id}] Remote lookup of {uid} failed: {e}")
            return None
        if addon is None:
            return None
        return addon.with_installed(self.registry.is_installed(addon.uid))

    def get_types(self, locale: Optional[str] = None) -> List[AddonType]:
        return list(AddonType)

    def install(self, uid: str) -> Event:
        """
        Install an addon. Never raises; the outcome is published as an event.

        Returns:
            The published event
        """
        uid = self._normalize_uid(uid)
        try:
            addon = self.get_addon(uid)
        except Exception as e:
            logger.error(f"[{self.service_id}] Failed to resolve {uid}: {e}", exc_info=True)
            addon = None
        if addon is None:
            return self.notifier.failed(uid, MSG_NOT_KNOWN_INSTALL)
        return self._install_addon(addon)

    def _install_addon(self, addon: Addon) -> Event:
        handler = self.registry.find_handler(addon.type, addon.content_type)
        if handler is None:
            return self.notifier.failed(addon.uid, MSG_NO_HANDLER_INSTALL)

        try:
            if handler.is_installed(addon.uid):
                return self.notifier.failed(addon.uid, MSG_ALREADY_INSTALLED)
            logger.info(f"[{self.service_id}] Installing {addon.uid} with {handler.name}")
            handler.install(addon)
            self.record_store.put(addon.uid, addon.with_installed(True).to_record())
        except HandlerError as e:
            return self.notifier.failed(addon.uid, str(e))
        except Exception as e:
            logger.error(f"[{self.service_id}] Unexpected error installing {addon.uid}: {e}", exc_info=True)
            return self.notifier.failed(addon.uid, f"Failed to install add-on: {e}")

        self.cache.invalidate()
        self._refresh_quietly()
        return self.notifier.installed(addon.uid)

    def uninstall(self, uid: str) -> Event:
        """
        Uninstall an addon. Never raises; the outcome is published as an event.

        Returns:
            The published event
        """
        uid = self._normalize_uid(uid)
        try:
            addon = self.get_addon(uid)
        except Exception as e:
            logger.error(f"[{self.service_id}] Failed to resolve {uid}: {e}", exc_info=True)
            addon = None
        if addon is None:
            return self.notifier.failed(uid, MSG_NOT_KNOWN_UNINSTALL)

        handler = self.registry.find_handler(addon.type, addon.content_type)
        if handler is None:
            return self.notifier.failed(uid, MSG_NO_HANDLER_UNINSTALL)

        try:
            if not handler.is_installed(uid):
                self.record_store.remove(uid)
                return self.notifier.failed(uid, MSG_NOT_INSTALLED)
            logger.info(f"[{self.service_id}] Uninstalling {uid} with {handler.name}")
            handler.uninstall(addon)
            self.record_store.remove(uid)
        except HandlerError as e:
            return self.notifier.failed(uid, str(e))
        except Exception as e:
            logger.error(f"[{self.service_id}] Unexpected error uninstalling {uid}: {e}", exc_info=True)
            return self.notifier.failed(uid, f"Failed to uninstall add-on: {e}")

        self.cache.invalidate()
        self._refresh_quietly()
        return self.notifier.uninstalled(uid)

    def _normalize_uid(self, uid: str) -> str:
        # only a bare "<type>:<id>" gets this service's prefix
        if uid.count(":") != 1:
            return uid
        return f"{self.service_id}:{uid}"

    def close(self) -> None:
        """Stop background work"""
        self._closed = True
        self.registry.remove_ready_listener(self._on_handler_ready)
        if self._owns_executor:
            self._executor.shutdown(wait=False)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
