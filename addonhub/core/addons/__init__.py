"""AddonHub Addon Catalog

Reconciles what is recorded as installed, what the handlers actually have
installed and what a remote catalog offers into one addon list.

Core principles:
1. At most one entry per uid is ever returned to callers
2. Published catalog snapshots are immutable
3. Corrupted installed records never break a catalog read
4. Install/uninstall never raise; every outcome is an event

Components:
- versions: Version parsing, ranges and ordering
- records: Installed-record stores (memory, SQLite)
- cache: Expiring single-flight cache for the remote catalog
- handlers: Handler interface and ordered handler registry
- merge: Pure merge and de-duplication
- policy: Per-cycle catalog policy
- service: The reconciling addon service
- catalog: JSON index fetcher
- installer: Archive download handler
- downloader: URL downloader with sha256 verification
- models: Pydantic data models
- exceptions: Custom exceptions
"""

from addonhub.core.addons.exceptions import (
    AddonError,
    VersionParseError,
    RecordStoreError,
    HandlerError,
    CatalogFetchError,
    DownloadError,
)
from addonhub.core.addons.models import Addon, AddonType, build_uid
from addonhub.core.addons.versions import (
    BundleVersion,
    Ordering,
    VersionComparison,
    compare_versions,
    in_range,
    parse_version,
)
from addonhub.core.addons.records import MemoryRecordStore, RecordStore, SQLiteRecordStore
from addonhub.core.addons.cache import CACHE_TTL_SECONDS, ExpiringCache
from addonhub.core.addons.handlers import AddonHandler, HandlerRegistry
from addonhub.core.addons.merge import compare_addons, deduplicate, merge_addons
from addonhub.core.addons.policy import (
    AddonPolicy,
    PolicySource,
    SettingsPolicySource,
    StaticPolicySource,
)
from addonhub.core.addons.service import ReconcileResult, ReconcileStatus, RemoteAddonService
from addonhub.core.addons.downloader import ArchiveDownloader
from addonhub.core.addons.installer import ARCHIVE_CONTENT_TYPE, ArchiveAddonHandler
from addonhub.core.addons.catalog import JsonCatalogFetcher

__all__ = [
    # Exceptions
    "AddonError",
    "VersionParseError",
    "RecordStoreError",
    "HandlerError",
    "CatalogFetchError",
    "DownloadError",
    # Models
    "Addon",
    "AddonType",
    "build_uid",
    # Versions
    "BundleVersion",
    "Ordering",
    "VersionComparison",
    "compare_versions",
    "in_range",
    "parse_version",
    # Records
    "RecordStore",
    "MemoryRecordStore",
    "SQLiteRecordStore",
    # Cache
    "CACHE_TTL_SECONDS",
    "ExpiringCache",
    # Handlers
    "AddonHandler",
    "HandlerRegistry",
    # Merge
    "compare_addons",
    "deduplicate",
    "merge_addons",
    # Policy
    "AddonPolicy",
    "PolicySource",
    "SettingsPolicySource",
    "StaticPolicySource",
    # Service
    "ReconcileResult",
    "ReconcileStatus",
    "RemoteAddonService",
    # Backends
    "ArchiveDownloader",
    "ARCHIVE_CONTENT_TYPE",
    "ArchiveAddonHandler",
    "JsonCatalogFetcher",
]
