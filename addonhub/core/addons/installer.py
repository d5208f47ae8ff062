"""
Archive addon handler

Installs addons by downloading their archive into a per-addon cache
directory and unpacking it there. The cache doubles as installed state:
an addon is installed when its directory carries the ``.installed`` marker.
"""

import logging
import re
import shutil
import threading
import zipfile
from pathlib import Path
from typing import List, Optional
from urllib.parse import urlparse

from addonhub.core.addons.downloader import ArchiveDownloader
from addonhub.core.addons.exceptions import HandlerError
from addonhub.core.addons.handlers import AddonHandler, HandlerRegistry
from addonhub.core.addons.models import Addon, AddonType

logger = logging.getLogger(__name__)

ARCHIVE_CONTENT_TYPE = "application/vnd.addonhub.archive"
INSTALLED_MARKER = ".installed"
CONTENT_DIR = "content"
DEFAULT_ARCHIVE_NAME = "addon.archive"
SUPPORTED_TYPES = frozenset(AddonType)

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]")


class ArchiveAddonHandler(AddonHandler):
    """Handler for addons distributed as downloadable archives"""

    def __init__(
        self,
        cache_dir: Path,
        downloader: Optional[ArchiveDownloader] = None,
        registry: Optional[HandlerRegistry] = None
    ):
        """
        Initialize handler

        Args:
            cache_dir: Directory holding one subdirectory per installed addon
            downloader: Archive downloader
            registry: Registry notified once restore() has completed
        """
        self.cache_dir = Path(cache_dir)
        self.downloader = downloader or ArchiveDownloader()
        self.registry = registry
        self._ready = threading.Event()

    def _addon_dir(self, uid: str) -> Path:
        return self.cache_dir / _UNSAFE.sub("_", uid)

    def supports(self, addon_type: AddonType, content_type: str) -> bool:
        return addon_type in SUPPORTED_TYPES and content_type == ARCHIVE_CONTENT_TYPE

    def is_ready(self) -> bool:
        return self._ready.is_set()

    def is_installed(self, uid: str) -> bool:
        return (self._addon_dir(uid) / INSTALLED_MARKER).exists()

    def installed_dirs(self) -> List[Path]:
        if not self.cache_dir.exists():
            return []
        return sorted(p for p in self.cache_dir.iterdir() if (p / INSTALLED_MARKER).exists())

    def restore(self) -> None:
        """
        Re-deploy cached archives that were never fully unpacked, then mark
        the handler ready.
        """
        if self.cache_dir.exists():
            for addon_dir in sorted(p for p in self.cache_dir.iterdir() if p.is_dir()):
                if (addon_dir / INSTALLED_MARKER).exists():
                    continue
                archive = self._find_archive(addon_dir)
                if archive is None:
                    continue
                try:
                    self._deploy(addon_dir, archive)
                    logger.info(f"Restored cached addon archive: {addon_dir.name}")
                except HandlerError as e:
                    logger.warning(f"Failed to restore cached addon archive {addon_dir.name}: {e}")

        self._ready.set()
        logger.info(f"Archive handler ready: {self.cache_dir}")
        if self.registry is not None:
            self.registry.handler_ready(self)

    def install(self, addon: Addon) -> None:
        """
        Download and unpack an addon archive.

        Raises:
            HandlerError: If the archive cannot be downloaded or unpacked
        """
        url = addon.properties.get("download_url")
        if not url:
            raise HandlerError(f"Add-on {addon.uid} has no download_url property.")

        addon_dir = self._addon_dir(addon.uid)
        archive_name = Path(urlparse(url).path).name or DEFAULT_ARCHIVE_NAME
        archive = addon_dir / archive_name

        try:
            self.downloader.fetch(url, archive, sha256=addon.properties.get("sha256"))
            self._deploy(addon_dir, archive)
        except HandlerError:
            shutil.rmtree(addon_dir, ignore_errors=True)
            raise
        logger.info(f"Addon installed: {addon.uid} -> {addon_dir}")

    def uninstall(self, addon: Addon) -> None:
        """
        Remove an addon's cache directory.

        Raises:
            HandlerError: If the addon is not present or cannot be removed
        """
        addon_dir = self._addon_dir(addon.uid)
        if not addon_dir.exists():
            raise HandlerError(f"Add-on {addon.uid} is not present in {self.cache_dir}.")
        try:
            shutil.rmtree(addon_dir)
        except OSError as e:
            raise HandlerError(f"Failed to remove add-on {addon.uid}: {e}") from e
        logger.info(f"Addon uninstalled: {addon.uid}")

    def _find_archive(self, addon_dir: Path) -> Optional[Path]:
        for path in sorted(addon_dir.iterdir()):
            if path.is_file() and not path.name.startswith("."):
                return path
        return None

    def _deploy(self, addon_dir: Path, archive: Path) -> None:
        if zipfile.is_zipfile(archive):
            content = addon_dir / CONTENT_DIR
            if content.exists():
                shutil.rmtree(content)
            extract_zip(archive, content)
        (addon_dir / INSTALLED_MARKER).write_text(archive.name, encoding="utf-8")


def extract_zip(zip_path: Path, target_dir: Path) -> None:
    """
    Extract zip to target directory with path traversal protection

    Raises:
        HandlerError: If extraction fails
    """
    logger.debug(f"Extracting {zip_path.name} to {target_dir}")

    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        target_dir_resolved = target_dir.resolve()

        with zipfile.ZipFile(zip_path, 'r') as zf:
            for member in zf.namelist():
                if '..' in Path(member).parts:
                    raise HandlerError(f"Path traversal detected in archive: {member}")
                if Path(member).is_absolute():
                    raise HandlerError(f"Absolute path detected in archive: {member}")

                target_path = target_dir / member
                try:
                    target_path.resolve().relative_to(target_dir_resolved)
                except ValueError:
                    raise HandlerError(f"Archive extraction would escape target directory: {member}")

                if member.endswith('/'):
                    target_path.mkdir(parents=True, exist_ok=True)
                else:
                    target_path.parent.mkdir(parents=True, exist_ok=True)
                    with zf.open(member) as source, open(target_path, 'wb') as target:
                        shutil.copyfileobj(source, target)

    except HandlerError:
        raise
    except (OSError, zipfile.BadZipFile) as e:
        raise HandlerError(f"Failed to extract archive {zip_path.name}: {e}") from e
