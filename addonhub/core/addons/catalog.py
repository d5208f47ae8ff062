"""
JSON catalog fetcher

Reads a remote addon index over HTTP. The index is either a JSON list of
entries or an object holding the list under ``addons``, ``items`` or
``entries``:

    {
      "addons": [
        {
          "id": "mqtt",
          "type": "binding",
          "version": "4.1.0",
          "title": "MQTT Binding [4.0.0;5.0.0)",
          "download_url": "https://example.org/mqtt-4.1.0.zip",
          "sha256": "..."
        }
      ]
    }

Compatibility is taken from the ``compatibility`` range or, when absent, from
a range at the end of the title.
"""

import logging
import re
from typing import Any, Dict, List, Optional

import requests
from pydantic import ValidationError

from addonhub.core.addons.exceptions import CatalogFetchError, VersionParseError
from addonhub.core.addons.installer import ARCHIVE_CONTENT_TYPE
from addonhub.core.addons.models import Addon, AddonType, build_uid
from addonhub.core.addons.versions import in_range

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = (10, 30)  # connect, read
LIST_KEYS = ("addons", "items", "entries")
PROPERTY_KEYS = ("download_url", "sha256")

_TITLE_RANGE = re.compile(r"\s*([\[\(][^\[\]\(\)]*[,;][^\[\]\(\)]*[\]\)])\s*$")


class JsonCatalogFetcher:
    """Fetches and parses a JSON addon index"""

    def __init__(
        self,
        url: str,
        service_id: str,
        core_version: str,
        session: Optional[requests.Session] = None,
        timeout=DEFAULT_TIMEOUT,
        default_content_type: str = ARCHIVE_CONTENT_TYPE,
    ):
        self.url = url
        self.service_id = service_id
        self.core_version = core_version
        self.session = session or requests.Session()
        self.timeout = timeout
        self.default_content_type = default_content_type

    def __call__(self) -> List[Addon]:
        return self.fetch()

    def fetch(self) -> List[Addon]:
        """
        Fetch the full catalog.

        Returns:
            Parsed addons; duplicates are kept

        Raises:
            CatalogFetchError: If the index cannot be fetched or parsed
        """
        entries = self._entries(self._get_document())
        addons = []
        for entry in entries:
            addon = self._to_addon(entry)
            if addon is not None:
                addons.append(addon)
        logger.info(f"Fetched {len(addons)} addons from {self.url}")
        return addons

    def lookup(self, uid: str) -> Optional[Addon]:
        """Fetch the catalog and return the entry with the given uid"""
        return next((addon for addon in self.fetch() if addon.uid == uid), None)

    def _get_document(self) -> Any:
        try:
            response = self.session.get(
                self.url,
                timeout=self.timeout,
                headers={'Accept': 'application/json', 'User-Agent': 'AddonHub-Catalog/1.0'}
            )
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            raise CatalogFetchError(f"Failed to fetch catalog {self.url}: {e}") from e
        except ValueError as e:
            raise CatalogFetchError(f"Catalog {self.url} is not valid JSON: {e}") from e

    def _entries(self, document: Any) -> List[Any]:
        if isinstance(document, list):
            return document
        if isinstance(document, dict):
            for key in LIST_KEYS:
                if isinstance(document.get(key), list):
                    return document[key]
        raise CatalogFetchError(f"Catalog {self.url} has no addon list")

    def _to_addon(self, entry: Any) -> Optional[Addon]:
        if not isinstance(entry, dict):
            logger.debug(f"Skipping catalog entry that is not an object: {entry!r}")
            return None

        addon_id = entry.get("id")
        if not addon_id:
            logger.debug(f"Skipping catalog entry without id: {entry!r}")
            return None
        try:
            addon_type = AddonType(str(entry.get("type", "")).lower())
        except ValueError:
            logger.debug(f"Skipping catalog entry {addon_id} with unknown type '{entry.get('type')}'")
            return None

        label = str(entry.get("label") or entry.get("title") or addon_id)
        version_range = entry.get("compatibility")
        if not version_range:
            match = _TITLE_RANGE.search(label)
            if match:
                version_range = match.group(1)
                label = label[:match.start()].strip()

        properties: Dict[str, Any] = dict(entry.get("properties") or {})
        for key in PROPERTY_KEYS:
            if entry.get(key):
                properties.setdefault(key, entry[key])

        try:
            return Addon(
                uid=build_uid(self.service_id, addon_type, str(addon_id)),
                type=addon_type,
                id=str(addon_id),
                content_type=entry.get("content_type") or entry.get("contentType") or self.default_content_type,
                version=str(entry.get("version") or ""),
                compatible=self._is_compatible(str(addon_id), version_range),
                label=label,
                description=entry.get("description") or "",
                detailed_description=entry.get("detailed_description") or "",
                link=entry.get("link"),
                image_link=entry.get("image_link"),
                author=entry.get("author") or "",
                maturity=entry.get("maturity"),
                properties=properties,
            )
        except ValidationError as e:
            logger.debug(f"Skipping invalid catalog entry {addon_id}: {e}")
            return None

    def _is_compatible(self, addon_id: str, version_range: Optional[str]) -> bool:
        if not version_range:
            return True
        try:
            return in_range(self.core_version, version_range)
        except VersionParseError as e:
            logger.debug(f"Cannot evaluate compatibility of {addon_id} ('{version_range}'): {e}")
            return True
