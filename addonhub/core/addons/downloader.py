"""
Archive fetching for the archive handler

An archive is streamed into a hidden ``.<name>.part`` file beside its
target and renamed into place once complete. The sha256 digest is taken
from the chunks as they are written, so a mismatch is caught without
reading the file back.
"""

import hashlib
import logging
import os
from pathlib import Path
from typing import Optional, Tuple
from urllib.parse import urlparse

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from addonhub.core.addons.exceptions import DownloadError

logger = logging.getLogger(__name__)

MAX_ARCHIVE_BYTES = 100 * 1024 * 1024
FETCH_TIMEOUT = (10, 300)  # connect, read
CHUNK_BYTES = 64 * 1024
PART_SUFFIX = ".part"
USER_AGENT = "AddonHub-Archive/1.0"

_RETRY_STATUSES = (429, 500, 502, 503, 504)


def retrying_session(retries: int) -> requests.Session:
    """Session whose GETs back off and retry on transient HTTP failures"""
    retry = Retry(
        total=retries,
        backoff_factor=0.5,
        status_forcelist=_RETRY_STATUSES,
        allowed_methods=frozenset({"GET"}),
    )
    session = requests.Session()
    adapter = HTTPAdapter(max_retries=retry)
    for prefix in ("http://", "https://"):
        session.mount(prefix, adapter)
    return session


def part_path(target: Path) -> Path:
    """Where an in-flight download of ``target`` is written"""
    return target.with_name(f".{target.name}{PART_SUFFIX}")


class ArchiveDownloader:
    """Streams addon archives to disk, enforcing a size cap and a digest"""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout=FETCH_TIMEOUT,
        max_bytes: int = MAX_ARCHIVE_BYTES,
        retries: int = 3,
    ):
        self.session = session or retrying_session(retries)
        self.timeout = timeout
        self.max_bytes = max_bytes

    def fetch(self, url: str, target: Path, sha256: Optional[str] = None) -> str:
        """
        Store the archive at ``url`` as ``target``.

        Args:
            url: http(s) location of the archive
            target: Final archive path; replaced atomically
            sha256: Expected hex digest, checked when given

        Returns:
            Hex sha256 of the stored archive

        Raises:
            DownloadError: Bad url, HTTP failure, oversize body or digest mismatch
        """
        parsed = urlparse(url or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise DownloadError(f"Refusing to fetch '{url}': only http(s) urls with a host are allowed")

        target = Path(target)
        part = part_path(target)
        try:
            digest, size = self._stream(url, part)
            if sha256 and digest != sha256.strip().lower():
                raise DownloadError(f"SHA256 mismatch for {url}: expected {sha256}, got {digest}")
            os.replace(part, target)
        except requests.RequestException as e:
            raise DownloadError(f"Fetching {url} failed: {e}") from e
        except OSError as e:
            raise DownloadError(f"Cannot store archive {target}: {e}") from e
        finally:
            self._discard(part)

        logger.info(f"Fetched {url}: {size} bytes, sha256 {digest[:12]}")
        return digest

    def _stream(self, url: str, part: Path) -> Tuple[str, int]:
        part.parent.mkdir(parents=True, exist_ok=True)
        response = self.session.get(
            url, stream=True, timeout=self.timeout, headers={"User-Agent": USER_AGENT}
        )
        try:
            response.raise_for_status()
            declared = int(response.headers.get("Content-Length") or 0)
            if declared > self.max_bytes:
                raise DownloadError(
                    f"Archive {url} declares {declared} bytes, over the size limit of {self.max_bytes}"
                )

            digest = hashlib.sha256()
            size = 0
            with open(part, "wb") as out:
                for chunk in response.iter_content(chunk_size=CHUNK_BYTES):
                    size += len(chunk)
                    if size > self.max_bytes:
                        raise DownloadError(f"Archive {url} exceeds the size limit of {self.max_bytes} bytes")
                    digest.update(chunk)
                    out.write(chunk)
            return digest.hexdigest(), size
        finally:
            response.close()

    @staticmethod
    def _discard(part: Path) -> None:
        try:
            part.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove partial download {part}: {e}")

    def close(self) -> None:
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
