"""
Installed-record stores

Durable ``uid -> serialized Addon`` mapping. Values are returned raw; the
service decides whether a record is readable.
"""

import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Set, Tuple

from addonhub.core.addons.exceptions import RecordStoreError

logger = logging.getLogger(__name__)


class RecordStore(ABC):
    """Key/value store for installed addon records."""

    @abstractmethod
    def get_all(self) -> List[Tuple[str, Optional[str]]]:
        """
        Get every record.

        Returns:
            List of (key, value) pairs; value may be None for unreadable rows
        """
        pass

    @abstractmethod
    def put(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """Remove a record. Removing an absent key is a no-op."""
        pass

    @abstractmethod
    def keys(self) -> Set[str]:
        pass


class MemoryRecordStore(RecordStore):
    """In-memory record store."""

    def __init__(self, initial: Optional[Dict[str, Optional[str]]] = None):
        self._lock = threading.RLock()
        self._records: Dict[str, Optional[str]] = dict(initial or {})

    def get_all(self) -> List[Tuple[str, Optional[str]]]:
        with self._lock:
            return list(self._records.items())

    def put(self, key: str, value: str) -> None:
        with self._lock:
            self._records[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._records.pop(key, None)

    def keys(self) -> Set[str]:
        with self._lock:
            return set(self._records)


class SQLiteRecordStore(RecordStore):
    """SQLite-backed record store, one namespace per catalog service."""

    def __init__(self, db_path: Path, namespace: str):
        """
        Initialize SQLite record store.

        Args:
            db_path: Path to SQLite database file
            namespace: Namespace isolating this service's records
        """
        self.db_path = Path(db_path)
        self.namespace = namespace
        self._lock = threading.RLock()

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()
        logger.info(f"SQLiteRecordStore initialized: {self.db_path} (namespace: {namespace})")

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(str(self.db_path), timeout=30)
        except sqlite3.Error as e:
            raise RecordStoreError(f"Cannot open record store {self.db_path}: {e}") from e
        try:
            conn.execute("PRAGMA busy_timeout=30000;")
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise RecordStoreError(f"Record store operation failed: {e}") from e
        finally:
            conn.close()

    def _init_schema(self):
        with self._lock, self._connect() as conn:
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("""
                CREATE TABLE IF NOT EXISTS addon_records (
                    namespace TEXT NOT NULL,
                    key TEXT NOT NULL,
                    value TEXT,
                    updated_at TEXT NOT NULL,
                    PRIMARY KEY (namespace, key)
                )
            """)

    def get_all(self) -> List[Tuple[str, Optional[str]]]:
        with self._lock, self._connect() as conn:
            rows = conn.execute(
                "SELECT key, value FROM addon_records WHERE namespace = ? ORDER BY key",
                (self.namespace,)
            ).fetchall()
        return [(row[0], row[1]) for row in rows]

    def put(self, key: str, value: str) -> None:
        now = datetime.now(timezone.utc).isoformat()
        with self._lock, self._connect() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO addon_records (namespace, key, value, updated_at) "
                "VALUES (?, ?, ?, ?)",
                (self.namespace, key, value, now)
            )
        logger.debug(f"Stored record: {key}")

    def remove(self, key: str) -> None:
        with self._lock, self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM addon_records WHERE namespace = ? AND key = ?",
                (self.namespace, key)
            )
            deleted = cursor.rowcount
        if deleted:
            logger.debug(f"Removed record: {key}")

    def keys(self) -> Set[str]:
        with self._lock, self._connect() as conn:
            rows = conn.execute(
                "SELECT key FROM addon_records WHERE namespace = ?",
                (self.namespace,)
            ).fetchall()
        return {row[0] for row in rows}
