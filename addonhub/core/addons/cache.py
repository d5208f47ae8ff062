"""
Expiring cache for remote catalog contents

Features:
- TTL based freshness (15 minutes by default)
- Single-flight refresh: at most one fetch runs per cache
- Failure isolation: a failed fetch serves the previous value
- Explicit invalidation that also discards in-flight results
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

CACHE_TTL_SECONDS = 15 * 60


class ExpiringCache(Generic[T]):
    """
    Holds a list value fetched on demand and kept for ``ttl_seconds``.

    While a fetch is in flight, concurrent callers get the previous value when
    there is one. Without a previous value they wait for the fetch to finish
    and check again.
    """

    def __init__(
        self,
        fetch_fn: Callable[[], List[T]],
        ttl_seconds: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        name: str = "catalog",
    ):
        """
        Args:
            fetch_fn: Produces a fresh value; may raise
            ttl_seconds: Freshness window
            clock: Monotonic time source
            name: Label used in log messages
        """
        self._fetch_fn = fetch_fn
        self._ttl = ttl_seconds
        self._clock = clock
        self._name = name

        self._state_lock = threading.Lock()
        self._fetch_lock = threading.Lock()
        self._value: Optional[List[T]] = None
        self._fetched_at: Optional[float] = None
        self._generation = 0

        self.hits = 0
        self.misses = 0
        self.fetches = 0
        self.failures = 0

    def _is_fresh(self) -> bool:
        return self._fetched_at is not None and self._clock() - self._fetched_at < self._ttl

    def get_value(self) -> List[T]:
        """Return the cached value, refreshing it when stale"""
        while True:
            with self._state_lock:
                if self._is_fresh():
                    self.hits += 1
                    return list(self._value)
                previous = self._value

            if self._fetch_lock.acquire(blocking=False):
                try:
                    with self._state_lock:
                        if self._is_fresh():
                            self.hits += 1
                            return list(self._value)
                        self.misses += 1
                        generation = self._generation
                        previous = self._value
                    return self._fetch(generation, previous)
                finally:
                    self._fetch_lock.release()

            if previous is not None:
                logger.debug(f"Cache '{self._name}' refresh in flight, serving previous value")
                return list(previous)

            # No previous value: wait for the running fetch, then re-check
            with self._fetch_lock:
                pass

    def _fetch(self, generation: int, previous: Optional[List[T]]) -> List[T]:
        with self._state_lock:
            self.fetches += 1
        try:
            value = list(self._fetch_fn())
        except Exception as e:
            with self._state_lock:
                self.failures += 1
            logger.warning(f"Cache '{self._name}' refresh failed, serving previous value: {e}")
            return list(previous) if previous is not None else []

        with self._state_lock:
            if self._generation == generation:
                self._value = value
                self._fetched_at = self._clock()
                logger.info(f"Cache '{self._name}' refreshed: {len(value)} entries")
            else:
                logger.debug(f"Cache '{self._name}' invalidated during fetch, result not stored")
        return list(value)

    def invalidate(self) -> None:
        """Drop the cached value; an in-flight fetch will not repopulate it"""
        with self._state_lock:
            self._value = None
            self._fetched_at = None
            self._generation += 1
        logger.debug(f"Cache '{self._name}' invalidated")

    def get_stats(self) -> Dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dictionary with hits, misses, fetches, failures, hit_rate
        """
        with self._state_lock:
            hits, misses = self.hits, self.misses
            fetches, failures = self.fetches, self.failures
        total = hits + misses
        return {
            "hits": hits,
            "misses": misses,
            "fetches": fetches,
            "failures": failures,
            "hit_rate": hits / total if total > 0 else 0.0,
        }
