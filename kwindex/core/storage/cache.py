"""Cache of remote stores keyed by bucket and access mode.

Building a remote store can involve credential discovery, instance metadata
queries and network round trips, so each ``(bucket, anonymous)`` pair is built
once and the same store object is handed to every later caller.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass

from kwindex.core.storage.store import ObjectStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheKey:
    """Identifies equivalent remote store requests."""

    bucket: str
    anonymous: bool


class StoreCache:
    """Thread-safe build-once map from :class:`CacheKey` to store.

    Hits read the underlying dict without taking a lock. A miss takes a lock
    private to its key, so only callers racing on the same unseen key wait for
    each other. Failed builds are not cached; the next caller builds again.

    Examples:
        >>> cache = StoreCache()
        >>> store = cache.get_or_create(CacheKey("bucket", True), build)
        >>> cache.get_or_create(CacheKey("bucket", True), build) is store
        True
    """

    def __init__(self):
        self._stores: dict[CacheKey, ObjectStore] = {}
        self._key_locks: dict[CacheKey, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._stores

    def __len__(self) -> int:
        return len(self._stores)

    def get(self, key: CacheKey) -> ObjectStore | None:
        return self._stores.get(key)

    def keys(self) -> list[CacheKey]:
        return list(self._stores)

    def _lock_for(self, key: CacheKey) -> threading.Lock:
        with self._locks_guard:
            return self._key_locks.setdefault(key, threading.Lock())

    def get_or_create(self, key: CacheKey, build: Callable[[], ObjectStore]) -> ObjectStore:
        """Return the cached store for ``key``, building it on first use.

        Args:
            key: Cache key
            build: Zero-argument callable constructing the store

        Returns:
            The one store instance associated with ``key``

        Raises:
            Whatever ``build`` raises; nothing is cached in that case
        """
        store = self._stores.get(key)
        if store is not None:
            logger.debug(f"Store cache hit for {key}")
            return store

        with self._lock_for(key):
            # Another thread may have finished the build while we waited
            store = self._stores.get(key)
            if store is not None:
                return store

            store = build()
            self._stores[key] = store
            logger.info(f"Cached new store for bucket {key.bucket} (anonymous={key.anonymous})")
            return store

    def clear(self) -> None:
        """Drop every cached store.

        Per-key locks are kept, so a build running during the clear still
        serializes with callers that miss right after it.
        """
        with self._locks_guard:
            self._stores.clear()
