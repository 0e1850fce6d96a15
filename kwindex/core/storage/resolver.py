"""Resolve path strings to ``(store, object path)`` pairs.

This is the entry point the index builder and search code use to read files
without caring where they live:

    >>> resolver = StoreResolver()
    >>> store, path = resolver.resolve("s3://bucket/index/filters.bin?anon=true")
    >>> data = store.get(path)

Supported forms:
    s3://bucket/key[?anon=true]   S3 object; stores cached per (bucket, anon)
    memory://key                  object in the resolver's in-memory store
    /abs/path, rel/path, C:\\path  local file; relative paths use the cwd
"""

from __future__ import annotations

import logging
import threading
from typing import NamedTuple

from kwindex.core.storage.backends.memory_backend import MemoryBackend
from kwindex.core.storage.cache import CacheKey, StoreCache
from kwindex.core.storage.classify import (
    MEMORY_SCHEME,
    LocalReference,
    MemoryReference,
    RemoteReference,
    classify,
)
from kwindex.core.storage.factory import LocalStoreFactory, RemoteStoreFactory
from kwindex.core.storage.paths import ObjectPath
from kwindex.core.storage.store import ObjectStore

logger = logging.getLogger(__name__)


class ResolvedObject(NamedTuple):
    """A store and the path of one object inside it."""

    store: ObjectStore
    path: ObjectPath


class StoreResolver:
    """Maps path strings to stores, reusing remote stores across calls.

    All collaborators can be injected, which keeps tests isolated: a resolver
    built without arguments owns a fresh cache and memory store.
    """

    def __init__(
        self,
        cache: StoreCache | None = None,
        remote_factory: RemoteStoreFactory | None = None,
        local_factory: LocalStoreFactory | None = None,
        memory_store: MemoryBackend | None = None,
    ):
        """Initialize the resolver.

        Args:
            cache: Remote store cache (a new one if None)
            remote_factory: Builds remote stores on cache misses; created on
                            first remote access if None
            local_factory: Builds filesystem stores for local paths
            memory_store: Store behind ``memory://`` paths
        """
        self._cache = cache if cache is not None else StoreCache()
        self._remote_factory = remote_factory
        self._local_factory = local_factory or LocalStoreFactory()
        self._memory_store = memory_store if memory_store is not None else MemoryBackend()
        self._factory_lock = threading.Lock()

    @property
    def cache(self) -> StoreCache:
        return self._cache

    @property
    def memory_store(self) -> MemoryBackend:
        return self._memory_store

    @property
    def remote_factory(self) -> RemoteStoreFactory:
        # Settings are only loaded once something remote is requested
        if self._remote_factory is None:
            with self._factory_lock:
                if self._remote_factory is None:
                    self._remote_factory = RemoteStoreFactory()
        return self._remote_factory

    def get_cached_remote_store(self, bucket: str, anonymous: bool = False) -> ObjectStore:
        """Return the shared store for ``(bucket, anonymous)``, building it once.

        Raises:
            StoreConstructionError: If the store cannot be built (not cached,
                                    so a later call retries)
        """
        key = CacheKey(bucket=bucket, anonymous=anonymous)
        return self._cache.get_or_create(key, lambda: self.remote_factory.build(bucket, anonymous))

    def resolve(self, path: str) -> ResolvedObject:
        """Resolve a path string to a store and an object path.

        Args:
            path: S3 URI, memory path or local path

        Returns:
            ResolvedObject(store, path), unpackable as a tuple

        Raises:
            InvalidRemoteReferenceError: Malformed S3 URI or missing bucket
            InvalidLocalPathError: Local path without a required drive letter
            WorkingDirectoryUnavailableError: Relative path with no usable cwd
            StoreConstructionError: Remote store could not be built
        """
        reference = classify(path)

        if isinstance(reference, RemoteReference):
            store = self.get_cached_remote_store(reference.bucket, reference.anonymous)
            return ResolvedObject(store, reference.key)

        if isinstance(reference, MemoryReference):
            return ResolvedObject(self._memory_store, reference.key)

        if isinstance(reference, LocalReference):
            store, object_path = self._local_factory.build(reference.absolute_path)
            return ResolvedObject(store, object_path)

        raise TypeError(f"Unsupported reference type: {type(reference).__name__}")

    def read(self, path: str) -> bytes:
        """Resolve ``path`` and return the object's bytes."""
        store, object_path = self.resolve(path)
        return store.get(object_path)

    def register_memory_file(self, path: str, data: bytes) -> None:
        """Put ``data`` in the memory store so ``path`` resolves to it.

        Args:
            path: Path with or without the ``memory://`` prefix
            data: File contents
        """
        self._memory_store.put(_strip_memory_scheme(path), data)

    def unregister_memory_file(self, path: str) -> bytes | None:
        """Remove a memory file, returning its bytes or None if it wasn't there."""
        return self._memory_store.pop(_strip_memory_scheme(path))


def _strip_memory_scheme(path: str) -> str:
    return path[len(MEMORY_SCHEME) :] if path.startswith(MEMORY_SCHEME) else path


# Global resolver instance
_default_resolver: StoreResolver | None = None
_default_lock = threading.Lock()


def get_default_resolver() -> StoreResolver:
    """Get the process-wide resolver, creating it on first use."""
    global _default_resolver
    if _default_resolver is None:
        with _default_lock:
            if _default_resolver is None:
                _default_resolver = StoreResolver()
    return _default_resolver


def resolve(path: str) -> ResolvedObject:
    """Resolve a path with the default resolver.

    Examples:
        >>> from kwindex.core.storage import resolve
        >>> store, path = resolve("data/corpus.parquet")
    """
    return get_default_resolver().resolve(path)


def read(path: str) -> bytes:
    """Read an object's bytes through the default resolver."""
    return get_default_resolver().read(path)


def register_memory_file(path: str, data: bytes) -> None:
    get_default_resolver().register_memory_file(path, data)


def unregister_memory_file(path: str) -> bytes | None:
    return get_default_resolver().unregister_memory_file(path)
