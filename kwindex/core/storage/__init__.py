"""Uniform access to local, S3 and in-memory objects."""

from kwindex.core.storage.cache import CacheKey, StoreCache
from kwindex.core.storage.classify import (
    LocalReference,
    MemoryReference,
    RemoteReference,
    classify,
)
from kwindex.core.storage.errors import (
    CredentialResolutionError,
    InvalidBucketNameError,
    InvalidLocalPathError,
    InvalidRemoteReferenceError,
    ObjectNotFoundError,
    StorageError,
    StoreConstructionError,
    WorkingDirectoryUnavailableError,
)
from kwindex.core.storage.factory import (
    LocalStoreFactory,
    RemoteStoreFactory,
    create_local_store,
    create_remote_store,
    split_local_path,
)
from kwindex.core.storage.paths import ObjectPath
from kwindex.core.storage.resolver import (
    ResolvedObject,
    StoreResolver,
    get_default_resolver,
    read,
    register_memory_file,
    resolve,
    unregister_memory_file,
)
from kwindex.core.storage.store import ListResult, ObjectMeta, ObjectStore, StoreKind

__all__ = [
    # Resolver
    "StoreResolver",
    "ResolvedObject",
    "get_default_resolver",
    "resolve",
    "read",
    "register_memory_file",
    "unregister_memory_file",
    # Stores
    "ObjectStore",
    "ObjectMeta",
    "ListResult",
    "StoreKind",
    "ObjectPath",
    # Classification
    "classify",
    "RemoteReference",
    "LocalReference",
    "MemoryReference",
    # Cache and factories
    "CacheKey",
    "StoreCache",
    "RemoteStoreFactory",
    "LocalStoreFactory",
    "create_remote_store",
    "create_local_store",
    "split_local_path",
    # Errors
    "StorageError",
    "ObjectNotFoundError",
    "InvalidRemoteReferenceError",
    "InvalidLocalPathError",
    "WorkingDirectoryUnavailableError",
    "StoreConstructionError",
    "InvalidBucketNameError",
    "CredentialResolutionError",
]
