"""Exceptions raised by the storage layer."""

from __future__ import annotations


class StorageError(Exception):
    """Base exception for storage errors."""

    pass


class ObjectNotFoundError(StorageError):
    """Raised when an object does not exist in a store."""

    pass


class InvalidRemoteReferenceError(StorageError):
    """Raised when a remote URI cannot be parsed or names no bucket."""

    pass


class InvalidLocalPathError(StorageError):
    """Raised when a local path cannot be split into root and remainder."""

    pass


class WorkingDirectoryUnavailableError(StorageError):
    """Raised when a relative path is given but the current directory is gone."""

    pass


class StoreConstructionError(StorageError):
    """Raised when a remote store cannot be built."""

    pass


class InvalidBucketNameError(StoreConstructionError):
    """Raised when a bucket name is rejected before any request is made."""

    pass


class CredentialResolutionError(StoreConstructionError):
    """Raised when no credential provider yields usable credentials."""

    pass
