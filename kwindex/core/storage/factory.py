"""Factories building remote and local stores."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable

import urllib3
from minio.credentials import (
    AWSConfigProvider,
    ChainedProvider,
    EnvAWSProvider,
    EnvMinioProvider,
    IamAwsProvider,
    Provider,
)
from minio.helpers import check_bucket_name

from kwindex.core.storage.backends.filesystem_backend import FilesystemBackend
from kwindex.core.storage.backends.minio_backend import MinIOBackend
from kwindex.core.storage.errors import (
    CredentialResolutionError,
    InvalidBucketNameError,
    InvalidLocalPathError,
    StoreConstructionError,
)
from kwindex.core.storage.paths import ObjectPath
from kwindex.core.utils.config import ConfigError, StorageSettings, load_storage_settings

logger = logging.getLogger(__name__)

IS_WINDOWS = os.name == "nt"
DRIVE_MARKER = ":\\"


def default_credential_chain() -> Provider:
    """The ordered provider chain used for signed requests.

    Environment variables (AWS, then MinIO), the shared credentials file,
    then IAM identity (EC2 instance profile, ECS task role, EKS web identity).
    The first provider returning credentials wins, and the chain refreshes
    expiring credentials on its own.
    """
    return ChainedProvider(
        [
            EnvAWSProvider(),
            EnvMinioProvider(),
            AWSConfigProvider(),
            IamAwsProvider(),
        ]
    )


class RemoteStoreFactory:
    """Builds :class:`MinIOBackend` stores from settings and ambient credentials."""

    def __init__(
        self,
        settings: StorageSettings | None = None,
        credential_chain: Callable[[], Provider] = default_credential_chain,
    ):
        """Initialize the factory.

        Args:
            settings: Endpoint/region settings; loaded from configuration if None
            credential_chain: Callable returning a fresh credential provider

        Raises:
            StoreConstructionError: If the loaded configuration is invalid
        """
        if settings is None:
            try:
                settings = load_storage_settings()
            except ConfigError as e:
                raise StoreConstructionError(f"Invalid storage configuration: {e}") from e
        self._settings = settings
        self._credential_chain = credential_chain

    @property
    def settings(self) -> StorageSettings:
        return self._settings

    def _resolve_credentials(self, bucket: str) -> Provider:
        provider = self._credential_chain()
        try:
            # Resolve now so a missing credential surfaces at build time
            provider.retrieve()
        except (ValueError, OSError, urllib3.exceptions.HTTPError) as e:
            raise CredentialResolutionError(
                f"Could not resolve credentials for bucket {bucket}: {e}"
            ) from e
        return provider

    def build(self, bucket: str, anonymous: bool = False) -> MinIOBackend:
        """Build a store for ``bucket``.

        Args:
            bucket: Bucket name (without the ``s3://`` prefix)
            anonymous: Send unsigned requests and skip credential resolution

        Raises:
            InvalidBucketNameError: If the bucket name is not valid
            CredentialResolutionError: If signed access has no credentials
            StoreConstructionError: If eager bucket validation fails
        """
        try:
            check_bucket_name(bucket, strict=True)
        except ValueError as e:
            raise InvalidBucketNameError(f"Invalid bucket name {bucket!r}: {e}") from e

        credentials = None if anonymous else self._resolve_credentials(bucket)
        settings = self._settings
        return MinIOBackend(
            endpoint=settings.endpoint,
            bucket=bucket,
            credentials=credentials,
            secure=settings.secure,
            region=settings.region,
            validate=settings.validate_bucket,
        )


def create_remote_store(bucket: str, anonymous: bool = False) -> MinIOBackend:
    """Build an uncached remote store with default settings.

    Prefer :meth:`StoreResolver.get_cached_remote_store`, which builds each
    bucket's store only once.
    """
    return RemoteStoreFactory().build(bucket, anonymous)


def split_local_path(absolute_path: str, drive_letters: bool = IS_WINDOWS) -> tuple[str, ObjectPath]:
    """Split an absolute path into a filesystem root and a relative object path.

    Args:
        absolute_path: Absolute local path
        drive_letters: Whether paths carry a drive letter (Windows)

    Returns:
        Tuple of (root, relative path)

    Raises:
        InvalidLocalPathError: If a drive letter is required but missing

    Examples:
        >>> split_local_path("/home/user/data/file.bin", drive_letters=False)
        ('/', ObjectPath('home/user/data/file.bin'))
        >>> split_local_path("C:\\\\Users\\\\data\\\\file.bin", drive_letters=True)
        ('C:\\\\', ObjectPath('Users/data/file.bin'))
    """
    if drive_letters:
        pos = absolute_path.find(DRIVE_MARKER)
        if pos < 0:
            raise InvalidLocalPathError(f"Invalid Windows path, no drive found: {absolute_path!r}")
        root = absolute_path[: pos + len(DRIVE_MARKER)]
        relative = absolute_path[pos + len(DRIVE_MARKER) :].lstrip("\\").replace("\\", "/")
        return root, ObjectPath(relative)

    return "/", ObjectPath(absolute_path.lstrip("/"))


class LocalStoreFactory:
    """Builds filesystem stores rooted at a filesystem root or drive."""

    def __init__(self, drive_letters: bool = IS_WINDOWS):
        self._drive_letters = drive_letters

    def build(self, absolute_path: str) -> tuple[FilesystemBackend, ObjectPath]:
        """Return a store for the path's root and the path relative to it."""
        root, relative = split_local_path(absolute_path, self._drive_letters)
        logger.debug(f"Local path {absolute_path!r} -> root {root!r}, object {relative!r}")
        return FilesystemBackend(root), relative


def create_local_store() -> FilesystemBackend:
    """A filesystem store whose object paths are absolute paths minus the root."""
    return FilesystemBackend(os.path.abspath(os.sep))
