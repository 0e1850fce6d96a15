"""Classify path strings as remote, in-memory or local references."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from urllib.parse import parse_qsl, unquote, urlsplit

from kwindex.core.storage.errors import (
    InvalidRemoteReferenceError,
    WorkingDirectoryUnavailableError,
)
from kwindex.core.storage.paths import ObjectPath

logger = logging.getLogger(__name__)

REMOTE_SCHEME = "s3://"
MEMORY_SCHEME = "memory://"

ANONYMOUS_PARAM = "anon"
ANONYMOUS_VALUES = ("true", "1")


@dataclass(frozen=True)
class RemoteReference:
    """An object in a bucket, e.g. ``s3://bucket/a/b.bin?anon=true``."""

    bucket: str
    key: ObjectPath
    anonymous: bool = False


@dataclass(frozen=True)
class MemoryReference:
    """An object in the process-local memory store, e.g. ``memory://a/b.bin``."""

    key: ObjectPath


@dataclass(frozen=True)
class LocalReference:
    """A file on the local filesystem, as an absolute path."""

    absolute_path: str


Reference = RemoteReference | MemoryReference | LocalReference


def parse_remote(path: str) -> RemoteReference:
    """Parse an ``s3://bucket[/key][?anon=true]`` URI.

    Raises:
        InvalidRemoteReferenceError: If the URI is malformed or names no bucket
    """
    try:
        parts = urlsplit(path)
    except ValueError as e:
        raise InvalidRemoteReferenceError(f"Invalid S3 URL {path!r}: {e}") from e

    bucket = parts.netloc
    if not bucket:
        raise InvalidRemoteReferenceError(f"Invalid S3 URL {path!r}: no bucket specified")
    if "@" in bucket or ":" in bucket:
        raise InvalidRemoteReferenceError(f"Invalid S3 URL {path!r}: {bucket!r} is not a bucket name")

    anonymous = any(
        name == ANONYMOUS_PARAM and value in ANONYMOUS_VALUES
        for name, value in parse_qsl(parts.query, keep_blank_values=True)
    )
    return RemoteReference(
        bucket=bucket,
        key=ObjectPath(unquote(parts.path).lstrip("/")),
        anonymous=anonymous,
    )


def absolutize(path: str, cwd: str | None = None) -> str:
    """Anchor a relative local path at ``cwd`` (default: the current directory).

    Raises:
        WorkingDirectoryUnavailableError: If the current directory cannot be read
    """
    if os.path.isabs(path):
        return os.path.normpath(path)
    if cwd is None:
        try:
            cwd = os.getcwd()
        except OSError as e:
            raise WorkingDirectoryUnavailableError(
                f"Cannot resolve relative path {path!r}: {e}"
            ) from e
    return os.path.normpath(os.path.join(cwd, path))


def classify(path: str, cwd: str | None = None) -> Reference:
    """Decide what kind of storage ``path`` refers to.

    Args:
        path: ``s3://`` URI, ``memory://`` path, or local path (absolute or relative)
        cwd: Directory relative local paths are anchored at; defaults to the
             current working directory at call time

    Returns:
        RemoteReference, MemoryReference or LocalReference

    Raises:
        InvalidRemoteReferenceError: For malformed ``s3://`` URIs
        WorkingDirectoryUnavailableError: For relative paths when the cwd is gone
    """
    if path.startswith(REMOTE_SCHEME):
        reference = parse_remote(path)
    elif path.startswith(MEMORY_SCHEME):
        reference = MemoryReference(key=ObjectPath(path[len(MEMORY_SCHEME) :]))
    else:
        reference = LocalReference(absolute_path=absolutize(path, cwd))

    logger.debug(f"Classified {path!r} as {reference}")
    return reference
