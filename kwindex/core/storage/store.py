"""Object store capability interface.

Every store handed out by the resolver implements :class:`ObjectStore`, so
callers can read index and data files without caring whether they live on a
local disk, in an S3 bucket or in process memory.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from kwindex.core.storage.paths import ObjectPath


class StoreKind(Enum):
    """The closed set of store variants."""

    LOCAL = "local"
    REMOTE = "remote"
    MEMORY = "memory"


@dataclass
class ObjectMeta:
    """Metadata for a stored object."""

    path: ObjectPath
    size: int
    last_modified: datetime | None
    etag: str | None = None
    content_type: str | None = None


@dataclass
class ListResult:
    """Result from listing objects."""

    objects: list[ObjectMeta]
    prefixes: list[ObjectPath]  # Common prefixes (directories)
    is_truncated: bool
    next_marker: str | None


class ObjectStore(ABC):
    """Abstract base class for byte-object stores.

    Paths are relative to the store's root (a filesystem prefix, a bucket, or
    the in-memory namespace) and are normalized to :class:`ObjectPath`.
    """

    kind: StoreKind

    @abstractmethod
    def put(self, path: str, data: bytes, content_type: str | None = None) -> str:
        """Store an object.

        Args:
            path: Object path within the store
            data: Object content
            content_type: MIME type of the content, if the backend keeps one

        Returns:
            ETag (or an equivalent version marker) of the stored object
        """
        pass

    @abstractmethod
    def get(self, path: str) -> bytes:
        """Retrieve an object.

        Raises:
            ObjectNotFoundError: If the object doesn't exist
        """
        pass

    @abstractmethod
    def get_range(self, path: str, start: int, end: int) -> bytes:
        """Retrieve bytes ``[start, end)`` of an object.

        Ranges running past the end of the object are truncated.

        Raises:
            ObjectNotFoundError: If the object doesn't exist
            ValueError: If the range is negative or inverted
        """
        pass

    @abstractmethod
    def delete(self, path: str) -> None:
        """Delete an object.

        Raises:
            ObjectNotFoundError: If the object doesn't exist
        """
        pass

    @abstractmethod
    def exists(self, path: str) -> bool:
        pass

    @abstractmethod
    def head(self, path: str) -> ObjectMeta:
        """Get metadata for an object without reading it.

        Raises:
            ObjectNotFoundError: If the object doesn't exist
        """
        pass

    @abstractmethod
    def list_objects(
        self,
        prefix: str | None = None,
        delimiter: str | None = None,
        max_results: int = 1000,
        marker: str | None = None,
    ) -> ListResult:
        """List one page of objects.

        Args:
            prefix: Only list objects under this path prefix
            delimiter: Group by this delimiter ('/' lists one directory level)
            max_results: Maximum number of objects in the page
            marker: Continuation marker from a previous page

        Returns:
            List result with objects, common prefixes and pagination info
        """
        pass

    @abstractmethod
    def copy(self, source: str, dest: str) -> None:
        """Copy an object within the store.

        Raises:
            ObjectNotFoundError: If the source doesn't exist
        """
        pass

    def iter_objects(
        self, prefix: str | None = None, page_size: int = 1000
    ) -> Iterator[ObjectMeta]:
        """Iterate over every object under ``prefix``, following pagination."""
        marker = None
        while True:
            result = self.list_objects(prefix, None, page_size, marker)
            yield from result.objects

            if not result.is_truncated:
                break
            marker = result.next_marker


def check_range(start: int, end: int) -> None:
    """Validate a ``[start, end)`` byte range."""
    if start < 0 or end < start:
        raise ValueError(f"Invalid byte range: [{start}, {end})")


def page_prefixes(
    prefixes: Iterable[ObjectPath], marker: str | None, next_marker: str | None
) -> list[ObjectPath]:
    """Sorted common prefixes belonging to the page between two markers.

    A prefix sorting after ``next_marker`` is left for the following page, so
    a paginated listing reports each prefix exactly once.
    """
    return sorted(
        p
        for p in prefixes
        if (not marker or p > marker) and (not next_marker or p <= next_marker)
    )
