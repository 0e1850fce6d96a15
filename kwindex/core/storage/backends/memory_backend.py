"""In-process store backing ``memory://`` paths."""

from __future__ import annotations

import hashlib
import logging
import threading
from datetime import UTC, datetime

from kwindex.core.storage.errors import ObjectNotFoundError
from kwindex.core.storage.paths import DELIMITER, ObjectPath
from kwindex.core.storage.store import (
    ListResult,
    ObjectMeta,
    ObjectStore,
    StoreKind,
    check_range,
    page_prefixes,
)

logger = logging.getLogger(__name__)


class MemoryBackend(ObjectStore):
    """Dict-backed store, mainly for tests and for feeding bytes that were never on disk."""

    kind = StoreKind.MEMORY

    def __init__(self):
        self._objects: dict[ObjectPath, tuple[bytes, ObjectMeta]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._objects)

    def _entry(self, path: str) -> tuple[bytes, ObjectMeta]:
        try:
            return self._objects[ObjectPath(path)]
        except KeyError:
            raise ObjectNotFoundError(f"Object not found: {path}") from None

    def put(self, path: str, data: bytes, content_type: str | None = None) -> str:
        key = ObjectPath(path)
        data = bytes(data)
        meta = ObjectMeta(
            path=key,
            size=len(data),
            last_modified=datetime.now(UTC),
            etag=hashlib.md5(data, usedforsecurity=False).hexdigest(),
            content_type=content_type,
        )
        with self._lock:
            self._objects[key] = (data, meta)
        logger.debug(f"Stored in-memory object: {key} ({meta.size} bytes)")
        return meta.etag

    def get(self, path: str) -> bytes:
        return self._entry(path)[0]

    def get_range(self, path: str, start: int, end: int) -> bytes:
        check_range(start, end)
        return self._entry(path)[0][start:end]

    def delete(self, path: str) -> None:
        with self._lock:
            try:
                del self._objects[ObjectPath(path)]
            except KeyError:
                raise ObjectNotFoundError(f"Object not found: {path}") from None

    def pop(self, path: str) -> bytes | None:
        """Remove an object and return its bytes, or None if it was absent."""
        with self._lock:
            entry = self._objects.pop(ObjectPath(path), None)
        return entry[0] if entry else None

    def exists(self, path: str) -> bool:
        return ObjectPath(path) in self._objects

    def head(self, path: str) -> ObjectMeta:
        return self._entry(path)[1]

    def list_objects(
        self,
        prefix: str | None = None,
        delimiter: str | None = None,
        max_results: int = 1000,
        marker: str | None = None,
    ) -> ListResult:
        base = ObjectPath(prefix or "")
        depth = len(base.parts)
        with self._lock:
            snapshot = sorted(self._objects.items())

        objects = []
        prefixes = set()
        for key, (_, meta) in snapshot:
            if not key.is_under(base) or key == base:
                continue
            if delimiter and len(key.parts) > depth + 1:
                prefixes.add(ObjectPath(DELIMITER.join(key.parts[: depth + 1])))
                continue
            if marker and key <= marker:
                continue
            objects.append(meta)

        is_truncated = len(objects) > max_results
        objects = objects[:max_results]
        next_marker = objects[-1].path if is_truncated else None
        return ListResult(
            objects=objects,
            prefixes=page_prefixes(prefixes, marker, next_marker),
            is_truncated=is_truncated,
            next_marker=next_marker,
        )

    def copy(self, source: str, dest: str) -> None:
        try:
            data, meta = self._entry(source)
        except ObjectNotFoundError:
            raise ObjectNotFoundError(f"Source object not found: {source}") from None
        self.put(dest, data, meta.content_type)
