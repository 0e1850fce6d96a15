"""Local filesystem store."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from datetime import UTC, datetime
from pathlib import Path

from kwindex.core.storage.errors import ObjectNotFoundError, StorageError
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


class FilesystemBackend(ObjectStore):
    """Store rooted at a local directory (a filesystem root or drive, usually).

    Object paths are resolved beneath the root, so a store rooted at ``/`` can
    address any file on the machine and may be shared by every local path.
    """

    kind = StoreKind.LOCAL

    def __init__(self, root: str | Path):
        """Initialize filesystem store.

        Args:
            root: Directory that object paths are relative to
        """
        self._root = Path(root)
        logger.debug(f"Initialized filesystem store at: {self._root}")

    @property
    def root(self) -> Path:
        return self._root

    def _full_path(self, path: str) -> Path:
        return self._root.joinpath(*ObjectPath(path).parts)

    def _meta(self, path: ObjectPath, full_path: Path) -> ObjectMeta:
        stat = full_path.stat()
        return ObjectMeta(
            path=path,
            size=stat.st_size,
            last_modified=datetime.fromtimestamp(stat.st_mtime, UTC),
            etag=f"{stat.st_mtime_ns:x}-{stat.st_size:x}",
        )

    def put(self, path: str, data: bytes, content_type: str | None = None) -> str:
        """Write an object atomically via a temporary file in the same directory."""
        full_path = self._full_path(path)
        try:
            full_path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                dir=full_path.parent, prefix=f".{full_path.name}.", delete=False
            ) as tmp:
                tmp.write(data)
            os.replace(tmp.name, full_path)

            meta = self._meta(ObjectPath(path), full_path)
            logger.info(f"Stored object: {path} ({meta.size} bytes)")
            return meta.etag

        except OSError as e:
            raise StorageError(f"Failed to store object {path}: {e}") from e

    def get(self, path: str) -> bytes:
        full_path = self._full_path(path)
        try:
            return full_path.read_bytes()
        except (FileNotFoundError, IsADirectoryError) as e:
            raise ObjectNotFoundError(f"Object not found: {path}") from e
        except OSError as e:
            raise StorageError(f"Failed to read object {path}: {e}") from e

    def get_range(self, path: str, start: int, end: int) -> bytes:
        check_range(start, end)
        full_path = self._full_path(path)
        try:
            with open(full_path, "rb") as f:
                f.seek(start)
                return f.read(end - start)
        except (FileNotFoundError, IsADirectoryError) as e:
            raise ObjectNotFoundError(f"Object not found: {path}") from e
        except OSError as e:
            raise StorageError(f"Failed to read range of {path}: {e}") from e

    def delete(self, path: str) -> None:
        full_path = self._full_path(path)
        try:
            full_path.unlink()
            logger.info(f"Deleted object: {path}")
        except FileNotFoundError as e:
            raise ObjectNotFoundError(f"Object not found: {path}") from e
        except OSError as e:
            raise StorageError(f"Failed to delete object {path}: {e}") from e

    def exists(self, path: str) -> bool:
        return self._full_path(path).is_file()

    def head(self, path: str) -> ObjectMeta:
        full_path = self._full_path(path)
        if not full_path.is_file():
            raise ObjectNotFoundError(f"Object not found: {path}")
        try:
            return self._meta(ObjectPath(path), full_path)
        except OSError as e:
            raise StorageError(f"Failed to get metadata for {path}: {e}") from e

    def list_objects(
        self,
        prefix: str | None = None,
        delimiter: str | None = None,
        max_results: int = 1000,
        marker: str | None = None,
    ) -> ListResult:
        """List objects under a directory prefix.

        With ``delimiter`` set only the immediate children of ``prefix`` are
        listed and subdirectories are reported as prefixes.
        """
        base = ObjectPath(prefix or "")
        search_path = self._full_path(base)
        if not search_path.is_dir():
            return ListResult(objects=[], prefixes=[], is_truncated=False, next_marker=None)

        try:
            prefixes: list[ObjectPath] = []
            files: list[tuple[ObjectPath, Path]] = []
            entries = search_path.iterdir() if delimiter else search_path.rglob("*")
            for entry in entries:
                rel = ObjectPath(entry.relative_to(self._root).as_posix())
                if entry.is_dir():
                    if delimiter:
                        prefixes.append(rel)
                    continue
                files.append((rel, entry))

            files.sort(key=lambda item: item[0])
            if marker:
                files = [item for item in files if item[0] > marker]

            objects = [self._meta(rel, entry) for rel, entry in files[:max_results]]
            is_truncated = len(files) > max_results
            next_marker = objects[-1].path if is_truncated else None
            return ListResult(
                objects=objects,
                prefixes=page_prefixes(prefixes, marker, next_marker),
                is_truncated=is_truncated,
                next_marker=next_marker,
            )

        except OSError as e:
            raise StorageError(f"Failed to list objects under {base or DELIMITER}: {e}") from e

    def copy(self, source: str, dest: str) -> None:
        source_path = self._full_path(source)
        dest_path = self._full_path(dest)
        if not source_path.is_file():
            raise ObjectNotFoundError(f"Source object not found: {source}")
        try:
            dest_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source_path, dest_path)
            logger.info(f"Copied object: {source} -> {dest}")
        except OSError as e:
            raise StorageError(f"Failed to copy object {source}: {e}") from e
