"""Store implementations."""

from kwindex.core.storage.backends.filesystem_backend import FilesystemBackend
from kwindex.core.storage.backends.memory_backend import MemoryBackend
from kwindex.core.storage.backends.minio_backend import MinIOBackend

__all__ = [
    "FilesystemBackend",
    "MemoryBackend",
    "MinIOBackend",
]
