from __future__ import annotations

import threading
from unittest.mock import Mock

import pytest
from minio.error import S3Error

from kwindex.core.storage import StoreCache, StoreConstructionError, StoreResolver
from kwindex.core.storage.backends import MemoryBackend
from kwindex.core.storage.factory import LocalStoreFactory
from kwindex.core.storage.store import StoreKind

AWS_ENV_KEYS = [
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "AWS_SESSION_TOKEN",
    "AWS_ENDPOINT_URL",
    "AWS_REGION",
    "AWS_DEFAULT_REGION",
    "AWS_ALLOW_HTTP",
    "MINIO_ACCESS_KEY",
    "MINIO_SECRET_KEY",
    "KWINDEX_STORAGE_CONFIG",
    "KWINDEX_VALIDATE_BUCKET",
]


@pytest.fixture
def clean_env(monkeypatch):
    """Remove AWS/MinIO settings so tests never pick up real credentials."""
    for key in AWS_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def s3_error():
    """Factory for minio S3Error instances with a given error code."""

    def make(code: str, message: str = "error") -> S3Error:
        return S3Error(
            code=code,
            message=message,
            resource="/",
            request_id="",
            host_id="",
            response=None,
        )

    return make


class FakeRemoteFactory:
    """Stands in for RemoteStoreFactory and records every build."""

    def __init__(self, delay: float = 0.0, fail_times: int = 0):
        self.calls: list[tuple[str, bool]] = []
        self.delay = delay
        self.fail_times = fail_times
        self._lock = threading.Lock()

    def build(self, bucket: str, anonymous: bool = False):
        with self._lock:
            self.calls.append((bucket, anonymous))
            should_fail = self.fail_times > 0
            if should_fail:
                self.fail_times -= 1
        if self.delay:
            threading.Event().wait(self.delay)
        if should_fail:
            raise StoreConstructionError(f"cannot build {bucket}")

        store = Mock(name=f"store-{bucket}-{anonymous}")
        store.kind = StoreKind.REMOTE
        store.bucket = bucket
        store.anonymous = anonymous
        return store


@pytest.fixture
def fake_factory():
    return FakeRemoteFactory()


@pytest.fixture
def resolver(fake_factory):
    """Resolver with a fresh cache and a recording remote factory."""
    return StoreResolver(
        cache=StoreCache(),
        remote_factory=fake_factory,
        local_factory=LocalStoreFactory(drive_letters=False),
        memory_store=MemoryBackend(),
    )


@pytest.fixture
def slow_factory():
    """Recording factory whose builds take long enough for callers to race."""
    return FakeRemoteFactory(delay=0.05)
