"""S3-compatible remote store built on the MinIO client."""

from __future__ import annotations

import logging
from io import BytesIO

import urllib3
from minio import Minio
from minio.commonconfig import CopySource
from minio.credentials import Provider
from minio.error import S3Error

from kwindex.core.storage.errors import (
    ObjectNotFoundError,
    StorageError,
    StoreConstructionError,
)
from kwindex.core.storage.paths import DELIMITER, ObjectPath
from kwindex.core.storage.store import (
    ListResult,
    ObjectMeta,
    ObjectStore,
    StoreKind,
    check_range,
)

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = {"NoSuchKey", "NoSuchObject", "ResourceNotFound"}


class MinIOBackend(ObjectStore):
    """Store rooted at one S3 bucket.

    With ``credentials=None`` every request is sent unsigned, which is how
    public buckets are read without any configured credentials.
    """

    kind = StoreKind.REMOTE

    def __init__(
        self,
        endpoint: str,
        bucket: str,
        credentials: Provider | None = None,
        secure: bool = True,
        region: str | None = None,
        validate: bool = False,
    ):
        """Initialize the remote store.

        Args:
            endpoint: S3 endpoint host[:port] (e.g., 's3.amazonaws.com')
            bucket: Bucket name to use
            credentials: MinIO credential provider, None for unsigned requests
            secure: Use HTTPS if True
            region: Optional region name
            validate: Issue a HEAD bucket request now and fail fast if it errors

        Raises:
            StoreConstructionError: If the endpoint is rejected, validation
                                    fails or the bucket is missing
        """
        self._bucket = bucket
        self._anonymous = credentials is None
        try:
            self._client = Minio(
                endpoint=endpoint,
                credentials=credentials,
                secure=secure,
                region=region,
            )
        except ValueError as e:
            raise StoreConstructionError(f"Invalid S3 endpoint {endpoint!r}: {e}") from e

        if validate:
            try:
                found = self._client.bucket_exists(bucket_name=bucket)
            except (S3Error, urllib3.exceptions.HTTPError) as e:
                raise StoreConstructionError(f"Failed to reach bucket {bucket}: {e}") from e
            if not found:
                raise StoreConstructionError(f"Bucket does not exist: {bucket}")

        mode = "anonymous" if self._anonymous else "signed"
        logger.info(f"Initialized remote store for bucket {bucket} at {endpoint} ({mode})")

    @property
    def bucket(self) -> str:
        return self._bucket

    @property
    def anonymous(self) -> bool:
        return self._anonymous

    def _error(self, e: Exception, action: str, path: str) -> StorageError:
        if isinstance(e, S3Error) and e.code in NOT_FOUND_CODES:
            return ObjectNotFoundError(f"Object not found: s3://{self._bucket}/{path}")
        return StorageError(f"Failed to {action} s3://{self._bucket}/{path}: {e}")

    def _read(self, path: str, offset: int = 0, length: int = 0) -> bytes:
        response = self._client.get_object(
            bucket_name=self._bucket,
            object_name=ObjectPath(path),
            offset=offset,
            length=length,
        )
        try:
            return response.read()
        finally:
            response.close()
            response.release_conn()

    def put(self, path: str, data: bytes, content_type: str | None = None) -> str:
        key = ObjectPath(path)
        try:
            result = self._client.put_object(
                bucket_name=self._bucket,
                object_name=key,
                data=BytesIO(data),
                length=len(data),
                content_type=content_type or "application/octet-stream",
            )
            logger.info(f"Stored object: s3://{self._bucket}/{key} (etag: {result.etag})")
            return result.etag

        except (S3Error, urllib3.exceptions.HTTPError) as e:
            raise self._error(e, "store", key) from e

    def get(self, path: str) -> bytes:
        try:
            return self._read(path)
        except (S3Error, urllib3.exceptions.HTTPError) as e:
            raise self._error(e, "retrieve", path) from e

    def get_range(self, path: str, start: int, end: int) -> bytes:
        check_range(start, end)
        if start == end:
            return b""
        try:
            return self._read(path, offset=start, length=end - start)
        except S3Error as e:
            # Range starting past the end of the object
            if e.code == "InvalidRange":
                return b""
            raise self._error(e, "retrieve range of", path) from e
        except urllib3.exceptions.HTTPError as e:
            raise self._error(e, "retrieve range of", path) from e

    def delete(self, path: str) -> None:
        # S3 deletes are idempotent, so existence has to be checked first
        self.head(path)
        try:
            self._client.remove_object(bucket_name=self._bucket, object_name=ObjectPath(path))
            logger.info(f"Deleted object: s3://{self._bucket}/{path}")
        except (S3Error, urllib3.exceptions.HTTPError) as e:
            raise self._error(e, "delete", path) from e

    def exists(self, path: str) -> bool:
        try:
            self.head(path)
            return True
        except ObjectNotFoundError:
            return False

    def head(self, path: str) -> ObjectMeta:
        key = ObjectPath(path)
        try:
            stat = self._client.stat_object(bucket_name=self._bucket, object_name=key)
        except (S3Error, urllib3.exceptions.HTTPError) as e:
            raise self._error(e, "get metadata for", key) from e

        return ObjectMeta(
            path=key,
            size=stat.size,
            last_modified=stat.last_modified,
            etag=stat.etag,
            content_type=stat.content_type,
        )

    def list_objects(
        self,
        prefix: str | None = None,
        delimiter: str | None = None,
        max_results: int = 1000,
        marker: str | None = None,
    ) -> ListResult:
        base = ObjectPath(prefix or "")
        try:
            listing = self._client.list_objects(
                bucket_name=self._bucket,
                prefix=f"{base}{DELIMITER}" if base else None,
                recursive=delimiter is None,
                start_after=marker,
            )

            objects = []
            prefixes = []
            for obj in listing:
                if obj.is_dir:
                    # start_after still returns "dir/" for a "dir" marker
                    name = ObjectPath(obj.object_name)
                    if not marker or name > marker:
                        prefixes.append(name)
                    continue
                if len(objects) == max_results:
                    # The client has no page limit, so stop reading here
                    return ListResult(
                        objects=objects,
                        prefixes=prefixes,
                        is_truncated=True,
                        next_marker=objects[-1].path,
                    )
                objects.append(
                    ObjectMeta(
                        path=ObjectPath(obj.object_name),
                        size=obj.size,
                        last_modified=obj.last_modified,
                        etag=obj.etag,
                    )
                )

            return ListResult(
                objects=objects, prefixes=prefixes, is_truncated=False, next_marker=None
            )

        except (S3Error, urllib3.exceptions.HTTPError) as e:
            raise self._error(e, "list", base) from e

    def copy(self, source: str, dest: str) -> None:
        try:
            self._client.copy_object(
                bucket_name=self._bucket,
                object_name=ObjectPath(dest),
                source=CopySource(self._bucket, ObjectPath(source)),
            )
            logger.info(f"Copied object: {source} -> {dest}")
        except (S3Error, urllib3.exceptions.HTTPError) as e:
            raise self._error(e, "copy", source) from e
