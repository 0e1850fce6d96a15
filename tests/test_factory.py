"""Tests for the remote and local store factories."""

from __future__ import annotations

import sys
import types
from unittest.mock import Mock, patch

import pytest

from kwindex.core.storage import (
    CredentialResolutionError,
    InvalidBucketNameError,
    InvalidLocalPathError,
    LocalStoreFactory,
    ObjectPath,
    RemoteStoreFactory,
    StoreConstructionError,
    StoreKind,
    create_local_store,
    create_remote_store,
    split_local_path,
)
from kwindex.core.storage.backends import FilesystemBackend
from kwindex.core.utils.config import StorageSettings

MINIO_CLASS = "kwindex.core.storage.backends.minio_backend.Minio"


class TestSplitLocalPath:
    """Root/remainder split for both path conventions."""

    def test_posix_path(self):
        root, relative = split_local_path("/home/user/data/file.bin", drive_letters=False)

        assert root == "/"
        assert relative == "home/user/data/file.bin"
        assert isinstance(relative, ObjectPath)

    def test_posix_root_itself(self):
        assert split_local_path("/", drive_letters=False) == ("/", "")

    def test_windows_path(self):
        root, relative = split_local_path("C:\\Users\\user\\data\\file.bin", drive_letters=True)

        assert root == "C:\\"
        assert relative == "Users/user/data/file.bin"

    def test_windows_extra_leading_separators(self):
        root, relative = split_local_path("D:\\\\data\\file.bin", drive_letters=True)

        assert root == "D:\\"
        assert relative == "data/file.bin"

    def test_windows_forward_slashes_in_remainder(self):
        _, relative = split_local_path("C:\\data/nested\\file.bin", drive_letters=True)

        assert relative == "data/nested/file.bin"
        assert "\\" not in relative

    @pytest.mark.parametrize("path", ["\\\\server\\share\\file.bin", "/unix/style/path", "C:/data/file.bin"])
    def test_windows_without_drive_marker(self, path):
        with pytest.raises(InvalidLocalPathError):
            split_local_path(path, drive_letters=True)


class TestLocalStoreFactory:
    def test_build_returns_rooted_store_and_relative_path(self, tmp_path):
        target = tmp_path / "dir" / "file.bin"
        target.parent.mkdir()
        target.write_bytes(b"contents")

        store, path = LocalStoreFactory(drive_letters=False).build(str(target))

        assert isinstance(store, FilesystemBackend)
        assert store.kind is StoreKind.LOCAL
        assert str(store.root) == "/"
        assert path == str(target).lstrip("/")
        assert store.get(path) == b"contents"

    def test_create_local_store(self, tmp_path):
        target = tmp_path / "file.bin"
        target.write_bytes(b"abc")

        store = create_local_store()

        assert store.get(str(target)) == b"abc"


class TestRemoteStoreFactory:
    """Credential handling and construction errors."""

    @pytest.fixture
    def settings(self):
        return StorageSettings(endpoint="s3.amazonaws.com", region="us-east-1")

    @patch(MINIO_CLASS)
    def test_anonymous_skips_credentials(self, mock_minio_class, settings, clean_env):
        chain = Mock()

        store = RemoteStoreFactory(settings, credential_chain=chain).build("public-data", anonymous=True)

        chain.assert_not_called()
        assert store.anonymous is True
        assert store.bucket == "public-data"
        kwargs = mock_minio_class.call_args.kwargs
        assert kwargs["credentials"] is None
        assert kwargs["endpoint"] == "s3.amazonaws.com"
        assert kwargs["region"] == "us-east-1"
        assert kwargs["secure"] is True

    @patch(MINIO_CLASS)
    def test_anonymous_with_default_chain_and_no_credentials(self, mock_minio_class, settings, clean_env):
        store = RemoteStoreFactory(settings).build("public-data", anonymous=True)

        assert store.anonymous is True

    @patch(MINIO_CLASS)
    def test_signed_resolves_credentials(self, mock_minio_class, settings):
        provider = Mock()
        factory = RemoteStoreFactory(settings, credential_chain=lambda: provider)

        store = factory.build("private-data")

        provider.retrieve.assert_called_once()
        assert store.anonymous is False
        assert mock_minio_class.call_args.kwargs["credentials"] is provider

    @patch(MINIO_CLASS)
    def test_credential_failure(self, mock_minio_class, settings):
        provider = Mock()
        provider.retrieve.side_effect = ValueError("All providers fail to fetch credentials")
        factory = RemoteStoreFactory(settings, credential_chain=lambda: provider)

        with pytest.raises(CredentialResolutionError) as exc_info:
            factory.build("private-data")

        assert isinstance(exc_info.value, StoreConstructionError)
        mock_minio_class.assert_not_called()

    @patch(MINIO_CLASS)
    def test_env_credentials_through_default_chain(self, mock_minio_class, settings, clean_env, monkeypatch):
        monkeypatch.setenv("AWS_ACCESS_KEY_ID", "AKIDEXAMPLE")
        monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "secret")

        store = RemoteStoreFactory(settings).build("private-data")

        provider = mock_minio_class.call_args.kwargs["credentials"]
        assert provider.retrieve().access_key == "AKIDEXAMPLE"
        assert store.anonymous is False

    @pytest.mark.parametrize("bucket", ["ab", "Bad_Bucket", "-leading-dash", "a" * 64])
    def test_invalid_bucket_name(self, bucket, settings):
        with pytest.raises(InvalidBucketNameError):
            RemoteStoreFactory(settings).build(bucket, anonymous=True)

    @patch(MINIO_CLASS)
    def test_validation_failure_is_construction_error(self, mock_minio_class, s3_error):
        mock_client = Mock()
        mock_client.bucket_exists.side_effect = s3_error("AccessDenied")
        mock_minio_class.return_value = mock_client
        settings = StorageSettings(validate_bucket=True)

        with pytest.raises(StoreConstructionError):
            RemoteStoreFactory(settings).build("some-bucket", anonymous=True)

    @patch(MINIO_CLASS)
    def test_create_remote_store_is_uncached(self, mock_minio_class, clean_env, monkeypatch):
        module = types.ModuleType("minio_deploy_settings")
        module.CONFIGURATION = {"endpoint": "http://minio.internal:9000", "region": "eu-west-1"}
        monkeypatch.setitem(sys.modules, "minio_deploy_settings", module)
        monkeypatch.setenv("KWINDEX_STORAGE_CONFIG", "minio_deploy_settings")

        first = create_remote_store("shared-data", anonymous=True)
        second = create_remote_store("shared-data", anonymous=True)

        assert first is not second
        assert first.bucket == second.bucket == "shared-data"
        assert mock_minio_class.call_count == 2
        kwargs = mock_minio_class.call_args.kwargs
        assert kwargs["endpoint"] == "minio.internal:9000"
        assert kwargs["region"] == "eu-west-1"
        assert kwargs["secure"] is False
        assert kwargs["credentials"] is None

    def test_invalid_configuration_is_construction_error(self, clean_env, monkeypatch):
        module = types.ModuleType("ftp_endpoint_settings")
        module.CONFIGURATION = {"endpoint": "ftp://host"}
        monkeypatch.setitem(sys.modules, "ftp_endpoint_settings", module)
        monkeypatch.setenv("KWINDEX_STORAGE_CONFIG", "ftp_endpoint_settings")

        with pytest.raises(StoreConstructionError, match="Invalid storage configuration"):
            RemoteStoreFactory()
