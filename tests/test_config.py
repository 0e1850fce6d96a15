"""Tests for configuration loading and storage settings."""

from __future__ import annotations

import sys
import types

import pytest

from kwindex.core.utils.config import (
    ConfigError,
    StorageSettings,
    load_config_from_module,
    load_config_with_fallback,
    load_storage_settings,
)


@pytest.fixture
def config_module(monkeypatch):
    """Register an importable in-memory config module."""

    def register(name: str, **attrs):
        module = types.ModuleType(name)
        for key, value in attrs.items():
            setattr(module, key, value)
        monkeypatch.setitem(sys.modules, name, module)
        return module

    return register


class TestLoadConfig:
    def test_load_from_module(self, config_module):
        config_module("custom_storage_settings", CONFIGURATION={"endpoint": "minio:9000"})

        assert load_config_from_module("custom_storage_settings") == {"endpoint": "minio:9000"}

    def test_missing_module_returns_default(self):
        assert load_config_from_module("no.such.module", default={"x": 1}) == {"x": 1}

    def test_missing_attribute_returns_default(self, config_module):
        config_module("settings_without_config", OTHER={})

        assert load_config_from_module("settings_without_config") is None

    def test_fallback_order(self, config_module):
        config_module("fallback_settings", CONFIGURATION={"endpoint": "fallback:9000"})

        config = load_config_with_fallback("no.such.module", fallback_modules=["fallback_settings"])

        assert config == {"endpoint": "fallback:9000"}

    def test_fallback_default(self):
        assert load_config_with_fallback(None, ["no.such.module"], default={}) == {}


class TestStorageSettings:
    def test_defaults(self):
        settings = StorageSettings.from_mapping({})

        assert settings.endpoint == "s3.amazonaws.com"
        assert settings.region is None
        assert settings.secure is True
        assert settings.validate_bucket is False

    def test_host_endpoint(self):
        settings = StorageSettings.from_mapping(
            {"endpoint": "minio.local:9000", "region": "eu-west-1", "secure": False}
        )

        assert settings.endpoint == "minio.local:9000"
        assert settings.region == "eu-west-1"
        assert settings.secure is False

    def test_url_endpoint_sets_tls(self):
        assert StorageSettings.from_mapping({"endpoint": "http://localhost:9000"}) == StorageSettings(
            endpoint="localhost:9000", secure=False
        )
        assert StorageSettings.from_mapping({"endpoint": "https://s3.example.com"}).secure is True

    def test_explicit_secure_overrides_url(self):
        settings = StorageSettings.from_mapping({"endpoint": "http://localhost:9000", "secure": True})

        assert settings.secure is True

    def test_invalid_endpoint_url(self):
        with pytest.raises(ConfigError):
            StorageSettings.from_mapping({"endpoint": "ftp://host"})

    @pytest.mark.parametrize("value,expected", [("true", True), ("1", True), ("false", False), (True, True)])
    def test_validate_bucket_parsing(self, value, expected):
        assert StorageSettings.from_mapping({"validate_bucket": value}).validate_bucket is expected

    def test_empty_region_is_none(self):
        assert StorageSettings.from_mapping({"region": ""}).region is None


class TestLoadStorageSettings:
    def test_explicit_module(self, config_module):
        config_module("deploy_settings", CONFIGURATION={"endpoint": "minio:9000", "secure": False})

        settings = load_storage_settings("deploy_settings")

        assert settings == StorageSettings(endpoint="minio:9000", secure=False)

    def test_env_selects_module(self, config_module, monkeypatch):
        config_module("env_settings", CONFIGURATION={"endpoint": "env-host:9000"})
        monkeypatch.setenv("KWINDEX_STORAGE_CONFIG", "env_settings")

        assert load_storage_settings().endpoint == "env-host:9000"

    def test_packaged_defaults(self, clean_env):
        settings = load_storage_settings()

        assert isinstance(settings, StorageSettings)
        assert settings.endpoint

    def test_non_mapping_rejected(self, config_module):
        config_module("bad_settings", CONFIGURATION=["not", "a", "mapping"])

        with pytest.raises(ConfigError):
            load_storage_settings("bad_settings")
