"""Utility functions for kwindex."""

from kwindex.core.utils.config import (
    ConfigError,
    StorageSettings,
    load_config_from_module,
    load_config_with_fallback,
    load_storage_settings,
)

__all__ = [
    "load_config_from_module",
    "load_config_with_fallback",
    "load_storage_settings",
    "StorageSettings",
    "ConfigError",
]
