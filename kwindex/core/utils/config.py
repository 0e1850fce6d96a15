"""Configuration loading utilities using importlib.

Storage settings live in a plain Python module exposing a ``CONFIGURATION``
dict. The module is imported by dotted path, so deployments can point the
library at their own settings module without code changes.
"""

from __future__ import annotations

import importlib
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_MODULE = "kwindex.core.storage.storage_config"
CONFIG_MODULE_ENV = "KWINDEX_STORAGE_CONFIG"
DEFAULT_ENDPOINT = "s3.amazonaws.com"

_TRUE_VALUES = {"1", "true", "yes", "on"}


class ConfigError(Exception):
    """Raised when configuration values are invalid."""

    pass


def load_config_from_module(
    module_path: str,
    config_name: str = "CONFIGURATION",
    default: Any | None = None,
) -> Any:
    """Load a configuration object from a Python module using importlib.

    Args:
        module_path: Dotted module path (e.g., "kwindex.core.storage.storage_config")
        config_name: Name of the configuration object to retrieve (default: "CONFIGURATION")
        default: Default value to return if loading fails

    Returns:
        The configuration object from the module, or default if loading fails
    """
    try:
        module = importlib.import_module(module_path)
    except ImportError as e:
        logger.warning(f"Could not import module '{module_path}': {e}")
        return default

    if not hasattr(module, config_name):
        logger.warning(f"Module '{module_path}' does not have attribute '{config_name}'")
        return default

    logger.debug(f"Loaded configuration from {module_path}.{config_name}")
    return getattr(module, config_name)


def load_config_with_fallback(
    primary_module: str | None,
    fallback_modules: list[str] | None = None,
    config_name: str = "CONFIGURATION",
    default: Any | None = None,
) -> Any:
    """Load configuration from the first module that provides it.

    Examples:
        >>> config = load_config_with_fallback(
        ...     "myapp.storage_settings",
        ...     fallback_modules=["kwindex.core.storage.storage_config"]
        ... )
    """
    if primary_module:
        config = load_config_from_module(primary_module, config_name, default=None)
        if config is not None:
            return config

    for fallback in fallback_modules or []:
        config = load_config_from_module(fallback, config_name, default=None)
        if config is not None:
            if primary_module:
                logger.info(f"Using fallback configuration from '{fallback}'")
            return config

    logger.warning(f"Could not load configuration from any module, using default: {default}")
    return default


def parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES


@dataclass(frozen=True)
class StorageSettings:
    """Settings for building remote stores.

    Attributes:
        endpoint: S3 endpoint as host[:port]
        region: Region name, or None to let the client discover it
        secure: Use HTTPS
        validate_bucket: Check the bucket with a HEAD request when a store is built
    """

    endpoint: str = DEFAULT_ENDPOINT
    region: str | None = None
    secure: bool = True
    validate_bucket: bool = False

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> StorageSettings:
        """Build settings from a CONFIGURATION-style mapping.

        ``endpoint`` may be given as a URL; its scheme then decides ``secure``
        unless ``secure`` is set explicitly.
        """
        endpoint = config.get("endpoint") or DEFAULT_ENDPOINT
        secure = config.get("secure")

        if "://" in endpoint:
            parts = urlsplit(endpoint)
            if parts.scheme not in ("http", "https") or not parts.netloc:
                raise ConfigError(f"Invalid S3 endpoint: {endpoint}")
            if secure is None:
                secure = parts.scheme == "https"
            endpoint = parts.netloc

        return cls(
            endpoint=endpoint,
            region=config.get("region") or None,
            secure=True if secure is None else parse_bool(secure),
            validate_bucket=parse_bool(config.get("validate_bucket", False)),
        )


def load_storage_settings(module_path: str | None = None) -> StorageSettings:
    """Load storage settings.

    The module named by ``module_path`` (or the ``KWINDEX_STORAGE_CONFIG``
    environment variable) is tried first, then the packaged defaults.
    """
    primary = module_path or os.environ.get(CONFIG_MODULE_ENV)
    config = load_config_with_fallback(
        primary,
        fallback_modules=[DEFAULT_CONFIG_MODULE],
        default={},
    )
    if not isinstance(config, Mapping):
        raise ConfigError(f"Storage configuration must be a mapping, got {type(config).__name__}")
    return StorageSettings.from_mapping(config)
