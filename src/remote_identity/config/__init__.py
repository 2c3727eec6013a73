"""Application configuration helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .env import ENV_PREFIX, settings_from_environment
from .errors import ConfigurationError
from .provider import (
    DEFAULT_PRIORITY,
    ProviderConfig,
    RawProviderSettings,
    load_provider_config,
    provider_config_from_settings,
)
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

if TYPE_CHECKING:
    from collections.abc import Mapping


def get_provider_config(environ: Mapping[str, str] | None = None) -> ProviderConfig:
    """Load the provider configuration from the process (or given) environment."""

    return load_provider_config(settings_from_environment(environ))


__all__ = [
    "DEFAULT_PRIORITY",
    "ENV_PREFIX",
    "ConfigurationError",
    "DatabaseConfig",
    "ProviderConfig",
    "RawProviderSettings",
    "StorageConfig",
    "get_database_config",
    "get_provider_config",
    "get_storage_config",
    "load_provider_config",
    "provider_config_from_settings",
    "settings_from_environment",
]
