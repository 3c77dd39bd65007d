"""Application configuration helpers."""

from __future__ import annotations

from .env import env_flag, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_client import HttpClientConfig, RateLimit
from .logging import configure_logging
from .storage import (
    DatabaseConfig,
    StorageConfig,
    get_database_config,
    get_database_uri,
    get_storage_config,
)
from .store import StoreBackend, StoreConfig, get_store_config
from .supabase import SupabaseConfig, get_supabase_config

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "HttpClientConfig",
    "MissingConfigurationError",
    "RateLimit",
    "StorageConfig",
    "StoreBackend",
    "StoreConfig",
    "SupabaseConfig",
    "configure_logging",
    "env_flag",
    "get_database_config",
    "get_database_uri",
    "get_storage_config",
    "get_store_config",
    "get_supabase_config",
    "require_env_var",
    "require_env_vars",
]
