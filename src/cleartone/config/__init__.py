"""Application configuration helpers."""

from __future__ import annotations

from .acoustid import AcoustIdConfig, get_acoustid_config
from .env import require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging, resolve_log_level
from .matching import MatchingConfig, get_matching_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "AcoustIdConfig",
    "CacheConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "MatchingConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "configure_logging",
    "get_acoustid_config",
    "get_database_config",
    "get_matching_config",
    "get_storage_config",
    "require_env_var",
    "require_env_vars",
    "resolve_log_level",
]
