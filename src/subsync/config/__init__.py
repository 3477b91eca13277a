"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .logging import configure_logging, null_logger
from .reconcile import DEFAULT_ACTIVATABLE_STATUSES, ReconcileConfig, get_reconcile_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .stripe import StripeConfig, get_stripe_config

__all__ = [
    "DEFAULT_ACTIVATABLE_STATUSES",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "ReconcileConfig",
    "StorageConfig",
    "StripeConfig",
    "configure_logging",
    "get_database_config",
    "get_reconcile_config",
    "get_storage_config",
    "get_stripe_config",
    "null_logger",
    "optional_env_var",
    "require_env_vars",
]
