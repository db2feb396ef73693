"""Application configuration helpers."""

from __future__ import annotations

from .catalog import DEFAULT_SUPPLIER_PRIORITIES, get_catalog_policy
from .errors import ConfigurationError
from .logging import configure_logging
from .recompute import RecomputeConfig, get_recompute_config
from .storage import (
    DatabaseConfig,
    StorageConfig,
    get_database_config,
    get_database_uri,
    get_storage_config,
)

__all__ = [
    "DEFAULT_SUPPLIER_PRIORITIES",
    "ConfigurationError",
    "DatabaseConfig",
    "RecomputeConfig",
    "StorageConfig",
    "configure_logging",
    "get_catalog_policy",
    "get_database_config",
    "get_database_uri",
    "get_recompute_config",
    "get_storage_config",
]
