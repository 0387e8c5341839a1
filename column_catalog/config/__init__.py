"""Configuration management."""

from .config import (
    Config,
    DataSourceConfig,
    CatalogConfig,
    LoggingConfig,
    load_config,
)

__all__ = [
    "Config",
    "DataSourceConfig",
    "CatalogConfig",
    "LoggingConfig",
    "load_config",
]
