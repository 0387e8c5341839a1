"""Configuration management for the column catalog."""

from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional
import yaml
from pathlib import Path

SUPPORTED_DATASOURCE_TYPES = ("duckdb",)


@dataclass
class DataSourceConfig:
    """Configuration for a single data source."""

    name: str
    type: str  # "duckdb"
    config: Dict[str, Any]


@dataclass
class CatalogConfig:
    """Configuration for catalog reading."""

    skip_unresolvable_columns: bool = True
    schemas: List[str] = field(default_factory=list)  # empty: every schema


@dataclass
class LoggingConfig:
    """Configuration for logging output."""

    level: str = "INFO"
    structured: bool = False
    log_file: Optional[str] = None


@dataclass
class Config:
    """Main configuration class."""

    datasources: Dict[str, DataSourceConfig] = field(default_factory=dict)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(config_path: str) -> Config:
    """Load configuration from YAML file.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Parsed configuration

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If a data source has an unsupported type

    Example YAML format:
        datasources:
          employees:
            type: duckdb
            path: /data/employees.duckdb
            read_only: true
            server_version: "3.0"

        catalog:
          skip_unresolvable_columns: true
          schemas: [main]

        logging:
          level: DEBUG
          structured: false
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}

    datasources = {}
    for name, ds_config in (data.get("datasources") or {}).items():
        ds_type = ds_config.pop("type")
        if ds_type not in SUPPORTED_DATASOURCE_TYPES:
            raise ValueError(f"Unsupported data source type: {ds_type}")
        datasources[name] = DataSourceConfig(name=name, type=ds_type, config=ds_config)

    catalog = CatalogConfig(**(data.get("catalog") or {}))
    logging_config = LoggingConfig(**(data.get("logging") or {}))

    return Config(datasources=datasources, catalog=catalog, logging=logging_config)
