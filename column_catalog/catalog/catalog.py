"""Catalog for managing column metadata across data sources."""

import logging
from typing import TYPE_CHECKING, Dict, Optional, Tuple

from ..errors import RegistryLookupError
from .schema import ColumnDescriptor, Schema, Table

if TYPE_CHECKING:
    from ..config import CatalogConfig
    from ..datasources.base import ColumnMetadata, DataSource

logger = logging.getLogger(__name__)


class Catalog:
    """Central catalog reading table and column metadata from data sources."""

    def __init__(self, config: Optional["CatalogConfig"] = None):
        """Initialize catalog.

        Args:
            config: Catalog reading options; defaults apply when omitted
        """
        self.datasources: Dict[str, "DataSource"] = {}
        self.schemas: Dict[Tuple[str, str], Schema] = {}  # (datasource, schema_name) -> Schema
        self.skip_unresolvable_columns = True
        self.schema_filter = []
        if config is not None:
            self.skip_unresolvable_columns = config.skip_unresolvable_columns
            self.schema_filter = list(config.schemas)
        self._metadata_loaded = False

    def register_datasource(self, datasource: "DataSource") -> None:
        """Register a data source with the catalog.

        Args:
            datasource: Data source to register
        """
        self.datasources[datasource.name] = datasource

    def load_metadata(self) -> None:
        """Load metadata from all registered data sources.

        Discovers schemas, tables and columns. Each column's type is
        resolved while it is built; computed definitions are left unloaded.

        Raises:
            RegistryLookupError: If a column's domain or the type registry
                cannot be read and skip_unresolvable_columns is off
        """
        for ds_name, datasource in self.datasources.items():
            if datasource.connection is None:
                datasource.connect()

            for schema_name in datasource.list_schemas():
                if self.schema_filter and schema_name not in self.schema_filter:
                    continue
                schema = Schema(name=schema_name, datasource=ds_name)

                for table_name in datasource.list_tables(schema_name):
                    table = Table(name=table_name, datasource=datasource)
                    schema.add_table(table)
                    self._load_columns(datasource, schema_name, table)

                self.schemas[(ds_name, schema_name)] = schema

        self._metadata_loaded = True

    def _load_columns(self, datasource: "DataSource", schema_name: str, table: Table) -> None:
        metadata = datasource.get_table_metadata(schema_name, table.name)
        for col_meta in metadata.columns:
            descriptor = self._build_descriptor(col_meta)
            try:
                table.add_column(descriptor)
            except RegistryLookupError as e:
                if not self.skip_unresolvable_columns:
                    raise
                logger.warning(
                    f"Skipping column {table.name}.{descriptor.name}: {e} ({e.cause})"
                )

    def _build_descriptor(self, col_meta: "ColumnMetadata") -> ColumnDescriptor:
        return ColumnDescriptor(
            name=col_meta.name,
            type_name=col_meta.data_type,
            ordinal_position=col_meta.ordinal_position,
            nullable=col_meta.nullable,
            max_length=col_meta.max_length,
            scale=col_meta.scale,
            precision=col_meta.precision,
            default_value=col_meta.default_value,
            description=col_meta.description,
            auto_increment=col_meta.auto_increment,
            auto_generated=col_meta.auto_generated,
        )

    def get_datasource(self, name: str) -> Optional["DataSource"]:
        """Get data source by name.

        Args:
            name: Data source name

        Returns:
            Data source if found, None otherwise
        """
        return self.datasources.get(name)

    def get_schema(self, datasource: str, schema_name: str) -> Optional[Schema]:
        """Get schema by data source and name.

        Args:
            datasource: Data source name
            schema_name: Schema name

        Returns:
            Schema if found, None otherwise
        """
        return self.schemas.get((datasource, schema_name))

    def get_table(
        self, datasource: str, schema_name: str, table_name: str
    ) -> Optional[Table]:
        """Get table by fully qualified name.

        Args:
            datasource: Data source name
            schema_name: Schema name
            table_name: Table name

        Returns:
            Table if found, None otherwise
        """
        schema = self.get_schema(datasource, schema_name)
        if schema:
            return schema.get_table(table_name)
        return None

    def resolve_table(self, table_ref: str) -> Optional[Tuple[str, str, str, Table]]:
        """Resolve a table reference to its components.

        Supports formats:
        - datasource.schema.table
        - schema.table (searches all data sources)
        - table (searches all schemas)

        Args:
            table_ref: Table reference string

        Returns:
            Tuple of (datasource, schema, table_name, Table) if found, None otherwise
        """
        parts = table_ref.split(".")

        if len(parts) == 3:
            ds, schema_name, table_name = parts
            table = self.get_table(ds, schema_name, table_name)
            if table:
                return (ds, schema_name, table.name, table)

        elif len(parts) == 2:
            schema_name, table_name = parts
            for (ds, sch_name), schema in self.schemas.items():
                if sch_name.lower() == schema_name.lower():
                    table = schema.get_table(table_name)
                    if table:
                        return (ds, sch_name, table.name, table)

        elif len(parts) == 1:
            table_name = parts[0]
            for (ds, sch_name), schema in self.schemas.items():
                table = schema.get_table(table_name)
                if table:
                    return (ds, sch_name, table.name, table)

        return None

    def __repr__(self) -> str:
        return f"Catalog(datasources={len(self.datasources)}, schemas={len(self.schemas)})"
