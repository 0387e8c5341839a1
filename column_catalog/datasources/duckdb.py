"""DuckDB data source implementation."""

from typing import Any, Dict, List, Optional
import duckdb
import logging

from ..catalog.types import (
    FIELD_TYPE_NAMES,
    DataKind,
    DataTypeHandle,
    TypeRegistry,
    map_data_kind,
)
from ..errors import CatalogAccessError
from .base import (
    ColumnMetadata,
    DataSource,
    PreparedQuery,
    ResultCursor,
    ScopedSession,
    TableMetadata,
)

logger = logging.getLogger(__name__)

SYSTEM_TABLES = ("RELATION_FIELDS", "FIELDS")

FIELDS_DDL = """
    CREATE TABLE IF NOT EXISTS FIELDS (
        FIELD_NAME VARCHAR PRIMARY KEY,
        FIELD_TYPE SMALLINT,
        COMPUTED_SOURCE VARCHAR,
        CHARACTER_SET_NAME VARCHAR
    )
"""

RELATION_FIELDS_DDL = """
    CREATE TABLE IF NOT EXISTS RELATION_FIELDS (
        RELATION_NAME VARCHAR,
        FIELD_NAME VARCHAR,
        FIELD_SOURCE VARCHAR,
        IDENTITY_TYPE SMALLINT
    )
"""

# Field sources generated by the server for plain columns carry this prefix
SYSTEM_FIELD_PREFIX = "RDB$"


def install_system_catalog(connection) -> None:
    """Create the FIELDS and RELATION_FIELDS system tables if missing."""
    connection.execute(FIELDS_DDL)
    connection.execute(RELATION_FIELDS_DDL)


class DuckDBResultCursor(ResultCursor):
    """Row-at-a-time reader over an executed DuckDB cursor."""

    def __init__(self, cursor):
        self._cursor = cursor
        self._labels = {}
        for index, desc in enumerate(cursor.description or []):
            self._labels[desc[0].upper()] = index
        self._row = None

    def next(self) -> bool:
        self._row = self._cursor.fetchone()
        return self._row is not None

    def get_string(self, column_label: str) -> Optional[str]:
        if self._row is None:
            raise RuntimeError("Cursor is not positioned on a row")
        index = self._labels.get(column_label.upper())
        if index is None:
            raise KeyError(f"No result column labelled '{column_label}'")
        value = self._row[index]
        if value is None:
            return None
        return str(value)


class DuckDBPreparedQuery(PreparedQuery):
    """Parameterized statement executed on a dedicated DuckDB cursor."""

    def __init__(self, cursor, sql: str):
        self._cursor = cursor
        self.sql = sql
        self.parameters: Dict[int, Any] = {}

    def bind(self, index: int, value: Any) -> None:
        if index < 1:
            raise ValueError(f"Parameter index must be 1-based, got {index}")
        self.parameters[index] = value

    def execute_query(self) -> DuckDBResultCursor:
        params = self._ordered_parameters()
        logger.debug(f"Executing catalog query: {self.sql[:100]}...")
        self._cursor.execute(self.sql, params)
        return DuckDBResultCursor(self._cursor)

    def _ordered_parameters(self) -> List[Any]:
        params = []
        for index in range(1, len(self.parameters) + 1):
            if index not in self.parameters:
                raise ValueError(f"Parameter {index} is not bound")
            params.append(self.parameters[index])
        return params

    def close(self) -> None:
        self._cursor.close()


class DuckDBSession(ScopedSession):
    """Scoped session handing out cursors of one DuckDB connection."""

    def __init__(self, purpose: str, connection):
        super().__init__(purpose)
        self._connection = connection

    def prepare(self, sql: str) -> DuckDBPreparedQuery:
        cursor = self._connection.cursor()
        return self._track(DuckDBPreparedQuery(cursor, sql))


class DuckDBDataSource(DataSource):
    """DuckDB data source connector.

    The vendor system tables FIELDS and RELATION_FIELDS are plain DuckDB
    tables; see install_system_catalog.
    """

    def __init__(self, name: str, config: Dict[str, Any]):
        """Initialize DuckDB data source.

        Config should include:
            - path: Path to DuckDB database file (or :memory: for in-memory)
            - read_only: Whether to open in read-only mode (default: True)
            - server_version: Emulated server version, e.g. "3.0" (optional)
        """
        super().__init__(name, config)
        self.connection = None
        self.db_path = config.get("path", ":memory:")
        self.read_only = config.get("read_only", True)

    def connect(self) -> None:
        """Establish connection to DuckDB."""
        logger.info(f"Connecting to DuckDB at '{self.db_path}'")
        self.connection = duckdb.connect(self.db_path, read_only=self.read_only)
        self._connected = True
        self._type_registry = None
        logger.info(f"Successfully connected to DuckDB: {self.name}")

    def disconnect(self) -> None:
        """Close DuckDB connection."""
        if self.connection:
            self.connection.close()
            logger.info(f"Disconnected from DuckDB: {self.name}")
            self.connection = None
            self._connected = False
            self._type_registry = None

    def open_session(self, purpose: str) -> DuckDBSession:
        if self.connection is None:
            raise CatalogAccessError(
                f"Cannot open session '{purpose}': not connected to {self.name}"
            )
        logger.debug(f"Opening session on {self.name}: {purpose}")
        return DuckDBSession(purpose, self.connection)

    def list_schemas(self) -> List[str]:
        """List available schemas."""
        result = self.connection.execute(
            "SELECT schema_name FROM information_schema.schemata"
        ).fetchall()
        schemas = []
        for row in result:
            # Attached system and temp databases repeat schema names
            if row[0] not in schemas:
                schemas.append(row[0])
        return schemas

    def list_tables(self, schema: str) -> List[str]:
        """List user tables in a schema, skipping the system catalog."""
        result = self.connection.execute(
            """
            SELECT table_name
            FROM information_schema.tables
            WHERE table_schema = ? AND table_type = 'BASE TABLE'
            ORDER BY table_name
            """,
            [schema],
        ).fetchall()
        tables = []
        for row in result:
            if row[0].upper() in SYSTEM_TABLES:
                continue
            tables.append(row[0])
        return tables

    def get_table_metadata(self, schema: str, table: str) -> TableMetadata:
        """Get table metadata."""
        result = self.connection.execute(
            """
            SELECT
                column_name,
                data_type,
                is_nullable,
                column_default,
                ordinal_position,
                character_maximum_length,
                numeric_precision,
                numeric_scale
            FROM information_schema.columns
            WHERE table_schema = ? AND table_name = ?
            ORDER BY ordinal_position
            """,
            [schema, table],
        ).fetchall()

        generated = self._load_generated_flags(table)

        columns = []
        for row in result:
            computed, identity = generated.get(row[0], (False, False))
            columns.append(
                ColumnMetadata(
                    name=row[0],
                    data_type=row[1],
                    nullable=row[2] == "YES",
                    default_value=row[3],
                    ordinal_position=row[4],
                    max_length=row[5],
                    precision=row[6],
                    scale=row[7],
                    auto_increment=identity,
                    auto_generated=computed or identity,
                )
            )

        return TableMetadata(schema_name=schema, table_name=table, columns=columns)

    def _load_generated_flags(self, table: str) -> Dict[str, tuple]:
        """Map field names to (is_computed, is_identity) for one relation."""
        if not self.has_system_catalog():
            return {}
        rows = self.connection.execute(
            """
            SELECT RF.FIELD_NAME, F.COMPUTED_SOURCE, RF.IDENTITY_TYPE
            FROM RELATION_FIELDS RF
            LEFT JOIN FIELDS F ON RF.FIELD_SOURCE = F.FIELD_NAME
            WHERE RF.RELATION_NAME = ?
            """,
            [table],
        ).fetchall()
        flags = {}
        for row in rows:
            flags[row[0]] = (row[1] is not None, row[2] is not None)
        return flags

    def get_column_domain_types(self, schema: str, table: str) -> Dict[str, str]:
        """Read user domains of a relation's fields.

        The vendor catalog has no schemas, so only the table name is used.
        """
        try:
            if not self.has_system_catalog():
                return {}
            rows = self.connection.execute(
                """
                SELECT RF.FIELD_NAME, RF.FIELD_SOURCE
                FROM RELATION_FIELDS RF
                WHERE RF.RELATION_NAME = ?
                  AND RF.FIELD_SOURCE IS NOT NULL
                  AND RF.FIELD_SOURCE NOT LIKE 'RDB$%'
                """,
                [table],
            ).fetchall()
        except duckdb.Error as e:
            logger.error(f"Error reading domains of {table}: {e}")
            raise CatalogAccessError(f"Error reading domains of {table}", e) from e
        domains = {}
        for row in rows:
            domains[row[0]] = row[1]
        return domains

    def load_type_registry(self) -> TypeRegistry:
        """Built-in types plus one handle per user domain in FIELDS."""
        registry = TypeRegistry.with_builtins()
        if self.connection is None or not self.has_system_catalog():
            return registry

        try:
            rows = self.connection.execute(
                """
                SELECT FIELD_NAME, FIELD_TYPE, CHARACTER_SET_NAME
                FROM FIELDS
                WHERE FIELD_NAME NOT LIKE 'RDB$%'
                ORDER BY FIELD_NAME
                """
            ).fetchall()
        except duckdb.Error as e:
            logger.error(f"Error reading domains from {self.name}: {e}")
            raise CatalogAccessError(f"Error reading domains from {self.name}", e) from e
        for row in rows:
            registry.register(self._build_domain_handle(row[0], row[1], row[2]))
        logger.debug(f"Loaded {len(rows)} domains from {self.name}")
        return registry

    def _build_domain_handle(
        self, name: str, field_type: Optional[int], charset: Optional[str]
    ) -> DataTypeHandle:
        base_type_name = FIELD_TYPE_NAMES.get(field_type, "UNKNOWN")
        if base_type_name == "UNKNOWN":
            data_kind = DataKind.UNKNOWN
        else:
            data_kind = map_data_kind(base_type_name)
        return DataTypeHandle(
            name=name,
            data_kind=data_kind,
            charset_name=charset,
            base_type_name=base_type_name,
        )

    def has_system_catalog(self) -> bool:
        """Check whether FIELDS and RELATION_FIELDS both exist in the current schema."""
        try:
            result = self.connection.execute(
                """
                SELECT COUNT(DISTINCT upper(table_name))
                FROM information_schema.tables
                WHERE table_catalog = current_database()
                  AND table_schema = current_schema()
                  AND upper(table_name) IN ('RELATION_FIELDS', 'FIELDS')
                """
            ).fetchone()
        except duckdb.Error as e:
            logger.error(f"Error checking system catalog of {self.name}: {e}")
            raise CatalogAccessError(f"Error checking system catalog of {self.name}", e) from e
        return result[0] >= len(SYSTEM_TABLES)
