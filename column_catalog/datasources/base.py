"""Base data source and scoped session interfaces."""

from abc import ABC, abstractmethod
from contextlib import ExitStack
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from ..catalog.types import TypeRegistry


@dataclass
class ColumnMetadata:
    """Metadata about a column as reported by the driver."""

    name: str
    data_type: str
    nullable: bool
    ordinal_position: int = 0
    max_length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    default_value: Optional[str] = None
    description: Optional[str] = None
    auto_increment: bool = False
    auto_generated: bool = False


@dataclass
class TableMetadata:
    """Metadata about a table."""

    schema_name: str
    table_name: str
    columns: List[ColumnMetadata]


class ResultCursor(ABC):
    """Forward-only cursor over query results."""

    @abstractmethod
    def next(self) -> bool:
        """Advance to the next row; False when exhausted."""
        pass

    @abstractmethod
    def get_string(self, column_label: str) -> Optional[str]:
        """Read a column of the current row as text, None for SQL NULL."""
        pass

    def close(self) -> None:
        pass


class PreparedQuery(ABC):
    """A parameterized statement with 1-based positional parameters."""

    @abstractmethod
    def bind(self, index: int, value: Any) -> None:
        pass

    @abstractmethod
    def execute_query(self) -> ResultCursor:
        pass

    def close(self) -> None:
        pass


class ScopedSession(ABC):
    """Short-lived catalog session released when its ``with`` block exits.

    Queries prepared through the session and cursors they return are
    closed together with the session.
    """

    def __init__(self, purpose: str):
        self.purpose = purpose
        self._resources = ExitStack()

    @abstractmethod
    def prepare(self, sql: str) -> PreparedQuery:
        pass

    def _track(self, resource):
        self._resources.callback(resource.close)
        return resource

    def close(self) -> None:
        """Release everything opened through this session, newest first.

        Every resource is closed even when an earlier close raises.
        """
        self._resources.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class SessionProvider(ABC):
    """Anything that can open a scoped catalog session."""

    @abstractmethod
    def open_session(self, purpose: str) -> ScopedSession:
        """Open a scoped session.

        Args:
            purpose: Human-readable reason, used for logging

        Returns:
            Session to be used as a context manager
        """
        pass


class DataSource(SessionProvider):
    """Abstract base class for data sources."""

    def __init__(self, name: str, config: Dict[str, Any]):
        """Initialize data source.

        Args:
            name: Unique name for this data source
            config: Configuration dictionary
        """
        self.name = name
        self.config = config
        self.connection = None
        self._connected = False
        self._type_registry: Optional[TypeRegistry] = None
        self.server_version = parse_server_version(config.get("server_version"))

    @abstractmethod
    def connect(self) -> None:
        """Establish connection to the data source."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Close connection to the data source."""
        pass

    @abstractmethod
    def list_schemas(self) -> List[str]:
        """List all available schemas."""
        pass

    @abstractmethod
    def list_tables(self, schema: str) -> List[str]:
        """List all user tables in a schema.

        Args:
            schema: Schema name

        Returns:
            List of table names
        """
        pass

    @abstractmethod
    def get_table_metadata(self, schema: str, table: str) -> TableMetadata:
        """Get column descriptors for a table.

        Args:
            schema: Schema name
            table: Table name

        Returns:
            Table metadata including columns and declared types
        """
        pass

    @abstractmethod
    def get_column_domain_types(self, schema: str, table: str) -> Dict[str, str]:
        """Map column names of a table to their domain type names.

        Columns without a user domain are absent from the result.

        Raises:
            CatalogAccessError: If the catalog cannot be read
        """
        pass

    @abstractmethod
    def load_type_registry(self) -> TypeRegistry:
        """Build the type registry for the current connection."""
        pass

    @property
    def type_registry(self) -> TypeRegistry:
        """Connection-scoped type registry, built on first use."""
        if self._type_registry is None:
            self._type_registry = self.load_type_registry()
        return self._type_registry

    def is_server_version_at_least(self, major: int, minor: int) -> bool:
        return self.server_version >= (major, minor)

    def is_connected(self) -> bool:
        """Check if data source is connected.

        Returns:
            True if connected, False otherwise
        """
        return self._connected

    def ensure_connected(self) -> None:
        """Ensure data source is connected.

        Raises:
            ConnectionError: If connection cannot be established
        """
        if not self.is_connected():
            self.connect()
            self._connected = True

    def __enter__(self):
        """Context manager entry."""
        self.ensure_connected()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.disconnect()
        self._connected = False
        return False

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name})"


def parse_server_version(value: Any) -> Tuple[int, int]:
    """Parse a "major.minor" server version; defaults to (0, 0)."""
    if value is None:
        return (0, 0)
    parts = str(value).split(".")
    major = int(parts[0])
    minor = int(parts[1]) if len(parts) > 1 and parts[1] else 0
    return (major, minor)
