"""Schema metadata classes."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from ..errors import CatalogError, RegistryLookupError
from .computed import ComputedDefinitionCache, ComputedDefinitionCell, ComputedState
from .resolver import TypeResolver
from .types import DataKind, DataTypeHandle, TypeRegistry, map_data_kind

if TYPE_CHECKING:
    from ..datasources.base import SessionProvider

_computed_cache = ComputedDefinitionCache()


@dataclass(frozen=True)
class ColumnDescriptor:
    """Column as described by the generic driver, before type resolution."""

    name: str
    type_name: str
    ordinal_position: int = 0
    nullable: bool = True
    max_length: Optional[int] = None
    scale: Optional[int] = None
    precision: Optional[int] = None
    default_value: Optional[str] = None
    description: Optional[str] = None
    auto_increment: bool = False
    auto_generated: bool = False


class TypedColumn(ABC):
    """A column whose type is a handle from a type registry."""

    @property
    @abstractmethod
    def type_name(self) -> str:
        pass

    @property
    @abstractmethod
    def data_type(self) -> Optional[DataTypeHandle]:
        pass

    @property
    @abstractmethod
    def data_kind(self) -> DataKind:
        pass

    @abstractmethod
    def set_data_type(self, data_type: DataTypeHandle) -> None:
        pass


class GeneratedColumn(ABC):
    """A column that may be computed or auto-assigned by the server."""

    @property
    @abstractmethod
    def is_generated(self) -> bool:
        pass

    @property
    @abstractmethod
    def computed_definition(self) -> Optional[str]:
        pass

    @abstractmethod
    def load_computed_definition(
        self, session_provider: Optional["SessionProvider"] = None
    ) -> Optional[str]:
        pass


class Column(TypedColumn, GeneratedColumn):
    """Column metadata with a resolved type and a lazy computed definition.

    The type is resolved once, at construction, preferring the column's
    domain over its declared type name. A domain lookup failure on the
    owning table aborts construction with RegistryLookupError.
    """

    def __init__(
        self,
        table: "Table",
        descriptor: ColumnDescriptor,
        registry: Optional[TypeRegistry] = None,
        resolver: Optional[TypeResolver] = None,
    ):
        self.table = table
        self.descriptor = descriptor
        self._type_name = descriptor.type_name
        self.computed_cell = ComputedDefinitionCell()

        if registry is None:
            registry = table.type_registry
        if resolver is None:
            resolver = TypeResolver()
        self._domain_type_name = table.get_column_domain_type(descriptor.name)
        self._data_type = resolver.resolve(
            self._domain_type_name, descriptor.type_name, registry
        )

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def type_name(self) -> str:
        return self._type_name

    @property
    def data_type(self) -> Optional[DataTypeHandle]:
        return self._data_type

    @property
    def data_kind(self) -> DataKind:
        """Kind of the resolved type, else derived from the declared name."""
        if self._data_type is None:
            return map_data_kind(self._type_name)
        return self._data_type.data_kind

    @property
    def domain_type_name(self) -> Optional[str]:
        return self._domain_type_name

    @property
    def charset(self) -> Optional[str]:
        if self._data_type is not None:
            return self._data_type.charset_name
        return None

    @property
    def nullable(self) -> bool:
        return self.descriptor.nullable

    @property
    def ordinal_position(self) -> int:
        return self.descriptor.ordinal_position

    @property
    def max_length(self) -> Optional[int]:
        return self.descriptor.max_length

    @property
    def scale(self) -> Optional[int]:
        return self.descriptor.scale

    @property
    def precision(self) -> Optional[int]:
        return self.descriptor.precision

    @property
    def default_value(self) -> Optional[str]:
        return self.descriptor.default_value

    @property
    def description(self) -> Optional[str]:
        return self.descriptor.description

    @property
    def auto_increment(self) -> bool:
        return self.descriptor.auto_increment

    @property
    def is_generated(self) -> bool:
        return self.descriptor.auto_generated

    @property
    def computed_definition(self) -> Optional[str]:
        """Cached definition; None until loaded. Never performs I/O."""
        return self.computed_cell.value

    @property
    def computed_state(self) -> ComputedState:
        return self.computed_cell.state

    def load_computed_definition(
        self, session_provider: Optional["SessionProvider"] = None
    ) -> Optional[str]:
        """Return the computed definition, querying the catalog on first use.

        Args:
            session_provider: Session source; defaults to the table's data source

        Returns:
            Definition text, "" for identity columns, None if not generated

        Raises:
            CatalogAccessError: If the catalog query fails
        """
        if session_provider is None:
            session_provider = self.table.datasource
        return _computed_cache.get(self, session_provider)

    def set_data_type(self, data_type: DataTypeHandle) -> None:
        """Replace the resolved type and keep the declared name in sync."""
        self._data_type = data_type
        self._type_name = data_type.name

    def fully_qualified_name(self) -> str:
        """Get fully qualified column name."""
        return f"{self.table.fully_qualified_name()}.{self.name}"

    def __repr__(self) -> str:
        return f"Column({self.name}, {self._type_name})"


@dataclass
class Table:
    """Table metadata."""

    name: str
    schema: Optional["Schema"] = None
    columns: List[Column] = None
    datasource: Any = field(default=None, repr=False, compare=False)
    _column_domains: Optional[Dict[str, str]] = field(
        default=None, init=False, repr=False, compare=False
    )

    def __post_init__(self):
        if self.columns is None:
            self.columns = []

    @property
    def type_registry(self) -> TypeRegistry:
        """Registry of the owning connection, or the built-in types.

        Raises:
            RegistryLookupError: If the connection cannot load its registry
        """
        if self.datasource is None:
            return TypeRegistry.with_builtins()
        try:
            return self.datasource.type_registry
        except CatalogError as e:
            raise RegistryLookupError(f"Error reading type registry for {self.name}", e) from e

    def get_column_domain_type(self, column_name: str) -> Optional[str]:
        """Domain type name of a column, read once per table.

        Raises:
            RegistryLookupError: If the catalog cannot report domains
        """
        if self.datasource is None:
            return None
        if self._column_domains is None:
            schema_name = self.schema.name if self.schema else ""
            try:
                self._column_domains = self.datasource.get_column_domain_types(
                    schema_name, self.name
                )
            except CatalogError as e:
                raise RegistryLookupError(
                    f"Error reading domain type of {self.name}.{column_name}", e
                ) from e
        return self._column_domains.get(column_name)

    def add_column(self, descriptor: ColumnDescriptor) -> Column:
        """Build a column from a driver descriptor and attach it."""
        column = Column(self, descriptor)
        self.columns.append(column)
        return column

    def get_column(self, name: str) -> Optional[Column]:
        """Get column by name."""
        for col in self.columns:
            if col.name.lower() == name.lower():
                return col
        return None

    def fully_qualified_name(self) -> str:
        """Get fully qualified table name."""
        if self.schema:
            return f"{self.schema.datasource}.{self.schema.name}.{self.name}"
        return self.name

    def __repr__(self) -> str:
        return f"Table({self.name}, cols={len(self.columns)})"


@dataclass
class Schema:
    """Schema metadata."""

    name: str
    datasource: str
    tables: Dict[str, Table] = None

    def __post_init__(self):
        if self.tables is None:
            self.tables = {}
        # Set back-reference to schema
        for table in self.tables.values():
            table.schema = self

    def get_table(self, name: str) -> Optional[Table]:
        """Get table by name."""
        return self.tables.get(name.lower())

    def add_table(self, table: Table) -> None:
        """Add a table to this schema."""
        table.schema = self
        self.tables[table.name.lower()] = table

    def __repr__(self) -> str:
        return f"Schema({self.datasource}.{self.name}, tables={len(self.tables)})"
