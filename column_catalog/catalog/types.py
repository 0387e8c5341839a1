"""Data type handles and the connection-scoped type registry."""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Dict, Iterable, Iterator, Optional


class DataKind(Enum):
    """Coarse value category of a column type."""

    NUMERIC = "NUMERIC"
    STRING = "STRING"
    DATETIME = "DATETIME"
    BOOLEAN = "BOOLEAN"
    BINARY = "BINARY"
    CONTENT = "CONTENT"
    UNKNOWN = "UNKNOWN"


class FieldType(IntEnum):
    """Vendor field type codes stored in FIELDS.FIELD_TYPE."""

    SHORT = 7
    LONG = 8
    FLOAT = 10
    DATE = 12
    TIME = 13
    TEXT = 14
    INT64 = 16
    BOOLEAN = 23
    INT128 = 26
    DOUBLE = 27
    TIMESTAMP = 35
    VARYING = 37
    BLOB = 261


# Mapping from FieldType codes to SQL type names.
FIELD_TYPE_NAMES = {
    FieldType.SHORT: "SMALLINT",
    FieldType.LONG: "INTEGER",
    FieldType.FLOAT: "FLOAT",
    FieldType.DATE: "DATE",
    FieldType.TIME: "TIME",
    FieldType.TEXT: "CHAR",
    FieldType.INT64: "BIGINT",
    FieldType.BOOLEAN: "BOOLEAN",
    FieldType.INT128: "INT128",
    FieldType.DOUBLE: "DOUBLE PRECISION",
    FieldType.TIMESTAMP: "TIMESTAMP",
    FieldType.VARYING: "VARCHAR",
    FieldType.BLOB: "BLOB",
}


@dataclass(frozen=True)
class DataTypeHandle:
    """A type known to a connection's registry."""

    name: str
    data_kind: DataKind
    charset_name: Optional[str] = None
    base_type_name: Optional[str] = None

    @property
    def is_domain(self) -> bool:
        return self.base_type_name is not None

    def __repr__(self) -> str:
        if self.is_domain:
            return f"DataTypeHandle({self.name} -> {self.base_type_name})"
        return f"DataTypeHandle({self.name})"


def map_data_kind(type_name: str) -> DataKind:
    """Map a database type string to a DataKind.

    Args:
        type_name: Database type string

    Returns:
        Mapped DataKind, UNKNOWN when nothing matches
    """
    type_str = type_name.upper()

    # Content before string: BLOB SUB_TYPE TEXT is still a blob
    if "BLOB" in type_str or "CLOB" in type_str:
        return DataKind.CONTENT

    if "INT" in type_str or "SERIAL" in type_str:
        return DataKind.NUMERIC
    if "FLOAT" in type_str or "REAL" in type_str or "DOUBLE" in type_str:
        return DataKind.NUMERIC
    if "NUMERIC" in type_str or "DECIMAL" in type_str or "DECFLOAT" in type_str:
        return DataKind.NUMERIC

    if "CHAR" in type_str or "TEXT" in type_str or "STRING" in type_str:
        return DataKind.STRING

    if "BOOL" in type_str:
        return DataKind.BOOLEAN

    if "DATE" in type_str or "TIME" in type_str:
        return DataKind.DATETIME

    if "BINARY" in type_str or "BYTEA" in type_str:
        return DataKind.BINARY

    return DataKind.UNKNOWN


BUILTIN_TYPE_NAMES = (
    "SMALLINT",
    "INTEGER",
    "BIGINT",
    "INT128",
    "FLOAT",
    "DOUBLE",
    "DOUBLE PRECISION",
    "DECIMAL",
    "NUMERIC",
    "DECFLOAT",
    "DATE",
    "TIME",
    "TIMESTAMP",
    "CHAR",
    "VARCHAR",
    "BLOB",
    "BOOLEAN",
)


def builtin_types() -> Iterator[DataTypeHandle]:
    """Yield handles for the standard types every connection knows."""
    for name in BUILTIN_TYPE_NAMES:
        yield DataTypeHandle(name=name, data_kind=map_data_kind(name))


class TypeRegistry:
    """Connection-scoped mapping from type name to type handle.

    Names are matched case-insensitively. A name with a parenthesised
    modifier such as ``DECIMAL(10,2)`` falls back to its base name.
    """

    def __init__(self, handles: Optional[Iterable[DataTypeHandle]] = None):
        self._types: Dict[str, DataTypeHandle] = {}
        if handles:
            for handle in handles:
                self.register(handle)

    @classmethod
    def with_builtins(cls) -> "TypeRegistry":
        return cls(builtin_types())

    def register(self, handle: DataTypeHandle) -> None:
        self._types[self._key(handle.name)] = handle

    def lookup(self, name: Optional[str]) -> Optional[DataTypeHandle]:
        """Find a type handle by name.

        Returns:
            The handle, or None when the name is unknown
        """
        if not name:
            return None
        key = self._key(name)
        handle = self._types.get(key)
        if handle is None and "(" in key:
            handle = self._types.get(key.split("(", 1)[0].rstrip())
        return handle

    def names(self):
        """Canonical names of every registered type, sorted."""
        return sorted(handle.name for handle in self._types.values())

    def _key(self, name: str) -> str:
        return name.strip().upper()

    def __contains__(self, name: str) -> bool:
        return self.lookup(name) is not None

    def __len__(self) -> int:
        return len(self._types)

    def __repr__(self) -> str:
        return f"TypeRegistry(types={len(self._types)})"
