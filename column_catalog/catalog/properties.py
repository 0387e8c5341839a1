"""Declarative property table for the column property grid.

Presentation layers read columns through this table instead of
introspecting the Column class.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, List, Optional, Tuple

from ..errors import CatalogAccessError
from .schema import Column

if TYPE_CHECKING:
    from ..datasources.base import SessionProvider

ERROR_MARKER = "<error>"


@dataclass(frozen=True)
class PropertyDescriptor:
    """One row of the property grid."""

    key: str
    label: str
    order: int
    viewable: bool = False
    editable: bool = False
    updatable: bool = False
    multiline: bool = False
    visible_if: Optional[Callable[[Column], bool]] = None
    updatable_if: Optional[Callable[[Column], bool]] = None


def _server_at_least(major: int, minor: int) -> Callable[[Column], bool]:
    def check(column: Column) -> bool:
        datasource = column.table.datasource
        if datasource is None:
            return False
        return datasource.is_server_version_at_least(major, minor)

    return check


COLUMN_PROPERTIES = (
    PropertyDescriptor("type_name", "Data Type", 20, viewable=True, editable=True, updatable=True),
    PropertyDescriptor("domain_type_name", "Domain", 21),
    PropertyDescriptor("charset", "Charset", 22, viewable=True),
    PropertyDescriptor("max_length", "Length", 40, viewable=True, editable=True, updatable=True),
    PropertyDescriptor(
        "auto_increment",
        "Auto Increment",
        52,
        viewable=True,
        editable=True,
        visible_if=_server_at_least(3, 0),
    ),
    PropertyDescriptor("default_value", "Default", 70, viewable=True, editable=True, updatable=True),
    PropertyDescriptor(
        "computed_definition",
        "Computed",
        75,
        viewable=True,
        editable=True,
        updatable_if=_server_at_least(2, 5),
    ),
    PropertyDescriptor(
        "description",
        "Description",
        100,
        viewable=True,
        editable=True,
        updatable=True,
        multiline=True,
    ),
)


def get_property(key: str) -> PropertyDescriptor:
    for prop in COLUMN_PROPERTIES:
        if prop.key == key:
            return prop
    raise KeyError(f"Unknown column property: {key}")


def is_property_visible(column: Column, key: str) -> bool:
    prop = get_property(key)
    if prop.visible_if is None:
        return True
    return prop.visible_if(column)


def is_property_updatable(column: Column, key: str) -> bool:
    prop = get_property(key)
    if prop.updatable_if is not None:
        return prop.updatable_if(column)
    return prop.updatable


def read_property(
    column: Column, key: str, session_provider: Optional["SessionProvider"] = None
) -> Any:
    """Read one property; the computed definition may query the catalog."""
    if key == "computed_definition":
        return column.load_computed_definition(session_provider)
    return getattr(column, key)


def read_properties(
    column: Column, session_provider: Optional["SessionProvider"] = None
) -> List[Tuple[str, Any]]:
    """Visible properties of a column as ordered (label, value) pairs.

    A failed computed definition load is shown as ERROR_MARKER so that it
    cannot be mistaken for an empty definition.
    """
    rows = []
    for prop in sorted(COLUMN_PROPERTIES, key=lambda p: p.order):
        if not is_property_visible(column, prop.key):
            continue
        try:
            value = read_property(column, prop.key, session_provider)
        except CatalogAccessError:
            value = ERROR_MARKER
        rows.append((prop.label, value))
    return rows
