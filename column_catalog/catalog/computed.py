"""Lazy, memoized loading of computed column definitions."""

import threading
from enum import Enum
from typing import TYPE_CHECKING, Optional

from ..errors import CatalogAccessError
from ..utils.logging import get_contextual_logger

if TYPE_CHECKING:
    from ..datasources.base import SessionProvider
    from .schema import Column


COMPUTED_SOURCE_QUERY = (
    "SELECT F.COMPUTED_SOURCE AS COMPUTED_SOURCE FROM RELATION_FIELDS RF, FIELDS F "
    "WHERE RF.RELATION_NAME = ? AND RF.FIELD_NAME = ? AND RF.FIELD_SOURCE = F.FIELD_NAME"
)

SESSION_PURPOSE = "Load computed definition"


class ComputedState(Enum):
    """Load state of a column's computed definition."""

    UNLOADED = "UNLOADED"
    LOADED_EMPTY = "LOADED_EMPTY"
    LOADED_PRESENT = "LOADED_PRESENT"


class ComputedDefinitionCell:
    """Holds a computed definition that is either unloaded or loaded once.

    Loaded text is never replaced; an empty string is a legitimate loaded
    value (identity columns have no computed source).
    """

    def __init__(self):
        self._loaded = False
        self._text: Optional[str] = None
        self.lock = threading.Lock()

    @property
    def state(self) -> ComputedState:
        if not self._loaded:
            return ComputedState.UNLOADED
        if self._text:
            return ComputedState.LOADED_PRESENT
        return ComputedState.LOADED_EMPTY

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def value(self) -> Optional[str]:
        """Loaded text, or None while unloaded."""
        return self._text

    def store(self, text: str) -> None:
        if self._loaded:
            raise RuntimeError("Computed definition is already loaded")
        self._text = text
        self._loaded = True

    def __repr__(self) -> str:
        return f"ComputedDefinitionCell({self.state.value})"


class ComputedDefinitionCache:
    """Fetches a generated column's computed source on first demand."""

    def get(self, column: "Column", session_provider: "SessionProvider") -> Optional[str]:
        """Return the column's computed definition, querying at most once.

        Args:
            column: Column whose definition is wanted
            session_provider: Opens the scoped session for the catalog query

        Returns:
            Definition text ("" for identity columns), or None for a column
            that is not generated

        Raises:
            CatalogAccessError: If the catalog query fails; the column stays
                unloaded so a later call may retry
        """
        cell = column.computed_cell
        if not column.is_generated:
            return cell.value
        if cell.is_loaded:
            return cell.value

        with cell.lock:
            if not cell.is_loaded:
                cell.store(self._fetch(column, session_provider))
        return cell.value

    def _fetch(self, column: "Column", session_provider: "SessionProvider") -> str:
        table_name = column.table.name
        logger = get_contextual_logger(
            __name__, {"table": table_name, "column": column.name}
        )

        try:
            with session_provider.open_session(SESSION_PURPOSE) as session:
                query = session.prepare(COMPUTED_SOURCE_QUERY)
                query.bind(1, table_name)
                query.bind(2, column.name)
                cursor = query.execute_query()
                # Identity columns are generated too but have no computed source row
                if cursor.next():
                    text = cursor.get_string("COMPUTED_SOURCE") or ""
                else:
                    text = ""
        except CatalogAccessError as e:
            logger.error(f"Error reading computed definition: {e}")
            raise
        except Exception as e:
            logger.error(f"Error reading computed definition: {e}")
            raise CatalogAccessError("Error reading computed definition", e) from e

        logger.debug(f"Loaded computed definition ({len(text)} chars)")
        return text
