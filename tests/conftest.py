"""Shared fixtures: in-process doubles for sessions and data sources."""

from typing import Any, Dict, List, Optional

import pytest

from column_catalog.catalog import DataKind, DataTypeHandle, TypeRegistry
from column_catalog.datasources.base import (
    PreparedQuery,
    ResultCursor,
    ScopedSession,
    SessionProvider,
)


class FakeDriverError(Exception):
    """Stands in for a driver's SQL exception."""


class FakeCursor(ResultCursor):
    def __init__(self, rows: List[Dict[str, Optional[str]]]):
        self._rows = list(rows)
        self._row = None

    def next(self) -> bool:
        if not self._rows:
            self._row = None
            return False
        self._row = self._rows.pop(0)
        return True

    def get_string(self, column_label: str) -> Optional[str]:
        return self._row[column_label]


class FakePreparedQuery(PreparedQuery):
    def __init__(self, session: "FakeSession", sql: str):
        self.session = session
        self.sql = sql
        self.parameters: Dict[int, Any] = {}
        self.closed = False

    def bind(self, index: int, value: Any) -> None:
        self.parameters[index] = value

    def execute_query(self) -> FakeCursor:
        provider = self.session.provider
        provider.executed.append((self.sql, self.parameters[1], self.parameters[2]))
        if provider.error is not None:
            raise provider.error
        return FakeCursor(provider.rows)

    def close(self) -> None:
        self.closed = True


class FakeSession(ScopedSession):
    def __init__(self, purpose: str, provider: "FakeSessionProvider"):
        super().__init__(purpose)
        self.provider = provider
        self.closed = False
        self.queries: List[FakePreparedQuery] = []

    def prepare(self, sql: str) -> FakePreparedQuery:
        query = FakePreparedQuery(self, sql)
        self.queries.append(query)
        return self._track(query)

    def close(self) -> None:
        super().close()
        self.closed = True


class FakeSessionProvider(SessionProvider):
    """Answers every catalog query with the configured rows or error."""

    def __init__(
        self,
        rows=None,
        error: Optional[BaseException] = None,
        open_error: Optional[BaseException] = None,
    ):
        self.rows = rows or []
        self.error = error
        self.open_error = open_error
        self.sessions: List[FakeSession] = []
        self.executed: List[tuple] = []

    def open_session(self, purpose: str) -> FakeSession:
        if self.open_error is not None:
            raise self.open_error
        session = FakeSession(purpose, self)
        self.sessions.append(session)
        return session


class FakeDataSource(FakeSessionProvider):
    """Minimal data source surface used by Table and Column."""

    def __init__(
        self,
        registry: Optional[TypeRegistry] = None,
        domains: Optional[Dict[str, str]] = None,
        domain_error: Optional[BaseException] = None,
        server_version=(4, 0),
        rows=None,
        error: Optional[BaseException] = None,
    ):
        super().__init__(rows=rows, error=error)
        self.type_registry = registry or TypeRegistry.with_builtins()
        self.domains = domains or {}
        self.domain_error = domain_error
        self.server_version = server_version
        self.domain_requests = 0

    def get_column_domain_types(self, schema: str, table: str) -> Dict[str, str]:
        self.domain_requests += 1
        if self.domain_error is not None:
            raise self.domain_error
        return dict(self.domains)

    def is_server_version_at_least(self, major: int, minor: int) -> bool:
        return self.server_version >= (major, minor)


@pytest.fixture
def driver_error():
    """Exception class standing in for driver failures."""
    return FakeDriverError


@pytest.fixture
def make_provider():
    """Factory for fake session providers."""
    return FakeSessionProvider


@pytest.fixture
def make_datasource():
    """Factory for fake data sources."""
    return FakeDataSource


@pytest.fixture
def type_x():
    return DataTypeHandle(
        name="DOM", data_kind=DataKind.STRING, charset_name="UTF8", base_type_name="VARCHAR"
    )


@pytest.fixture
def type_int():
    return DataTypeHandle(name="INTEGER", data_kind=DataKind.NUMERIC)


@pytest.fixture
def registry(type_x, type_int):
    """Registry with DOM -> TypeX and INTEGER -> TypeInt."""
    return TypeRegistry([type_x, type_int])
