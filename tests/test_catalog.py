"""Tests for catalog functionality."""

import pytest

from column_catalog.catalog import Catalog, ColumnDescriptor, ComputedState, DataKind
from column_catalog.catalog.schema import Schema, Table
from column_catalog.config import CatalogConfig
from column_catalog.datasources.duckdb import DuckDBDataSource, install_system_catalog
from column_catalog.errors import CatalogAccessError, RegistryLookupError


def _seed(connection):
    connection.execute("""
        CREATE TABLE EMPLOYEE (
            EMP_NO INTEGER NOT NULL,
            FIRST_NAME VARCHAR,
            FULL_NAME VARCHAR
        )
    """)
    connection.execute("CREATE TABLE DEPARTMENT (DEPT_NO VARCHAR, BUDGET DECIMAL(12,2))")
    install_system_catalog(connection)
    connection.execute("""
        INSERT INTO FIELDS VALUES
            ('FIRSTNAME', 37, NULL, 'UTF8'),
            ('RDB$1', 8, NULL, NULL),
            ('RDB$2', 37, 'FIRST_NAME || '' Jr.''', NULL)
    """)
    connection.execute("""
        INSERT INTO RELATION_FIELDS VALUES
            ('EMPLOYEE', 'EMP_NO', 'RDB$1', 0),
            ('EMPLOYEE', 'FIRST_NAME', 'FIRSTNAME', NULL),
            ('EMPLOYEE', 'FULL_NAME', 'RDB$2', NULL)
    """)


@pytest.fixture
def datasource():
    ds = DuckDBDataSource("test_db", {"path": ":memory:", "read_only": False})
    ds.connect()
    _seed(ds.connection)
    yield ds
    ds.disconnect()


@pytest.fixture
def catalog(datasource):
    """Catalog loaded from the seeded DuckDB data source."""
    catalog = Catalog(CatalogConfig(schemas=["main"]))
    catalog.register_datasource(datasource)
    catalog.load_metadata()
    return catalog


def test_catalog_initialization():
    """Test catalog initialization."""
    catalog = Catalog()
    assert len(catalog.datasources) == 0
    assert len(catalog.schemas) == 0
    assert catalog._metadata_loaded is False
    assert catalog.skip_unresolvable_columns is True


def test_register_datasource():
    catalog = Catalog()
    ds = DuckDBDataSource("test_duck", {"path": ":memory:"})
    catalog.register_datasource(ds)

    assert catalog.get_datasource("test_duck") is ds
    assert catalog.get_datasource("nonexistent") is None


def test_load_metadata_builds_columns(catalog):
    table = catalog.get_table("test_db", "main", "EMPLOYEE")

    assert table is not None
    assert [col.name for col in table.columns] == ["EMP_NO", "FIRST_NAME", "FULL_NAME"]
    assert catalog.get_table("test_db", "main", "FIELDS") is None
    assert catalog._metadata_loaded is True


def test_load_metadata_resolves_domains(catalog):
    table = catalog.get_table("test_db", "main", "EMPLOYEE")

    first_name = table.get_column("FIRST_NAME")
    assert first_name.domain_type_name == "FIRSTNAME"
    assert first_name.data_type.name == "FIRSTNAME"
    assert first_name.charset == "UTF8"
    assert first_name.type_name == "VARCHAR"

    emp_no = table.get_column("EMP_NO")
    assert emp_no.domain_type_name is None
    assert emp_no.data_type.name == "INTEGER"
    assert emp_no.data_kind == DataKind.NUMERIC


def test_declared_type_with_modifiers(catalog):
    table = catalog.get_table("test_db", "main", "DEPARTMENT")

    budget = table.get_column("BUDGET")
    assert budget.data_type.name == "DECIMAL"
    assert budget.is_generated is False


def test_computed_and_identity_columns(catalog, datasource):
    table = catalog.get_table("test_db", "main", "EMPLOYEE")
    full_name = table.get_column("FULL_NAME")
    emp_no = table.get_column("EMP_NO")

    assert full_name.computed_state == ComputedState.UNLOADED
    assert full_name.load_computed_definition() == "FIRST_NAME || ' Jr.'"
    assert full_name.computed_state == ComputedState.LOADED_PRESENT

    assert emp_no.is_generated
    assert emp_no.load_computed_definition() == ""
    assert emp_no.computed_state == ComputedState.LOADED_EMPTY


def test_computed_definition_is_cached(catalog, datasource):
    full_name = catalog.get_table("test_db", "main", "EMPLOYEE").get_column("FULL_NAME")
    full_name.load_computed_definition()

    datasource.connection.execute("DELETE FROM FIELDS")

    assert full_name.load_computed_definition() == "FIRST_NAME || ' Jr.'"


def test_computed_definition_failure_can_retry(catalog, datasource):
    full_name = catalog.get_table("test_db", "main", "EMPLOYEE").get_column("FULL_NAME")
    datasource.connection.execute("ALTER TABLE FIELDS RENAME TO FIELDS_OLD")

    with pytest.raises(CatalogAccessError):
        full_name.load_computed_definition()
    assert full_name.computed_state == ComputedState.UNLOADED

    datasource.connection.execute("ALTER TABLE FIELDS_OLD RENAME TO FIELDS")
    assert full_name.load_computed_definition() == "FIRST_NAME || ' Jr.'"


class BrokenDomainSource(DuckDBDataSource):
    """Fails every domain lookup."""

    def get_column_domain_types(self, schema, table):
        raise CatalogAccessError(f"Error reading domains of {table}")


@pytest.fixture
def broken_datasource():
    ds = BrokenDomainSource("broken", {"path": ":memory:", "read_only": False})
    ds.connect()
    _seed(ds.connection)
    yield ds
    ds.disconnect()


def test_unresolvable_columns_are_skipped(broken_datasource):
    catalog = Catalog(CatalogConfig(schemas=["main"]))
    catalog.register_datasource(broken_datasource)
    catalog.load_metadata()

    table = catalog.get_table("broken", "main", "EMPLOYEE")
    assert table is not None
    assert table.columns == []


def test_unresolvable_columns_abort_when_configured(broken_datasource):
    catalog = Catalog(CatalogConfig(skip_unresolvable_columns=False))
    catalog.register_datasource(broken_datasource)

    with pytest.raises(RegistryLookupError):
        catalog.load_metadata()


def _seed_malformed_fields(connection):
    connection.execute("CREATE TABLE EMPLOYEE (EMP_NO INTEGER, FIRST_NAME VARCHAR)")
    connection.execute(
        "CREATE TABLE FIELDS (FIELD_NAME VARCHAR, FIELD_TYPE SMALLINT, COMPUTED_SOURCE VARCHAR)"
    )
    connection.execute("""
        CREATE TABLE RELATION_FIELDS (
            RELATION_NAME VARCHAR,
            FIELD_NAME VARCHAR,
            FIELD_SOURCE VARCHAR,
            IDENTITY_TYPE SMALLINT
        )
    """)


@pytest.fixture
def malformed_datasource():
    """Data source whose FIELDS table lacks CHARACTER_SET_NAME."""
    ds = DuckDBDataSource("malformed", {"path": ":memory:", "read_only": False})
    ds.connect()
    _seed_malformed_fields(ds.connection)
    yield ds
    ds.disconnect()


def test_registry_failure_skips_columns(malformed_datasource):
    catalog = Catalog()
    catalog.register_datasource(malformed_datasource)
    catalog.load_metadata()

    table = catalog.get_table("malformed", "main", "EMPLOYEE")
    assert table is not None
    assert table.columns == []


def test_registry_failure_aborts_when_configured(malformed_datasource):
    catalog = Catalog(CatalogConfig(skip_unresolvable_columns=False))
    catalog.register_datasource(malformed_datasource)

    with pytest.raises(RegistryLookupError) as exc_info:
        catalog.load_metadata()

    assert isinstance(exc_info.value.cause, CatalogAccessError)


def test_resolve_table_references(catalog):
    ds, schema, table_name, table = catalog.resolve_table("test_db.main.EMPLOYEE")
    assert (ds, schema, table_name) == ("test_db", "main", "EMPLOYEE")

    assert catalog.resolve_table("main.employee")[3] is table
    assert catalog.resolve_table("employee")[3] is table
    assert catalog.resolve_table("nonexistent") is None
    assert catalog.resolve_table("test_db.main.nonexistent") is None


def test_resolve_ambiguous_table():
    """Test resolving a table that exists in multiple schemas."""
    catalog = Catalog()
    schema1 = Schema(name="schema1", datasource="db1")
    schema1.add_table(Table(name="users"))
    schema2 = Schema(name="schema2", datasource="db2")
    schema2.add_table(Table(name="users"))
    catalog.schemas[("db1", "schema1")] = schema1
    catalog.schemas[("db2", "schema2")] = schema2

    assert catalog.resolve_table("users") is not None
    assert catalog.resolve_table("db1.schema1.users")[0] == "db1"
    assert catalog.resolve_table("db2.schema2.users")[0] == "db2"


def test_manual_table_columns():
    table = Table(name="users")
    table.add_column(ColumnDescriptor(name="id", type_name="INTEGER", nullable=False))

    assert table.get_column("ID").data_kind == DataKind.NUMERIC


def test_catalog_repr(catalog):
    repr_str = repr(catalog)
    assert "Catalog" in repr_str
    assert "datasources=1" in repr_str
    assert "schemas=1" in repr_str
