"""Command line viewer for column metadata."""

from __future__ import annotations

import time
from typing import List, Optional, Tuple

import click
import pyarrow as pa

from ..catalog import Catalog, Table
from ..catalog.properties import read_properties
from ..config import Config, DataSourceConfig, load_config
from ..datasources.duckdb import DuckDBDataSource, install_system_catalog
from ..errors import CatalogError
from ..utils.logging import setup_logging


def build_property_table(table: Table) -> pa.Table:
    """One row per column, one string column per visible property."""
    headers: List[str] = ["Column"]
    values: List[List[Optional[str]]] = [[]]
    for column in table.columns:
        rows = read_properties(column)
        if len(headers) == 1:
            for label, _ in rows:
                headers.append(label)
                values.append([])
        values[0].append(column.name)
        for index, (_, value) in enumerate(rows, start=1):
            values[index].append(_stringify_value(value))
    arrays = [pa.array(column_values, type=pa.string()) for column_values in values]
    return pa.Table.from_arrays(arrays, names=headers)


def _stringify_value(value: object) -> Optional[str]:
    if value is None:
        return None
    return str(value)


class ResultPrinter:
    """Formats Arrow tables for CLI display."""

    def __init__(self, emit):
        self.emit = emit

    def display(self, table: pa.Table, elapsed_ms: float) -> None:
        headers = list(table.schema.names)
        rows = self._build_rows(table)
        for line in self._format_table(headers, rows):
            self.emit(line)
        self.emit(f"{table.num_rows} columns in {elapsed_ms:.2f} ms")

    def _build_rows(self, table: pa.Table) -> List[List[str]]:
        columns = [table.column(i).to_pylist() for i in range(table.num_columns)]
        rows: List[List[str]] = []
        for row_index in range(table.num_rows):
            rows.append([self._stringify_cell(col[row_index]) for col in columns])
        return rows

    def _format_table(self, headers: List[str], rows: List[List[str]]) -> List[str]:
        widths = [len(header) for header in headers]
        for row in rows:
            for index, text in enumerate(row):
                widths[index] = max(widths[index], len(text))
        border = "+" + "+".join("-" * (width + 2) for width in widths) + "+"
        lines = [border, self._format_row(headers, widths), border]
        for row in rows:
            lines.append(self._format_row(row, widths))
        lines.append(border)
        return lines

    def _format_row(self, values: List[str], widths: List[int]) -> str:
        cells = [f" {value.ljust(widths[index])} " for index, value in enumerate(values)]
        return "|" + "|".join(cells) + "|"

    def _stringify_cell(self, value: object) -> str:
        if value is None:
            return ""
        return str(value)


def _load_config_bundle(config_path: Optional[str]) -> Tuple[Config, bool]:
    if config_path:
        return load_config(config_path), False
    config = Config()
    ds_config = DataSourceConfig(
        name="demo",
        type="duckdb",
        config={"path": ":memory:", "read_only": False, "server_version": "4.0"},
    )
    config.datasources[ds_config.name] = ds_config
    return config, True


def _build_catalog(config: Config, seed_demo: bool) -> Catalog:
    catalog = Catalog(config.catalog)
    for ds_config in config.datasources.values():
        datasource = _create_datasource(ds_config)
        datasource.connect()
        if seed_demo:
            _seed_demo_data(datasource.connection)
        catalog.register_datasource(datasource)
    catalog.load_metadata()
    return catalog


def _create_datasource(ds_config: DataSourceConfig):
    if ds_config.type == "duckdb":
        return DuckDBDataSource(ds_config.name, ds_config.config)
    raise ValueError(f"Unsupported data source type: {ds_config.type}")


def _seed_demo_data(connection) -> None:
    """EMPLOYEE table with a domain, an identity and a computed column."""
    connection.execute(
        """
        CREATE TABLE IF NOT EXISTS EMPLOYEE (
            EMP_NO INTEGER NOT NULL,
            FIRST_NAME VARCHAR(15),
            LAST_NAME VARCHAR(20),
            FULL_NAME VARCHAR(37)
        )
        """
    )
    install_system_catalog(connection)
    connection.execute("DELETE FROM FIELDS")
    connection.execute("DELETE FROM RELATION_FIELDS")
    connection.execute(
        """
        INSERT INTO FIELDS VALUES
        ('FIRSTNAME', 37, NULL, 'UTF8'),
        ('RDB$1', 8, NULL, NULL),
        ('RDB$2', 37, NULL, NULL),
        ('RDB$3', 37, 'FIRST_NAME || '' '' || LAST_NAME', NULL)
        """
    )
    connection.execute(
        """
        INSERT INTO RELATION_FIELDS VALUES
        ('EMPLOYEE', 'EMP_NO', 'RDB$1', 0),
        ('EMPLOYEE', 'FIRST_NAME', 'FIRSTNAME', NULL),
        ('EMPLOYEE', 'LAST_NAME', 'RDB$2', NULL),
        ('EMPLOYEE', 'FULL_NAME', 'RDB$3', NULL)
        """
    )


@click.command()
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, readable=True),
    help="Path to YAML config file. Defaults to an in-memory DuckDB demo.",
)
@click.option("--log-level", default=None, help="Override the configured log level.")
@click.argument("table_ref", default="EMPLOYEE")
def cli(config_path: Optional[str], log_level: Optional[str], table_ref: str) -> None:
    """Show the column properties of TABLE_REF."""
    config, seed_demo = _load_config_bundle(config_path)
    setup_logging(config.logging, level=log_level)
    try:
        catalog = _build_catalog(config, seed_demo)
    except CatalogError as exc:
        raise click.ClickException(str(exc)) from exc

    resolved = catalog.resolve_table(table_ref)
    if resolved is None:
        raise click.ClickException(f"Table not found: {table_ref}")
    _, _, _, table = resolved

    start = time.time()
    property_table = build_property_table(table)
    elapsed = (time.time() - start) * 1000
    if seed_demo:
        click.echo("Using in-memory DuckDB data source with demo tables.")
    ResultPrinter(click.echo).display(property_table, elapsed)
