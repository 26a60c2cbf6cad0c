"""schema-describe - Main entry point."""

import asyncio
import json
import logging
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .config import settings
from .database.constraints import SqliteConstraintStore
from .database.dialects import Dialect, get_capabilities
from .database.executors import connect_duckdb, connect_sqlite, duckdb_executor, sqlite_executor
from .database.models import ColumnsDescription, DefaultValue, TableIdentifier
from .database.query_interface import QueryInterface
from .errors import SchemaDescribeError

app = typer.Typer(
    name="schema-describe",
    help="Describe table columns from a database catalog",
    add_completion=False,
)

console = Console()


def _format_default(value: DefaultValue) -> str:
    if value.is_absent:
        return ""
    if value.is_null:
        return "NULL"
    if value.is_opaque:
        return f"{value.raw} [dim](expression)[/dim]"
    return repr(value.parsed)


def _render_columns(title: str, columns: ColumnsDescription, with_constraints: bool) -> Table:
    table = Table(title=title)
    table.add_column("Column", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Null")
    table.add_column("Default", style="magenta")
    table.add_column("PK")
    table.add_column("Auto")
    table.add_column("Comment")
    table.add_column("Values")
    if with_constraints:
        table.add_column("Unique")
        table.add_column("References", style="blue")

    for name, column in columns.items():
        row = [
            name,
            column.type,
            "yes" if column.allow_null else "no",
            _format_default(column.default_value),
            "yes" if column.primary_key else "",
            "yes" if column.auto_increment else "",
            column.comment or "",
            ", ".join(column.special) if column.special else "",
        ]
        if with_constraints:
            refs = column.references
            row.append("yes" if column.unique else "")
            row.append(f"{refs.table}.{refs.key}" if refs else "")
        table.add_row(*row)
    return table


async def _describe(qi: QueryInterface, table_name: str, schema: Optional[str]) -> ColumnsDescription:
    async with qi:
        return await qi.describe_table(table_name, schema)


def _open_local(dialect: Dialect, path: str):
    """Open a database file for a dialect with a bundled driver."""
    if dialect is Dialect.SQLITE:
        connection = connect_sqlite(path)
        return connection, sqlite_executor(connection)
    if dialect is Dialect.DUCKDB:
        connection = connect_duckdb(path)
        return connection, duckdb_executor(connection)
    raise SchemaDescribeError(
        f"No local driver for dialect {dialect.value}; use --sqlite or --duckdb",
        code="NO_LOCAL_DRIVER",
        details={"dialect": dialect.value},
    )


@app.command()
def describe(
    table_name: str = typer.Argument(..., help="Table name (case sensitive)"),
    database: Optional[str] = typer.Option(
        None, "--database", "-d", help="Database file, opened with the configured default dialect"
    ),
    sqlite: Optional[str] = typer.Option(None, "--sqlite", help="Path to a SQLite database file"),
    duckdb: Optional[str] = typer.Option(None, "--duckdb", help="Path to a DuckDB database file"),
    schema: Optional[str] = typer.Option(None, "--schema", "-s", help="Schema (SQLite: attached database name)"),
    as_json: bool = typer.Option(False, "--json", help="Print the description as JSON"),
):
    """Describe the columns of a table."""
    sources = [(dialect, path) for dialect, path in (
        (Dialect.SQLITE, sqlite),
        (Dialect.DUCKDB, duckdb),
        (None, database),
    ) if path]
    if len(sources) != 1:
        console.print("[red]Give exactly one of --database, --sqlite or --duckdb.[/red]")
        raise typer.Exit(1)

    try:
        dialect, path = sources[0]
        if dialect is None:
            dialect = get_capabilities(settings.default_dialect).dialect
        connection, execute = _open_local(dialect, path)
        qi = QueryInterface(dialect, execute)

        try:
            columns = asyncio.run(_describe(qi, table_name, schema))
        finally:
            connection.close()
    except SchemaDescribeError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"[red]Error describing table: {e}[/red]")
        raise typer.Exit(1)

    if as_json:
        console.print_json(json.dumps({name: col.to_dict() for name, col in columns.items()}, default=str))
        return

    title = f"{schema}.{table_name}" if schema else table_name
    console.print(_render_columns(title, columns, qi.capabilities.needs_constraint_shadow))


@app.command()
def constraints(
    table_name: str = typer.Argument(..., help="Table name (case sensitive)"),
    schema: Optional[str] = typer.Option(None, "--schema", "-s", help="Schema"),
    forget: bool = typer.Option(False, "--forget", help="Remove the recorded constraints for the table"),
):
    """List constraints recorded in the persisted shadow store."""
    store = SqliteConstraintStore(settings.constraint_store_path)
    # describe keys SQLite entries by "main" when no schema is given
    table_id = TableIdentifier(table_name, schema or get_capabilities(Dialect.SQLITE).default_schema)
    try:
        if forget:
            store.remove(table_id)
            console.print(f"[green]Forgot constraints for {table_name}.[/green]")
            return

        entries = store.list(table_id)
        if not entries:
            console.print("[yellow]No constraints recorded.[/yellow]")
            return

        table = Table(title=f"Constraints: {table_name}")
        table.add_column("Column", style="cyan")
        table.add_column("Unique")
        table.add_column("References", style="blue")
        for entry in entries:
            fk = entry.foreign_key
            table.add_row(
                entry.column,
                "" if entry.unique is None else ("yes" if entry.unique else "no"),
                f"{fk.table}.{fk.key}" if fk else "",
            )
        console.print(table)
    except Exception as e:
        console.print(f"[red]Error reading constraint store: {e}[/red]")
        raise typer.Exit(1)
    finally:
        store.close()


@app.command()
def config():
    """Show current configuration."""
    caps = get_capabilities(settings.default_dialect)
    console.print("[bold]Current Configuration[/bold]")
    console.print(f"  Default Dialect: {caps.dialect.value} (default schema: {caps.default_schema})")
    console.print(f"  Concurrent Catalog Queries: {'Yes' if settings.concurrent_catalog_queries else 'No'}")
    console.print(f"  Persist Constraints: {'Yes' if settings.persist_constraints else 'No'}")
    console.print(f"  Constraint Store: {settings.constraint_store_path or '~/.schema-describe/constraints.db'}")
    console.print(f"  Log Level: {settings.log_level}")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """
    schema-describe - Describe table columns from a database catalog.

    Examples:

        schema-describe describe users --sqlite app.db

        SCHEMA_DESCRIBE_DEFAULT_DIALECT=duckdb schema-describe describe events -d warehouse.duckdb

        schema-describe describe orders --duckdb warehouse.duckdb --schema sales --json

        schema-describe constraints users
    """
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level.upper(), logging.WARNING)
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")


if __name__ == "__main__":
    app()
