"""sqlgate query / exec: run one statement with bound arguments.

Usage:
  sqlgate query "SELECT * FROM i? WHERE age > ?" --arg people --arg 30
  sqlgate exec "INSERT INTO people (name) VALUES (?)" --arg Alice --db app.sqlite
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.markup import escape
from rich.table import Table

from sqlgate.cli.common import coerce_arg, console, open_database
from sqlgate.cli.errors import err_binding, err_sql
from sqlgate.db.errors import BindingError, SQLGateError
from sqlgate.db.models import ColumnValue, OpenFlags, ResultRow

_ArgOption = Annotated[
    Optional[list[str]],
    typer.Option(
        "--arg",
        "-a",
        help="Value bound to the next ? or i? placeholder (repeatable). 'null' binds NULL.",
    ),
]
_DbOption = Annotated[
    Optional[Path],
    typer.Option("--db", help="Database file (default: database.path from sqlgate.yaml)."),
]


def query_cmd(
    sql: Annotated[str, typer.Argument(help="Query to run, e.g. SELECT * FROM t.")],
    arg: _ArgOption = None,
    db: _DbOption = None,
) -> None:
    """Run a query and print the result rows as a table."""
    args = [coerce_arg(a) for a in arg] if arg else None
    database = open_database(db)
    try:
        rows = database.execute_query(sql, args)
    except BindingError as exc:
        console.print(err_binding(exc, len(args or [])))
        raise typer.Exit(1) from exc
    except SQLGateError as exc:
        console.print(err_sql(exc))
        raise typer.Exit(1) from exc
    finally:
        database.shutdown()

    if not rows:
        console.print("[dim]No rows.[/]")
        return
    console.print(_rows_table(rows))
    console.print(f"[dim]{len(rows)} row(s)[/]")


def exec_cmd(
    sql: Annotated[str, typer.Argument(help="Statement to execute (INSERT, UPDATE, CREATE, ...).")],
    arg: _ArgOption = None,
    db: _DbOption = None,
) -> None:
    """Execute a non-query statement and report how many rows it changed."""
    args = [coerce_arg(a) for a in arg] if arg else None
    database = open_database(db, must_exist=False)
    changed = 0

    def body() -> None:
        nonlocal changed
        database.execute_change(sql, args)
        changed = database.rows_modified()

    try:
        # Custom connection so rows_modified() reads the same connection
        database.execute_with_connection(OpenFlags.READ_WRITE_CREATE, body)
    except BindingError as exc:
        console.print(err_binding(exc, len(args or [])))
        raise typer.Exit(1) from exc
    except SQLGateError as exc:
        console.print(err_sql(exc))
        raise typer.Exit(1) from exc
    finally:
        database.shutdown()

    console.print(f"[green]✓[/] {changed} row(s) changed")


def _rows_table(rows: list[ResultRow]) -> Table:
    columns: list[str] = []
    for row in rows:
        for name in row:
            if name not in columns:
                columns.append(name)

    table = Table(show_header=True, header_style="bold")
    for name in columns:
        table.add_column(name)
    for row in rows:
        table.add_row(*(_cell(row.column(name)) for name in columns))
    return table


def _cell(value: ColumnValue) -> str:
    if value.is_missing:
        return "[dim]NULL[/]"
    if value.as_bytes() is not None:
        return f"[dim]<{len(value.value)} bytes>[/]"
    return escape(str(value.value))
