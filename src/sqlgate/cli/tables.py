"""sqlgate tables / indexes: list the schema objects of a database.

Usage:
  sqlgate tables --db app.sqlite
  sqlgate indexes --table people
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Optional

import typer

from sqlgate.cli.common import console, open_database
from sqlgate.cli.errors import err_sql
from sqlgate.db.errors import SQLGateError

_DbOption = Annotated[
    Optional[Path],
    typer.Option("--db", help="Database file (default: database.path from sqlgate.yaml)."),
]


def tables_cmd(db: _DbOption = None) -> None:
    """List the user tables of the database."""
    database = open_database(db)
    try:
        names = database.existing_tables()
    except SQLGateError as exc:
        console.print(err_sql(exc))
        raise typer.Exit(1) from exc
    finally:
        database.shutdown()
    _print_names(names, "tables")


def indexes_cmd(
    table: Annotated[
        Optional[str],
        typer.Option("--table", "-t", help="Only list indexes on this table."),
    ] = None,
    db: _DbOption = None,
) -> None:
    """List the indexes of the database, or of one table."""
    database = open_database(db)
    try:
        if table is None:
            names = database.existing_indexes()
        else:
            names = database.existing_indexes_for_table(table)
    except SQLGateError as exc:
        console.print(err_sql(exc))
        raise typer.Exit(1) from exc
    finally:
        database.shutdown()
    _print_names(names, "indexes")


def _print_names(names: list[str], what: str) -> None:
    if not names:
        console.print(f"[dim]No {what}.[/]")
        return
    for name in names:
        console.print(name, markup=False)
