"""sqlgate CLI entry point."""

from __future__ import annotations

import importlib.metadata
from typing import Annotated

import typer

from sqlgate.cli.query import exec_cmd, query_cmd
from sqlgate.cli.tables import indexes_cmd, tables_cmd
from sqlgate.db.errors import error_message


def _installed_version() -> str:
    try:
        return importlib.metadata.version("sqlgate")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"sqlgate {_installed_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="sqlgate",
    help=(
        "sqlgate: serialized SQLite access with ?/i? argument binding.\n\n"
        "  sqlgate query   Run a query and print its rows.\n"
        "  sqlgate exec    Execute a statement and report the rows it changed."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """sqlgate: serialized SQLite access."""


app.command("query")(query_cmd)
app.command("exec")(exec_cmd)
app.command("tables")(tables_cmd)
app.command("indexes")(indexes_cmd)


@app.command("error")
def error_cmd(
    code: Annotated[int, typer.Argument(help="Error code, e.g. 19 or 201.")],
) -> None:
    """Describe an error code."""
    typer.echo(f"{code}: {error_message(code)}")


@app.command("version")
def version_cmd() -> None:
    """Show the installed sqlgate version."""
    typer.echo(f"sqlgate {_installed_version()}")


if __name__ == "__main__":
    app()
