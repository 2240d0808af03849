"""sqlgate rich error messages: actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from sqlgate.cli.errors import err_no_db
    console.print(err_no_db("app.sqlite"))
    raise typer.Exit(1)
"""

from __future__ import annotations

from rich.markup import escape

from sqlgate.db.errors import BindingError, SQLGateError


def err_no_db(db_path: str) -> str:
    """No database file at *db_path*."""
    return (
        f"[red]Error:[/] No database found at '{escape(db_path)}'.\n"
        "  Use:  --db <path>  or set SQLGATE_DB_PATH"
    )


def err_binding(error: BindingError, arg_count: int) -> str:
    """Arguments did not fit the placeholders of the statement."""
    return (
        f"[red]Error {error.code}:[/] {escape(error.message)} ({arg_count} given).\n"
        "  Use:  one --arg per ? or i? placeholder, in order"
    )


def err_sql(error: SQLGateError) -> str:
    """The database rejected the statement."""
    detail = f"\n  Details: {escape(error.detail)}" if error.detail else ""
    return (
        f"[red]Error {error.code}:[/] {escape(error.message)}{detail}\n"
        "  Run:  sqlgate error <code>  for the code's description, then fix the statement"
    )


def err_config(message: str) -> str:
    """Config file or environment variable is invalid."""
    return (
        f"[red]Error:[/] Invalid configuration.\n  {escape(message)}\n"
        "  Remove or fix the value in sqlgate.yaml or the SQLGATE_* environment variables."
    )
