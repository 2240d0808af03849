"""Table and index helpers built on the statement executor."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from sqlgate.db.errors import DdlErrorKind, DdlExtractionError
from sqlgate.db.escape import escape_identifier
from sqlgate.db.executor import StatementExecutor
from sqlgate.db.models import DataType, ResultRow

_LIST_TABLES = "SELECT name FROM sqlite_master WHERE type = 'table' AND name NOT LIKE 'sqlite\\_%' ESCAPE '\\'"
_LIST_INDEXES = "SELECT name FROM sqlite_master WHERE type = 'index'"
_LIST_TABLE_INDEXES = "SELECT name FROM sqlite_master WHERE type = 'index' AND tbl_name = ?"


def create_table_sql(table: str, columns: Mapping[str, DataType]) -> str:
    """Build CREATE TABLE for *columns*, with an ``ID`` autoincrement key first."""
    defs = ["ID INTEGER PRIMARY KEY AUTOINCREMENT"]
    defs += [f"{escape_identifier(name)} {dtype.sql}" for name, dtype in columns.items()]
    return f"CREATE TABLE IF NOT EXISTS {escape_identifier(table)} ({', '.join(defs)})"


def create_index_sql(name: str, columns: Sequence[str], table: str, unique: bool = False) -> str:
    if not columns:
        raise DdlExtractionError(DdlErrorKind.NO_COLUMNS)
    kind = "UNIQUE INDEX" if unique else "INDEX"
    cols = ", ".join(escape_identifier(c) for c in columns)
    return f"CREATE {kind} {escape_identifier(name)} ON {escape_identifier(table)} ({cols})"


def create_table(executor: StatementExecutor, table: str, columns: Mapping[str, DataType]) -> None:
    executor.execute_change(create_table_sql(table, columns))


def delete_table(executor: StatementExecutor, table: str) -> None:
    executor.execute_change(f"DROP TABLE {escape_identifier(table)}")


def existing_tables(executor: StatementExecutor) -> list[str]:
    """Names of the user tables (SQLite's internal ``sqlite_*`` tables excluded)."""
    rows = executor.execute_query(_LIST_TABLES)
    return _names(rows, DdlErrorKind.TABLE_NAMES)


def create_index(
    executor: StatementExecutor,
    name: str,
    columns: Sequence[str],
    table: str,
    unique: bool = False,
) -> None:
    executor.execute_change(create_index_sql(name, columns, table, unique))


def remove_index(executor: StatementExecutor, name: str) -> None:
    executor.execute_change(f"DROP INDEX {escape_identifier(name)}")


def existing_indexes(executor: StatementExecutor) -> list[str]:
    rows = executor.execute_query(_LIST_INDEXES)
    return _names(rows, DdlErrorKind.INDEX_NAMES)


def existing_indexes_for_table(executor: StatementExecutor, table: str) -> list[str]:
    rows = executor.execute_query(_LIST_TABLE_INDEXES, [table])
    return _names(rows, DdlErrorKind.INDEX_NAMES)


def _names(rows: list[ResultRow], kind: DdlErrorKind) -> list[str]:
    names: list[str] = []
    for row in rows:
        name = row.column("name").as_text()
        if name is None:
            raise DdlExtractionError(kind, f"unexpected row {row!r}")
        names.append(name)
    return names
