"""Statement execution against the manager's current connection."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import apsw

from sqlgate.db.binder import bind
from sqlgate.db.columns import build_row
from sqlgate.db.connection import ConnectionManager
from sqlgate.db.errors import EngineError, log_engine_error
from sqlgate.db.escape import Escaper
from sqlgate.db.models import ResultRow


class StatementExecutor:
    """Runs SQL on the connection owned by *connection*.

    The executor never opens or closes the connection itself and does not
    keep the handle between calls.
    """

    def __init__(self, connection: ConnectionManager, escaper: Escaper | None = None) -> None:
        self._connection = connection
        self.escaper = escaper or Escaper()

    def bind(self, sql: str, args: Sequence[Any] | None) -> str:
        """Return *sql* with *args* bound, or *sql* unchanged when args is None."""
        if args is None:
            return sql
        return bind(sql, args, self.escaper)

    def execute_change(self, sql: str, args: Sequence[Any] | None = None) -> None:
        """Execute a non-query statement (INSERT, UPDATE, CREATE, BEGIN, ...).

        Raises:
            BindingError: *args* do not fit the placeholders in *sql*.
            EngineError: SQLite rejected or failed the statement.
        """
        sql = self.bind(sql, args)
        cursor = self._cursor(sql)
        try:
            cursor.execute(sql)
        except apsw.Error as exc:
            raise self._engine_error(exc, sql, "SQL Step") from exc
        finally:
            cursor.close(force=True)

    def execute_query(self, sql: str, args: Sequence[Any] | None = None) -> list[ResultRow]:
        """Execute a query and return every result row.

        Either all rows are returned or an error is raised; a failure part
        way through the result set discards the rows read so far.

        Raises:
            BindingError: *args* do not fit the placeholders in *sql*.
            EngineError: SQLite rejected the statement or failed mid-result.
        """
        sql = self.bind(sql, args)
        cursor = self._cursor(sql)
        try:
            try:
                cursor.execute(sql)
            except apsw.Error as exc:
                raise self._engine_error(exc, sql, "SQL Prepare") from exc
            rows: list[ResultRow] = []
            try:
                for values in cursor:
                    # Only readable while a row is current
                    rows.append(build_row(cursor.get_description(), values))
            except apsw.Error as exc:
                raise self._engine_error(exc, sql, "SQL Step") from exc
            return rows
        finally:
            cursor.close(force=True)

    def last_inserted_row_id(self) -> int:
        return self._connection.handle.last_insert_rowid()

    def rows_modified(self) -> int:
        return self._connection.handle.changes()

    # ------------------------------------------------------------------

    def _cursor(self, sql: str) -> apsw.Cursor:
        handle = self._connection.handle
        try:
            return handle.cursor()
        except apsw.Error as exc:
            raise self._engine_error(exc, sql, "SQL Prepare") from exc

    @staticmethod
    def _engine_error(exc: apsw.Error, sql: str, during: str) -> EngineError:
        error = EngineError.from_apsw(exc, sql)
        log_engine_error(during, error)
        return error
