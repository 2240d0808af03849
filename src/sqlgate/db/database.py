"""Database facade: every public operation, serialized through one gate.

Each operation opens the connection, does its work and closes it again,
unless a transaction, savepoint or custom connection is keeping the
connection open. Statements issued from inside a scope body run
immediately on the scope's connection.

Usage::

    db = Database("app.sqlite")
    db.create_table("people", {"name": DataType.STRING, "age": DataType.INT})
    db.execute_change("INSERT INTO i?(i?) VALUES (?)", ["people", "name", "Alice"])
    rows = db.execute_query("SELECT * FROM people WHERE age > ?", [30])

    def body() -> ScopeOutcome:
        db.execute_change("DELETE FROM people")
        return ScopeOutcome.ROLLBACK

    db.transaction(body)
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar

from sqlgate.db import schema
from sqlgate.db.connection import ConnectionManager, ConnectionOptions
from sqlgate.db.errors import SQLITE_MISUSE, EngineError, SQLGateError, error_message
from sqlgate.db.escape import Escaper
from sqlgate.db.executor import StatementExecutor
from sqlgate.db.gate import SerialGate
from sqlgate.db.models import DataType, OpenFlags, ResultRow, ScopeOutcome
from sqlgate.db.transactions import TransactionController
from sqlgate.images import ImageStore, LocalImageStore

if TYPE_CHECKING:
    from sqlgate.config import SQLGateConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

ScopeBody = Callable[[], ScopeOutcome]


class Database:
    """One logical SQLite database with serialized access.

    Args:
        db_path: Database file; created on first use unless opened read-only.
        image_store: Store used for ``Image`` values.
        options: Settings applied on every open.
    """

    def __init__(
        self,
        db_path: Path | str,
        *,
        image_store: ImageStore | None = None,
        options: ConnectionOptions | None = None,
    ) -> None:
        self.connection = ConnectionManager(db_path, options)
        self.escaper = Escaper(image_store)
        self.executor = StatementExecutor(self.connection, self.escaper)
        self.controller = TransactionController(self.connection, self.executor)
        self._gate = SerialGate()
        self._shut_down = False

    @classmethod
    def from_config(cls, cfg: SQLGateConfig) -> Database:
        """Build a Database from loaded configuration."""
        store = LocalImageStore(cfg.images.directory) if cfg.images.directory else None
        options = ConnectionOptions(
            busy_timeout=cfg.database.busy_timeout,
            foreign_keys=cfg.database.foreign_keys,
        )
        return cls(cfg.database.path, image_store=store, options=options)

    @property
    def path(self) -> Path:
        return self.connection.db_path

    @property
    def image_store(self) -> ImageStore | None:
        return self.escaper.image_store

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def shutdown(self) -> None:
        """Close the connection and stop the gate's worker thread.

        Later operations raise EngineError (misuse); calling shutdown again
        does nothing.
        """
        if self._shut_down:
            return
        self._shut_down = True
        if self._gate.inside:
            self.connection.shutdown()
            self._gate.shutdown(wait=False)
            return
        self._gate.run(self.connection.shutdown)
        self._gate.shutdown()

    def __enter__(self) -> Database:
        return self

    def __exit__(self, *args: object) -> None:
        self.shutdown()

    @contextmanager
    def _opened(self, flags: OpenFlags = OpenFlags.READ_WRITE_CREATE) -> Iterator[None]:
        self.connection.open(flags)
        try:
            yield
        finally:
            self.connection.close()

    def _run(self, task: Callable[[], T]) -> T:
        if self._shut_down:
            raise EngineError(SQLITE_MISUSE, "database is shut down")
        return self._gate.run(task)

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def execute_change(self, sql: str, args: Sequence[Any] | None = None) -> None:
        """Execute a non-query statement, binding *args* to ``?``/``i?``.

        Raises:
            BindingError: Arguments do not match the placeholders (201–203).
            EngineError: SQLite failed (0–101).
        """
        def task() -> None:
            bound = self.executor.bind(sql, args)
            with self._opened():
                self.executor.execute_change(bound)

        self._run(task)

    def execute_multiple_changes(self, statements: Sequence[str]) -> None:
        """Execute *statements* in order on one connection.

        Stops at the first failure; the raised EngineError has ``index``
        set to the position of the failing statement. Earlier statements
        are not undone.
        """
        def task() -> None:
            with self._opened():
                for index, sql in enumerate(statements):
                    try:
                        self.executor.execute_change(sql)
                    except EngineError as exc:
                        exc.index = index
                        raise

        self._run(task)

    def execute_query(self, sql: str, args: Sequence[Any] | None = None) -> list[ResultRow]:
        """Run a query and return all rows (empty list when nothing matches)."""
        def task() -> list[ResultRow]:
            bound = self.executor.bind(sql, args)
            with self._opened():
                return self.executor.execute_query(bound)

        return self._run(task)

    def execute_with_connection(self, flags: OpenFlags, body: Callable[[], object]) -> None:
        """Run *body* on a custom connection opened with *flags*.

        Cannot be nested, nor used inside a transaction or savepoint.

        Raises:
            CustomConnectionStateError: 301–306.
            EngineError: The file could not be opened with *flags*.
        """
        def task() -> None:
            self.connection.open_with_flags(flags)
            try:
                body()
            except BaseException:
                self._abandon(self.connection.close_custom_connection)
                raise
            self.connection.close_custom_connection()

        self._run(task)

    def last_inserted_row_id(self) -> int:
        """Row id of the most recent successful INSERT on this connection.

        Only meaningful while the connection stays open (inside a scope);
        each top-level operation opens a fresh connection.
        """
        def task() -> int:
            with self._opened():
                return self.executor.last_inserted_row_id()

        return self._run(task)

    def rows_modified(self) -> int:
        """Rows changed by the most recent INSERT/UPDATE/DELETE on this connection."""
        def task() -> int:
            with self._opened():
                return self.executor.rows_modified()

        return self._run(task)

    # ------------------------------------------------------------------
    # Tables and indexes
    # ------------------------------------------------------------------

    def create_table(self, table: str, columns: Mapping[str, DataType]) -> None:
        """Create *table* (if missing) with an ``ID`` autoincrement key and *columns*."""
        self._run_opened(lambda: schema.create_table(self.executor, table, columns))

    def delete_table(self, table: str) -> None:
        self._run_opened(lambda: schema.delete_table(self.executor, table))

    def existing_tables(self) -> list[str]:
        return self._run_opened(lambda: schema.existing_tables(self.executor))

    def create_index(
        self, name: str, columns: Sequence[str], table: str, unique: bool = False
    ) -> None:
        """Create an index on *columns* of *table*.

        Raises:
            DdlExtractionError: 401 when *columns* is empty.
        """
        self._run_opened(
            lambda: schema.create_index(self.executor, name, columns, table, unique)
        )

    def remove_index(self, name: str) -> None:
        self._run_opened(lambda: schema.remove_index(self.executor, name))

    def existing_indexes(self) -> list[str]:
        return self._run_opened(lambda: schema.existing_indexes(self.executor))

    def existing_indexes_for_table(self, table: str) -> list[str]:
        return self._run_opened(lambda: schema.existing_indexes_for_table(self.executor, table))

    def _run_opened(self, work: Callable[[], T]) -> T:
        def task() -> T:
            with self._opened():
                return work()

        return self._run(task)

    # ------------------------------------------------------------------
    # Transactions and savepoints
    # ------------------------------------------------------------------

    def transaction(self, body: ScopeBody) -> None:
        """Run *body* inside one exclusive transaction.

        ``ScopeOutcome.COMMIT`` commits (rolling back if the commit fails);
        ``ScopeOutcome.ROLLBACK`` or an exception from *body* rolls back.
        Transactions cannot be nested or opened inside a savepoint.

        Raises:
            TransactionStateError: 501/502.
            EngineError: BEGIN, COMMIT or ROLLBACK failed.
            TypeError: *body* returned something other than a ScopeOutcome.
        """
        def task() -> None:
            with self._opened():
                self.controller.begin_transaction()
                try:
                    outcome = body()
                except BaseException:
                    self._abandon(self.controller.rollback_transaction)
                    raise
                if outcome is ScopeOutcome.COMMIT:
                    self.controller.commit_transaction()
                    return
                self.controller.rollback_transaction()
                _check_outcome(outcome)

        self._run(task)

    def savepoint(self, body: ScopeBody) -> None:
        """Run *body* inside a savepoint; savepoints may be nested freely.

        ``ScopeOutcome.COMMIT`` releases the savepoint; ``ROLLBACK`` or an
        exception rolls back to it and then releases it. The depth is
        restored in every case.
        """
        def task() -> None:
            with self._opened():
                self.controller.begin_savepoint()
                try:
                    outcome = body()
                except BaseException:
                    self._abandon(self._discard_savepoint)
                    raise
                if outcome is ScopeOutcome.COMMIT:
                    self.controller.release_savepoint()
                    return
                self._discard_savepoint()
                _check_outcome(outcome)

        self._run(task)

    def _discard_savepoint(self) -> None:
        try:
            self.controller.rollback_savepoint()
        finally:
            self.controller.release_savepoint()

    @staticmethod
    def _abandon(undo: Callable[[], None]) -> None:
        # The body's exception is the one the caller sees
        try:
            undo()
        except SQLGateError as exc:
            logger.debug("Undo after failed scope body also failed: %s", exc)

    # ------------------------------------------------------------------
    # Misc
    # ------------------------------------------------------------------

    def escape_value(self, value: Any) -> str:
        return self.escaper.escape_value(value)

    def escape_identifier(self, name: str) -> str:
        return self.escaper.escape_identifier(name)

    @staticmethod
    def error_message(code: int) -> str:
        return error_message(code)


def _check_outcome(outcome: object) -> None:
    if not isinstance(outcome, ScopeOutcome):
        raise TypeError(
            f"Scope body must return ScopeOutcome.COMMIT or ScopeOutcome.ROLLBACK, "
            f"got {outcome!r}"
        )
