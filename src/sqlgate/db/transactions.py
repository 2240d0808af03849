"""Transaction and savepoint control.

One exclusive transaction at a time; savepoints stack, inside or outside
a transaction, but a transaction cannot be started inside a savepoint.
Savepoints are named by depth (``savepoint1``, ``savepoint2``, ...), so
release and rollback always target the innermost one.
"""

from __future__ import annotations

import logging

from sqlgate.db.connection import ConnectionManager
from sqlgate.db.errors import EngineError
from sqlgate.db.executor import StatementExecutor
from sqlgate.db.state import Transition

logger = logging.getLogger(__name__)


def savepoint_name(depth: int) -> str:
    return f"savepoint{depth}"


class TransactionController:
    """Drives the transaction/savepoint state of one connection."""

    def __init__(self, connection: ConnectionManager, executor: StatementExecutor) -> None:
        self._connection = connection
        self._executor = executor

    @property
    def in_transaction(self) -> bool:
        return self._connection.state.in_transaction

    @property
    def savepoint_depth(self) -> int:
        return self._connection.state.savepoint_depth

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def begin_transaction(self) -> None:
        """Start an exclusive transaction.

        Raises:
            TransactionStateError: 501 inside a savepoint, 502 inside a
                transaction. The state is left unchanged.
            EngineError: ``BEGIN EXCLUSIVE`` failed.
        """
        new_state = self._connection.state.apply(Transition.BEGIN_TRANSACTION)
        self._executor.execute_change("BEGIN EXCLUSIVE")
        self._connection.state = new_state

    def commit_transaction(self) -> None:
        """Commit; on failure roll back and raise the commit error."""
        try:
            self._executor.execute_change("COMMIT")
        except EngineError:
            try:
                self.rollback_transaction()
            except EngineError as rollback_error:
                logger.debug("Rollback after failed COMMIT also failed: %s", rollback_error)
            raise
        finally:
            self._connection.apply(Transition.END_TRANSACTION)

    def rollback_transaction(self) -> None:
        try:
            self._executor.execute_change("ROLLBACK")
        finally:
            self._connection.apply(Transition.END_TRANSACTION)

    # ------------------------------------------------------------------
    # Savepoints
    # ------------------------------------------------------------------

    def begin_savepoint(self) -> None:
        name = savepoint_name(self.savepoint_depth + 1)
        self._executor.execute_change(f"SAVEPOINT '{name}'")
        self._connection.apply(Transition.PUSH_SAVEPOINT)

    def release_savepoint(self) -> None:
        """Release the innermost savepoint; the depth drops even if RELEASE fails."""
        name = savepoint_name(self.savepoint_depth)
        try:
            self._executor.execute_change(f"RELEASE '{name}'")
        finally:
            self._connection.apply(Transition.POP_SAVEPOINT)

    def rollback_savepoint(self) -> None:
        """Roll back to the innermost savepoint. It stays open."""
        name = savepoint_name(self.savepoint_depth)
        self._executor.execute_change(f"ROLLBACK TO '{name}'")
