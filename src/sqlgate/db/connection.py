"""Connection manager: owns the single SQLite connection of a database."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import apsw

from sqlgate.db.errors import (
    SQLITE_MISUSE,
    CustomConnectionErrorKind,
    CustomConnectionStateError,
    EngineError,
    log_engine_error,
)
from sqlgate.db.models import OpenFlags
from sqlgate.db.state import ScopeState, Transition

_OPEN_FLAGS = {
    OpenFlags.READ_ONLY: apsw.SQLITE_OPEN_READONLY,
    OpenFlags.READ_WRITE: apsw.SQLITE_OPEN_READWRITE,
    OpenFlags.READ_WRITE_CREATE: apsw.SQLITE_OPEN_READWRITE | apsw.SQLITE_OPEN_CREATE,
}


@dataclass
class ConnectionOptions:
    """Settings applied every time the connection is opened.

    Attributes:
        busy_timeout: Seconds SQLite waits on a locked database before
            failing with SQLITE_BUSY.
        foreign_keys: Issue ``PRAGMA foreign_keys = ON`` after opening.
    """

    busy_timeout: float = 5.0
    foreign_keys: bool = True


class ConnectionManager:
    """One physical connection to a database file and its scope state.

    The connection is ``CLOSED``, ``OPEN_DEFAULT`` (opened by ``open``) or
    ``OPEN_CUSTOM`` (opened by ``open_with_flags``). While a transaction,
    savepoint or custom connection is active, ``open`` and ``close`` are
    no-ops: the scope keeps the connection open until it ends.
    """

    def __init__(self, db_path: Path | str, options: ConnectionOptions | None = None) -> None:
        """Store the database path. Nothing is opened until ``open()``.

        Args:
            db_path: Path to the SQLite database file.
            options: Connection settings; defaults to ``ConnectionOptions()``.
        """
        self.db_path = Path(db_path)
        self.options = options or ConnectionOptions()
        self.state = ScopeState()
        self._conn: apsw.Connection | None = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @property
    def is_custom(self) -> bool:
        return self.state.custom_open

    @property
    def handle(self) -> apsw.Connection:
        """The open connection. Raises EngineError (misuse) when closed."""
        if self._conn is None:
            raise EngineError(SQLITE_MISUSE, "database connection is not open")
        return self._conn

    def apply(self, transition: Transition) -> None:
        self.state = self.state.apply(transition)

    # ------------------------------------------------------------------
    # Open / close
    # ------------------------------------------------------------------

    def open(self, flags: OpenFlags = OpenFlags.READ_WRITE_CREATE) -> None:
        """Open in default mode; no-op if open already or inside a scope."""
        if self.state.in_scope or self._conn is not None:
            return
        self._conn = self._connect(flags, "Opening Database")

    def open_with_flags(self, flags: OpenFlags) -> None:
        """Open a custom connection with *flags*.

        Raises:
            CustomConnectionStateError: 302 inside a transaction, 301 if a
                custom (or default) connection is already open, 303 inside
                a savepoint.
            EngineError: SQLite could not open the file.
        """
        new_state = self.state.apply(Transition.OPEN_CUSTOM)
        if self._conn is not None:
            raise CustomConnectionStateError(CustomConnectionErrorKind.ALREADY_OPEN)
        self._conn = self._connect(flags, "Opening Database with Flags")
        self.state = new_state

    def close(self) -> None:
        """Close a default-mode connection; no-op inside a scope or when closed."""
        if self.state.in_scope or self._conn is None:
            return
        conn, self._conn = self._conn, None
        self._close(conn, "Closing Database")

    def close_custom_connection(self) -> None:
        """Close the custom connection.

        Raises:
            CustomConnectionStateError: 305 inside a transaction, 306 inside
                a savepoint, 304 if no custom connection is open.
            EngineError: SQLite failed to close; the manager is closed anyway.
        """
        self.apply(Transition.CLOSE_CUSTOM)
        conn, self._conn = self._conn, None
        if conn is not None:
            self._close(conn, "Closing Database with Flags")

    def shutdown(self) -> None:
        """Close the connection whatever its mode and reset the scope state."""
        conn, self._conn = self._conn, None
        self.state = ScopeState()
        if conn is not None:
            self._close(conn, "Closing Database")

    # ------------------------------------------------------------------
    # Engine calls
    # ------------------------------------------------------------------

    def _connect(self, flags: OpenFlags, during: str) -> apsw.Connection:
        try:
            conn = apsw.Connection(str(self.db_path), flags=_OPEN_FLAGS[flags])
        except apsw.Error as exc:
            error = EngineError.from_apsw(exc)
            log_engine_error(during, error)
            raise error from exc
        try:
            conn.set_busy_timeout(int(self.options.busy_timeout * 1000))
            if self.options.foreign_keys:
                conn.execute("PRAGMA foreign_keys = ON")
        except apsw.Error as exc:
            conn.close()
            error = EngineError.from_apsw(exc)
            log_engine_error(during, error)
            raise error from exc
        return conn

    def _close(self, conn: apsw.Connection, during: str) -> None:
        try:
            conn.close()
        except apsw.Error as exc:
            error = EngineError.from_apsw(exc)
            log_engine_error(during, error)
            raise error from exc
