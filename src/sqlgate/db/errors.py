"""Error codes, messages and exception types for the sqlgate database layer.

Codes are stable so callers can branch on numeric ranges:

  -1        no error
  0 – 101   SQLite result codes (passed through from the engine)
  201 – 203 binding errors
  301 – 306 custom connection errors
  401 – 403 index and table errors
  501 – 502 transaction and savepoint errors
"""

from __future__ import annotations

import logging
from enum import IntEnum

import apsw

logger = logging.getLogger(__name__)

SQLITE_MISUSE = 21

ERROR_MESSAGES: dict[int, str] = {
    -1: "No error",
    # SQLite result codes, see https://www.sqlite.org/rescode.html
    0: "Successful result",
    1: "SQL error or missing database",
    2: "Internal logic error in SQLite",
    3: "Access permission denied",
    4: "Callback routine requested an abort",
    5: "The database file is locked",
    6: "A table in the database is locked",
    7: "A malloc() failed",
    8: "Attempt to write a readonly database",
    9: "Operation terminated by sqlite3_interrupt()",
    10: "Some kind of disk I/O error occurred",
    11: "The database disk image is malformed",
    12: "Unknown opcode in sqlite3_file_control()",
    13: "Insertion failed because database is full",
    14: "Unable to open the database file",
    15: "Database lock protocol error",
    16: "Database is empty",
    17: "The database schema changed",
    18: "String or BLOB exceeds size limit",
    19: "Abort due to constraint violation",
    20: "Data type mismatch",
    21: "Library used incorrectly",
    22: "Uses OS features not supported on host",
    23: "Authorization denied",
    24: "Auxiliary database format error",
    25: "2nd parameter to sqlite3_bind out of range",
    26: "File opened that is not a database file",
    27: "Notifications from sqlite3_log()",
    28: "Warnings from sqlite3_log()",
    100: "sqlite3_step() has another row ready",
    101: "sqlite3_step() has finished executing",
    # Binding
    201: "Not enough objects to bind provided",
    202: "Too many objects to bind provided",
    203: "Object to bind as identifier must be a String",
    # Custom connections
    301: "A custom connection is already open",
    302: "Cannot open a custom connection inside a transaction",
    303: "Cannot open a custom connection inside a savepoint",
    304: "A custom connection is not currently open",
    305: "Cannot close a custom connection inside a transaction",
    306: "Cannot close a custom connection inside a savepoint",
    # Indexes and tables
    401: "At least one column name must be provided",
    402: "Error extracting index names from sqlite_master",
    403: "Error extracting table names from sqlite_master",
    # Transactions and savepoints
    501: "Cannot begin a transaction within a savepoint",
    502: "Cannot begin a transaction within another transaction",
}

_UNKNOWN = "Unknown error"


def error_message(code: int) -> str:
    """Return the human-readable description for *code*."""
    return ERROR_MESSAGES.get(int(code), _UNKNOWN)


# ---------------------------------------------------------------------------
# Error kinds: enum values are the public error codes
# ---------------------------------------------------------------------------


class BindingErrorKind(IntEnum):
    NOT_ENOUGH_ARGUMENTS = 201
    TOO_MANY_ARGUMENTS = 202
    IDENTIFIER_MUST_BE_STRING = 203


class CustomConnectionErrorKind(IntEnum):
    ALREADY_OPEN = 301
    INSIDE_TRANSACTION = 302
    INSIDE_SAVEPOINT = 303
    NOT_CURRENTLY_OPEN = 304
    CLOSE_INSIDE_TRANSACTION = 305
    CLOSE_INSIDE_SAVEPOINT = 306


class DdlErrorKind(IntEnum):
    NO_COLUMNS = 401
    INDEX_NAMES = 402
    TABLE_NAMES = 403


class TransactionErrorKind(IntEnum):
    WITHIN_SAVEPOINT = 501
    ALREADY_IN_TRANSACTION = 502


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class SQLGateError(Exception):
    """Base class for every error raised by the database layer.

    Attributes:
        code: Stable integer error code (see module docstring).
    """

    def __init__(self, code: int, detail: str | None = None) -> None:
        self.code = int(code)
        self.detail = detail
        text = f"[{self.code}] {self.message}"
        if detail:
            text = f"{text}: {detail}"
        super().__init__(text)

    @property
    def message(self) -> str:
        return error_message(self.code)


class EngineError(SQLGateError):
    """SQLite reported a failure.

    Attributes:
        code: Primary SQLite result code (0–101).
        extended_code: Extended result code when SQLite supplied one.
        sql: Statement being run when the failure occurred, if any.
        index: Position of the failing statement in a batch
            (``execute_multiple_changes`` only).
    """

    def __init__(
        self,
        code: int,
        detail: str | None = None,
        *,
        extended_code: int | None = None,
        sql: str | None = None,
    ) -> None:
        super().__init__(code, detail)
        self.extended_code = extended_code
        self.sql = sql
        self.index: int | None = None

    @classmethod
    def from_apsw(cls, exc: apsw.Error, sql: str | None = None) -> EngineError:
        """Wrap an ``apsw`` exception, keeping its result code.

        Errors raised by apsw itself (closed connection or cursor, bad
        bindings, threading violations) carry no SQLite code and are
        reported as library misuse.
        """
        result = getattr(exc, "result", None)
        if isinstance(result, int) and result > 0:
            code = result & 0xFF
            extended = getattr(exc, "extendedresult", None)
        else:
            code = SQLITE_MISUSE
            extended = None
        return cls(code, str(exc) or None, extended_code=extended, sql=sql)


class BindingError(SQLGateError):
    """Arguments could not be bound to the placeholders of a template."""

    def __init__(self, kind: BindingErrorKind, arg_index: int | None = None) -> None:
        detail = f"argument {arg_index}" if arg_index is not None else None
        super().__init__(kind, detail)
        self.kind = kind
        self.arg_index = arg_index


class CustomConnectionStateError(SQLGateError):
    """A custom connection was opened or closed in a state that forbids it."""

    def __init__(self, kind: CustomConnectionErrorKind) -> None:
        super().__init__(kind)
        self.kind = kind


class TransactionStateError(SQLGateError):
    """A transaction was begun in a state that forbids it."""

    def __init__(self, kind: TransactionErrorKind) -> None:
        super().__init__(kind)
        self.kind = kind


class DdlExtractionError(SQLGateError):
    """An index/table helper got invalid input or an unexpected result shape."""

    def __init__(self, kind: DdlErrorKind, detail: str | None = None) -> None:
        super().__init__(kind, detail)
        self.kind = kind


class EscapeWarning(UserWarning):
    """A value could not be escaped and was bound as NULL."""


def log_engine_error(during: str, error: EngineError) -> None:
    """Log an engine failure at DEBUG with its code, message and statement."""
    logger.debug(
        "SQLite error during %s: code %d - %s (%s)%s",
        during,
        error.code,
        error.message,
        error.detail,
        f" | sql: {error.sql}" if error.sql else "",
    )
