"""sqlgate database layer."""

from sqlgate.db.connection import ConnectionManager, ConnectionOptions
from sqlgate.db.database import Database
from sqlgate.db.errors import (
    BindingError,
    CustomConnectionStateError,
    DdlExtractionError,
    EngineError,
    EscapeWarning,
    SQLGateError,
    TransactionStateError,
    error_message,
)
from sqlgate.db.models import (
    MISSING,
    ColumnKind,
    ColumnValue,
    DataType,
    Image,
    OpenFlags,
    ResultRow,
    ScopeOutcome,
)

__all__ = [
    "Database",
    "ConnectionManager",
    "ConnectionOptions",
    "SQLGateError",
    "EngineError",
    "BindingError",
    "CustomConnectionStateError",
    "TransactionStateError",
    "DdlExtractionError",
    "EscapeWarning",
    "error_message",
    "ColumnKind",
    "ColumnValue",
    "MISSING",
    "DataType",
    "Image",
    "OpenFlags",
    "ResultRow",
    "ScopeOutcome",
]
