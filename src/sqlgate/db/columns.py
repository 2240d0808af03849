"""Column typing for query results.

The declared type of each result column comes from the cursor's
description, so typing is local to sqlgate's own cursors. The first word
of the declared type picks a converter, which reads the engine's value
the way SQLite's ``sqlite3_column_*`` accessors would.

Columns without a declared type (expressions, or declared types outside
the families below) are typed from the value's storage class instead.
"""

from __future__ import annotations

import re
import warnings
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Any

from sqlgate.db.errors import EscapeWarning
from sqlgate.db.escape import DATE_FORMAT
from sqlgate.db.models import MISSING, ColumnValue, ResultRow

INTEGER_TYPES = ("INT", "INTEGER", "TINYINT", "SMALLINT", "MEDIUMINT", "BIGINT", "UNSIGNED", "INT2", "INT8")
TEXT_TYPES = ("CHARACTER", "VARCHAR", "VARYING", "NCHAR", "NATIVE", "NVARCHAR", "TEXT", "CLOB")
BLOB_TYPES = ("BLOB", "NONE")
REAL_TYPES = ("REAL", "DOUBLE", "FLOAT", "NUMERIC", "DECIMAL")
BOOLEAN_TYPES = ("BOOLEAN",)
DATE_TYPES = ("DATE", "DATETIME", "TIMESTAMP")

_TYPE_WORD = re.compile(r"[^\s(]+")


def _as_text(value: Any) -> str:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def _as_int(value: Any) -> int:
    # sqlite3_column_int semantics: leading numeric prefix, else 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        try:
            return int(value)
        except (ValueError, OverflowError):
            return 0
    text = _as_text(value)
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return int(float(text))
    except (ValueError, OverflowError):
        return 0


def _as_float(value: Any) -> float:
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(_as_text(value))
    except ValueError:
        return 0.0


def convert_integer(value: Any) -> ColumnValue:
    return ColumnValue.integer(_as_int(value))


def convert_text(value: Any) -> ColumnValue:
    return ColumnValue.text(_as_text(value))


def convert_blob(value: Any) -> ColumnValue:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return ColumnValue.blob(bytes(value))
    return ColumnValue.blob(_as_text(value).encode("utf-8"))


def convert_real(value: Any) -> ColumnValue:
    return ColumnValue.real(_as_float(value))


def convert_boolean(value: Any) -> ColumnValue:
    return ColumnValue.boolean(_as_int(value) != 0)


def convert_date(value: Any) -> ColumnValue:
    text = _as_text(value)
    try:
        return ColumnValue.timestamp(datetime.strptime(text, DATE_FORMAT))
    except ValueError:
        pass
    try:
        return ColumnValue.timestamp(datetime.fromisoformat(text))
    except ValueError:
        warnings.warn(
            f"Date column value {text!r} is not in {DATE_FORMAT!r} format; skipping.",
            EscapeWarning,
            stacklevel=2,
        )
        return MISSING


CONVERTERS: dict[str, Callable[[Any], ColumnValue]] = {
    **{name: convert_integer for name in INTEGER_TYPES},
    **{name: convert_text for name in TEXT_TYPES},
    **{name: convert_blob for name in BLOB_TYPES},
    **{name: convert_real for name in REAL_TYPES},
    **{name: convert_boolean for name in BOOLEAN_TYPES},
    **{name: convert_date for name in DATE_TYPES},
}


def converter_for(decltype: str | None) -> Callable[[Any], ColumnValue]:
    """Pick the converter for a declared type such as ``VARCHAR(10)``."""
    if decltype:
        match = _TYPE_WORD.match(decltype.strip())
        if match:
            converter = CONVERTERS.get(match.group(0).upper())
            if converter is not None:
                return converter
    return to_column_value


def to_column_value(value: Any) -> ColumnValue:
    """Type a value from its storage class alone."""
    if isinstance(value, ColumnValue):
        return value
    if value is None:
        return MISSING
    if isinstance(value, bool):
        return ColumnValue.boolean(value)
    if isinstance(value, int):
        return ColumnValue.integer(value)
    if isinstance(value, float):
        return ColumnValue.real(value)
    if isinstance(value, str):
        return ColumnValue.text(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return ColumnValue.blob(bytes(value))
    if isinstance(value, datetime):
        return ColumnValue.timestamp(value)
    return MISSING


def build_row(description: Sequence[tuple[str, str | None]], values: Sequence[Any]) -> ResultRow:
    """Build a ResultRow from ``(name, declared type)`` pairs and raw values.

    NULL (and unreadable) columns are left out.
    """
    typed: dict[str, ColumnValue] = {}
    for (name, decltype), value in zip(description, values):
        if value is None:
            continue
        column = converter_for(decltype)(value)
        if not column.is_missing:
            typed[name] = column
    return ResultRow(typed)
