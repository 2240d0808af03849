"""Value and result types for the sqlgate database layer."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from sqlgate.images import ImageStore


class DataType(Enum):
    """Column types accepted by ``Database.create_table``."""

    STRING = "string"
    INT = "int"
    DOUBLE = "double"
    BOOL = "bool"
    DATA = "data"
    DATE = "date"
    IMAGE = "image"  # stored as the image id (TEXT)

    @property
    def sql(self) -> str:
        return _SQL_TYPES[self]


_SQL_TYPES: dict[DataType, str] = {
    DataType.STRING: "TEXT",
    DataType.INT: "INTEGER",
    DataType.DOUBLE: "DOUBLE",
    DataType.BOOL: "BOOLEAN",
    DataType.DATA: "BLOB",
    DataType.DATE: "DATE",
    DataType.IMAGE: "TEXT",
}


class OpenFlags(Enum):
    """Access modes for a connection, named after SQLite URI ``mode=`` values."""

    READ_ONLY = "ro"
    READ_WRITE = "rw"
    READ_WRITE_CREATE = "rwc"


class ScopeOutcome(Enum):
    """What a transaction or savepoint body wants done with its changes."""

    COMMIT = "commit"
    ROLLBACK = "rollback"


@dataclass(frozen=True)
class Image:
    """Image reference value: the encoded image bytes (e.g. PNG).

    Bound values of this type are written to the image store and the
    resulting id is stored in the column.
    """

    data: bytes


class ColumnKind(Enum):
    TEXT = "text"
    INTEGER = "integer"
    REAL = "real"
    BOOLEAN = "boolean"
    BLOB = "blob"
    TIMESTAMP = "timestamp"
    MISSING = "missing"


@dataclass(frozen=True)
class ColumnValue:
    """A typed column value.

    ``kind`` tags which Python type ``value`` holds. The ``as_*`` accessors
    return ``None`` when the kind does not match, never a coerced value.
    """

    kind: ColumnKind
    value: Any = None

    @classmethod
    def text(cls, value: str) -> ColumnValue:
        return cls(ColumnKind.TEXT, value)

    @classmethod
    def integer(cls, value: int) -> ColumnValue:
        return cls(ColumnKind.INTEGER, value)

    @classmethod
    def real(cls, value: float) -> ColumnValue:
        return cls(ColumnKind.REAL, value)

    @classmethod
    def boolean(cls, value: bool) -> ColumnValue:
        return cls(ColumnKind.BOOLEAN, value)

    @classmethod
    def blob(cls, value: bytes) -> ColumnValue:
        return cls(ColumnKind.BLOB, value)

    @classmethod
    def timestamp(cls, value: datetime) -> ColumnValue:
        return cls(ColumnKind.TIMESTAMP, value)

    @property
    def is_missing(self) -> bool:
        return self.kind is ColumnKind.MISSING

    def _get(self, kind: ColumnKind) -> Any:
        return self.value if self.kind is kind else None

    def as_text(self) -> str | None:
        return self._get(ColumnKind.TEXT)

    def as_int(self) -> int | None:
        return self._get(ColumnKind.INTEGER)

    def as_float(self) -> float | None:
        return self._get(ColumnKind.REAL)

    def as_bool(self) -> bool | None:
        return self._get(ColumnKind.BOOLEAN)

    def as_bytes(self) -> bytes | None:
        return self._get(ColumnKind.BLOB)

    def as_datetime(self) -> datetime | None:
        return self._get(ColumnKind.TIMESTAMP)

    def as_image(self, store: ImageStore) -> Image | None:
        """Load the image whose id this text column holds, or None."""
        image_id = self.as_text()
        if image_id is None:
            return None
        data = store.load(image_id)
        return Image(data) if data is not None else None


MISSING = ColumnValue(ColumnKind.MISSING)


class ResultRow(Mapping[str, ColumnValue]):
    """One result row: column name → ColumnValue, in result column order.

    NULL columns are not present; use ``column()`` to get ``MISSING`` for
    them instead of a KeyError.
    """

    __slots__ = ("_values",)

    def __init__(self, values: dict[str, ColumnValue] | None = None) -> None:
        self._values: dict[str, ColumnValue] = dict(values or {})

    def __getitem__(self, key: str) -> ColumnValue:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"ResultRow({self._values!r})"

    def column(self, name: str) -> ColumnValue:
        return self._values.get(name, MISSING)

    def to_dict(self) -> dict[str, Any]:
        """Plain ``{name: python value}`` view of the row."""
        return {name: col.value for name, col in self._values.items()}
