"""Escaping of values and identifiers into SQL literal text."""

from __future__ import annotations

import math
import warnings
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from sqlgate.db.errors import EscapeWarning
from sqlgate.db.models import Image

if TYPE_CHECKING:
    from sqlgate.images import ImageStore

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NULL = "NULL"


def escape_string(value: str) -> str:
    """Quote *value* as an SQL string literal."""
    return "'" + value.replace("'", "''") + "'"


def escape_identifier(name: str) -> str:
    """Quote *name* as an SQL identifier (table, column, index name).

    Only for names that are trusted or bound explicitly as identifiers.
    """
    return '"' + name.replace('"', '""') + '"'


def format_date(value: date) -> str:
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    return value.strftime(DATE_FORMAT)


class Escaper:
    """Turns Python values into SQL literal text.

    Args:
        image_store: Where ``Image`` values are saved. Without a store,
            images are bound as NULL with an ``EscapeWarning``.
    """

    def __init__(self, image_store: ImageStore | None = None) -> None:
        self.image_store = image_store

    def escape_value(self, value: Any) -> str:
        """Return the SQL literal for *value*.

        Unsupported types are bound as ``NULL`` with an ``EscapeWarning``.
        """
        if value is None:
            return NULL
        if isinstance(value, str):
            return escape_string(value)
        # bool before int: bool is an int subclass
        if isinstance(value, bool):
            return "1" if value else "0"
        if isinstance(value, int):
            return str(value)
        if isinstance(value, float):
            return _escape_float(value)
        if isinstance(value, (bytes, bytearray, memoryview)):
            return "X'" + bytes(value).hex().upper() + "'"
        if isinstance(value, date):
            return self.escape_value(format_date(value))
        if isinstance(value, Image):
            return self._escape_image(value)
        warnings.warn(
            f"Cannot bind value of type {type(value).__name__}; binding NULL.",
            EscapeWarning,
            stacklevel=2,
        )
        return NULL

    def escape_identifier(self, name: str) -> str:
        return escape_identifier(name)

    def _escape_image(self, image: Image) -> str:
        if self.image_store is None:
            warnings.warn(
                "No image store configured; binding image as NULL.",
                EscapeWarning,
                stacklevel=3,
            )
            return NULL
        image_id = self.image_store.save(image.data)
        if image_id is None:
            warnings.warn(
                "Image could not be saved; binding image as NULL.",
                EscapeWarning,
                stacklevel=3,
            )
            return NULL
        return escape_string(image_id)


def _escape_float(value: float) -> str:
    if math.isnan(value):
        return NULL
    if math.isinf(value):
        # Out-of-range literals are read by SQLite as +/-Inf
        return "9e999" if value > 0 else "-9e999"
    return repr(value)
