"""Placeholder binding for SQL templates.

Templates use ``?`` for values and ``i?`` for identifiers::

    bind('INSERT INTO i?(i?) VALUES (?)', ["t", "name", "Alice"], escaper)
    # INSERT INTO "t"("name") VALUES ('Alice')

The template is not tokenized: a ``?`` inside a quoted literal of the
template is a placeholder too.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlgate.db.errors import BindingError, BindingErrorKind
from sqlgate.db.escape import Escaper


def bind(template: str, args: Sequence[Any], escaper: Escaper) -> str:
    """Substitute *args*, in order, for the placeholders in *template*.

    Raises:
        BindingError: Placeholder and argument counts differ, or an ``i?``
            argument is not a string.
    """
    out: list[str] = []
    index = 0
    for pos, char in enumerate(template):
        if char != "?":
            out.append(char)
            continue
        if index >= len(args):
            raise BindingError(BindingErrorKind.NOT_ENOUGH_ARGUMENTS, index)
        arg = args[index]
        if pos > 0 and template[pos - 1] == "i":
            if not isinstance(arg, str):
                raise BindingError(BindingErrorKind.IDENTIFIER_MUST_BE_STRING, index)
            out.pop()  # the "i" of "i?"
            out.append(escaper.escape_identifier(arg))
        else:
            out.append(escaper.escape_value(arg))
        index += 1

    if index < len(args):
        raise BindingError(BindingErrorKind.TOO_MANY_ARGUMENTS, index)
    return "".join(out)
