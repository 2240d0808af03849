"""Scope state of a connection and the transitions allowed on it.

Every change to the transaction flag, the savepoint depth or the custom
connection flag goes through ``ScopeState.apply``. Each transition lists
its guards (checked in order, first failure raised) and its effect, so the
effect of every operation on the state is visible in one table.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import Enum, auto

from sqlgate.db.errors import (
    CustomConnectionErrorKind,
    CustomConnectionStateError,
    SQLGateError,
    TransactionErrorKind,
    TransactionStateError,
)


@dataclass(frozen=True)
class ScopeState:
    in_transaction: bool = False
    savepoint_depth: int = 0
    custom_open: bool = False

    @property
    def in_scope(self) -> bool:
        """True while a transaction, savepoint or custom connection holds the connection open."""
        return self.in_transaction or self.savepoint_depth > 0 or self.custom_open

    def apply(self, transition: Transition) -> ScopeState:
        """Return the state after *transition*, or raise its first failing guard."""
        guards, effect = TRANSITIONS[transition]
        for check, error in guards:
            if check(self):
                raise error()
        return effect(self)


class Transition(Enum):
    BEGIN_TRANSACTION = auto()
    END_TRANSACTION = auto()
    PUSH_SAVEPOINT = auto()
    POP_SAVEPOINT = auto()
    OPEN_CUSTOM = auto()
    CLOSE_CUSTOM = auto()


_Guard = tuple[Callable[[ScopeState], bool], Callable[[], SQLGateError]]


def _tx_error(kind: TransactionErrorKind) -> Callable[[], SQLGateError]:
    return lambda: TransactionStateError(kind)


def _custom_error(kind: CustomConnectionErrorKind) -> Callable[[], SQLGateError]:
    return lambda: CustomConnectionStateError(kind)


TRANSITIONS: dict[Transition, tuple[list[_Guard], Callable[[ScopeState], ScopeState]]] = {
    Transition.BEGIN_TRANSACTION: (
        [
            (lambda s: s.savepoint_depth > 0, _tx_error(TransactionErrorKind.WITHIN_SAVEPOINT)),
            (lambda s: s.in_transaction, _tx_error(TransactionErrorKind.ALREADY_IN_TRANSACTION)),
        ],
        lambda s: replace(s, in_transaction=True),
    ),
    Transition.END_TRANSACTION: (
        [],
        lambda s: replace(s, in_transaction=False),
    ),
    Transition.PUSH_SAVEPOINT: (
        [],
        lambda s: replace(s, savepoint_depth=s.savepoint_depth + 1),
    ),
    Transition.POP_SAVEPOINT: (
        [],
        lambda s: replace(s, savepoint_depth=max(0, s.savepoint_depth - 1)),
    ),
    Transition.OPEN_CUSTOM: (
        [
            (
                lambda s: s.in_transaction,
                _custom_error(CustomConnectionErrorKind.INSIDE_TRANSACTION),
            ),
            (lambda s: s.custom_open, _custom_error(CustomConnectionErrorKind.ALREADY_OPEN)),
            (
                lambda s: s.savepoint_depth > 0,
                _custom_error(CustomConnectionErrorKind.INSIDE_SAVEPOINT),
            ),
        ],
        lambda s: replace(s, custom_open=True),
    ),
    Transition.CLOSE_CUSTOM: (
        [
            (
                lambda s: s.in_transaction,
                _custom_error(CustomConnectionErrorKind.CLOSE_INSIDE_TRANSACTION),
            ),
            (
                lambda s: s.savepoint_depth > 0,
                _custom_error(CustomConnectionErrorKind.CLOSE_INSIDE_SAVEPOINT),
            ),
            (
                lambda s: not s.custom_open,
                _custom_error(CustomConnectionErrorKind.NOT_CURRENTLY_OPEN),
            ),
        ],
        lambda s: replace(s, custom_open=False),
    ),
}
