"""Tests for the scope state transition table."""

from __future__ import annotations

import pytest

from sqlgate.db.errors import CustomConnectionStateError, TransactionStateError
from sqlgate.db.state import ScopeState, Transition


def test_initial_state_not_in_scope():
    state = ScopeState()
    assert not state.in_scope
    assert state.savepoint_depth == 0


def test_begin_and_end_transaction():
    state = ScopeState().apply(Transition.BEGIN_TRANSACTION)
    assert state.in_transaction and state.in_scope
    assert not state.apply(Transition.END_TRANSACTION).in_transaction


def test_begin_inside_savepoint_is_501():
    state = ScopeState(savepoint_depth=1)
    with pytest.raises(TransactionStateError) as exc_info:
        state.apply(Transition.BEGIN_TRANSACTION)
    assert exc_info.value.code == 501


def test_begin_inside_transaction_is_502():
    state = ScopeState(in_transaction=True)
    with pytest.raises(TransactionStateError) as exc_info:
        state.apply(Transition.BEGIN_TRANSACTION)
    assert exc_info.value.code == 502


def test_savepoint_guard_checked_before_transaction_guard():
    state = ScopeState(in_transaction=True, savepoint_depth=2)
    with pytest.raises(TransactionStateError) as exc_info:
        state.apply(Transition.BEGIN_TRANSACTION)
    assert exc_info.value.code == 501


def test_savepoint_depth_never_negative():
    state = ScopeState().apply(Transition.POP_SAVEPOINT)
    assert state.savepoint_depth == 0


def test_push_pop_savepoint():
    state = ScopeState().apply(Transition.PUSH_SAVEPOINT).apply(Transition.PUSH_SAVEPOINT)
    assert state.savepoint_depth == 2
    assert state.apply(Transition.POP_SAVEPOINT).savepoint_depth == 1


@pytest.mark.parametrize(
    ("state", "code"),
    [
        (ScopeState(in_transaction=True, custom_open=True), 302),
        (ScopeState(custom_open=True, savepoint_depth=1), 301),
        (ScopeState(savepoint_depth=1), 303),
    ],
)
def test_open_custom_guards(state, code):
    with pytest.raises(CustomConnectionStateError) as exc_info:
        state.apply(Transition.OPEN_CUSTOM)
    assert exc_info.value.code == code


@pytest.mark.parametrize(
    ("state", "code"),
    [
        (ScopeState(in_transaction=True, savepoint_depth=1), 305),
        (ScopeState(savepoint_depth=1, custom_open=True), 306),
        (ScopeState(), 304),
    ],
)
def test_close_custom_guards(state, code):
    with pytest.raises(CustomConnectionStateError) as exc_info:
        state.apply(Transition.CLOSE_CUSTOM)
    assert exc_info.value.code == code


def test_open_close_custom():
    state = ScopeState().apply(Transition.OPEN_CUSTOM)
    assert state.custom_open and state.in_scope
    assert not state.apply(Transition.CLOSE_CUSTOM).custom_open


def test_failed_transition_leaves_state_unchanged():
    state = ScopeState(in_transaction=True)
    with pytest.raises(TransactionStateError):
        state.apply(Transition.BEGIN_TRANSACTION)
    assert state == ScopeState(in_transaction=True)
