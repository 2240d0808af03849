"""Tests for the transaction/savepoint controller."""

from __future__ import annotations

import pytest

from sqlgate.db.errors import EngineError, TransactionStateError
from sqlgate.db.transactions import TransactionController, savepoint_name


@pytest.fixture
def controller(manager, executor):
    executor.execute_change("CREATE TABLE t (a INTEGER)")
    return TransactionController(manager, executor)


def _count(executor) -> int:
    (row,) = executor.execute_query("SELECT COUNT(*) AS n FROM t")
    return row["n"].as_int()


def test_savepoint_names_follow_depth():
    assert savepoint_name(1) == "savepoint1"
    assert savepoint_name(12) == "savepoint12"


def test_commit_keeps_changes(controller, executor):
    controller.begin_transaction()
    assert controller.in_transaction
    executor.execute_change("INSERT INTO t VALUES (1)")
    controller.commit_transaction()
    assert not controller.in_transaction
    assert _count(executor) == 1


def test_rollback_discards_changes(controller, executor):
    controller.begin_transaction()
    executor.execute_change("INSERT INTO t VALUES (1)")
    controller.rollback_transaction()
    assert not controller.in_transaction
    assert _count(executor) == 0


def test_nested_transaction_is_502_and_state_unchanged(controller):
    controller.begin_transaction()
    with pytest.raises(TransactionStateError) as exc_info:
        controller.begin_transaction()
    assert exc_info.value.code == 502
    assert controller.in_transaction
    assert controller.savepoint_depth == 0
    controller.rollback_transaction()


def test_transaction_inside_savepoint_is_501(controller):
    controller.begin_savepoint()
    with pytest.raises(TransactionStateError) as exc_info:
        controller.begin_transaction()
    assert exc_info.value.code == 501
    assert not controller.in_transaction
    assert controller.savepoint_depth == 1
    controller.release_savepoint()


def test_commit_failure_rolls_back_and_clears_flag(manager, controller, executor):
    executor.execute_change("CREATE TABLE parent (id INTEGER PRIMARY KEY)")
    executor.execute_change(
        "CREATE TABLE child (pid INTEGER REFERENCES parent(id) DEFERRABLE INITIALLY DEFERRED)"
    )
    controller.begin_transaction()
    executor.execute_change("INSERT INTO child VALUES (99)")

    with pytest.raises(EngineError) as exc_info:
        controller.commit_transaction()
    assert exc_info.value.code == 19
    assert not controller.in_transaction
    assert manager.handle.get_autocommit()
    (row,) = executor.execute_query("SELECT COUNT(*) AS n FROM child")
    assert row["n"].as_int() == 0


def test_commit_without_transaction_still_clears_flag(controller):
    with pytest.raises(EngineError):
        controller.commit_transaction()
    assert not controller.in_transaction


def test_nested_savepoints(controller, executor):
    controller.begin_savepoint()
    executor.execute_change("INSERT INTO t VALUES (1)")
    controller.begin_savepoint()
    assert controller.savepoint_depth == 2
    executor.execute_change("INSERT INTO t VALUES (2)")
    controller.release_savepoint()
    controller.release_savepoint()
    assert controller.savepoint_depth == 0
    assert _count(executor) == 2


def test_rollback_to_savepoint_keeps_depth(controller, executor):
    controller.begin_savepoint()
    executor.execute_change("INSERT INTO t VALUES (1)")
    controller.rollback_savepoint()
    assert controller.savepoint_depth == 1
    controller.release_savepoint()
    assert _count(executor) == 0


def test_release_failure_still_pops_depth(manager, controller):
    controller.begin_savepoint()
    # ROLLBACK ends the implicit transaction and discards the savepoint with it
    manager.handle.execute("ROLLBACK")
    with pytest.raises(EngineError):
        controller.release_savepoint()
    assert controller.savepoint_depth == 0


def test_savepoints_inside_transaction(controller, executor):
    controller.begin_transaction()
    controller.begin_savepoint()
    executor.execute_change("INSERT INTO t VALUES (1)")
    controller.rollback_savepoint()
    controller.release_savepoint()
    executor.execute_change("INSERT INTO t VALUES (2)")
    controller.commit_transaction()
    (row,) = executor.execute_query("SELECT a FROM t")
    assert row["a"].as_int() == 2
