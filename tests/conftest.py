"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from sqlgate.db.connection import ConnectionManager
from sqlgate.db.database import Database
from sqlgate.db.executor import StatementExecutor
from sqlgate.images import LocalImageStore


@pytest.fixture
def db(tmp_path):
    """File-based Database in tmp_path, shut down after the test."""
    database = Database(tmp_path / "test.sqlite")
    yield database
    database.shutdown()


@pytest.fixture
def image_store(tmp_path):
    return LocalImageStore(tmp_path / "images")


@pytest.fixture
def manager(tmp_path):
    """ConnectionManager with no gate in front of it, closed after the test."""
    mgr = ConnectionManager(tmp_path / "test.sqlite")
    yield mgr
    mgr.shutdown()


@pytest.fixture
def executor(manager):
    """StatementExecutor on an already-open default connection."""
    manager.open()
    return StatementExecutor(manager)
