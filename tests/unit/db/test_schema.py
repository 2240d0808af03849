"""Tests for table and index helpers."""

from __future__ import annotations

import pytest

from sqlgate.db.errors import DdlErrorKind, DdlExtractionError, EngineError
from sqlgate.db.models import DataType, ResultRow
from sqlgate.db.schema import _names, create_index_sql, create_table_sql


def test_create_table_sql_has_id_column_first():
    sql = create_table_sql("people", {"name": DataType.STRING, "photo": DataType.IMAGE})
    assert sql == (
        'CREATE TABLE IF NOT EXISTS "people" '
        '(ID INTEGER PRIMARY KEY AUTOINCREMENT, "name" TEXT, "photo" TEXT)'
    )


@pytest.mark.parametrize(
    ("dtype", "sql"),
    [
        (DataType.STRING, "TEXT"),
        (DataType.INT, "INTEGER"),
        (DataType.DOUBLE, "DOUBLE"),
        (DataType.BOOL, "BOOLEAN"),
        (DataType.DATA, "BLOB"),
        (DataType.DATE, "DATE"),
        (DataType.IMAGE, "TEXT"),
    ],
)
def test_data_type_sql(dtype, sql):
    assert dtype.sql == sql


def test_create_index_sql():
    assert create_index_sql("ix", ["a", "b"], "t") == 'CREATE INDEX "ix" ON "t" ("a", "b")'
    assert create_index_sql("ux", ["a"], "t", unique=True) == 'CREATE UNIQUE INDEX "ux" ON "t" ("a")'


def test_create_index_without_columns_is_401():
    with pytest.raises(DdlExtractionError) as exc_info:
        create_index_sql("ix", [], "t")
    assert exc_info.value.code == 401


def test_malformed_name_row_is_reported():
    with pytest.raises(DdlExtractionError) as exc_info:
        _names([ResultRow()], DdlErrorKind.TABLE_NAMES)
    assert exc_info.value.code == 403


# ---------------------------------------------------------------------------
# Through the Database facade
# ---------------------------------------------------------------------------


def test_tables_lifecycle(db):
    db.create_table("people", {"name": DataType.STRING})
    db.create_table("people", {"name": DataType.STRING})  # IF NOT EXISTS
    db.create_table("pets", {"kind": DataType.STRING})
    # AUTOINCREMENT creates sqlite_sequence, which is not listed
    assert sorted(db.existing_tables()) == ["people", "pets"]

    db.delete_table("pets")
    assert db.existing_tables() == ["people"]


def test_delete_missing_table_is_engine_error(db):
    with pytest.raises(EngineError) as exc_info:
        db.delete_table("ghost")
    assert exc_info.value.code == 1


def test_indexes_lifecycle(db):
    db.create_table("people", {"name": DataType.STRING, "age": DataType.INT})
    db.create_table("pets", {"kind": DataType.STRING})
    db.create_index("people_name", ["name"], "people", unique=True)
    db.create_index("pets_kind", ["kind"], "pets")

    assert sorted(db.existing_indexes()) == ["people_name", "pets_kind"]
    assert db.existing_indexes_for_table("people") == ["people_name"]

    db.remove_index("people_name")
    assert db.existing_indexes() == ["pets_kind"]
    assert db.existing_indexes_for_table("people") == []


def test_unique_index_enforced(db):
    db.create_table("people", {"name": DataType.STRING})
    db.create_index("people_name", ["name"], "people", unique=True)
    db.execute_change("INSERT INTO people (name) VALUES (?)", ["Alice"])
    with pytest.raises(EngineError) as exc_info:
        db.execute_change("INSERT INTO people (name) VALUES (?)", ["Alice"])
    assert exc_info.value.code == 19


def test_create_index_no_columns_through_facade(db):
    db.create_table("people", {"name": DataType.STRING})
    with pytest.raises(DdlExtractionError):
        db.create_index("ix", [], "people")
