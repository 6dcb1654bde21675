"""
Tests for schema-aware writes, table transfer and datetime cleanup.
"""
from decimal import Decimal

import pytest

from dataforge_sql import DatabaseManager, clean_date_time
from dataforge_sql.errors import QueryFailedError
from dataforge_sql.manager.writer_mixin import transfer_literal


def rows(db, sql, connection=None):
    return [row.as_dict() for row in db.query(sql, connection)]


@pytest.fixture
def archive(manager, db_dir):
    """Second connection holding an empty copy of the customers table."""
    manager.add_connection(str(db_dir), "sqlite", "archive", "")
    manager.query("""
        CREATE TABLE customers (
            id INTEGER PRIMARY KEY,
            name VARCHAR(40) NOT NULL,
            balance DECIMAL(10,2) DEFAULT 0,
            created DATETIME
        )
    """, "archive")
    return "archive"


class TestSmartInsert:
    """Test INSERTs limited to existing columns."""

    def test_unknown_keys_are_dropped(self, manager):
        result = manager.smart_insert("customers", {"name": "Ann", "bogus": 5, "id": 7})

        assert result is not None
        assert rows(manager, "SELECT id, name FROM customers") == [{"id": 7, "name": "Ann"}]

    def test_missing_table(self, manager):
        assert manager.smart_insert("nope", {"id": 1}) is False

    def test_no_matching_columns(self, manager):
        assert manager.smart_insert("customers", {"bogus": 1}) is None
        assert rows(manager, "SELECT * FROM customers") == []

    def test_values_are_bound(self, manager):
        manager.smart_insert("customers", {"id": 1, "name": "O'Brien; DROP TABLE customers"})
        assert rows(manager, "SELECT name FROM customers") == [
            {"name": "O'Brien; DROP TABLE customers"}
        ]


class TestSmartUpdate:
    """Test UPDATEs limited to existing columns."""

    def test_update(self, manager):
        manager.smart_insert("customers", {"id": 1, "name": "Ann"})
        result = manager.smart_update("customers", {"name": "Anna", "nickname": "A"}, "id = 1")

        assert result is not None
        assert manager.affected_rows() == 1
        assert rows(manager, "SELECT name FROM customers") == [{"name": "Anna"}]

    def test_where_clause_on_missing_column_fails(self, manager, query_log):
        """Test that the WHERE clause is passed through as written."""
        manager.smart_insert("customers", {"id": 1, "name": "Ann"})

        assert manager.smart_update("customers", {"name": "Anna"}, "nickname = 'A'") is None
        assert "nickname" in query_log.read_text()
        assert rows(manager, "SELECT name FROM customers") == [{"name": "Ann"}]

    def test_missing_table(self, manager):
        assert manager.smart_update("nope", {"name": "x"}, "1 = 1") is False


class TestTransfer:
    """Test copying rows between connections."""

    @pytest.fixture
    def source_rows(self, manager):
        manager.query("INSERT INTO customers VALUES (1, 'Ann', 10.5, '2024-01-05 15:15:00')")
        manager.query("INSERT INTO customers VALUES (2, 'O''Brien', 0, NULL)")
        manager.query("INSERT INTO customers VALUES (3, 'Cid', 99.25, 'Jan 05 2024 03:15PM')")

    def test_transfer(self, manager, archive, source_rows):
        assert manager.transfer(
            "main", "SELECT id, name, balance, created FROM customers ORDER BY id",
            archive, "INSERT INTO customers (id, name, balance, created)",
        )

        copied = rows(manager, "SELECT id, name, created FROM customers ORDER BY id", archive)
        assert [row["name"] for row in copied] == ["Ann", "O'Brien", "Cid"]
        assert copied[0]["created"] == "2024-01-05 15:15:00"
        assert copied[1]["created"] is None

    def test_failure_rolls_back(self, manager, archive, source_rows):
        """Test that a failing row leaves the destination untouched."""
        manager.query("INSERT INTO customers (id, name) VALUES (2, 'Existing')", archive)

        assert manager.transfer(
            "main", "SELECT id, name FROM customers ORDER BY id",
            archive, "INSERT INTO customers (id, name)",
        ) is False

        assert rows(manager, "SELECT id, name FROM customers", archive) == [
            {"id": 2, "name": "Existing"}
        ]

    def test_failure_in_throw_mode(self, settings, db_dir):
        db = DatabaseManager(str(db_dir), "sqlite", "main", "", settings=settings)
        db.add_connection(str(db_dir), "sqlite", "archive", "")
        db.query("CREATE TABLE t (id INTEGER PRIMARY KEY)")
        db.query("CREATE TABLE t (id INTEGER PRIMARY KEY)", "archive")
        db.query("INSERT INTO t VALUES (1)")
        db.query("INSERT INTO t VALUES (2)")
        db.query("INSERT INTO t VALUES (2)", "archive")
        db.throw_on_failure(True)

        with pytest.raises(QueryFailedError):
            db.transfer("main", "SELECT id FROM t ORDER BY id", "archive", "INSERT INTO t (id)")

        db.throw_on_failure(False)
        assert rows(db, "SELECT id FROM t", "archive") == [{"id": 2}]
        db.close_all()

    def test_failed_source_query(self, manager, archive):
        assert manager.transfer("main", "SELECT * FROM nope", archive,
                                "INSERT INTO customers (id)") is False


class TestTransferLiteral:
    """Test literal rendering by source column type."""

    @pytest.mark.parametrize("value, type_name, expected", [
        (None, "varchar", "NULL"),
        (42, "int", "42"),
        ("", "int", "0"),
        (True, "bit", "1"),
        (b"\x01", "bit", "1"),
        (b"\x01\x00", "bit", "256"),
        (bytearray(b"\x00"), "bit", "0"),
        (Decimal("10.50"), "decimal", "10.50"),
        (2.5, "float8", "2.5"),
        ("O'Brien", "varchar", "'O''Brien'"),
        ("plain", "", "'plain'"),
        ("Jan 05 2024 03:15PM", "datetime", "'2024-01-05 15:15'"),
        ("not a date", "datetime", "'1900-01-01 00:00'"),
    ])
    def test_literal(self, value, type_name, expected):
        assert transfer_literal(value, type_name) == expected


class TestCleanDateTime:
    """Test datetime normalization."""

    @pytest.mark.parametrize("value, expected", [
        ("2024-01-05 15:15:00", "2024-01-05 15:15:00"),
        ("Jan 05 2024 03:15PM", "2024-01-05 15:15"),
        ("jan 05 2024 03:15pm", "2024-01-05 15:15"),
        ("Dec 31 2023 12:00AM", "2023-12-31 00:00"),
        ("Jul 04 2024 12:30PM", "2024-07-04 12:30"),
        ("Foo 05 2024 03:15PM", "1900-01-01 00:00"),
        ("garbage", "1900-01-01 00:00"),
        (None, "1900-01-01 00:00"),
    ])
    def test_clean_date_time(self, value, expected):
        assert clean_date_time(value) == expected

    def test_manager_static_method(self):
        assert DatabaseManager.clean_date_time("Feb 29 2024 9:05AM") == "2024-02-29 09:05"
