"""
Integration tests for query execution, failure logging and transactions on SQLite.
"""
import pytest

from dataforge_sql import DatabaseManager, PreparedStatement, SqlManagerSettings
from dataforge_sql.errors import DataForgeSQLError, QueryFailedError


def insert_customers(db, *names):
    for index, name in enumerate(names, start=1):
        db.query("INSERT INTO customers (id, name, balance) VALUES (?, ?, ?)",
                 params=(index, name, index * 100.5))


def count(db, table="customers", connection=None):
    row = db.fetch_row(db.query(f"SELECT COUNT(*) AS n FROM {table}", connection))
    return row["n"]


class TestQuery:
    """Test statement execution on both backends."""

    def test_select_rows(self, manager):
        insert_customers(manager, "Ann", "Bob")
        result = manager.query("SELECT id, name FROM customers ORDER BY id")

        assert manager.num_fields(result) == 2
        assert manager.field_name(result, 1) == "name"
        rows = result.fetch_all()
        assert [row["name"] for row in rows] == ["Ann", "Bob"]
        assert rows[0][0] == 1

    def test_bound_parameters(self, manager):
        insert_customers(manager, "Ann", "O'Brien")
        result = manager.query("SELECT id FROM customers WHERE name = ?", params=("O'Brien",))
        assert manager.fetch_row(result)["id"] == 2

    def test_prepare_and_execute(self, manager):
        insert_customers(manager, "Ann", "Bob")
        statement = manager.prepare("SELECT name FROM customers WHERE id = ?")
        assert isinstance(statement, PreparedStatement)

        assert manager.fetch_row(manager.execute(statement, 2))["name"] == "Bob"
        assert manager.fetch_row(manager.execute(statement, [1]))["name"] == "Ann"

    def test_fetch_object(self, manager):
        insert_customers(manager, "Ann")
        customer = manager.fetch_object(manager.query("SELECT id, name FROM customers"))
        assert customer.id == 1
        assert customer.name == "Ann"

    def test_insert_id_and_affected_rows(self, manager):
        insert_customers(manager, "Ann", "Bob")
        manager.query("INSERT INTO customers (name) VALUES ('Cid')")
        assert manager.insert_id() == 3

        manager.query("UPDATE customers SET balance = 0 WHERE id < 3")
        assert manager.affected_rows() == 2

    def test_escape(self, manager):
        assert manager.escape("O'Brien") == "'O''Brien'"

    def test_failure_returns_none_and_logs(self, manager, query_log):
        assert manager.query("SELECT * FROM missing_table") is None
        assert "no such table" in manager.error()

        entry = query_log.read_text()
        assert entry.startswith("pytest: ")
        assert "SELECT * FROM missing_table" in entry
        assert "no such table" in entry

    def test_error_cleared_by_success(self, manager):
        manager.query("SELECT * FROM missing_table")
        manager.query("SELECT 1")
        assert manager.error() == ""

    def test_throw_on_failure(self, manager):
        manager.throw_on_failure(True)
        with pytest.raises(QueryFailedError) as exc_info:
            manager.query("SELECT * FROM missing_table")
        assert exc_info.value.sql == "SELECT * FROM missing_table"
        assert exc_info.value.connection == "main"
        assert "no such table" in exc_info.value.error

        manager.throw_on_failure(False)
        assert manager.query("SELECT * FROM missing_table") is None

    def test_unknown_connection(self, manager, query_log):
        assert manager.query("SELECT 1", "nowhere") is None
        assert manager.error("nowhere") == "No database connection"
        assert "No database connection" in query_log.read_text()

    def test_query_all(self, manager, db_dir, tmp_path):
        manager.add_connection(str(db_dir), "sqlite", "archive", "")
        manager.add_connection(str(tmp_path / "missing" / "dir"), "sqlite", "ghost", "")

        results = manager.query_all("SELECT 1 AS one")
        assert set(results) == {"main", "archive", "ghost"}
        assert manager.fetch_row(results["main"])["one"] == 1
        assert manager.fetch_row(results["archive"])["one"] == 1
        assert results["ghost"] is None

    def test_query_all_in_throw_mode(self, manager, db_dir):
        manager.add_connection(str(db_dir), "sqlite", "archive", "")
        manager.query("CREATE TABLE only_here (id INTEGER)", "archive")
        manager.throw_on_failure(True)

        results = manager.query_all("SELECT * FROM only_here")
        assert results["main"] is None
        assert results["archive"] is not None

    def test_log_message(self, manager, query_log):
        assert manager.log_message("nightly import started")
        assert "nightly import started" in query_log.read_text()


class TestTransactions:
    """Test explicit transactions on both backends."""

    def test_commit(self, manager):
        assert manager.start_transaction()
        insert_customers(manager, "Ann")
        assert manager.commit_transaction()
        assert count(manager) == 1

    def test_rollback(self, manager):
        assert manager.start_transaction()
        insert_customers(manager, "Ann", "Bob")
        assert manager.rollback_transaction()
        assert count(manager) == 0

    def test_context_manager_rolls_back_on_error(self, manager):
        with pytest.raises(RuntimeError):
            with manager.transaction():
                insert_customers(manager, "Ann")
                raise RuntimeError("abort")
        assert count(manager) == 0

    def test_context_manager_commits(self, manager):
        with manager.transaction():
            insert_customers(manager, "Ann")
        assert count(manager) == 1

    def test_unknown_connection(self, manager):
        assert manager.start_transaction("nowhere") is False
        with pytest.raises(DataForgeSQLError):
            with manager.transaction("nowhere"):
                pass


class TestBufferedResults:
    """Test seeking on the buffered DB-API backend."""

    def test_num_rows_and_seek(self, settings, db_dir):
        db = DatabaseManager(str(db_dir), "sqlite", "main", "", settings=settings)
        db.query("CREATE TABLE t (v INTEGER)")
        for value in (10, 20, 30):
            db.query("INSERT INTO t (v) VALUES (?)", params=(value,))

        result = db.query("SELECT v FROM t ORDER BY v")
        assert db.num_rows(result) == 3
        assert db.data_seek(result, 2)
        assert db.fetch_row(result)[0] == 30
        assert db.fetch_row(result) is None
        assert db.data_seek(result, 5) is False
        assert db.field_type(result, 0) == "int"
        db.close_all()


class TestQueryLogFallback:
    """Test where failure entries go when the log file is not writable."""

    def test_missing_log_file_uses_output(self, tmp_path, output, db_dir):
        settings = SqlManagerSettings(query_log=tmp_path / "absent.log", caller="pytest",
                                      output=output, backend="dbapi")
        db = DatabaseManager(str(db_dir), "sqlite", "main", "", settings=settings)

        assert db.query("SELECT * FROM missing_table") is None
        assert "SELECT * FROM missing_table" in output.getvalue()
        assert not (tmp_path / "absent.log").exists()
        assert db.log_message("ignored") is False
        db.close_all()
