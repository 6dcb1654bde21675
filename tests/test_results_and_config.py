"""
Unit tests for result sets, settings and the query log.
"""
import datetime
import io
from decimal import Decimal
from unittest import mock

import pytest
from sqlalchemy import event

from dataforge_sql import SqlManagerSettings, TriState
from dataforge_sql.database.backends import backend_class
from dataforge_sql.database.backends.dbapi_backend import DbApiBackend, sqlite_path
from dataforge_sql.database.backends.sqlalchemy_backend import SqlAlchemyBackend
from dataforge_sql.database.dialects import SQLiteDialect
from dataforge_sql.database.results import (
    FieldInfo,
    ResultSet,
    Row,
    describe_fields,
    python_type_name,
)
from dataforge_sql.database.schema import split_declared_type
from dataforge_sql.errors import ConfigurationError
from dataforge_sql.utils.query_log import QueryLog


class TestRow:
    """Test access to fetched rows."""

    @pytest.fixture
    def row(self):
        return Row((1, "Ann"), ["id", "name"])

    def test_access(self, row):
        assert row[0] == 1
        assert row["name"] == "Ann"
        assert row.get("missing", "x") == "x"
        assert row.keys() == ["id", "name"]
        assert row == (1, "Ann")
        assert len(row) == 2

    def test_unknown_column(self, row):
        with pytest.raises(KeyError):
            row["missing"]


class TestResultSet:
    """Test buffered and streamed result sets."""

    @pytest.fixture
    def fields(self):
        return [FieldInfo("id", "int"), FieldInfo("name", "varchar", 40)]

    def test_buffered(self, fields):
        result = ResultSet(fields, [(1, "a"), (2, "b"), (3, "c")])
        assert result.num_rows == 3
        assert result.num_fields == 2
        assert result.column_names == ["id", "name"]
        assert result.fetch()["name"] == "a"
        assert result.seek(0)
        assert [row[0] for row in result] == [1, 2, 3]
        assert result.fetch() is None
        assert result.seek(3) is False

    def test_streamed(self, fields):
        result = ResultSet(fields, iter([(1, "a"), (2, "b")]), rowcount=-1)
        assert result.seekable is False
        assert result.num_rows == -1
        assert result.seek(0) is False
        assert [row["id"] for row in result.fetch_all()] == [1, 2]

    def test_field(self, fields):
        result = ResultSet(fields, [])
        assert result.field(1).max_length == 40
        assert result.field(5) is None


class TestTypeNames:
    """Test type names for fetched values."""

    @pytest.mark.parametrize("value, expected", [
        (True, "bit"),
        (3, "int"),
        (1.5, "float8"),
        (Decimal("1.5"), "numeric"),
        (datetime.datetime(2024, 1, 5), "datetime"),
        (datetime.date(2024, 1, 5), "date"),
        (b"\x00", "blob"),
        ("x", "varchar"),
        (object(), ""),
    ])
    def test_python_type_name(self, value, expected):
        assert python_type_name(value) == expected

    def test_describe_fields_infers_from_rows(self):
        description = [("id", None, None, None, None, None, None),
                       ("name", None, None, 40, None, None, None)]
        fields = describe_fields(description, lambda code: None, [(None, "a"), (7, "b")])
        assert fields[0].type == "int"
        assert fields[1].type == "varchar"
        assert fields[1].max_length == 40

    @pytest.mark.parametrize("declared, expected", [
        ("VARCHAR(20)", ("VARCHAR", 20, None, False)),
        ("DECIMAL(10, 2)", ("DECIMAL", 10, 2, False)),
        ("int(10) unsigned", ("int", 10, None, True)),
        ("INT UNSIGNED", ("INT", None, None, True)),
        ("DOUBLE PRECISION", ("DOUBLE PRECISION", None, None, False)),
        ("", ("", None, None, False)),
    ])
    def test_split_declared_type(self, declared, expected):
        assert split_declared_type(declared) == expected

    def test_tristate_has_no_truth_value(self):
        assert TriState.from_flag(None) is TriState.UNKNOWN
        assert TriState.from_flag(1) is TriState.TRUE
        with pytest.raises(TypeError):
            bool(TriState.TRUE)


class TestSettings:
    """Test settings defaults and environment overrides."""

    def test_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DATAFORGE_SQL_QUERY_LOG", str(tmp_path / "q.log"))
        monkeypatch.setenv("DATAFORGE_SQL_THROW_ON_FAILURE", "yes")
        monkeypatch.setenv("DATAFORGE_SQL_BACKEND", "SQLAlchemy")

        settings = SqlManagerSettings()
        assert settings.query_log == tmp_path / "q.log"
        assert settings.throw_on_failure is True
        assert settings.backend == "sqlalchemy"

    def test_defaults(self, monkeypatch):
        for name in ("DATAFORGE_SQL_QUERY_LOG", "DATAFORGE_SQL_THROW_ON_FAILURE",
                     "DATAFORGE_SQL_BACKEND"):
            monkeypatch.delenv(name, raising=False)

        settings = SqlManagerSettings()
        assert settings.query_log.name == "queries.log"
        assert settings.throw_on_failure is False
        assert settings.backend == "dbapi"

    def test_backend_class(self):
        assert backend_class("dbapi") is DbApiBackend
        assert backend_class("sqlalchemy").__name__ == "SqlAlchemyBackend"
        with pytest.raises(ConfigurationError):
            backend_class("nope")


class TestQueryLog:
    """Test failure entry formatting."""

    def test_entry_format(self, query_log):
        log = QueryLog(query_log, "nightly.py", io.StringIO())
        entry = log.record_failure("SELECT 1", "boom")

        assert entry.startswith("nightly.py: ")
        assert entry.endswith("SELECT 1\nboom\n\n")
        assert query_log.read_text() == entry

    def test_fallback_to_output(self, tmp_path):
        output = io.StringIO()
        log = QueryLog(tmp_path / "absent.log", "job", output)

        entry = log.record_failure("SELECT 1", "boom")
        assert output.getvalue() == entry
        assert log.write_line("hello") is False


class TestDbApiBackend:
    """Test DB-API specifics that the manager does not expose."""

    def test_sqlite_path(self, tmp_path):
        assert sqlite_path(str(tmp_path), "main") == str(tmp_path / "main")
        assert sqlite_path("localhost", "app.db") == "app.db"
        assert sqlite_path("", ":memory:") == ":memory:"

    def test_persistent_handles_are_shared(self, db_dir):
        first, second = DbApiBackend(SQLiteDialect()), DbApiBackend(SQLiteDialect())
        first.connect(str(db_dir), "shared", "", persistent=True)
        second.connect(str(db_dir), "shared", "", persistent=True)
        assert first._handle is second._handle

        fresh = DbApiBackend(SQLiteDialect())
        fresh.connect(str(db_dir), "shared", "", persistent=True, force_new=True)
        assert fresh._handle is not first._handle
        fresh.close()

    def test_closed_backend(self, db_dir):
        backend = DbApiBackend(SQLiteDialect())
        backend.connect(str(db_dir), "closing", "")
        assert backend.close() is True
        assert backend.is_open is False
        assert backend.execute("SELECT 1") is None
        assert backend.last_error == "Connection is closed"
        assert backend.close() is False


class TestSqlAlchemyBackend:
    """Test how the SQLAlchemy backend hands statements to the driver."""

    @pytest.fixture
    def backend(self, db_dir):
        backend = SqlAlchemyBackend(SQLiteDialect())
        backend.connect(str(db_dir), "percent", "")
        yield backend
        backend.close()

    def test_statement_without_parameters_skips_interpolation(self, backend):
        seen = []

        @event.listens_for(backend._engine, "before_cursor_execute")
        def record(conn, cursor, statement, parameters, context, executemany):
            seen.append((statement, context.no_parameters))

        result = backend.execute("SELECT 'a%b' AS pattern")
        assert result.fetch()["pattern"] == "a%b"
        assert seen == [("SELECT 'a%b' AS pattern", True)]

    def test_format_paramstyle(self):
        backend = SqlAlchemyBackend(SQLiteDialect())
        backend._engine = mock.Mock()
        backend._engine.dialect.paramstyle = "format"
        backend._conn = mock.Mock()

        backend._run("SELECT DATE_FORMAT(d,'%Y%m%d') FROM t", None)
        backend._conn.exec_driver_sql.assert_called_with(
            "SELECT DATE_FORMAT(d,'%Y%m%d') FROM t", execution_options={"no_parameters": True}
        )

        backend._run("SELECT DATE_FORMAT(d,'%Y%m%d') FROM t WHERE id = ?", [3])
        backend._conn.exec_driver_sql.assert_called_with(
            "SELECT DATE_FORMAT(d,'%%Y%%m%%d') FROM t WHERE id = %s", (3,)
        )

    def test_scalar_without_parameters(self, backend):
        assert backend._scalar("SELECT 'x%' || 'y'") == "x%y"
