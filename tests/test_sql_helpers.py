"""
Unit tests for placeholder translation, row limiting and SQL Server connection strings.
"""
import pytest

from dataforge_sql.database.placeholders import bind_parameters, translate_placeholders
from dataforge_sql.database.sqlserver_connection import (
    build_connection_string,
    connection_params,
)
from dataforge_sql.utils.sql_limits import (
    append_limit,
    has_top_level_keyword,
    inject_top,
    strip_terminator,
)


class TestPlaceholders:
    """Test translation of ? markers."""

    def test_qmark_is_unchanged(self):
        sql = "SELECT * FROM t WHERE a = ? AND b LIKE '50%'"
        assert translate_placeholders(sql, "qmark") == sql

    def test_format_doubles_percent(self):
        """Test that literal percent signs survive driver interpolation."""
        sql = "SELECT * FROM t WHERE a = ? AND b LIKE '50%?'"
        assert translate_placeholders(sql, "format") == (
            "SELECT * FROM t WHERE a = %s AND b LIKE '50%%?'"
        )

    def test_quoted_markers_are_kept(self):
        """Test that ? inside literals and quoted identifiers is not a placeholder."""
        sql = "SELECT 'it''s ?', `col?` FROM t WHERE x = ?"
        assert translate_placeholders(sql, "format") == (
            "SELECT 'it''s ?', `col?` FROM t WHERE x = %s"
        )

    def test_named_and_numeric(self):
        assert translate_placeholders("a = ? AND b = ?", "named") == "a = :p1 AND b = :p2"
        assert translate_placeholders("a = ? AND b = ?", "numeric") == "a = :1 AND b = :2"

    def test_bind_parameters(self):
        assert bind_parameters([1, "x"], "named") == {"p1": 1, "p2": "x"}
        assert bind_parameters([1, "x"], "qmark") == (1, "x")


class TestSqlLimits:
    """Test LIMIT and TOP placement."""

    def test_strip_terminator(self):
        assert strip_terminator("  SELECT 1 ;  ") == "SELECT 1"

    def test_append_limit(self):
        assert append_limit("SELECT * FROM t;", 5) == "SELECT * FROM t LIMIT 5"

    def test_existing_limit_is_wrapped(self):
        assert append_limit("SELECT * FROM t LIMIT 10", 5) == (
            "SELECT * FROM (SELECT * FROM t LIMIT 10) AS limited_rows LIMIT 5"
        )

    def test_subquery_limit_is_not_top_level(self):
        sql = "SELECT * FROM (SELECT id FROM t LIMIT 3) x"
        assert not has_top_level_keyword(sql, "LIMIT")
        assert append_limit(sql, 5) == sql + " LIMIT 5"

    def test_trailing_comment_is_removed(self):
        """Test that a line comment cannot swallow the appended clause."""
        result = append_limit("SELECT * FROM t -- all rows", 5)
        assert "--" not in result
        assert result.endswith("LIMIT 5")

    def test_inject_top(self):
        assert inject_top("SELECT * FROM t", 5) == "SELECT TOP 5 * FROM t"
        assert inject_top("select name from t;", 2) == "select TOP 2 name from t"

    @pytest.mark.parametrize("sql, expected", [
        ("SELECT TOP 10 * FROM t",
         "SELECT TOP 5 * FROM (SELECT TOP 10 * FROM t) AS limited_rows"),
        ("SELECT DISTINCT TOP (10) a FROM t ORDER BY a",
         "SELECT TOP 5 * FROM (SELECT DISTINCT TOP (10) a FROM t ORDER BY a) AS limited_rows"),
    ])
    def test_existing_top_is_wrapped(self, sql, expected):
        assert inject_top(sql, 5) == expected

    @pytest.mark.parametrize("sql, expected", [
        ("SELECT a FROM t UNION ALL SELECT b FROM u",
         "SELECT TOP 1 * FROM (SELECT a FROM t UNION ALL SELECT b FROM u) AS limited_rows"),
        ("SELECT a FROM t WHERE a > 1 EXCEPT SELECT b FROM u",
         "SELECT TOP 1 * FROM (SELECT a FROM t WHERE a > 1 EXCEPT SELECT b FROM u) AS limited_rows"),
        ("SELECT a FROM t UNION SELECT b FROM u ORDER BY a DESC;",
         "SELECT TOP 1 * FROM (SELECT a FROM t UNION SELECT b FROM u) AS limited_rows ORDER BY a DESC"),
    ])
    def test_compound_query_is_capped_as_a_whole(self, sql, expected):
        assert inject_top(sql, 1) == expected

    def test_union_in_subquery_is_not_top_level(self):
        sql = "SELECT x FROM (SELECT a AS x FROM t UNION SELECT b FROM u) s"
        assert inject_top(sql, 2) == (
            "SELECT TOP 2 x FROM (SELECT a AS x FROM t UNION SELECT b FROM u) s"
        )

    def test_inject_top_without_select(self):
        sql = "UPDATE t SET a = 1"
        assert inject_top(sql, 5) == sql


class TestSqlServerTargets:
    """Test SQL Server connection parameters and ODBC strings."""

    def test_host_with_port(self):
        params = connection_params("db.local:1444", "shop", "app", "secret")
        assert params["server"] == "db.local"
        assert params["port"] == 1444
        assert params["instance"] is None
        assert params["user"] == "app"

    def test_named_instance(self):
        params = connection_params("db.local\\SQLEXPRESS,1500", None, "")
        assert params["server"] == "db.local"
        assert params["instance"] == "SQLEXPRESS"
        assert params["port"] == 1500
        assert params["database"] is None
        assert params["password"] is None

    def test_sql_login_string(self):
        conn_str = build_connection_string("db.local:1444", "shop", "app", "secret",
                                           driver="ODBC Driver 18 for SQL Server")
        assert conn_str == (
            "Driver={ODBC Driver 18 for SQL Server};Server=db.local,1444;Database=shop;"
            "UID=app;PWD=secret;TrustServerCertificate=yes;"
        )

    def test_integrated_login_string(self):
        conn_str = build_connection_string("db.local", None, "", driver="X")
        assert conn_str == "Driver={X};Server=db.local;Trusted_Connection=yes;TrustServerCertificate=yes;"

    def test_password_with_separator_is_braced(self):
        conn_str = build_connection_string("h", "d", "u", "a;b", driver="X")
        assert "PWD={a;b};" in conn_str
