"""
SQLite Dialect - SQLite-specific SQL fragments

SQLite has no native date types; date arithmetic goes through julianday()
and strftime() on ISO-8601 text.
"""

from typing import Any, List, Optional, Sequence

from .base import CatalogQuery, SqlDialect
from ..schema import ColumnMeta, TriState, split_declared_type
from ...utils.sql_limits import append_limit

import logging
logger = logging.getLogger(__name__)


def _int(expr: str) -> str:
    return f"CAST({expr} AS INTEGER)"


def _part(fmt: str, expr: str) -> str:
    """Integer strftime() component, e.g. _part('%m', x)."""
    return _int(f"strftime('{fmt}', {expr})")


class SQLiteDialect(SqlDialect):
    """Dialect for SQLite databases."""

    name = "sqlite"

    @property
    def quote_char(self) -> str:
        return '"'

    def sep(self) -> str:
        return "."

    def currency(self) -> str:
        return "NUMERIC(10,2)"

    def convert(self, expr: str, type_name: str) -> str:
        if type_name.upper() == "INT":
            type_name = "INTEGER"
        return f"CAST({expr} AS {type_name})"

    # ==================== Date / Time ====================

    def now(self) -> str:
        return "datetime('now', 'localtime')"

    def curdate(self) -> str:
        return "date('now', 'localtime')"

    def date_diff(self, date1: str, date2: str) -> str:
        return _int(f"julianday(date({date1})) - julianday(date({date2}))")

    def month_diff(self, date1: str, date2: str) -> str:
        months1 = f"{_part('%Y', date1)} * 12 + {_part('%m', date1)}"
        months2 = f"{_part('%Y', date2)} * 12 + {_part('%m', date2)}"
        return f"(({months1}) - ({months2}))"

    def week_diff(self, date1: str, date2: str) -> str:
        def sunday(expr):
            return f"julianday(date({expr}, '-' || strftime('%w', {expr}) || ' days'))"
        return _int(f"({sunday(date1)} - {sunday(date2)}) / 7")

    def second_diff(self, date1: str, date2: str) -> str:
        return f"({_part('%s', date1)} - {_part('%s', date2)})"

    def date_ymd(self, expr: str) -> str:
        return f"strftime('%Y%m%d', {expr})"

    def day_of_week(self, expr: str) -> str:
        return f"({_part('%w', expr)} + 1)"

    def hour(self, expr: str) -> str:
        return _part("%H", expr)

    def week(self, expr: str) -> str:
        # Sunday-based, 0 before the first Sunday of the year
        return f"(({_part('%j', expr)} + 6 - {_part('%w', expr)}) / 7)"

    # ==================== Strings ====================

    def locate(self, needle: str, haystack: str) -> str:
        return f"INSTR({haystack}, {needle})"

    def concat(self, *exprs: str) -> str:
        return "(" + " || ".join(exprs) + ")"

    def add_select_limit(self, query: str, limit: int) -> str:
        return append_limit(query, limit)

    # ==================== Database Context ====================

    def create_database_sql(self, database: str) -> str:
        # opening a missing file creates it; nothing to issue
        return ""

    def use_database_sql(self, database: str) -> Optional[str]:
        return None

    def current_database_sql(self) -> str:
        return "SELECT name AS dbname FROM pragma_database_list WHERE seq = 0"

    def last_insert_id_sql(self) -> str:
        return "SELECT last_insert_rowid() AS insert_id"

    # ==================== Catalog Queries ====================

    def field_type_name(self, type_code: Any) -> Optional[str]:
        # sqlite3 reports no type codes
        return None

    def columns_query(self, table_name: str) -> CatalogQuery:
        return ('SELECT name, type, "notnull", dflt_value, pk FROM pragma_table_info(?)',
                (table_name,))

    def column_from_row(self, row: Any) -> ColumnMeta:
        base, length, scale, unsigned = split_declared_type(row[1] or "")
        return ColumnMeta(
            name=row[0],
            type_name=base,
            max_length=length,
            scale=scale,
            unsigned=unsigned,
            auto_increment=TriState.FALSE,
            primary_key=TriState.from_flag(bool(row[4])),
            default=row[3],
        )

    def normalize_columns(self, rows: Sequence[Any]) -> List[ColumnMeta]:
        columns = [self.column_from_row(row) for row in rows]
        keys = [col for col in columns if col.primary_key is TriState.TRUE]
        # a sole INTEGER PRIMARY KEY aliases the rowid
        if len(keys) == 1 and keys[0].type_name.upper() == "INTEGER":
            keys[0].auto_increment = TriState.TRUE
        return columns

    def tables_query(self) -> CatalogQuery:
        return ("""
            SELECT name FROM sqlite_master
            WHERE type IN ('table', 'view') AND name NOT LIKE 'sqlite_%'
            ORDER BY name
        """, ())

    def views_query(self) -> CatalogQuery:
        return ("SELECT name FROM sqlite_master WHERE type = 'view' ORDER BY name", ())
