"""
SQL Server Dialect - SQL Server-specific SQL fragments
"""

from typing import Any, Optional

from .base import CatalogQuery, SqlDialect
from ..schema import ColumnMeta, TriState
from ...utils.sql_limits import inject_top

import logging
logger = logging.getLogger(__name__)

# Types whose sys.columns.max_length is a meaningful declared size
_SIZED_TYPES = ("char", "varchar", "binary", "varbinary")
_UNICODE_SIZED_TYPES = ("nchar", "nvarchar")
_DECIMAL_TYPES = ("decimal", "numeric")


def _strip_default(definition: Optional[str]) -> Optional[str]:
    """Remove the parentheses SQL Server wraps around defaults: ((0)) -> 0."""
    if definition is None:
        return None
    text = definition.strip()
    while len(text) >= 2 and text[0] == "(" and text[-1] == ")":
        depth = 0
        for index, ch in enumerate(text):
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth -= 1
            if depth == 0 and index < len(text) - 1:
                # outer parentheses do not wrap the whole text: (a)+(b)
                return text
        text = text[1:-1].strip()
    return text


class SQLServerDialect(SqlDialect):
    """Dialect for SQL Server databases."""

    name = "mssql"

    @property
    def quote_char(self) -> str:
        return "["

    @property
    def quote_char_end(self) -> str:
        return "]"

    def sep(self) -> str:
        return ".dbo."

    def currency(self) -> str:
        return "money"

    def convert(self, expr: str, type_name: str) -> str:
        return f"CONVERT({type_name},{expr})"

    # ==================== Date / Time ====================

    # DATEDIFF(part, start, end) returns end - start, hence the swapped order

    def now(self) -> str:
        return "GETDATE()"

    def curdate(self) -> str:
        return "CAST(GETDATE() AS DATE)"

    def date_diff(self, date1: str, date2: str) -> str:
        return f"DATEDIFF(dd,{date2},{date1})"

    def month_diff(self, date1: str, date2: str) -> str:
        return f"DATEDIFF(mm,{date2},{date1})"

    def week_diff(self, date1: str, date2: str) -> str:
        return f"DATEDIFF(wk,{date2},{date1})"

    def second_diff(self, date1: str, date2: str) -> str:
        return f"DATEDIFF(ss,{date2},{date1})"

    def date_ymd(self, expr: str) -> str:
        return f"CONVERT(CHAR(8),{expr},112)"

    def day_of_week(self, expr: str) -> str:
        # independent of SET DATEFIRST
        return f"(((DATEPART(dw,{expr})+@@DATEFIRST-1)%7)+1)"

    def hour(self, expr: str) -> str:
        return f"DATEPART(hh,{expr})"

    def week(self, expr: str) -> str:
        return f"DATEPART(wk,{expr})"

    # ==================== Strings ====================

    def locate(self, needle: str, haystack: str) -> str:
        return f"CHARINDEX({needle},{haystack})"

    def concat(self, *exprs: str) -> str:
        return "+".join(exprs)

    def add_select_limit(self, query: str, limit: int) -> str:
        return inject_top(query, limit)

    # ==================== Database Context ====================

    def use_database_sql(self, database: str) -> Optional[str]:
        return f"USE {self.identifier_escape(database)}"

    def current_database_sql(self) -> str:
        return "SELECT DB_NAME() AS dbname"

    def last_insert_id_sql(self) -> str:
        # SCOPE_IDENTITY() is NULL outside the batch that inserted
        return "SELECT @@IDENTITY AS insert_id"

    # ==================== Catalog Queries ====================

    def columns_query(self, table_name: str) -> CatalogQuery:
        return ("""
            SELECT
                c.name AS column_name,
                t.name AS type_name,
                c.max_length,
                c.precision,
                c.scale,
                c.is_identity,
                dc.definition AS column_default,
                CASE WHEN pk.column_id IS NULL THEN 0 ELSE 1 END AS is_primary_key
            FROM sys.columns c
            INNER JOIN sys.types t ON t.user_type_id = c.user_type_id
            LEFT JOIN sys.default_constraints dc ON dc.object_id = c.default_object_id
            LEFT JOIN (
                SELECT ic.object_id, ic.column_id
                FROM sys.indexes i
                INNER JOIN sys.index_columns ic
                    ON ic.object_id = i.object_id AND ic.index_id = i.index_id
                WHERE i.is_primary_key = 1
            ) pk ON pk.object_id = c.object_id AND pk.column_id = c.column_id
            WHERE c.object_id = OBJECT_ID(?)
            ORDER BY c.column_id
        """, (table_name,))

    def column_from_row(self, row: Any) -> ColumnMeta:
        type_name = (row[1] or "").lower()
        max_length = row[2]
        length = None
        scale = None
        if type_name in _SIZED_TYPES and max_length != -1:
            length = max_length
        elif type_name in _UNICODE_SIZED_TYPES and max_length != -1:
            # sys.columns reports bytes, two per character
            length = max_length // 2
        elif type_name in _DECIMAL_TYPES:
            length = row[3]
            scale = row[4]
        return ColumnMeta(
            name=row[0],
            type_name=type_name,
            max_length=length,
            scale=scale,
            auto_increment=TriState.from_flag(bool(row[5])),
            primary_key=TriState.from_flag(bool(row[7])),
            default=_strip_default(row[6]),
        )

    def tables_query(self) -> CatalogQuery:
        return ("""
            SELECT name
            FROM sys.objects
            WHERE type IN ('U', 'V')
            ORDER BY name
        """, ())

    def views_query(self) -> CatalogQuery:
        return ("SELECT name FROM sys.views ORDER BY name", ())
