"""
MySQL Dialect - MySQL/MariaDB-specific SQL fragments
"""

from typing import Any, Optional

from .base import CatalogQuery, SqlDialect
from ..schema import ColumnMeta, TriState, split_declared_type
from ...utils.sql_limits import append_limit

import logging
logger = logging.getLogger(__name__)

# pymysql.constants.FIELD_TYPE codes
_FIELD_TYPES = {
    0: "decimal",
    1: "tinyint",
    2: "smallint",
    3: "int",
    4: "float4",
    5: "float8",
    7: "timestamp",
    8: "bigint",
    9: "mediumint",
    10: "date",
    11: "time",
    12: "datetime",
    13: "year",
    15: "varchar",
    16: "bit",
    245: "json",
    246: "decimal",
    247: "enum",
    248: "set",
    249: "blob",
    250: "blob",
    251: "blob",
    252: "blob",
    253: "varchar",
    254: "char",
}


class MySQLDialect(SqlDialect):
    """Dialect for MySQL/MariaDB databases."""

    name = "mysql"

    @property
    def quote_char(self) -> str:
        """MySQL uses backticks for identifier quoting."""
        return "`"

    def quote_literal(self, value: Any) -> str:
        text = "" if value is None else str(value)
        return "'" + text.replace("\\", "\\\\").replace("'", "''") + "'"

    def sep(self) -> str:
        return "."

    def currency(self) -> str:
        return "decimal(10,2)"

    def convert(self, expr: str, type_name: str) -> str:
        if type_name.upper() == "INT":
            type_name = "SIGNED"
        return f"CONVERT({expr},{type_name})"

    def field_type_name(self, type_code: Any) -> Optional[str]:
        if isinstance(type_code, int):
            return _FIELD_TYPES.get(type_code)
        return super().field_type_name(type_code)

    # ==================== Date / Time ====================

    def now(self) -> str:
        return "NOW()"

    def curdate(self) -> str:
        return "CURDATE()"

    def date_diff(self, date1: str, date2: str) -> str:
        return f"DATEDIFF({date1},{date2})"

    def month_diff(self, date1: str, date2: str) -> str:
        return f"PERIOD_DIFF(DATE_FORMAT({date1},'%Y%m'),DATE_FORMAT({date2},'%Y%m'))"

    def week_diff(self, date1: str, date2: str) -> str:
        # distance between the Saturdays preceding each date
        return (f"(((TO_DAYS({date1})-DAYOFWEEK({date1}))"
                f"-(TO_DAYS({date2})-DAYOFWEEK({date2}))) DIV 7)")

    def second_diff(self, date1: str, date2: str) -> str:
        # TIMESTAMPDIFF returns end - start
        return f"TIMESTAMPDIFF(SECOND,{date2},{date1})"

    def date_ymd(self, expr: str) -> str:
        return f"DATE_FORMAT({expr},'%Y%m%d')"

    def day_of_week(self, expr: str) -> str:
        return f"DAYOFWEEK({expr})"

    def hour(self, expr: str) -> str:
        return f"HOUR({expr})"

    def week(self, expr: str) -> str:
        return f"WEEK({expr})"

    # ==================== Strings ====================

    def locate(self, needle: str, haystack: str) -> str:
        return f"LOCATE({needle},{haystack})"

    def concat(self, *exprs: str) -> str:
        return "CONCAT(" + ",".join(exprs) + ")"

    def add_select_limit(self, query: str, limit: int) -> str:
        return append_limit(query, limit)

    # ==================== Database Context ====================

    def use_database_sql(self, database: str) -> Optional[str]:
        return f"USE {self.identifier_escape(database)}"

    def current_database_sql(self) -> str:
        return "SELECT DATABASE() AS dbname"

    def last_insert_id_sql(self) -> str:
        return "SELECT LAST_INSERT_ID() AS insert_id"

    # ==================== Catalog Queries ====================

    def columns_query(self, table_name: str) -> CatalogQuery:
        return ("""
            SELECT COLUMN_NAME, DATA_TYPE, COLUMN_TYPE, COLUMN_DEFAULT, EXTRA, COLUMN_KEY
            FROM information_schema.COLUMNS
            WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = ?
            ORDER BY ORDINAL_POSITION
        """, (table_name,))

    def column_from_row(self, row: Any) -> ColumnMeta:
        # COLUMN_TYPE carries the declared size: int(11), decimal(10,2), varchar(20)
        _, length, scale, unsigned = split_declared_type(row[2] or "")
        return ColumnMeta(
            name=row[0],
            type_name=row[1],
            max_length=length,
            scale=scale,
            unsigned=unsigned,
            auto_increment=TriState.from_flag("auto_increment" in (row[4] or "").lower()),
            primary_key=TriState.from_flag(row[5] == "PRI"),
            default=row[3],
        )

    def tables_query(self) -> CatalogQuery:
        return ("""
            SELECT TABLE_NAME
            FROM information_schema.TABLES
            WHERE TABLE_SCHEMA = DATABASE()
            ORDER BY TABLE_NAME
        """, ())

    def views_query(self) -> CatalogQuery:
        return ("""
            SELECT TABLE_NAME
            FROM information_schema.TABLES
            WHERE TABLE_SCHEMA = DATABASE() AND TABLE_TYPE = 'VIEW'
            ORDER BY TABLE_NAME
        """, ())
