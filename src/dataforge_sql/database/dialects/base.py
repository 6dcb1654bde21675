"""
Base SQL Dialect - Abstract base class for backend-specific SQL fragments

Dialects handle database-specific syntax differences such as:
- Date arithmetic (argument order differs between backends)
- Row limiting (LIMIT vs TOP)
- Identifier quoting (`backticks` vs [brackets] vs "quotes")
- System catalog queries (information_schema vs sys.* vs PRAGMA)

Every translation method takes already-built SQL expressions and returns a
SQL fragment. Date difference methods return a value that is positive when
the first argument is later than the second.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any, List, Optional, Sequence, Tuple, Union

from ..results import python_class_type_name
from ..schema import ColumnMeta

import logging
logger = logging.getLogger(__name__)

CatalogQuery = Tuple[str, Tuple[Any, ...]]


def date_between(column: str, value: Union[str, date, datetime]) -> str:
    """BETWEEN comparison matching any time on the given date."""
    if isinstance(value, str):
        value = datetime.strptime(value.strip()[:10], "%Y-%m-%d")
    day = value.strftime("%Y-%m-%d")
    return f"({column} BETWEEN '{day} 00:00:00' AND '{day} 23:59:59')"


class SqlDialect(ABC):
    """
    Abstract base class for SQL dialects.

    Each dialect knows how to:
    1. Translate abstract operations into its SQL syntax
    2. Query its system catalog for table and column metadata
    3. Quote identifiers and literals

    Usage:
        dialect = DialectFactory.create("mssql")
        sql = dialect.add_select_limit("SELECT * FROM users", 10)
    """

    #: Canonical dialect tag
    name: str = ""

    # ==================== Identifier Quoting ====================

    @property
    @abstractmethod
    def quote_char(self) -> str:
        """Character used to quote identifiers."""
        pass

    @property
    def quote_char_end(self) -> str:
        """Closing quote character (same as quote_char for most databases)."""
        return self.quote_char

    def identifier_escape(self, identifier: str) -> str:
        """Quote a single identifier (table, column, database name)."""
        end = self.quote_char_end
        return f"{self.quote_char}{identifier.replace(end, end * 2)}{end}"

    def quote_literal(self, value: Any) -> str:
        """Render a value as a quoted string literal."""
        text = "" if value is None else str(value)
        return "'" + text.replace("'", "''") + "'"

    @abstractmethod
    def sep(self) -> str:
        """Separator between a database name and an object name."""
        pass

    def dbms_name(self) -> str:
        return self.name

    # ==================== Types ====================

    @abstractmethod
    def currency(self) -> str:
        """Fixed-point column type used for money values."""
        pass

    @abstractmethod
    def convert(self, expr: str, type_name: str) -> str:
        """Cast ``expr`` to ``type_name`` (``INT`` means a signed integer)."""
        pass

    def field_type_name(self, type_code: Any) -> Optional[str]:
        """
        Map a DB-API ``cursor.description`` type code to a type name.

        Returns None when the code is not understood; callers then infer
        the type from fetched values.
        """
        return python_class_type_name(type_code)

    # ==================== Date / Time ====================

    @abstractmethod
    def now(self) -> str:
        pass

    @abstractmethod
    def curdate(self) -> str:
        pass

    @abstractmethod
    def date_diff(self, date1: str, date2: str) -> str:
        """Days from ``date2`` to ``date1``."""
        pass

    @abstractmethod
    def month_diff(self, date1: str, date2: str) -> str:
        """Calendar months from ``date2`` to ``date1``."""
        pass

    @abstractmethod
    def week_diff(self, date1: str, date2: str) -> str:
        """Sunday-based week boundaries from ``date2`` to ``date1``."""
        pass

    @abstractmethod
    def second_diff(self, date1: str, date2: str) -> str:
        """Seconds from ``date2`` to ``date1``."""
        pass

    @abstractmethod
    def date_ymd(self, expr: str) -> str:
        """Expression yielding the 8-digit YYYYMMDD form of a date."""
        pass

    @abstractmethod
    def day_of_week(self, expr: str) -> str:
        """Day of week, 1 = Sunday through 7 = Saturday."""
        pass

    @abstractmethod
    def hour(self, expr: str) -> str:
        pass

    @abstractmethod
    def week(self, expr: str) -> str:
        pass

    # ==================== Strings ====================

    @abstractmethod
    def locate(self, needle: str, haystack: str) -> str:
        """1-based position of ``needle`` in ``haystack`` (0 when absent)."""
        pass

    @abstractmethod
    def concat(self, *exprs: str) -> str:
        pass

    # ==================== Row Limiting ====================

    @abstractmethod
    def add_select_limit(self, query: str, limit: int) -> str:
        """Cap ``query`` at ``limit`` rows."""
        pass

    # ==================== Database Context ====================

    def create_database_sql(self, database: str) -> str:
        return f"CREATE DATABASE {self.identifier_escape(database)}"

    @abstractmethod
    def use_database_sql(self, database: str) -> Optional[str]:
        """Context switch statement, or None when the backend has none."""
        pass

    @abstractmethod
    def current_database_sql(self) -> str:
        """Query returning the current database as column ``dbname``."""
        pass

    @abstractmethod
    def last_insert_id_sql(self) -> str:
        """Query returning the id generated by the last INSERT."""
        pass

    # ==================== Catalog Queries ====================

    @abstractmethod
    def columns_query(self, table_name: str) -> CatalogQuery:
        """Catalog query listing the columns of ``table_name``, ``?`` placeholders."""
        pass

    @abstractmethod
    def column_from_row(self, row: Any) -> ColumnMeta:
        """Build ColumnMeta from one row of ``columns_query``."""
        pass

    def normalize_columns(self, rows: Sequence[Any]) -> List[ColumnMeta]:
        """Build ColumnMeta records from all rows of ``columns_query``."""
        return [self.column_from_row(row) for row in rows]

    @abstractmethod
    def tables_query(self) -> CatalogQuery:
        """Catalog query listing tables and views (one name per row)."""
        pass

    @abstractmethod
    def views_query(self) -> CatalogQuery:
        """Catalog query listing views (one name per row)."""
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
