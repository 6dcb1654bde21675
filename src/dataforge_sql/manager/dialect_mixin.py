"""
Dialect Mixin - SQL fragments for the dialect of a named connection.

Every method takes an optional trailing connection name. When the connection
cannot be resolved the fragment is "" (not applicable) rather than SQL for a
guessed backend.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, Optional, Union

from ..database.dialects import SqlDialect, date_between

if TYPE_CHECKING:
    from ..database.registry import ConnectionRegistry

import logging
logger = logging.getLogger(__name__)


class DialectMixin:
    """Mixin exposing dialect translation for DatabaseManager."""

    registry: ConnectionRegistry

    def dialect(self, connection: Optional[str] = None) -> Optional[SqlDialect]:
        resolved = self.registry.resolve(connection)
        return resolved.dialect if resolved is not None else None

    def _translate(self, connection: Optional[str], operation: str, *args) -> str:
        dialect = self.dialect(connection)
        if dialect is None:
            logger.warning(f"{operation}: no usable connection '{self.registry.resolve_name(connection)}'")
            return ""
        return getattr(dialect, operation)(*args)

    # ==================== Date / Time ====================

    def now(self, connection: Optional[str] = None) -> str:
        return self._translate(connection, "now")

    def curdate(self, connection: Optional[str] = None) -> str:
        return self._translate(connection, "curdate")

    def date_diff(self, date1: str, date2: str, connection: Optional[str] = None) -> str:
        """Days from ``date2`` to ``date1``: positive when ``date1`` is later."""
        return self._translate(connection, "date_diff", date1, date2)

    def month_diff(self, date1: str, date2: str, connection: Optional[str] = None) -> str:
        return self._translate(connection, "month_diff", date1, date2)

    def week_diff(self, date1: str, date2: str, connection: Optional[str] = None) -> str:
        return self._translate(connection, "week_diff", date1, date2)

    def second_diff(self, date1: str, date2: str, connection: Optional[str] = None) -> str:
        return self._translate(connection, "second_diff", date1, date2)

    def date_ymd(self, expr: str, connection: Optional[str] = None) -> str:
        return self._translate(connection, "date_ymd", expr)

    def day_of_week(self, expr: str, connection: Optional[str] = None) -> str:
        """1 = Sunday ... 7 = Saturday on every backend."""
        return self._translate(connection, "day_of_week", expr)

    def hour(self, expr: str, connection: Optional[str] = None) -> str:
        return self._translate(connection, "hour", expr)

    def week(self, expr: str, connection: Optional[str] = None) -> str:
        return self._translate(connection, "week", expr)

    @staticmethod
    def date_equals(column: str, value: Union[str, date, datetime]) -> str:
        return date_between(column, value)

    # ==================== Types / Strings ====================

    def convert(self, expr: str, type_name: str, connection: Optional[str] = None) -> str:
        return self._translate(connection, "convert", expr, type_name)

    def locate(self, needle: str, haystack: str, connection: Optional[str] = None) -> str:
        return self._translate(connection, "locate", needle, haystack)

    def concat(self, *exprs: str, connection: Optional[str] = "") -> str:
        """Concatenate expressions; ``connection=""`` means the default."""
        return self._translate(connection, "concat", *exprs)

    def add_select_limit(self, query: str, limit: int, connection: Optional[str] = None) -> str:
        return self._translate(connection, "add_select_limit", query, limit)

    def identifier_escape(self, identifier: str, connection: Optional[str] = None) -> str:
        return self._translate(connection, "identifier_escape", identifier)

    def sep(self, connection: Optional[str] = None) -> str:
        return self._translate(connection, "sep")

    def currency(self, connection: Optional[str] = None) -> str:
        return self._translate(connection, "currency")

    def dbms_name(self, connection: Optional[str] = None) -> str:
        return self._translate(connection, "dbms_name")
