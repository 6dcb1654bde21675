"""
Query Mixin - Statement execution, failure logging and transactions.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from types import SimpleNamespace
from typing import TYPE_CHECKING, Any, Dict, Optional

from ..constants import NO_CONNECTION_ERROR
from ..errors import UNUSABLE, DataForgeSQLError, QueryFailedError
from ..database.results import FieldInfo, ResultSet, Row

if TYPE_CHECKING:
    from ..config import SqlManagerSettings
    from ..database.registry import ConnectionRegistry
    from ..utils.query_log import QueryLog

import logging
logger = logging.getLogger(__name__)


@dataclass
class PreparedStatement:
    """SQL text bound to the connection it was prepared for."""
    sql: str
    connection: Optional[str] = None


class QueryMixin:
    """Mixin providing query execution for DatabaseManager."""

    registry: ConnectionRegistry
    settings: SqlManagerSettings
    query_log: QueryLog

    # ==================== Execution ====================

    def query(self, sql, connection: Optional[str] = None,
              params: Optional[Any] = None) -> Optional[ResultSet]:
        """
        Execute a statement.

        Args:
            sql: SQL text (``?`` placeholders) or a PreparedStatement
            connection: Logical database name, default when omitted
            params: Values bound to the placeholders in order

        Returns:
            ResultSet on success, None on failure

        Raises:
            QueryFailedError: On failure, when throw-on-failure is enabled
        """
        if isinstance(sql, PreparedStatement):
            connection = connection or sql.connection
            sql = sql.sql

        resolved = self.registry.resolve(connection)
        if resolved is None:
            result = None
            error = NO_CONNECTION_ERROR
        else:
            logger.debug(f"[{resolved.name}] {sql}")
            result = resolved.backend.execute(sql, params)
            error = resolved.last_error

        if result is None:
            self._query_failed(sql, error, self.registry.resolve_name(connection))
        return result

    def _query_failed(self, sql: str, error: str, connection: Optional[str]):
        message = self.query_log.record_failure(sql, error)
        logger.error(f"Query failed on '{connection}': {error}")
        if self.settings.throw_on_failure:
            raise QueryFailedError(message, sql=sql, error=error, connection=connection)

    def query_all(self, sql: str) -> Dict[str, Optional[ResultSet]]:
        """Run ``sql`` on every registered connection; None marks a failure."""
        results: Dict[str, Optional[ResultSet]] = {}
        for name, entry in self.registry.items():
            if entry is UNUSABLE:
                results[name] = None
                continue
            try:
                results[name] = self.query(sql, name)
            except QueryFailedError:
                results[name] = None
        return results

    def prepare(self, sql: str, connection: Optional[str] = None) -> PreparedStatement:
        return PreparedStatement(sql=sql, connection=connection)

    def execute(self, statement, params: Any = (), connection: Optional[str] = None) -> Optional[ResultSet]:
        """
        Execute a prepared statement (or SQL text) with bound values.

        A single non-sequence value is treated as a one-element list.
        """
        if params is None:
            params = ()
        elif not isinstance(params, (list, tuple)):
            params = (params,)
        return self.query(statement, connection, tuple(params))

    # ==================== Connection state ====================

    def error(self, connection: Optional[str] = None) -> str:
        """Last backend error for the connection ("" when the last statement succeeded)."""
        resolved = self.registry.resolve(connection)
        if resolved is None:
            return NO_CONNECTION_ERROR
        return resolved.last_error

    def insert_id(self, connection: Optional[str] = None) -> Optional[Any]:
        resolved = self.registry.resolve(connection)
        return resolved.backend.insert_id() if resolved is not None else None

    def affected_rows(self, connection: Optional[str] = None) -> int:
        resolved = self.registry.resolve(connection)
        return resolved.backend.affected_rows if resolved is not None else -1

    def escape(self, value: Any, connection: Optional[str] = None) -> str:
        """Quoted string literal, including the surrounding quotes."""
        resolved = self.registry.resolve(connection)
        if resolved is None:
            return "'" + str(value).replace("'", "''") + "'"
        return resolved.dialect.quote_literal(value)

    def throw_on_failure(self, mode: bool):
        """Raise QueryFailedError on failed queries instead of returning None."""
        self.settings.throw_on_failure = bool(mode)

    def log_message(self, text: str) -> bool:
        """Append a line to the query log; False when the log is not writable."""
        return self.query_log.write_line(text)

    # ==================== Result sets ====================

    @staticmethod
    def num_rows(result: Optional[ResultSet]) -> int:
        return result.num_rows if result is not None else -1

    @staticmethod
    def num_fields(result: Optional[ResultSet]) -> int:
        return result.num_fields if result is not None else -1

    @staticmethod
    def fetch_row(result: Optional[ResultSet]) -> Optional[Row]:
        """Next row (by index and by column name), None when exhausted."""
        return result.fetch() if result is not None else None

    @staticmethod
    def fetch_object(result: Optional[ResultSet]) -> Optional[SimpleNamespace]:
        row = result.fetch() if result is not None else None
        return SimpleNamespace(**row.as_dict()) if row is not None else None

    @staticmethod
    def data_seek(result: Optional[ResultSet], position: int) -> bool:
        return result.seek(int(position)) if result is not None else False

    @staticmethod
    def fetch_field(result: Optional[ResultSet], index: int) -> Optional[FieldInfo]:
        return result.field(index) if result is not None else None

    def field_type(self, result: Optional[ResultSet], index: int) -> Optional[str]:
        field = self.fetch_field(result, index)
        return field.type if field is not None else None

    def field_name(self, result: Optional[ResultSet], index: int) -> Optional[str]:
        field = self.fetch_field(result, index)
        return field.name if field is not None else None

    # ==================== Transactions ====================

    def start_transaction(self, connection: Optional[str] = None) -> bool:
        resolved = self.registry.resolve(connection)
        return resolved.backend.begin() if resolved is not None else False

    def commit_transaction(self, connection: Optional[str] = None) -> bool:
        resolved = self.registry.resolve(connection)
        return resolved.backend.commit() if resolved is not None else False

    def rollback_transaction(self, connection: Optional[str] = None) -> bool:
        resolved = self.registry.resolve(connection)
        return resolved.backend.rollback() if resolved is not None else False

    @contextmanager
    def transaction(self, connection: Optional[str] = None):
        """
        Context manager for a transaction on one connection.

        Commits on success, rolls back on exception.
        """
        if not self.start_transaction(connection):
            raise DataForgeSQLError(f"Cannot start transaction: {self.error(connection)}")
        try:
            yield self.registry.resolve(connection)
            self.commit_transaction(connection)
        except Exception:
            self.rollback_transaction(connection)
            raise
