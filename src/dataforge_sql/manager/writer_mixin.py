"""
Writer Mixin - Schema-aware inserts/updates and cross-connection transfers.

smart_insert / smart_update write only the keys that exist as columns in the
live table; other keys are dropped without error. transfer copies the rows of
a SELECT into another connection inside one transaction.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, List, Mapping, Optional

from ..constants import (
    TRANSFER_DATE_TYPES,
    TRANSFER_INTEGER_TYPES,
    TRANSFER_UNQUOTED_TYPES,
)
from ..errors import UNSUPPORTED, QueryFailedError
from ..utils.datetime_clean import clean_date_time

if TYPE_CHECKING:
    from ..database.registry import ConnectionRegistry

import logging
logger = logging.getLogger(__name__)


def transfer_literal(value: Any, type_name: str) -> str:
    """
    Render a fetched value as a SQL literal for the destination.

    - numeric kinds are written bare ("" becomes 0)
    - datetimes go through clean_date_time()
    - everything else is single-quoted with embedded quotes doubled
    """
    if value is None:
        return "NULL"

    kind = (type_name or "").lower()
    if isinstance(value, bool):
        value = int(value)

    if kind in TRANSFER_INTEGER_TYPES or kind in TRANSFER_UNQUOTED_TYPES:
        if isinstance(value, (bytes, bytearray)):
            # pymysql returns BIT(n) columns as big-endian bytes
            value = int.from_bytes(value, "big")
        text = str(value).strip()
        return text if text != "" else "0"

    text = clean_date_time(value) if kind in TRANSFER_DATE_TYPES else str(value)
    return "'" + text.replace("'", "''") + "'"


class WriterMixin:
    """Mixin providing tolerant writes for DatabaseManager."""

    registry: ConnectionRegistry

    # ==================== Smart insert / update ====================

    def _surviving_columns(self, table_name: str, values: Mapping[str, Any],
                           connection: Optional[str]):
        """Keys of ``values`` that are columns of the table, in insertion order."""
        exists = self.table_exists(table_name, connection)
        if exists is UNSUPPORTED:
            return UNSUPPORTED
        if not exists:
            logger.warning(f"Table {table_name} does not exist")
            return False

        definition = self.table_definition(table_name, connection)
        if not isinstance(definition, dict):
            return False

        columns = [key for key in values if key in definition]
        dropped = [key for key in values if key not in definition]
        if dropped:
            logger.debug(f"{table_name}: ignoring unknown columns {dropped}")
        return columns

    def smart_insert(self, table_name: str, values: Mapping[str, Any],
                     connection: Optional[str] = None):
        """
        INSERT the subset of ``values`` whose keys are columns of the table.

        Returns:
            Same as ``execute`` (ResultSet or None), False when the table does
            not exist, UNSUPPORTED when existence cannot be determined
        """
        columns = self._surviving_columns(table_name, values, connection)
        if columns is UNSUPPORTED or columns is False:
            return columns
        if not columns:
            logger.warning(f"smart_insert into {table_name}: no matching columns")
            return None

        escaped = ", ".join(self.identifier_escape(col, connection) for col in columns)
        placeholders = ", ".join("?" * len(columns))
        statement = self.prepare(f"INSERT INTO {table_name} ({escaped}) VALUES ({placeholders})",
                                 connection)
        return self.execute(statement, [values[col] for col in columns], connection)

    def smart_update(self, table_name: str, values: Mapping[str, Any], where_clause: str,
                     connection: Optional[str] = None):
        """
        UPDATE the columns of the table present in ``values``.

        ``where_clause`` is used verbatim; a reference to a missing column
        fails at the backend.
        """
        columns = self._surviving_columns(table_name, values, connection)
        if columns is UNSUPPORTED or columns is False:
            return columns
        if not columns:
            logger.warning(f"smart_update of {table_name}: no matching columns")
            return None

        sets = ", ".join(f"{self.identifier_escape(col, connection)} = ?" for col in columns)
        statement = self.prepare(f"UPDATE {table_name} SET {sets} WHERE {where_clause}", connection)
        return self.execute(statement, [values[col] for col in columns], connection)

    # ==================== Transfer ====================

    def transfer(self, source: str, select_sql: str, destination: str, insert_prefix: str) -> bool:
        """
        Copy the rows of ``select_sql`` on ``source`` into ``destination``.

        Each row becomes ``insert_prefix VALUES (...)``, with literals chosen
        from the source column types. All inserts share one transaction:
        any failure rolls the destination back.

        Args:
            source: Logical name of the source connection
            select_sql: Query producing the rows
            destination: Logical name of the destination connection
            insert_prefix: Everything before VALUES, e.g. ``INSERT INTO t (a, b)``

        Returns:
            True when every row was inserted and committed
        """
        result = self.query(select_sql, source)
        if result is None:
            return False

        statements: List[str] = []
        for row in result:
            literals = [transfer_literal(row[index], field.type)
                        for index, field in enumerate(result.fields)]
            statements.append(f"{insert_prefix} VALUES ({','.join(literals)})")

        if not self.start_transaction(destination):
            logger.error(f"Transfer aborted: cannot start transaction on '{destination}'")
            return False

        succeeded = True
        try:
            for sql in statements:
                if self.query(sql, destination) is None:
                    succeeded = False
                    break
        except QueryFailedError:
            self.rollback_transaction(destination)
            raise

        if succeeded:
            succeeded = self.commit_transaction(destination)
        else:
            self.rollback_transaction(destination)
            logger.warning(f"Transfer {source} -> {destination} rolled back")
        if succeeded:
            logger.info(f"Transferred {len(statements)} rows {source} -> {destination}")
        return succeeded

    @staticmethod
    def clean_date_time(value: Any) -> str:
        return clean_date_time(value)
