"""
Schema Mixin - Table and column introspection.

Nothing is cached: every call reads the backend catalog, so schema changes
are visible immediately. Operations return UNSUPPORTED when the backend
cannot answer, which callers must not confuse with False ("does not exist").
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, List, Optional, Union

from ..errors import UNSUPPORTED
from ..database.schema import ColumnDefinition, build_definition

if TYPE_CHECKING:
    from ..database.registry import ConnectionRegistry

import logging
logger = logging.getLogger(__name__)


class SchemaMixin:
    """Mixin providing schema introspection for DatabaseManager."""

    registry: ConnectionRegistry

    def _columns(self, table_name: str, connection: Optional[str]):
        """ColumnMeta list, [] for a missing table, UNSUPPORTED when unknowable."""
        resolved = self.registry.resolve(connection)
        if resolved is None:
            return []
        columns = resolved.backend.column_metadata(table_name)
        if columns is None:
            return UNSUPPORTED
        return columns

    def table_exists(self, table_name: str, connection: Optional[str] = None):
        """True / False, or UNSUPPORTED when the catalog cannot be read."""
        columns = self._columns(table_name, connection)
        if columns is UNSUPPORTED:
            return UNSUPPORTED
        return len(columns) > 0

    def is_view(self, table_name: str, connection: Optional[str] = None) -> bool:
        """True when ``table_name`` (raw or quoted) is listed as a view."""
        if self.table_exists(table_name, connection) is not True:
            return False

        resolved = self.registry.resolve(connection)
        views = resolved.backend.view_names() or []
        if table_name in views:
            return True
        return any(resolved.dialect.identifier_escape(view) == table_name for view in views)

    def table_definition(self, table_name: str, connection: Optional[str] = None):
        """Mapping column -> base type, False when the table has no columns."""
        columns = self._columns(table_name, connection)
        if columns is UNSUPPORTED:
            return UNSUPPORTED
        if not columns:
            return False
        return {col.name: col.type_name for col in columns}

    def detailed_definition(self, table_name: str, connection: Optional[str] = None) \
            -> Union[Dict[str, ColumnDefinition], bool, object]:
        """
        Mapping column -> ColumnDefinition.

        The type carries its size (``VARCHAR(20)``, ``DECIMAL(10,2)``) except
        for integer kinds; increment and primary key flags are TriState.

        Returns:
            Dict in column order, False for a missing table, or UNSUPPORTED
        """
        columns = self._columns(table_name, connection)
        if columns is UNSUPPORTED:
            return UNSUPPORTED
        if not columns:
            return False
        return {col.name: build_definition(col) for col in columns}

    def get_tables(self, connection: Optional[str] = None):
        """Names of tables and views, or UNSUPPORTED."""
        resolved = self.registry.resolve(connection)
        if resolved is None:
            return []
        names = resolved.backend.table_names()
        return UNSUPPORTED if names is None else names

    def matching_columns(self, table1: str, table2: str,
                         connection: Optional[str] = None) -> List[str]:
        """Columns present in both tables, in ``table1`` order."""
        return self._shared_columns(table1, connection, table2, connection)

    def get_matching_columns(self, table1: str, connection1: Optional[str],
                             table2: str, connection2: Optional[str]):
        """Comma-separated columns shared by tables on two connections, or False."""
        shared = self._shared_columns(table1, connection1, table2, connection2)
        return ",".join(shared) if shared else False

    def _shared_columns(self, table1, connection1, table2, connection2) -> List[str]:
        first = self.table_definition(table1, connection1)
        second = self.table_definition(table2, connection2)
        if not isinstance(first, dict) or not isinstance(second, dict):
            return []
        return [name for name in first if name in second]

