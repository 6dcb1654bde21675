"""
Connection Mixin - Registering, selecting and closing logical databases.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

from ..errors import ConfigurationError

if TYPE_CHECKING:
    from ..database.registry import Connection, ConnectionRegistry

import logging
logger = logging.getLogger(__name__)


class ConnectionMixin:
    """Mixin providing connection management for DatabaseManager."""

    registry: ConnectionRegistry

    def add_connection(self, host: str, dialect: str, database: str, user: str,
                       password: str = "", persistent: bool = False,
                       force_new: bool = False) -> bool:
        """
        Connect to ``database`` and register it under that name.

        A missing database is created through a server-level connection. When
        both attempts fail the name is marked unusable.

        Args:
            host: Server host (``host:port`` accepted); directory for SQLite
            dialect: Database type, e.g. ``mysql``, ``mssql``, ``sqlite``
            database: Database name, also the logical connection name
            user: Login name
            password: Login password
            persistent: Share one handle per target across managers
            force_new: Always open a fresh handle

        Returns:
            True when a usable connection was registered
        """
        try:
            return self.registry.add(host, dialect, database, user, password,
                                     persistent=persistent, force_new=force_new)
        except ConfigurationError as e:
            logger.error(f"Cannot add connection '{database}': {e}")
            return False

    def is_connected(self, connection: Optional[str] = None) -> bool:
        return self.registry.is_connected(connection)

    def close(self, connection: Optional[str] = None) -> bool:
        """
        Close a connection and forget it.

        Raises:
            UnknownConnectionError: Nothing is registered under the name;
                check ``is_connected`` first
        """
        return self.registry.close(connection)

    def close_all(self):
        self.registry.close_all()

    def set_default_db(self, name: str) -> bool:
        """Make ``name`` the default connection and switch its context to it."""
        if not self.registry.set_default(name):
            return False

        connection = self.registry.resolve(name)
        if connection is not None and connection.is_open:
            use_sql = connection.dialect.use_database_sql(name)
            if use_sql:
                self.query(use_sql, name)
            connection.backend.database = name
        return True

    @property
    def default_db(self) -> Optional[str]:
        return self.registry.default_name

    def connection_names(self) -> List[str]:
        return self.registry.names()

    def which_connection(self, connection: Optional[str] = None) -> Optional[Connection]:
        """Registered Connection for a name (default when omitted), None if unusable."""
        return self.registry.resolve(connection)

    def default_database(self, connection: Optional[str] = None) -> Optional[str]:
        """Database the backend is currently using, as reported by the server."""
        resolved = self.registry.resolve(connection)
        if resolved is None:
            return None

        result = self.query(resolved.dialect.current_database_sql(), connection)
        row = result.fetch() if result is not None else None
        return row["dbname"] if row is not None else None
