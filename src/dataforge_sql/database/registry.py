"""
Connection Registry - Logical database names mapped to live connections.

A failed connection attempt is stored as the UNUSABLE marker so callers can
tell "tried and failed" apart from "never registered". An empty or omitted
name always resolves to the registry's default name.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, Tuple, Union

from ..errors import UNUSABLE, ConfigurationError, ConnectionFailedError, UnknownConnectionError
from .backends.base import BackendConnection
from .dialects import DialectFactory, SqlDialect

import logging
logger = logging.getLogger(__name__)

BackendFactory = Callable[[SqlDialect], BackendConnection]


@dataclass
class Connection:
    """One registered link to one logical database."""
    name: str
    dialect: SqlDialect
    backend: BackendConnection

    @property
    def last_error(self) -> str:
        return self.backend.last_error

    @property
    def is_open(self) -> bool:
        return self.backend.is_open


Entry = Union[Connection, object]


class ConnectionRegistry:
    """
    Mapping of logical database name to Connection or UNUSABLE.

    Args:
        backend_factory: Builds an unopened backend for a dialect
    """

    def __init__(self, backend_factory: BackendFactory):
        self._backend_factory = backend_factory
        self._entries: Dict[str, Entry] = {}
        self.default_name: Optional[str] = None

    # ==================== Registration ====================

    def add(self, host: str, dialect_tag: str, database: str, user: str,
            password: str = "", persistent: bool = False, force_new: bool = False) -> bool:
        """
        Connect ``database`` and register it under that name.

        Connection protocol:
        1. Existing entry or ``force_new``: fresh connection to ``database``;
           otherwise a persistent or transient one as requested
        2. On failure: connect to the server alone, CREATE DATABASE, switch to it
        3. If that fails too: register UNUSABLE and return False

        Raises:
            ConfigurationError: Empty or unknown dialect tag (nothing registered)
        """
        if not dialect_tag:
            raise ConfigurationError("Database type is required")
        dialect = DialectFactory.create(dialect_tag)
        if dialect is None:
            raise ConfigurationError(f"Unsupported database type: {dialect_tag}")

        fresh = force_new or database in self._entries
        previous = self._entries.get(database)

        backend = self._backend_factory(dialect)
        try:
            backend.connect(host, database, user, password,
                            persistent=persistent and not fresh, force_new=fresh)
            logger.info(f"Connected to {dialect.name} database '{database}' on {host or 'localhost'}")
        except ConnectionFailedError as e:
            logger.warning(f"Connection to '{database}' failed, trying to create it: {e}")
            backend = self._bootstrap(host, dialect, database, user, password)

        if isinstance(previous, Connection) and previous.backend is not backend:
            previous.backend.close()

        if backend is None:
            self._entries[database] = UNUSABLE
        else:
            self._entries[database] = Connection(name=database, dialect=dialect, backend=backend)
        if self.default_name is None:
            self.default_name = database
        return backend is not None

    def _bootstrap(self, host: str, dialect: SqlDialect, database: str, user: str,
                   password: str) -> Optional[BackendConnection]:
        """Create a missing database through a server-level connection."""
        backend = self._backend_factory(dialect)
        try:
            backend.connect_server(host, user, password)
        except ConnectionFailedError as e:
            logger.error(f"Cannot reach {dialect.name} server {host or 'localhost'}: {e}")
            return None

        create_sql = dialect.create_database_sql(database)
        if create_sql and backend.execute(create_sql) is None:
            logger.error(f"Cannot create database '{database}': {backend.last_error}")
            backend.close()
            return None

        use_sql = dialect.use_database_sql(database)
        if use_sql and backend.execute(use_sql) is None:
            logger.warning(f"Cannot switch to database '{database}': {backend.last_error}")
        backend.database = database
        logger.info(f"Created {dialect.name} database '{database}'")
        return backend

    # ==================== Resolution ====================

    def resolve_name(self, name: Optional[str] = None) -> Optional[str]:
        return name if name else self.default_name

    def entry(self, name: Optional[str] = None) -> Optional[Entry]:
        """Raw entry: Connection, UNUSABLE or None."""
        resolved = self.resolve_name(name)
        if resolved is None:
            return None
        return self._entries.get(resolved)

    def resolve(self, name: Optional[str] = None) -> Optional[Connection]:
        """Live Connection for ``name`` or None (absent or unusable)."""
        entry = self.entry(name)
        return entry if isinstance(entry, Connection) else None

    def is_connected(self, name: Optional[str] = None) -> bool:
        connection = self.resolve(name)
        return connection is not None and connection.is_open

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def names(self) -> List[str]:
        return list(self._entries.keys())

    def items(self) -> Iterator[Tuple[str, Entry]]:
        return iter(list(self._entries.items()))

    # ==================== State changes ====================

    def set_default(self, name: str) -> bool:
        """Point the default at a registered name; unknown names change nothing."""
        if name not in self._entries:
            logger.warning(f"Cannot set default database: '{name}' is not registered")
            return False
        self.default_name = name
        return True

    def close(self, name: Optional[str] = None) -> bool:
        """
        Remove an entry and release its handle.

        Raises:
            UnknownConnectionError: Nothing is registered under the name
        """
        resolved = self.resolve_name(name)
        if resolved is None or resolved not in self._entries:
            raise UnknownConnectionError(resolved or "")

        entry = self._entries.pop(resolved)
        if entry is UNUSABLE:
            return False
        return entry.backend.close()

    def close_all(self):
        for name in self.names():
            self.close(name)
