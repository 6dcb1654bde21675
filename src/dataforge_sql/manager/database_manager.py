"""
Database Manager - One object for queries, dialect fragments and schema
across several named connections.
"""

from typing import Optional

from ..config import SqlManagerSettings
from ..database.backends import BackendConnection, backend_class
from ..database.dialects import SqlDialect
from ..database.registry import ConnectionRegistry
from ..utils.query_log import QueryLog
from .connection_mixin import ConnectionMixin
from .dialect_mixin import DialectMixin
from .query_mixin import QueryMixin
from .schema_mixin import SchemaMixin
from .writer_mixin import WriterMixin

import logging
logger = logging.getLogger(__name__)


class DatabaseManager(
    ConnectionMixin,
    QueryMixin,
    DialectMixin,
    SchemaMixin,
    WriterMixin,
):
    """
    Cross-database SQL façade.

    The first connection added becomes the default; every method taking an
    optional ``connection`` name falls back to it.

    Usage:
        db = DatabaseManager("localhost", "mysql", "shop", "app", "secret")
        db.add_connection("reports.local", "mssql", "archive", "app", "secret")

        rows = db.query(f"SELECT * FROM orders WHERE {db.date_diff(db.now(), 'placed')} < 7")
        db.transfer("shop", "SELECT id, total FROM orders", "archive",
                    "INSERT INTO orders (id, total)")
    """

    def __init__(self, host: Optional[str] = None, dialect: Optional[str] = None,
                 database: Optional[str] = None, user: str = "", password: str = "",
                 persistent: bool = False, force_new: bool = False,
                 settings: Optional[SqlManagerSettings] = None, **overrides):
        """
        Args:
            host, dialect, database, user, password, persistent, force_new:
                First connection, see ``add_connection`` (skipped when
                ``database`` is None)
            settings: Complete settings object
            **overrides: SqlManagerSettings fields, used when ``settings`` is None
        """
        self.settings = settings if settings is not None else SqlManagerSettings(**overrides)
        self._backend_class = backend_class(self.settings.backend)
        self.registry = ConnectionRegistry(self._create_backend)
        self.query_log = QueryLog(self.settings.query_log, self.settings.caller,
                                  self.settings.output_stream)

        if database is not None:
            self.add_connection(host or "", dialect or "", database, user, password,
                                persistent=persistent, force_new=force_new)

    def _create_backend(self, dialect: SqlDialect) -> BackendConnection:
        return self._backend_class(dialect, timeout=self.settings.connect_timeout)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close_all()
        return False

    def __repr__(self) -> str:
        return (f"DatabaseManager(backend={self.settings.backend!r}, "
                f"connections={self.connection_names()!r}, default={self.default_db!r})")
