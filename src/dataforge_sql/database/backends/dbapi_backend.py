"""
DB-API Backend - Direct driver connections.

Drivers per dialect:
- mysql:  pymysql (autocommit, explicit BEGIN for transactions)
- mssql:  pyodbc, or pytds when no ODBC driver is installed
- sqlite: sqlite3 (autocommit, explicit BEGIN/COMMIT/ROLLBACK)

Rows are fetched eagerly, so result sets support seeking.
"""

import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ...constants import CONNECTION_TIMEOUT_S
from ...errors import ConnectionFailedError
from ..placeholders import bind_parameters, translate_placeholders
from ..results import ResultSet, describe_fields
from ..schema import ColumnMeta
from ..sqlserver_connection import connect_sqlserver
from .base import BackendConnection, split_host_port

import logging
logger = logging.getLogger(__name__)

_LOCAL_HOSTS = ("", "localhost", "127.0.0.1")

# Handles opened with persistent=True, shared per target
_persistent_handles: Dict[Tuple[str, str, str, str], Any] = {}


def sqlite_path(host: str, database: str) -> str:
    """Database file for SQLite: ``host`` is a directory unless it names a local host."""
    if not database or database == ":memory:":
        return ":memory:"
    if host and host not in _LOCAL_HOSTS:
        return str(Path(host) / database)
    return database


def reset_persistent_handles():
    """Close and forget all persistent handles."""
    for handle in list(_persistent_handles.values()):
        try:
            handle.close()
        except Exception as e:
            logger.debug(f"Ignoring close error on persistent handle: {e}")
    _persistent_handles.clear()


class DbApiBackend(BackendConnection):
    """Backend talking to DB-API 2.0 drivers directly."""

    def __init__(self, dialect, timeout=CONNECTION_TIMEOUT_S):
        super().__init__(dialect, timeout)
        self._handle = None
        self._key: Optional[Tuple[str, str, str, str]] = None
        self.paramstyle = "format" if dialect.name == "mysql" else "qmark"

    # ==================== Lifecycle ====================

    def _open(self, host: str, database: Optional[str], user: str, password: str):
        name = self.dialect.name
        try:
            if name == "mysql":
                import pymysql
                server, port = split_host_port(host, 3306)
                return pymysql.connect(
                    host=server or "localhost",
                    port=port,
                    user=user,
                    password=password,
                    database=database or None,
                    autocommit=True,
                    connect_timeout=self.timeout,
                    charset="utf8mb4",
                )
            if name == "mssql":
                return connect_sqlserver(host, database, user, password,
                                         timeout=self.timeout, autocommit=True)
            if name == "sqlite":
                if database is None:
                    raise ConnectionFailedError("SQLite has no server to connect to")
                return sqlite3.connect(sqlite_path(host, database),
                                       isolation_level=None, timeout=self.timeout)
        except ConnectionFailedError:
            raise
        except Exception as e:
            raise ConnectionFailedError(f"{name} connection to {host}/{database or ''} failed: {e}") from e
        raise ConnectionFailedError(f"No DB-API driver for dialect {name}")

    def connect(self, host: str, database: str, user: str, password: str = "",
                persistent: bool = False, force_new: bool = False) -> None:
        key = (self.dialect.name, host or "", user or "", database)
        if persistent and not force_new and key in _persistent_handles:
            logger.debug(f"Reusing persistent {self.dialect.name} handle for {database}")
            self._handle = _persistent_handles[key]
        else:
            self._handle = self._open(host, database, user, password)
            if persistent and not force_new:
                _persistent_handles[key] = self._handle
        self._key = key if persistent and not force_new else None
        self.database = database

    def connect_server(self, host: str, user: str, password: str = "") -> None:
        self._handle = self._open(host, None, user, password)
        self._key = None
        self.database = None

    @property
    def is_open(self) -> bool:
        return self._handle is not None

    def close(self) -> bool:
        if self._handle is None:
            return False
        if self._key is not None and _persistent_handles.get(self._key) is self._handle:
            del _persistent_handles[self._key]
        try:
            self._handle.close()
            return True
        except Exception as e:
            self.last_error = str(e)
            logger.warning(f"Error closing {self.dialect.name} connection: {e}")
            return False
        finally:
            self._handle = None
            self._key = None

    # ==================== Statements ====================

    def _run(self, cursor, sql: str, params: Optional[Sequence[Any]]):
        if params:
            cursor.execute(translate_placeholders(sql, self.paramstyle),
                           bind_parameters(params, self.paramstyle))
        else:
            cursor.execute(sql)

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> Optional[ResultSet]:
        if self._handle is None:
            self.last_error = "Connection is closed"
            return None

        cursor = self._handle.cursor()
        try:
            self._run(cursor, sql, params)
            rows = [tuple(row) for row in cursor.fetchall()] if cursor.description else []
            fields = describe_fields(cursor.description, self.dialect.field_type_name, rows)
            result = ResultSet(fields, rows, cursor.rowcount)
            self._record_success(cursor.rowcount, getattr(cursor, "lastrowid", None))
            return result
        except Exception as e:
            self._record_failure(sql, e)
            return None
        finally:
            cursor.close()

    def _fetch(self, sql: str, params: Sequence[Any] = ()) -> Optional[ResultSet]:
        """Run a catalog query without touching error/row state."""
        if self._handle is None:
            return None
        cursor = self._handle.cursor()
        try:
            self._run(cursor, sql, params)
            rows = [tuple(row) for row in cursor.fetchall()] if cursor.description else []
            return ResultSet(describe_fields(cursor.description, lambda code: None, rows), rows)
        except Exception as e:
            logger.warning(f"Catalog query failed on {self.dialect.name}: {e}")
            return None
        finally:
            cursor.close()

    def _scalar(self, sql: str) -> Optional[Any]:
        result = self._fetch(sql)
        row = result.fetch() if result is not None else None
        return row[0] if row is not None else None

    # ==================== Transactions ====================

    def begin(self) -> bool:
        if self._handle is None:
            return False
        try:
            if self.dialect.name == "mysql":
                self._handle.begin()
            elif self.dialect.name == "mssql":
                self._handle.autocommit = False
            else:
                self._handle.execute("BEGIN")
            return True
        except Exception as e:
            self._record_failure("BEGIN", e)
            return False

    def _finish(self, action: str) -> bool:
        if self._handle is None:
            return False
        try:
            if self.dialect.name == "sqlite":
                self._handle.execute(action)
            elif action == "COMMIT":
                self._handle.commit()
            else:
                self._handle.rollback()
            return True
        except Exception as e:
            self._record_failure(action, e)
            return False
        finally:
            if self.dialect.name == "mssql" and self._handle is not None:
                self._handle.autocommit = True

    def commit(self) -> bool:
        return self._finish("COMMIT")

    def rollback(self) -> bool:
        return self._finish("ROLLBACK")

    # ==================== Catalog ====================

    def column_metadata(self, table_name: str) -> Optional[List[ColumnMeta]]:
        sql, params = self.dialect.columns_query(table_name)
        result = self._fetch(sql, params)
        if result is None:
            return None
        return self.dialect.normalize_columns(result.fetch_all())

    def _names(self, sql: str, params: Sequence[Any]) -> Optional[List[str]]:
        result = self._fetch(sql, params)
        if result is None:
            return None
        return [row[0] for row in result]

    def table_names(self) -> Optional[List[str]]:
        return self._names(*self.dialect.tables_query())

    def view_names(self) -> Optional[List[str]]:
        return self._names(*self.dialect.views_query())
