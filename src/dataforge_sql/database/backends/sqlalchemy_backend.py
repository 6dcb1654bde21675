"""
SQLAlchemy Backend - Connections through a SQLAlchemy engine.

The connection runs in AUTOCOMMIT mode and switches to the dialect's default
isolation level for explicit transactions. Results are streamed from the
cursor, so they are forward-only (seek is unsupported). Schema metadata comes
from a fresh ``sqlalchemy.inspect()`` on every call.
"""

import itertools
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import URL, Connection, Engine
from sqlalchemy.exc import NoSuchTableError, SQLAlchemyError
from sqlalchemy.pool import NullPool

from ...errors import ConnectionFailedError
from ..placeholders import bind_parameters, translate_placeholders
from ..results import ResultSet, describe_fields
from ..schema import ColumnMeta, TriState, split_declared_type
from ..sqlserver_connection import build_connection_string
from .base import BackendConnection, split_host_port
from .dbapi_backend import sqlite_path

import logging
logger = logging.getLogger(__name__)

# Pooled engines for persistent connections, keyed by rendered URL
_engines: Dict[str, Engine] = {}

NO_PARAMETERS = {"no_parameters": True}


def build_url(dialect_name: str, host: str, database: Optional[str], user: str,
              password: str = "") -> URL:
    """SQLAlchemy URL for a dialect tag."""
    if dialect_name == "mysql":
        server, port = split_host_port(host, None)
        return URL.create(
            "mysql+pymysql",
            username=user or None,
            password=password or None,
            host=server or "localhost",
            port=port,
            database=database or None,
            query={"charset": "utf8mb4"},
        )
    if dialect_name == "mssql":
        return URL.create(
            "mssql+pyodbc",
            query={"odbc_connect": build_connection_string(host, database, user, password)},
        )
    if dialect_name == "sqlite":
        if database is None:
            raise ConnectionFailedError("SQLite has no server to connect to")
        return URL.create("sqlite", database=sqlite_path(host, database))
    raise ConnectionFailedError(f"No SQLAlchemy driver for dialect {dialect_name}")


def dispose_engines():
    """Dispose all pooled engines."""
    for engine in _engines.values():
        engine.dispose()
    _engines.clear()


class SqlAlchemyBackend(BackendConnection):
    """Backend on top of a SQLAlchemy Engine/Connection."""

    def __init__(self, dialect, **kwargs):
        super().__init__(dialect, **kwargs)
        self._engine: Optional[Engine] = None
        self._conn: Optional[Connection] = None
        self._txn = None
        self._default_isolation: Optional[str] = None

    # ==================== Lifecycle ====================

    def _engine_for(self, url: URL, pooled: bool) -> Engine:
        connect_args = {}
        if self.dialect.name == "mysql":
            connect_args["connect_timeout"] = self.timeout
        elif self.dialect.name == "sqlite":
            connect_args["timeout"] = self.timeout

        if not pooled:
            return create_engine(url, poolclass=NullPool, connect_args=connect_args)

        key = url.render_as_string(hide_password=False)
        engine = _engines.get(key)
        if engine is None:
            engine = create_engine(url, pool_pre_ping=True, connect_args=connect_args)
            _engines[key] = engine
        return engine

    def _open(self, url: URL, pooled: bool):
        try:
            engine = self._engine_for(url, pooled)
            conn = engine.connect()
            self._default_isolation = conn.default_isolation_level
            conn = conn.execution_options(isolation_level="AUTOCOMMIT")
        except ConnectionFailedError:
            raise
        except Exception as e:
            raise ConnectionFailedError(f"{url.drivername} connection failed: {e}") from e
        self._engine = engine
        self._conn = conn

    def connect(self, host: str, database: str, user: str, password: str = "",
                persistent: bool = False, force_new: bool = False) -> None:
        url = build_url(self.dialect.name, host, database, user, password)
        self._open(url, pooled=persistent and not force_new)
        self.database = database

    def connect_server(self, host: str, user: str, password: str = "") -> None:
        url = build_url(self.dialect.name, host, None, user, password)
        self._open(url, pooled=False)
        self.database = None

    @property
    def is_open(self) -> bool:
        return self._conn is not None and not self._conn.closed

    def close(self) -> bool:
        if self._conn is None:
            return False
        try:
            self._conn.close()
            if self._engine is not None and self._engine not in _engines.values():
                self._engine.dispose()
            return True
        except SQLAlchemyError as e:
            self.last_error = str(e)
            logger.warning(f"Error closing {self.dialect.name} connection: {e}")
            return False
        finally:
            self._conn = None
            self._engine = None
            self._txn = None

    # ==================== Statements ====================

    def _run(self, sql: str, params: Optional[Sequence[Any]]):
        if params:
            paramstyle = self._engine.dialect.paramstyle
            return self._conn.exec_driver_sql(
                translate_placeholders(sql, paramstyle), bind_parameters(params, paramstyle)
            )
        # no parameters: the driver must not interpolate literal % signs
        return self._conn.exec_driver_sql(sql, execution_options=NO_PARAMETERS)

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> Optional[ResultSet]:
        if not self.is_open:
            self.last_error = "Connection is closed"
            return None

        try:
            result = self._run(sql, params)
            if result.returns_rows:
                description = result.cursor.description
                first = result.fetchone()
                sample = [tuple(first)] if first is not None else []
                rows = itertools.chain(sample, (tuple(row) for row in result))
                fields = describe_fields(description, self.dialect.field_type_name, sample)
                result_set = ResultSet(fields, rows, result.rowcount)
                self._record_success(result.rowcount, None)
            else:
                result_set = ResultSet([], [], result.rowcount)
                self._record_success(result.rowcount, self._lastrowid(result))
            return result_set
        except SQLAlchemyError as e:
            self._record_failure(sql, getattr(e, "orig", None) or e)
            return None

    @staticmethod
    def _lastrowid(result) -> Optional[Any]:
        try:
            return result.lastrowid
        except (AttributeError, SQLAlchemyError):
            return None

    def _scalar(self, sql: str) -> Optional[Any]:
        if not self.is_open:
            return None
        try:
            return self._conn.exec_driver_sql(sql, execution_options=NO_PARAMETERS).scalar()
        except SQLAlchemyError as e:
            logger.warning(f"Scalar query failed on {self.dialect.name}: {e}")
            return None

    # ==================== Transactions ====================

    def begin(self) -> bool:
        if not self.is_open:
            return False
        try:
            if self._conn.in_transaction():
                # end the autobegun (autocommit) transaction first
                self._conn.commit()
            self._conn.execution_options(isolation_level=self._default_isolation)
            self._txn = self._conn.begin()
            return True
        except SQLAlchemyError as e:
            self._record_failure("BEGIN", e)
            return False

    def _finish(self, action: str) -> bool:
        if self._txn is None:
            self.last_error = "No transaction in progress"
            return False
        try:
            if action == "COMMIT":
                self._txn.commit()
            else:
                self._txn.rollback()
            return True
        except SQLAlchemyError as e:
            self._record_failure(action, e)
            return False
        finally:
            self._txn = None
            if self.is_open:
                self._conn.execution_options(isolation_level="AUTOCOMMIT")

    def commit(self) -> bool:
        return self._finish("COMMIT")

    def rollback(self) -> bool:
        return self._finish("ROLLBACK")

    # ==================== Catalog ====================

    def _declared_type(self, column_type) -> str:
        try:
            return column_type.compile(dialect=self._engine.dialect)
        except SQLAlchemyError:
            return str(getattr(column_type, "__visit_name__", ""))

    def column_metadata(self, table_name: str) -> Optional[List[ColumnMeta]]:
        if not self.is_open:
            return None
        try:
            inspector = inspect(self._conn)
            columns = inspector.get_columns(table_name)
            primary_keys = inspector.get_pk_constraint(table_name).get("constrained_columns") or []
        except NoSuchTableError:
            return []
        except SQLAlchemyError as e:
            logger.warning(f"Column reflection failed for {table_name}: {e}")
            return None

        metas = []
        for column in columns:
            column_type = column["type"]
            base, length, scale, unsigned = split_declared_type(self._declared_type(column_type))
            autoincrement = column.get("autoincrement")
            metas.append(ColumnMeta(
                name=column["name"],
                type_name=base,
                max_length=length,
                scale=scale,
                unsigned=unsigned or bool(getattr(column_type, "unsigned", False)),
                # "auto" means the dialect could not tell
                auto_increment=TriState.from_flag(autoincrement if isinstance(autoincrement, bool) else None),
                primary_key=TriState.from_flag(column["name"] in primary_keys),
                default=column.get("default"),
            ))
        return metas

    def table_names(self) -> Optional[List[str]]:
        if not self.is_open:
            return None
        try:
            inspector = inspect(self._conn)
            return sorted(inspector.get_table_names() + inspector.get_view_names())
        except SQLAlchemyError as e:
            logger.warning(f"Table listing failed: {e}")
            return None

    def view_names(self) -> Optional[List[str]]:
        if not self.is_open:
            return None
        try:
            return inspect(self._conn).get_view_names()
        except SQLAlchemyError as e:
            logger.warning(f"View listing failed: {e}")
            return None
