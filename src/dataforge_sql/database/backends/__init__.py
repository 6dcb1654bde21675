"""
Driver Backends - Two implementations of one connection contract.

- DbApiBackend: pymysql / pyodbc (pytds fallback) / sqlite3 directly
- SqlAlchemyBackend: the same drivers through a SQLAlchemy engine
"""

from typing import Type

from ...constants import BACKEND_DBAPI, BACKEND_SQLALCHEMY
from ...errors import ConfigurationError
from .base import BackendConnection
from .dbapi_backend import DbApiBackend


def backend_class(name: str) -> Type[BackendConnection]:
    """Resolve a backend name from settings."""
    if name == BACKEND_DBAPI:
        return DbApiBackend
    if name == BACKEND_SQLALCHEMY:
        from .sqlalchemy_backend import SqlAlchemyBackend
        return SqlAlchemyBackend
    raise ConfigurationError(f"Unknown backend: {name}")


__all__ = ["BackendConnection", "DbApiBackend", "backend_class"]
