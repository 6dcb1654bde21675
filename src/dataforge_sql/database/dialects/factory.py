"""
Dialect Factory - Create appropriate dialect based on database type
"""

from typing import Dict, List, Optional, Type

from .base import SqlDialect

import logging
logger = logging.getLogger(__name__)


class DialectFactory:
    """
    Factory for creating SQL dialects.

    Usage:
        dialect = DialectFactory.create("mysqli")
        sql = dialect.concat("first_name", "' '", "last_name")
    """

    # Registry of supported database types (aliases included)
    _dialects: Dict[str, Type[SqlDialect]] = {}

    @classmethod
    def create(cls, db_type: str) -> Optional[SqlDialect]:
        """
        Create a dialect for the specified database type.

        Args:
            db_type: Database type or alias (mysql, mssql, sqlite, ...)

        Returns:
            SqlDialect instance or None if type not supported
        """
        dialect_class = cls._dialects.get((db_type or "").strip().lower())
        if dialect_class is None:
            logger.warning(f"No dialect for database type: {db_type}")
            return None

        return dialect_class()

    @classmethod
    def is_supported(cls, db_type: str) -> bool:
        """Check if a database type is supported."""
        return (db_type or "").strip().lower() in cls._dialects

    @classmethod
    def supported_types(cls) -> List[str]:
        """Get list of supported database types."""
        return list(cls._dialects.keys())

    @classmethod
    def register(cls, db_type: str, dialect_class: Type[SqlDialect]):
        """
        Register a new dialect type.

        Args:
            db_type: Database type identifier
            dialect_class: SqlDialect subclass
        """
        cls._dialects[db_type.lower()] = dialect_class
        logger.debug(f"Registered dialect for: {db_type}")


def _register_default_dialects():
    """Register built-in dialects. Called on module import."""
    from .mysql_dialect import MySQLDialect
    from .sqlserver_dialect import SQLServerDialect
    from .sqlite_dialect import SQLiteDialect

    for alias in ("mysql", "mysqli", "pdo_mysql", "pymysql", "mariadb"):
        DialectFactory.register(alias, MySQLDialect)
    for alias in ("mssql", "sqlsrv", "pdo_sqlsrv", "sqlserver"):
        DialectFactory.register(alias, SQLServerDialect)
    for alias in ("sqlite", "sqlite3", "pdo_sqlite"):
        DialectFactory.register(alias, SQLiteDialect)


# Register on module import
_register_default_dialects()
