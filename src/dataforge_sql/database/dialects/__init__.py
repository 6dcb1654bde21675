"""
SQL Dialects - Backend-specific SQL fragments

Each supported backend family has one SqlDialect subclass implementing every
abstract operation; the factory resolves dialect tags and their aliases.

Usage:
    from dataforge_sql.database.dialects import DialectFactory

    dialect = DialectFactory.create("mssql")

    dialect.date_diff("o.shipped", "o.ordered")    # DATEDIFF(dd,o.ordered,o.shipped)
    dialect.add_select_limit("SELECT * FROM t", 5)  # SELECT TOP 5 * FROM t
"""

from .base import SqlDialect, CatalogQuery, date_between
from .factory import DialectFactory

from .mysql_dialect import MySQLDialect
from .sqlserver_dialect import SQLServerDialect
from .sqlite_dialect import SQLiteDialect

__all__ = [
    # Base classes
    "SqlDialect",
    "CatalogQuery",
    "date_between",

    # Factory
    "DialectFactory",

    # Implementations
    "MySQLDialect",
    "SQLServerDialect",
    "SQLiteDialect",
]
