"""
DataForge SQL - Cross-database SQL abstraction layer.

Usage:
    from dataforge_sql import DatabaseManager

    db = DatabaseManager("localhost", "mysql", "shop", "app", "secret")
    result = db.query("SELECT id, name FROM customers WHERE city = ?", params=("Lyon",))
    for row in result:
        print(row["id"], row["name"])
"""

__version__ = "0.1.0"

from .config import SqlManagerSettings
from .errors import (
    UNSUPPORTED,
    UNUSABLE,
    ConfigurationError,
    ConnectionFailedError,
    DataForgeSQLError,
    QueryFailedError,
    UnknownConnectionError,
)
from .database.results import FieldInfo, ResultSet, Row
from .database.schema import ColumnDefinition, TriState
from .manager import DatabaseManager, PreparedStatement
from .utils.datetime_clean import clean_date_time

__all__ = [
    "DatabaseManager",
    "PreparedStatement",
    "SqlManagerSettings",
    "ResultSet",
    "Row",
    "FieldInfo",
    "ColumnDefinition",
    "TriState",
    "clean_date_time",
    "DataForgeSQLError",
    "ConfigurationError",
    "ConnectionFailedError",
    "QueryFailedError",
    "UnknownConnectionError",
    "UNSUPPORTED",
    "UNUSABLE",
]
