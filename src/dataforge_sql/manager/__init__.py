"""
Database Manager package - DatabaseManager and the mixins it is built from.
"""

from .connection_mixin import ConnectionMixin
from .query_mixin import QueryMixin, PreparedStatement
from .dialect_mixin import DialectMixin
from .schema_mixin import SchemaMixin
from .writer_mixin import WriterMixin, transfer_literal
from .database_manager import DatabaseManager

__all__ = [
    "ConnectionMixin",
    "QueryMixin",
    "PreparedStatement",
    "DialectMixin",
    "SchemaMixin",
    "WriterMixin",
    "transfer_literal",
    "DatabaseManager",
]
