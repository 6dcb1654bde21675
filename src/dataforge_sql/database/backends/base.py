"""
Backend Connection - Contract shared by the driver backends.

A backend owns one live handle to one database and reports results, errors,
affected rows and insert ids for the statements it ran. Driver exceptions are
caught here and turned into ``last_error`` text; catalog methods return None
when the backend cannot answer.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence

from ...constants import CONNECTION_TIMEOUT_S
from ..dialects.base import SqlDialect
from ..results import ResultSet
from ..schema import ColumnMeta

import logging
logger = logging.getLogger(__name__)


def split_host_port(host: str, default_port: Optional[int] = None):
    """Split ``host:port`` into its parts (port None when absent)."""
    if host and host.count(":") == 1:
        name, _, port = host.partition(":")
        if port.isdigit():
            return name, int(port)
    return host, default_port


class BackendConnection(ABC):
    """
    One connection to one logical database.

    Args:
        dialect: Dialect of the backend this connection talks to
        timeout: Driver login timeout in seconds
    """

    def __init__(self, dialect: SqlDialect, timeout: int = CONNECTION_TIMEOUT_S):
        self.dialect = dialect
        self.timeout = timeout
        self.database: Optional[str] = None
        self.last_error = ""
        self._affected_rows = -1
        self._insert_id: Optional[Any] = None

    # ==================== Lifecycle ====================

    @abstractmethod
    def connect(self, host: str, database: str, user: str, password: str = "",
                persistent: bool = False, force_new: bool = False) -> None:
        """
        Open a connection bound to ``database``.

        Args:
            persistent: Reuse a process-wide handle for the same target
            force_new: Always open a fresh, unshared handle

        Raises:
            ConnectionFailedError: The driver could not connect
        """
        pass

    @abstractmethod
    def connect_server(self, host: str, user: str, password: str = "") -> None:
        """
        Open a connection with no database selected.

        Raises:
            ConnectionFailedError: The driver could not connect
        """
        pass

    @property
    @abstractmethod
    def is_open(self) -> bool:
        pass

    @abstractmethod
    def close(self) -> bool:
        pass

    # ==================== Statements ====================

    @abstractmethod
    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> Optional[ResultSet]:
        """
        Run one statement with ``?`` placeholders.

        Returns:
            ResultSet on success, None on failure (see ``last_error``)
        """
        pass

    @property
    def affected_rows(self) -> int:
        return self._affected_rows

    def insert_id(self) -> Optional[Any]:
        """Id generated by the most recent INSERT on this connection."""
        if self._insert_id:
            return self._insert_id
        return self._scalar(self.dialect.last_insert_id_sql())

    @abstractmethod
    def _scalar(self, sql: str) -> Optional[Any]:
        """First column of the first row, without touching error/row state."""
        pass

    # ==================== Transactions ====================

    @abstractmethod
    def begin(self) -> bool:
        pass

    @abstractmethod
    def commit(self) -> bool:
        pass

    @abstractmethod
    def rollback(self) -> bool:
        pass

    # ==================== Catalog ====================

    @abstractmethod
    def column_metadata(self, table_name: str) -> Optional[List[ColumnMeta]]:
        """Columns of ``table_name``; [] when absent, None when unknowable."""
        pass

    @abstractmethod
    def table_names(self) -> Optional[List[str]]:
        """Tables and views."""
        pass

    @abstractmethod
    def view_names(self) -> Optional[List[str]]:
        pass

    def _record_success(self, affected_rows: int, insert_id: Optional[Any]):
        self.last_error = ""
        self._affected_rows = affected_rows
        self._insert_id = insert_id

    def _record_failure(self, sql: str, error: Exception):
        self.last_error = str(error) or type(error).__name__
        logger.debug(f"Statement failed on {self.dialect.name}: {self.last_error} | {sql}")
