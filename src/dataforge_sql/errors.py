"""
Errors and sentinels for DataForge SQL.

Query failures are reported as ``None`` by default; ``QueryFailedError`` is only
raised when throw-on-failure mode is enabled on the manager instance.
"""

from typing import Optional


class DataForgeSQLError(Exception):
    """Base class for all DataForge SQL errors."""
    pass


class ConfigurationError(DataForgeSQLError):
    """Misconfigured caller: empty or unknown dialect tag, unknown connection."""
    pass


class UnknownConnectionError(ConfigurationError, KeyError):
    """Raised when an operation requires a registered connection name."""

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"No connection registered under '{self.name}'"


class ConnectionFailedError(DataForgeSQLError):
    """A backend could not open a connection."""
    pass


class QueryFailedError(DataForgeSQLError):
    """A statement failed while throw-on-failure mode was active."""

    def __init__(self, message: str, sql: str = "", error: str = "",
                 connection: Optional[str] = None):
        super().__init__(message)
        self.sql = sql
        self.error = error
        self.connection = connection


class _Sentinel:
    """Named singleton compared with ``is``."""

    def __init__(self, name: str):
        self._name = name

    def __repr__(self) -> str:
        return self._name

    def __bool__(self) -> bool:
        raise TypeError(f"{self._name} has no truth value; compare with 'is'")


# Returned by schema operations the backend cannot answer
UNSUPPORTED = _Sentinel("UNSUPPORTED")

# Registry tombstone for a connection attempt that failed
UNUSABLE = _Sentinel("UNUSABLE")
