"""
Settings - Runtime configuration for DatabaseManager instances.

Values come from keyword arguments first, then environment variables, then
package defaults.
"""

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, TextIO

from .constants import (
    BACKEND_ENV,
    CONNECTION_TIMEOUT_S,
    DEFAULT_BACKEND,
    QUERY_LOG_ENV,
    QUERY_LOG_FILENAME,
    THROW_ON_FAILURE_ENV,
)

import logging
logger = logging.getLogger(__name__)

_TRUE_VALUES = ("1", "true", "yes", "on")


def default_query_log() -> Path:
    """Query log path: env override or ``<package>/log/queries.log``."""
    env_path = os.environ.get(QUERY_LOG_ENV)
    if env_path:
        return Path(env_path)
    return Path(__file__).parent / "log" / QUERY_LOG_FILENAME


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in _TRUE_VALUES


def _default_caller() -> str:
    return sys.argv[0] if sys.argv and sys.argv[0] else "python"


@dataclass
class SqlManagerSettings:
    """
    Per-instance settings.

    Attributes:
        query_log: File receiving failed-query entries (appended only if it
            already exists and is writable)
        throw_on_failure: Raise QueryFailedError instead of returning None
        caller: Identity written at the start of each log entry
        output: Stream used when the query log is not writable
        backend: "dbapi" or "sqlalchemy"
        connect_timeout: Driver login timeout in seconds
    """
    query_log: Path = field(default_factory=default_query_log)
    throw_on_failure: bool = field(default_factory=lambda: _env_flag(THROW_ON_FAILURE_ENV))
    caller: str = field(default_factory=_default_caller)
    output: Optional[TextIO] = None
    backend: str = field(default_factory=lambda: os.environ.get(BACKEND_ENV, DEFAULT_BACKEND))
    connect_timeout: int = CONNECTION_TIMEOUT_S

    def __post_init__(self):
        self.query_log = Path(self.query_log)
        self.backend = self.backend.lower()

    @property
    def output_stream(self) -> TextIO:
        """Resolved output stream (stdout unless overridden)."""
        return self.output if self.output is not None else sys.stdout
