"""
Query Log - Append-only record of failed statements.

Entries go to the configured file when it exists and is writable; otherwise
they are written to the output stream so the failure is never silent.
"""

import os
from email.utils import formatdate
from pathlib import Path
from typing import TextIO

import logging
logger = logging.getLogger(__name__)


def is_writable(path: Path) -> bool:
    """True for an existing file this process may append to."""
    return path.is_file() and os.access(path, os.W_OK)


class QueryLog:
    """
    Writer for the failed-query log.

    Args:
        path: Log file (never created by this class)
        caller: Identity of the running script, prefixed to every entry
        output: Fallback stream when the file is not writable
    """

    def __init__(self, path: Path, caller: str, output: TextIO):
        self.path = Path(path)
        self.caller = caller
        self.output = output

    def _prefix(self) -> str:
        # RFC 2822 timestamp, e.g. "Fri, 05 Jan 2024 15:15:00 +0100"
        return f"{self.caller}: {formatdate(localtime=True)}: "

    def _append(self, text: str) -> bool:
        if not is_writable(self.path):
            return False
        try:
            with open(self.path, "a", encoding="utf-8") as fh:
                fh.write(text)
            return True
        except OSError as e:
            logger.warning(f"Cannot append to query log {self.path}: {e}")
            return False

    def record_failure(self, sql: str, error: str) -> str:
        """
        Record a failed statement.

        Returns:
            The formatted entry (also used as the exception message)
        """
        entry = f"{self._prefix()}{sql}\n{error}\n\n"
        if not self._append(entry):
            self.output.write(entry)
            self.output.flush()
        return entry

    def write_line(self, text: str) -> bool:
        """Append a free-form line; False when the log is not writable."""
        return self._append(f"{self._prefix()}{text}\n")
