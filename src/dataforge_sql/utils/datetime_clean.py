"""
Datetime cleanup for table transfers.

SQL Server's legacy text rendering of datetimes (``Jan 05 2024 03:15PM``) is
not accepted by other backends; it is rewritten as ``2024-01-05 15:15``.
"""

import re

from ..constants import DEFAULT_DATETIME, MONTH_ABBREVIATIONS

import logging
logger = logging.getLogger(__name__)

CANONICAL_DATETIME = re.compile(r"(\d\d\d\d)-(\d\d)-(\d\d) (\d+?):(\d\d):(\d\d)")
LEGACY_DATETIME = re.compile(r"(\w\w\w) (\d\d) (\d\d\d\d) (\d+?):(\d\d)([AP])M", re.IGNORECASE)


def _format(year, month, day, hour, minute) -> str:
    return f"{int(year)}-{int(month):02d}-{int(day):02d} {int(hour):02d}:{int(minute):02d}"


def clean_date_time(value) -> str:
    """
    Normalize a datetime string for insertion on another backend.

    - ``YYYY-MM-DD H:MM:SS`` is returned unchanged
    - ``Mon DD YYYY HH:MMAM`` / ``...PM`` becomes ``YYYY-MM-DD HH:MM``
    - anything else becomes ``1900-01-01 00:00``
    """
    text = "" if value is None else str(value)
    if CANONICAL_DATETIME.search(text):
        return text

    match = LEGACY_DATETIME.search(text)
    if match:
        month = MONTH_ABBREVIATIONS.get(match.group(1).lower())
        if month is not None:
            hour = int(match.group(4)) % 12
            if match.group(6).upper() == "P":
                hour += 12
            return _format(match.group(3), month, match.group(2), hour, match.group(5))
        logger.debug(f"Unknown month in datetime '{text}'")

    return _format(*DEFAULT_DATETIME)
