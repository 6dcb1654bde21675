"""
Result Sets - Uniform view over driver cursors.

A ResultSet exposes row/field counts, per-field metadata and rows addressable
both by position and by column name. Buffered result sets support seeking;
streamed ones are forward-only.
"""

import datetime
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Iterable, Iterator, List, Optional, Sequence

import logging
logger = logging.getLogger(__name__)


@dataclass
class FieldInfo:
    """Column metadata of a result set."""
    name: str
    type: str
    max_length: int = -1


# Order matters: bool before int, datetime before date
_PYTHON_TYPE_NAMES = (
    (bool, "bit"),
    (int, "int"),
    (float, "float8"),
    (Decimal, "numeric"),
    (datetime.datetime, "datetime"),
    (datetime.date, "date"),
    (datetime.time, "time"),
    ((bytes, bytearray, memoryview), "blob"),
    (str, "varchar"),
)


def python_type_name(value: Any) -> str:
    """SQL-ish type name for a fetched Python value ("" if unknown)."""
    for py_type, name in _PYTHON_TYPE_NAMES:
        if isinstance(value, py_type):
            return name
    return ""


def python_class_type_name(cls: Any) -> Optional[str]:
    """Type name for a Python class reported as a cursor type code (pyodbc)."""
    if not isinstance(cls, type):
        return None
    for py_type, name in _PYTHON_TYPE_NAMES:
        if issubclass(cls, py_type):
            return name
    return None


class Row(Sequence):
    """A fetched row, indexable by position or by column name."""

    __slots__ = ("_values", "_names")

    def __init__(self, values: Sequence[Any], names: Sequence[str]):
        self._values = tuple(values)
        self._names = list(names)

    def __getitem__(self, key):
        if isinstance(key, str):
            try:
                return self._values[self._names.index(key)]
            except ValueError:
                raise KeyError(key) from None
        return self._values[key]

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other):
        if isinstance(other, Row):
            return self._values == other._values
        if isinstance(other, (tuple, list)):
            return self._values == tuple(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"Row({self.as_dict()!r})"

    def keys(self) -> List[str]:
        return list(self._names)

    def get(self, name: str, default: Any = None) -> Any:
        try:
            return self[name]
        except KeyError:
            return default

    def as_dict(self) -> dict:
        return dict(zip(self._names, self._values))


def describe_fields(
    description: Optional[Sequence[Sequence[Any]]],
    type_namer: Callable[[Any], Optional[str]],
    sample_rows: Iterable[Sequence[Any]] = (),
) -> List[FieldInfo]:
    """
    Build FieldInfo records from a DB-API ``cursor.description``.

    Args:
        description: The cursor description (7-item sequences)
        type_namer: Maps a driver type code to a type name, or None when the
            code is not understood
        sample_rows: Rows used to infer a type from values when the driver
            reports no usable type code

    Returns:
        One FieldInfo per column
    """
    if not description:
        return []

    samples = list(sample_rows)
    fields = []
    for index, column in enumerate(description):
        name = column[0]
        type_name = type_namer(column[1]) if column[1] is not None else None
        if not type_name:
            type_name = ""
            for row in samples:
                if row[index] is not None:
                    type_name = python_type_name(row[index])
                    break
        max_length = column[3] if len(column) > 3 and column[3] is not None else -1
        fields.append(FieldInfo(name=name, type=type_name, max_length=max_length))
    return fields


class ResultSet:
    """
    Outcome of a successful statement.

    Args:
        fields: Column metadata (empty for statements returning no rows)
        rows: A list (buffered, seekable) or any iterable (forward-only)
        rowcount: Row count reported by the driver, used when not buffered
    """

    def __init__(self, fields: List[FieldInfo], rows: Iterable[Sequence[Any]] = (),
                 rowcount: int = -1):
        self.fields = fields
        self._names = [f.name for f in fields]
        self.seekable = isinstance(rows, list)
        if self.seekable:
            self._rows = rows
            self._iter: Optional[Iterator] = None
        else:
            self._rows = None
            self._iter = iter(rows)
        self._position = 0
        self._rowcount = rowcount

    @property
    def num_rows(self) -> int:
        if self.seekable:
            return len(self._rows)
        return self._rowcount

    @property
    def num_fields(self) -> int:
        return len(self.fields)

    @property
    def column_names(self) -> List[str]:
        return list(self._names)

    def fetch(self) -> Optional[Row]:
        """Next row, or None when exhausted."""
        if self.seekable:
            if self._position >= len(self._rows):
                return None
            values = self._rows[self._position]
        else:
            values = next(self._iter, None)
            if values is None:
                return None
        self._position += 1
        return Row(values, self._names)

    def fetch_all(self) -> List[Row]:
        rows = []
        row = self.fetch()
        while row is not None:
            rows.append(row)
            row = self.fetch()
        return rows

    def seek(self, position: int) -> bool:
        """Move the cursor to ``position``; False when unsupported or out of range."""
        if not self.seekable:
            return False
        if position < 0 or position >= len(self._rows):
            return False
        self._position = position
        return True

    def field(self, index: int) -> Optional[FieldInfo]:
        if 0 <= index < len(self.fields):
            return self.fields[index]
        return None

    def __iter__(self) -> Iterator[Row]:
        row = self.fetch()
        while row is not None:
            yield row
            row = self.fetch()

    def __repr__(self) -> str:
        return f"ResultSet(fields={self._names!r}, rows={self.num_rows})"
