"""
Schema Models - Column metadata shared by dialects, backends and the inspector.

Backends report raw ``ColumnMeta`` records; ``build_definition`` normalizes them
into the ``ColumnDefinition`` shape returned by ``detailed_definition``.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple


class TriState(Enum):
    """True / False / Unknown flag for metadata some backends cannot report."""
    TRUE = "true"
    FALSE = "false"
    UNKNOWN = "unknown"

    def __bool__(self):
        raise TypeError("TriState has no truth value; use is_true or compare members")

    @classmethod
    def from_flag(cls, value: Optional[Any]) -> "TriState":
        """Map None to UNKNOWN and anything else to TRUE/FALSE by truthiness."""
        if value is None:
            return cls.UNKNOWN
        return cls.TRUE if value else cls.FALSE

    @property
    def is_true(self) -> bool:
        return self is TriState.TRUE

    @property
    def is_known(self) -> bool:
        return self is not TriState.UNKNOWN


@dataclass
class ColumnMeta:
    """Raw column metadata as reported by a backend catalog."""
    name: str
    type_name: str
    max_length: Optional[int] = None
    scale: Optional[int] = None
    unsigned: bool = False
    auto_increment: TriState = TriState.UNKNOWN
    primary_key: TriState = TriState.UNKNOWN
    default: Optional[Any] = None


@dataclass
class ColumnDefinition:
    """Normalized column entry of a detailed table definition."""
    type: str
    increment: TriState = TriState.UNKNOWN
    primary_key: TriState = TriState.UNKNOWN
    default: Optional[Any] = None


# "VARCHAR(20)", "DECIMAL(10, 2)", "INTEGER", "INT UNSIGNED"
_DECLARED_TYPE = re.compile(
    r"^\s*(?P<base>[A-Za-z_][A-Za-z0-9_ ]*)\s*"
    r"(?:\(\s*(?P<length>\d+)\s*(?:,\s*(?P<scale>\d+)\s*)?\))?"
    r"(?P<suffix>(?:\s+\w+)*)\s*$"
)


def split_declared_type(declared: str) -> Tuple[str, Optional[int], Optional[int], bool]:
    """
    Split a declared column type into its parts.

    Args:
        declared: Type text such as ``VARCHAR(20)`` or ``INT(10) UNSIGNED``

    Returns:
        (base type, length, scale, unsigned)
    """
    match = _DECLARED_TYPE.match(declared or "")
    if not match:
        return (declared or "").strip(), None, None, False

    base = match.group("base").strip()
    suffix = match.group("suffix").upper()
    unsigned = "UNSIGNED" in suffix
    if base.upper().endswith(" UNSIGNED"):
        base = base[:-len(" UNSIGNED")].strip()
        unsigned = True

    length = int(match.group("length")) if match.group("length") else None
    scale = int(match.group("scale")) if match.group("scale") else None
    return base, length, scale, unsigned


def format_column_type(type_name: str, max_length: Optional[int] = None,
                       scale: Optional[int] = None, unsigned: bool = False) -> str:
    """
    Render a column type with its size.

    The size is appended only when the backend reported one and the base type
    is not an integer kind (``INT``, ``BIGINT``...), whose width is implied.
    """
    result = (type_name or "").upper()
    if max_length is not None and max_length != -1 and not result.endswith("INT"):
        if scale:
            result += f"({max_length},{scale})"
        else:
            result += f"({max_length})"
    if unsigned:
        result += " UNSIGNED"
    return result


def normalize_default(value: Optional[Any]) -> Optional[Any]:
    """Literal ``NULL`` and a real None both mean "no default"."""
    if value is None:
        return None
    if isinstance(value, str) and value.strip().upper() == "NULL":
        return None
    return value


def build_definition(meta: ColumnMeta) -> ColumnDefinition:
    """Turn raw catalog metadata into a ColumnDefinition."""
    return ColumnDefinition(
        type=format_column_type(meta.type_name, meta.max_length, meta.scale, meta.unsigned),
        increment=meta.auto_increment,
        primary_key=meta.primary_key,
        default=normalize_default(meta.default),
    )
