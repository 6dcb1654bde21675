"""
Placeholder Translation - ``?`` positional markers to a driver paramstyle.

Callers always write ``?``. Each backend translates to its DB-API paramstyle
before executing, leaving quoted literals and quoted identifiers untouched.
"""

from typing import Any, Dict, Sequence, Tuple, Union

import logging
logger = logging.getLogger(__name__)

_QUOTES = ("'", '"', "`")

Params = Union[Tuple[Any, ...], Dict[str, Any]]


def translate_placeholders(sql: str, paramstyle: str = "format") -> str:
    """
    Replace ``?`` outside quoted strings with the marker of ``paramstyle``.

    Args:
        sql: Statement using ``?`` markers
        paramstyle: DB-API paramstyle (qmark, format, pyformat, named, numeric)

    Returns:
        The statement for the driver. For format styles, literal ``%`` is
        doubled because the driver applies %-interpolation.
    """
    if paramstyle == "qmark":
        return sql

    percent_style = paramstyle in ("format", "pyformat")
    out: list = []
    quote = None
    counter = 0
    i = 0
    length = len(sql)

    while i < length:
        ch = sql[i]
        if quote is not None:
            if ch == quote:
                if i + 1 < length and sql[i + 1] == quote:
                    # Escaped quote inside string ('')
                    out.append(ch * 2)
                    i += 2
                    continue
                quote = None
            out.append("%%" if percent_style and ch == "%" else ch)
        elif ch in _QUOTES:
            quote = ch
            out.append(ch)
        elif ch == "?":
            counter += 1
            if percent_style:
                out.append("%s")
            elif paramstyle == "named":
                out.append(f":p{counter}")
            else:
                out.append(f":{counter}")
        elif ch == "%" and percent_style:
            out.append("%%")
        else:
            out.append(ch)
        i += 1

    return "".join(out)


def bind_parameters(params: Sequence[Any], paramstyle: str) -> Params:
    """Arrange positional values the way ``paramstyle`` expects them."""
    values = tuple(params)
    if paramstyle == "named":
        return {f"p{index}": value for index, value in enumerate(values, start=1)}
    return values
