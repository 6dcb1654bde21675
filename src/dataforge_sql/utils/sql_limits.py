"""
SQL Limits - Place a row cap into an existing SELECT statement.

Backends put the cap in different positions: a trailing ``LIMIT n`` clause or a
``TOP n`` keyword right after the outermost SELECT. sqlparse is used to find
top-level tokens so subqueries, CTEs and string literals are left alone.
"""

import re
from typing import List, Optional

import sqlparse
from sqlparse import tokens as T
from sqlparse.sql import Statement, Where

import logging
logger = logging.getLogger(__name__)

SET_OPERATORS = ("UNION", "UNION ALL", "EXCEPT", "INTERSECT")

_TOP = re.compile(r"TOP\b", re.IGNORECASE)


def _parse(sql: str) -> Optional[Statement]:
    statements = sqlparse.parse(sql)
    return statements[0] if statements else None


def _top_level_tokens(statement: Statement) -> List:
    """Tokens outside parentheses; WHERE groups are opened up."""
    tokens = []
    for tok in statement.tokens:
        if isinstance(tok, Where):
            tokens.extend(tok.tokens)
        else:
            tokens.append(tok)
    return tokens


def _keyword(tok) -> str:
    return " ".join(tok.normalized.split()) if tok.is_keyword else ""


def _join(tokens: List) -> str:
    return "".join(str(tok) for tok in tokens)


def _meaningful(tokens: List) -> List:
    return [tok for tok in tokens if not tok.is_whitespace and tok.ttype not in T.Comment]


def strip_terminator(sql: str) -> str:
    """Remove trailing whitespace, semicolons and trailing comments."""
    text = sql.strip()
    if "--" in text or "/*" in text:
        # a trailing line comment would swallow an appended clause
        text = sqlparse.format(text, strip_comments=True).strip()
    return text.rstrip(";").rstrip()


def has_top_level_keyword(sql: str, keyword: str) -> bool:
    """True when ``keyword`` appears outside subqueries and literals."""
    statement = _parse(sql)
    if statement is None:
        return False
    keyword = keyword.upper()
    return any(_keyword(tok) == keyword for tok in _top_level_tokens(statement))


def append_limit(sql: str, limit: int, alias: str = "limited_rows") -> str:
    """
    Cap a query with a trailing LIMIT clause.

    A query that already carries a top-level LIMIT is wrapped in a derived
    table so the result stays valid.
    """
    limit = int(limit)
    text = strip_terminator(sql)
    if has_top_level_keyword(text, "LIMIT"):
        return f"SELECT * FROM ({text}) AS {alias} LIMIT {limit}"
    return f"{text} LIMIT {limit}"


def _wrap_top(body: List, limit: int, alias: str, lift_order: bool) -> str:
    split = len(body)
    if lift_order:
        # ORDER BY is not allowed in a derived table without TOP
        for index, tok in enumerate(body):
            if _keyword(tok) == "ORDER BY":
                split = index
    inner = _join(body[:split]).strip()
    order = _join(body[split:]).strip()
    wrapped = f"SELECT TOP {limit} * FROM ({inner}) AS {alias}"
    return f"{wrapped} {order}" if order else wrapped


def inject_top(sql: str, limit: int, alias: str = "limited_rows") -> str:
    """
    Cap a query with ``TOP n`` after its outermost SELECT.

    ``DISTINCT``/``ALL`` stay in front of TOP. Queries that already carry a
    TOP, or that combine SELECTs with UNION/EXCEPT/INTERSECT, are wrapped in a
    derived table with the cap on the outer SELECT; a trailing ORDER BY of a
    compound query moves to the outer SELECT. A statement without a
    top-level SELECT is returned unchanged.
    """
    limit = int(limit)
    text = strip_terminator(sql)
    statement = _parse(text)
    if statement is None:
        return sql

    tokens = _top_level_tokens(statement)
    start = next((index for index, tok in enumerate(tokens)
                  if tok.ttype is T.DML and tok.normalized == "SELECT"), None)
    if start is None:
        logger.debug("No top-level SELECT found; row cap not applied")
        return sql

    # WITH ... prefix stays in front of the capped SELECT
    prefix = _join(tokens[:start])
    body = tokens[start:]
    if any(_keyword(tok) in SET_OPERATORS for tok in body):
        return prefix + _wrap_top(body, limit, alias, lift_order=True)

    insert_at = 1
    following = _meaningful(body[1:])
    if following and _keyword(following[0]) in ("DISTINCT", "ALL"):
        insert_at = body.index(following[0]) + 1
        following = following[1:]
    if following and _TOP.match(str(following[0])):
        return prefix + _wrap_top(body, limit, alias, lift_order=False)

    head = _join(body[:insert_at])
    tail = _join(body[insert_at:])
    if tail and not tail[0].isspace():
        tail = " " + tail
    return f"{prefix}{head} TOP {limit}{tail}"
