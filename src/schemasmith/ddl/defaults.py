"""Default value formatting.

Catalogs store column defaults as source text: Firebird keeps the whole
clause (``DEFAULT 'N/A'``), SQL Server wraps the expression in
parentheses (``(('N/A'))``, ``((0))``). The formatter peels that
packaging off and re-quotes the value for the destination type:

* strings are single quoted with embedded quotes doubled; a national
  ``N'...'`` literal keeps its prefix
* numbers stay bare when they parse, otherwise they are quoted
* boolean literals become the dialect's truth tokens
* ``NULL``, time keywords and function calls pass through unquoted
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from .profiles import DDLProfile
from .types import SqlType, TypeCategory

_DEFAULT_KEYWORD = re.compile(r"^\s*DEFAULT\s+", re.IGNORECASE)
_FUNCTION_CALL = re.compile(r"^[A-Za-z_][A-Za-z0-9_.]*\s*\(.*\)$", re.DOTALL)
_TRUE_WORDS = frozenset({"TRUE", "T", "Y", "YES"})
_FALSE_WORDS = frozenset({"FALSE", "F", "N", "NO"})


def _strip_parentheses(text: str) -> str:
    """Remove balanced parentheses wrapping the whole expression."""
    while text.startswith("(") and text.endswith(")"):
        depth = 0
        for index, char in enumerate(text):
            if char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
                if depth == 0 and index != len(text) - 1:
                    return text
        text = text[1:-1].strip()
    return text


def _unquote(text: str) -> Optional[str]:
    """Body of a single quoted literal, or None if ``text`` is not one."""
    if text[:2].upper() == "N'":
        text = text[1:]
    if len(text) >= 2 and text[0] == "'" and text[-1] == "'":
        body = text[1:-1]
        if "'" not in body.replace("''", ""):
            return body.replace("''", "'")
    if len(text) >= 2 and text[0] == '"' and text[-1] == '"':
        return text[1:-1]
    return None


def _is_number(text: str) -> bool:
    try:
        return Decimal(text).is_finite()
    except InvalidOperation:
        return False


def quote_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def _boolean(value: str, profile: DDLProfile) -> Optional[str]:
    word = value.strip().upper()
    if word in _TRUE_WORDS or word == "1":
        return profile.truth_literals[0]
    if word in _FALSE_WORDS or word == "0":
        return profile.truth_literals[1]
    return None


def strip_default_source(source: Any) -> Optional[str]:
    """Remove the ``DEFAULT`` keyword and wrapping parentheses.

    Returns:
        The bare expression, or None when there is no default
    """
    if source is None:
        return None
    if isinstance(source, bytes):
        source = source.decode("utf-8", errors="replace")
    text = _DEFAULT_KEYWORD.sub("", str(source).strip())
    text = _strip_parentheses(text.strip())
    return text or None


def format_default(source: Any, sql_type: SqlType, profile: DDLProfile) -> Optional[str]:
    """Format a stored default for a column of ``sql_type``.

    Args:
        source: Default source text as stored in the catalog, or a plain
            value supplied by a caller
        sql_type: Destination column type
        profile: Dialect rendering rules

    Returns:
        The literal to place after ``DEFAULT``, or None for no default

    Example:
        >>> format_default("DEFAULT 'N/A'", varchar, FIREBIRD_PROFILE)
        "'N/A'"
        >>> format_default("((0))", integer, TRANSACT_SQL_PROFILE)
        '0'
    """
    if isinstance(source, bool):
        return profile.truth_literals[0 if source else 1]
    if isinstance(source, (int, float, Decimal)):
        source = str(source)

    text = strip_default_source(source)
    if text is None:
        return None

    literal = _unquote(text)
    national = literal is not None and text[:2].upper() == "N'"
    category = sql_type.category

    if literal is None:
        upper = text.upper()
        if upper == "NULL" or upper in profile.time_keywords:
            return upper
        if _FUNCTION_CALL.match(text):
            return text
        literal = text

    if category is TypeCategory.BOOLEAN:
        token = _boolean(literal, profile)
        return token if token is not None else quote_literal(literal)

    if category.is_numeric:
        value = literal.strip()
        if value.upper() in _TRUE_WORDS | _FALSE_WORDS:
            return _boolean(value, profile)
        return value if _is_number(value) else quote_literal(literal)

    return ("N" if national else "") + quote_literal(literal)
