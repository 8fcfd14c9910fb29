"""Filter pipeline: ECQL text in, SQL predicate text out.

The encoder emits ``WHERE <predicate>`` text.  Plain-table lookups append
that text as is; view lookups strip the keyword, point the predicate at the
view's underlying column expression, and re-parse it.  All text surgery on
generated predicates lives in this module.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from urllib.parse import unquote

from distinct_engine.errors import FilterTranslationError
from distinct_engine.sql_toolkit import Dialect, SqlFilterError, SqlToolkit, get_sql_toolkit

logger = logging.getLogger(__name__)

# Single-quoted SQL string literal, with '' escapes.
STRING_LITERAL_RE = re.compile(r"'(?:[^']|'')*'")

# ``= null`` (but not ``<= null``, ``>= null`` or ``!= null``).
_NULL_EQUALITY_RE = re.compile(r"(?<![<>!])\s*=\s*null\b", re.IGNORECASE)

_WHERE_PREFIX_RE = re.compile(r"^\s*WHERE\b\s*", re.IGNORECASE)

_SIMPLE_IDENTIFIER_RE = re.compile(r'^(?:[^\W\d]\w*|"[^"]+")$')


def _outside_literals(text: str, rewrite: Callable[[str], str]) -> str:
    """Apply *rewrite* to every part of *text* that is not a string literal."""
    parts: list[str] = []
    position = 0
    for match in STRING_LITERAL_RE.finditer(text):
        parts.append(rewrite(text[position : match.start()]))
        parts.append(match.group(0))
        position = match.end()
    parts.append(rewrite(text[position:]))
    return "".join(parts)


def decode_filter(raw: str) -> str:
    """URL-decode filter text (``+`` is kept, as it may be arithmetic)."""
    return unquote(raw)


def normalize_null_comparisons(ecql: str) -> str:
    """Rewrite ``x = null`` as ``x IS NULL``; the encoder rejects the former."""
    return _outside_literals(ecql, lambda chunk: _NULL_EQUALITY_RE.sub(" IS NULL", chunk))


def strip_where_prefix(text: str) -> str:
    """Remove the leading ``WHERE`` keyword of encoder output.

    The encoder contract is that its output always begins with ``WHERE``;
    anything else is reported as a translation failure.
    """
    match = _WHERE_PREFIX_RE.match(text)
    if match is None:
        raise FilterTranslationError(f"Filter translation did not produce a WHERE clause: {text!r}")
    predicate = text[match.end() :].strip()
    if not predicate:
        raise FilterTranslationError("Filter translation produced an empty predicate.")
    return predicate


def substitute_column(predicate: str, column: str, expression: str | None) -> str:
    """Replace bare references to *column* with *expression*.

    Matching is case-insensitive, covers the quoted form ``"column"``, skips
    qualified references (``t.column``) and string literals.  Compound
    expressions are parenthesised so operator precedence is preserved.
    """
    if not expression or expression.lower() == column.lower():
        return predicate

    replacement = expression if _SIMPLE_IDENTIFIER_RE.match(expression) else f"({expression})"
    escaped = re.escape(column)
    pattern = re.compile(rf'(?<![\w."])(?:"{escaped}"|{escaped})(?![\w"])', re.IGNORECASE)
    return _outside_literals(predicate, lambda chunk: pattern.sub(lambda _: replacement, chunk))


class FilterTranslator:
    """Translate URL-encoded ECQL filters for one dialect.

    Parameters
    ----------
    toolkit:
        SQL toolkit providing the ECQL encoder; defaults to the shared one.
    """

    def __init__(self, toolkit: SqlToolkit | None = None) -> None:
        self._toolkit = toolkit or get_sql_toolkit()

    def to_where_clause(self, raw_filter: str, dialect: Dialect = Dialect.POSTGRES) -> str:
        """Return ``WHERE <predicate>`` for a URL-encoded filter."""
        ecql = normalize_null_comparisons(decode_filter(raw_filter))
        try:
            return self._toolkit.filter_encoder.encode(ecql, dialect)
        except SqlFilterError as exc:
            raise FilterTranslationError(str(exc)) from exc

    def to_predicate(
        self,
        raw_filter: str,
        dialect: Dialect = Dialect.POSTGRES,
        *,
        column: str | None = None,
        expression: str | None = None,
    ) -> str:
        """Return the bare predicate, with *column* pointed at *expression*."""
        predicate = strip_where_prefix(self.to_where_clause(raw_filter, dialect))
        if column is not None:
            predicate = substitute_column(predicate, column, expression)
        return predicate
