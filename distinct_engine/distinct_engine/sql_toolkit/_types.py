"""SQL toolkit shared types.

Every type here is implementation-agnostic. Consumer code (the composer and
the filter pipeline) operates on these types exclusively. The backing
implementation converts to/from its native AST types internally.

ZERO dependency on any SQL parsing library.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any

# ---------------------------------------------------------------------------
# Dialect
# ---------------------------------------------------------------------------


class Dialect(str, enum.Enum):
    """SQL dialects a data store may speak."""

    POSTGRES = "postgres"
    SQLITE = "sqlite"
    DUCKDB = "duckdb"
    MYSQL = "mysql"

    @property
    def supports_ilike(self) -> bool:
        return self in (Dialect.POSTGRES, Dialect.DUCKDB)


# ---------------------------------------------------------------------------
# AST wrappers
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SqlNode:
    """Opaque wrapper around a parsed expression.

    ``sql_text`` is the rendering in the dialect the node was parsed with.
    ``raw`` holds the implementation-specific object and is excluded from
    equality so that two nodes with the same rendering compare equal.
    """

    sql_text: str
    raw: Any = field(default=None, repr=False, compare=False, hash=False)

    def __str__(self) -> str:  # pragma: no cover
        return self.sql_text


@dataclass(frozen=True, slots=True)
class SelectItem:
    """One projection entry: an expression with an optional alias.

    ``sql_text`` is the literal rendering of the whole item, including the
    alias when one is present.
    """

    expression: SqlNode
    alias: str | None = None
    sql_text: str = ""
    raw: Any = field(default=None, repr=False, compare=False, hash=False)

    @property
    def is_aliased(self) -> bool:
        return bool(self.alias)


@dataclass(frozen=True, slots=True)
class SelectStatement:
    """An immutable, parsed SELECT statement.

    Rewrites never touch ``raw``; they go through
    :meth:`SqlSelectRewriter.rebuild` which returns a new statement.
    """

    items: tuple[SelectItem, ...]
    distinct: bool = False
    where: SqlNode | None = None
    order_by: tuple[SqlNode, ...] = ()
    limit: int | None = None
    dialect: Dialect = Dialect.POSTGRES
    raw: Any = field(default=None, repr=False, compare=False, hash=False)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class SqlToolkitError(Exception):
    """Base exception for all sql_toolkit errors."""


class SqlParseError(SqlToolkitError):
    """SQL could not be parsed, or did not have the expected shape."""


class SqlFilterError(SqlToolkitError):
    """A filter expression could not be encoded as a SQL predicate."""
