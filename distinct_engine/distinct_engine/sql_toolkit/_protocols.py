"""SQL toolkit protocol definitions.

These define the interface contract that ANY implementation must satisfy.
Consumer code depends on these protocols, never on concrete implementations.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from ._types import Dialect, SelectItem, SelectStatement, SqlNode

# Sentinel for "leave this clause as it is" in :meth:`SqlSelectRewriter.rebuild`.
UNCHANGED: object = object()


# ---------------------------------------------------------------------------
# Individual Capability Protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class SqlParser(Protocol):
    """Parse SQL strings into the toolkit's immutable representations."""

    def parse_select(self, sql: str, dialect: Dialect = Dialect.POSTGRES) -> SelectStatement:
        """Parse a single plain SELECT statement.

        Raises:
            SqlParseError: If the text is not valid SQL, holds more than one
                statement, or is not a plain SELECT (set operations included).
        """
        ...

    def parse_condition(self, sql: str, dialect: Dialect = Dialect.POSTGRES) -> SqlNode:
        """Parse a boolean expression fragment (no ``WHERE`` keyword).

        Raises:
            SqlParseError: If the fragment does not parse to one expression.
        """
        ...


@runtime_checkable
class SqlRenderer(Protocol):
    """Render statements back to SQL strings."""

    def render(self, statement: SelectStatement, dialect: Dialect | None = None) -> str:
        """Render a statement in *dialect* (defaults to the parse dialect)."""
        ...


@runtime_checkable
class SqlSelectRewriter(Protocol):
    """Structural rewrites that always produce new trees."""

    def wrap_distinct(self, item: SelectItem, dialect: Dialect = Dialect.POSTGRES) -> SelectItem:
        """Return *item* with its expression wrapped in ``DISTINCT(...)``.

        The alias, if any, is kept.
        """
        ...

    def conjoin(
        self,
        left: SqlNode | None,
        right: SqlNode,
        dialect: Dialect = Dialect.POSTGRES,
    ) -> SqlNode:
        """Return ``(left) AND (right)``, or *right* when *left* is ``None``."""
        ...

    def rebuild(
        self,
        statement: SelectStatement,
        *,
        items: Sequence[SelectItem] | object = UNCHANGED,
        where: SqlNode | None | object = UNCHANGED,
        order_by: Sequence[tuple[str, str]] | object = UNCHANGED,
        limit: int | None | object = UNCHANGED,
    ) -> SelectStatement:
        """Return a copy of *statement* with the given clauses replaced.

        ``order_by`` takes ``(expression_sql, direction)`` pairs; an empty
        sequence clears the clause. ``None`` for ``where``/``limit`` removes
        the clause.
        """
        ...


@runtime_checkable
class SqlFilterEncoder(Protocol):
    """Translate ECQL filter text into a native SQL predicate."""

    def encode(self, ecql: str, dialect: Dialect = Dialect.POSTGRES) -> str:
        """Return ``"WHERE <predicate>"`` for the filter text.

        Raises:
            SqlFilterError: If the filter does not parse or uses a construct
                outside the supported ECQL subset.
        """
        ...


# ---------------------------------------------------------------------------
# Composite Toolkit Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class SqlToolkit(Protocol):
    """Top-level toolkit providing every capability the engine needs."""

    @property
    def parser(self) -> SqlParser: ...

    @property
    def renderer(self) -> SqlRenderer: ...

    @property
    def rewriter(self) -> SqlSelectRewriter: ...

    @property
    def filter_encoder(self) -> SqlFilterEncoder: ...
