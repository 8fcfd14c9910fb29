"""SQLGlot-backed implementation of the SQL toolkit protocols.

This is the ONLY file in the entire codebase that imports ``sqlglot`` directly.
All consumer code goes through the protocol interfaces defined in
:mod:`distinct_engine.sql_toolkit._protocols`.

Parsed trees are treated as immutable: every rewrite copies the tree it
starts from, so a :class:`SelectStatement` handed out once never changes.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

import sqlglot
from sqlglot import exp
from sqlglot.errors import SqlglotError

from .._protocols import UNCHANGED
from .._types import (
    Dialect,
    SelectItem,
    SelectStatement,
    SqlFilterError,
    SqlNode,
    SqlParseError,
)

logger = logging.getLogger(__name__)

# Function name used to wrap the target projection.  Rendered as a plain
# call, ``DISTINCT(expr)``, which every supported dialect reads as a
# statement-level DISTINCT over a single parenthesised column.
_DISTINCT_FN = "DISTINCT"


def _dialect_value(dialect: Dialect) -> str:
    """Return the sqlglot dialect string for a :class:`Dialect` enum member."""
    return dialect.value


def _parse_statements(sql: str, dialect: Dialect) -> list[exp.Expression]:
    try:
        parsed = sqlglot.parse(sql, read=_dialect_value(dialect))
    except SqlglotError as exc:
        raise SqlParseError(f"Failed to parse SQL: {exc}") from exc
    return [node for node in parsed if node is not None]


def _node(expression: exp.Expression, dialect: Dialect) -> SqlNode:
    return SqlNode(sql_text=expression.sql(dialect=_dialect_value(dialect)), raw=expression)


def _item(expression: exp.Expression, dialect: Dialect) -> SelectItem:
    """Convert one projection expression into a :class:`SelectItem`."""
    if isinstance(expression, exp.Alias):
        inner = expression.this
        alias = expression.alias or None
    else:
        inner = expression
        alias = None
    return SelectItem(
        expression=_node(inner, dialect),
        alias=alias,
        sql_text=expression.sql(dialect=_dialect_value(dialect)),
        raw=expression,
    )


def _limit_value(select: exp.Select) -> int | None:
    limit = select.args.get("limit")
    if limit is None:
        return None
    value = limit.args.get("expression")
    if isinstance(value, exp.Literal) and value.is_int:
        return int(value.name)
    return None


def _to_statement(select: exp.Select, dialect: Dialect) -> SelectStatement:
    where = select.args.get("where")
    order = select.args.get("order")
    return SelectStatement(
        items=tuple(_item(e, dialect) for e in select.expressions),
        distinct=select.args.get("distinct") is not None,
        where=_node(where.this, dialect) if where is not None else None,
        order_by=tuple(_node(o, dialect) for o in order.expressions) if order is not None else (),
        limit=_limit_value(select),
        dialect=dialect,
        raw=select,
    )


# ---------------------------------------------------------------------------
# SqlGlotParser
# ---------------------------------------------------------------------------


class SqlGlotParser:
    """SQLGlot-backed :class:`SqlParser` implementation."""

    def parse_select(self, sql: str, dialect: Dialect = Dialect.POSTGRES) -> SelectStatement:
        statements = _parse_statements(sql, dialect)
        if len(statements) != 1:
            raise SqlParseError(f"Expected exactly 1 statement, got {len(statements)}")

        select = statements[0]
        if not isinstance(select, exp.Select):
            raise SqlParseError(
                f"Expected a plain SELECT statement, got {type(select).__name__}"
            )
        return _to_statement(select, dialect)

    def parse_condition(self, sql: str, dialect: Dialect = Dialect.POSTGRES) -> SqlNode:
        statements = _parse_statements(sql, dialect)
        if len(statements) != 1:
            raise SqlParseError(f"Expected exactly 1 condition, got {len(statements)}")

        condition = statements[0]
        if isinstance(
            condition,
            (exp.Query, exp.Command, exp.Insert, exp.Update, exp.Delete, exp.Create, exp.Drop),
        ):
            raise SqlParseError(
                f"Expected a boolean expression, got {type(condition).__name__}"
            )
        return _node(condition, dialect)


# ---------------------------------------------------------------------------
# SqlGlotRenderer
# ---------------------------------------------------------------------------


class SqlGlotRenderer:
    """SQLGlot-backed :class:`SqlRenderer` implementation."""

    def render(self, statement: SelectStatement, dialect: Dialect | None = None) -> str:
        raw = statement.raw
        if not isinstance(raw, exp.Select):
            raise TypeError(f"Expected sqlglot Select, got {type(raw).__name__}")
        return raw.sql(dialect=_dialect_value(dialect or statement.dialect))


# ---------------------------------------------------------------------------
# SqlGlotSelectRewriter
# ---------------------------------------------------------------------------


class SqlGlotSelectRewriter:
    """SQLGlot-backed :class:`SqlSelectRewriter` implementation."""

    def wrap_distinct(self, item: SelectItem, dialect: Dialect = Dialect.POSTGRES) -> SelectItem:
        wrapped = self._expression(item).copy()
        if isinstance(wrapped, exp.Alias):
            wrapped.set("this", exp.Anonymous(this=_DISTINCT_FN, expressions=[wrapped.this]))
        else:
            wrapped = exp.Anonymous(this=_DISTINCT_FN, expressions=[wrapped])
        return _item(wrapped, dialect)

    def conjoin(
        self,
        left: SqlNode | None,
        right: SqlNode,
        dialect: Dialect = Dialect.POSTGRES,
    ) -> SqlNode:
        right_raw = self._expression(right).copy()
        if left is None:
            return _node(right_raw, dialect)
        combined = exp.And(
            this=exp.Paren(this=self._expression(left).copy()),
            expression=exp.Paren(this=right_raw),
        )
        return _node(combined, dialect)

    def rebuild(
        self,
        statement: SelectStatement,
        *,
        items: Sequence[SelectItem] | object = UNCHANGED,
        where: SqlNode | None | object = UNCHANGED,
        order_by: Sequence[tuple[str, str]] | object = UNCHANGED,
        limit: int | None | object = UNCHANGED,
    ) -> SelectStatement:
        if not isinstance(statement.raw, exp.Select):
            raise TypeError("SelectStatement has no parsed tree attached")

        select = statement.raw.copy()
        dialect = statement.dialect

        if items is not UNCHANGED:
            select.set("expressions", [self._expression(i).copy() for i in items])  # type: ignore[union-attr]

        if where is not UNCHANGED:
            if where is None:
                select.set("where", None)
            else:
                select.set("where", exp.Where(this=self._expression(where).copy()))

        if order_by is not UNCHANGED:
            # Parsed in the target dialect so NULL ordering follows its defaults
            # and no explicit NULLS FIRST/LAST is rendered.
            ordered = [
                self._parse_ordered(f"{sql} {direction.upper()}", dialect)
                for sql, direction in order_by  # type: ignore[union-attr]
            ]
            select.set("order", exp.Order(expressions=ordered) if ordered else None)

        if limit is not UNCHANGED:
            if limit is None:
                select.set("limit", None)
            else:
                select = select.limit(int(limit), copy=False)  # type: ignore[arg-type]

        return _to_statement(select, dialect)

    @staticmethod
    def _expression(node: SqlNode | SelectItem) -> exp.Expression:
        raw = node.raw
        if not isinstance(raw, exp.Expression):
            raise TypeError(f"Expected sqlglot Expression, got {type(raw).__name__}")
        return raw

    @staticmethod
    def _parse_ordered(sql: str, dialect: Dialect) -> exp.Expression:
        try:
            return sqlglot.parse_one(sql, read=_dialect_value(dialect), into=exp.Ordered)
        except SqlglotError as exc:
            raise SqlParseError(f"Failed to parse expression {sql!r}: {exc}") from exc


# ---------------------------------------------------------------------------
# SqlGlotFilterEncoder
# ---------------------------------------------------------------------------

# Node types an ECQL filter may contain.  Anything else (subqueries,
# arbitrary function calls, casts, statements) is rejected.
_ALLOWED_FILTER_NODES: tuple[type[exp.Expression], ...] = (
    exp.Column,
    exp.Identifier,
    exp.Literal,
    exp.Boolean,
    exp.Null,
    exp.Paren,
    exp.Neg,
    exp.Not,
    exp.And,
    exp.Or,
    exp.EQ,
    exp.NEQ,
    exp.GT,
    exp.GTE,
    exp.LT,
    exp.LTE,
    exp.Like,
    exp.ILike,
    exp.Between,
    exp.In,
    exp.Is,
    exp.Add,
    exp.Sub,
    exp.Mul,
    exp.Div,
)

# Top-level node types that evaluate to a boolean.
_PREDICATE_NODES: tuple[type[exp.Expression], ...] = (
    exp.Predicate,
    exp.Connector,
    exp.Not,
    exp.Boolean,
)

_INCLUDE_RE = re.compile(r"^\s*INCLUDE\s*$", re.IGNORECASE)
_EXCLUDE_RE = re.compile(r"^\s*EXCLUDE\s*$", re.IGNORECASE)
_EPSG_RE = re.compile(r"^(?:EPSG|urn:ogc:def:crs:EPSG:[\d.]*):(\d+)$", re.IGNORECASE)

_BBOX_FN = "BBOX"


def _quote_attributes(tree: exp.Expression) -> None:
    """Quote every attribute name so its case reaches the database unchanged."""
    for column in tree.find_all(exp.Column):
        for identifier in column.find_all(exp.Identifier):
            identifier.set("quoted", True)


class SqlGlotFilterEncoder:
    """SQLGlot-backed :class:`SqlFilterEncoder` for the ECQL subset.

    ECQL comparison, logical, ``LIKE``/``ILIKE``, ``BETWEEN``, ``IN`` and
    ``IS NULL`` syntax coincides with SQL, so the filter is parsed as a SQL
    condition and then validated node-by-node against an allow-list.
    ``INCLUDE``/``EXCLUDE`` and ``BBOX`` are translated explicitly.  Attribute
    names are always emitted quoted, so mixed-case columns keep their case.
    """

    def encode(self, ecql: str, dialect: Dialect = Dialect.POSTGRES) -> str:
        if _INCLUDE_RE.match(ecql):
            return "WHERE 1 = 1"
        if _EXCLUDE_RE.match(ecql):
            return "WHERE 1 = 0"

        # ECQL is read with the postgres grammar: it accepts ILIKE and
        # double-quoted attribute names, which the filter language uses too.
        try:
            parsed = [n for n in sqlglot.parse(ecql, read=_dialect_value(Dialect.POSTGRES)) if n is not None]
        except SqlglotError as exc:
            raise SqlFilterError(f"Could not parse filter {ecql!r}: {exc}") from exc

        if len(parsed) != 1:
            raise SqlFilterError(f"Filter must be a single expression, got {len(parsed)}")

        tree = parsed[0]
        self._validate(tree)
        tree = tree.transform(lambda node: self._translate(node, dialect), copy=True)
        _quote_attributes(tree)

        return "WHERE " + tree.sql(dialect=_dialect_value(dialect))

    def _validate(self, tree: exp.Expression) -> None:
        root = tree.unnest()
        if not (isinstance(root, _PREDICATE_NODES) or self._is_bbox(root)):
            raise SqlFilterError(
                f"Filter is not a boolean expression: {tree.sql()!r}"
            )

        for node in tree.walk():
            if self._is_bbox(node):
                continue
            if not isinstance(node, _ALLOWED_FILTER_NODES):
                raise SqlFilterError(
                    f"Unsupported filter construct {type(node).__name__}: {node.sql()!r}"
                )

    @staticmethod
    def _is_bbox(node: exp.Expression) -> bool:
        return isinstance(node, exp.Anonymous) and str(node.this).upper() == _BBOX_FN

    def _translate(self, node: exp.Expression, dialect: Dialect) -> exp.Expression:
        if self._is_bbox(node):
            return self._bbox(node, dialect)
        if isinstance(node, exp.ILike) and not dialect.supports_ilike:
            return exp.Like(
                this=exp.Lower(this=node.this.copy()),
                expression=exp.Lower(this=node.expression.copy()),
            )
        return node

    @staticmethod
    def _bbox(node: exp.Anonymous, dialect: Dialect) -> exp.Expression:
        """Translate ``BBOX(geom, minx, miny, maxx, maxy[, crs])``."""
        if dialect is not Dialect.POSTGRES:
            raise SqlFilterError(f"BBOX filters require a PostGIS store, not {dialect.value}")

        args = list(node.expressions)
        if len(args) not in (5, 6) or not isinstance(args[0], exp.Column):
            raise SqlFilterError(
                "BBOX expects (geometry, minx, miny, maxx, maxy[, crs])"
            )
        geometry = args[0].copy()
        bounds = [a.copy() for a in args[1:5]]

        envelope: exp.Expression = exp.Anonymous(this="ST_MakeEnvelope", expressions=bounds)
        if len(args) == 6:
            crs = args[5]
            match = _EPSG_RE.match(crs.name) if isinstance(crs, exp.Literal) and crs.is_string else None
            if match is None:
                raise SqlFilterError(f"Unsupported BBOX CRS {crs.sql()!r}")
            envelope.append("expressions", exp.Literal.number(int(match.group(1))))
        else:
            # No CRS given: interpret the box in the geometry column's own SRID.
            envelope = exp.Anonymous(
                this="ST_SetSRID",
                expressions=[envelope, exp.Anonymous(this="ST_SRID", expressions=[geometry.copy()])],
            )

        return exp.Anonymous(this="ST_Intersects", expressions=[geometry, envelope])


# ---------------------------------------------------------------------------
# SqlGlotToolkit: composite implementation
# ---------------------------------------------------------------------------


class SqlGlotToolkit:
    """Composite :class:`SqlToolkit` backed by SQLGlot.

    This is the default implementation returned by :func:`get_sql_toolkit`.
    """

    def __init__(self) -> None:
        self._parser = SqlGlotParser()
        self._renderer = SqlGlotRenderer()
        self._rewriter = SqlGlotSelectRewriter()
        self._filter_encoder = SqlGlotFilterEncoder()

    @property
    def parser(self) -> SqlGlotParser:
        return self._parser

    @property
    def renderer(self) -> SqlGlotRenderer:
        return self._renderer

    @property
    def rewriter(self) -> SqlGlotSelectRewriter:
        return self._rewriter

    @property
    def filter_encoder(self) -> SqlGlotFilterEncoder:
        return self._filter_encoder
