"""Query composition: turn a resolved target plus a request into final SQL.

Plain tables get a hand-built ``select distinct(...)`` statement.  Virtual
views are parsed, pruned to the requested column and rebuilt through the
SQL toolkit; the parsed statement is never modified in place.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from distinct_engine.diagnostics import Diagnostics
from distinct_engine.errors import ColumnNotFoundError, QueryParseError
from distinct_engine.filters import FilterTranslator
from distinct_engine.models.request import DistinctValuesRequest, OutputShape
from distinct_engine.params import parse_view_params, substitute_placeholders
from distinct_engine.resolver import TableTarget, Target, ViewTarget
from distinct_engine.sql_toolkit import (
    UNCHANGED,
    Dialect,
    SelectItem,
    SelectStatement,
    SqlParseError,
    SqlToolkit,
    get_sql_toolkit,
)

logger = logging.getLogger(__name__)

# Column names interpolated into plain-table SQL must be identifiers.
_IDENTIFIER_RE = re.compile(r'^(?:[^\W\d]\w*|"[^"]+")$')


@dataclass(frozen=True, slots=True)
class ComposedQuery:
    """Final SQL for one lookup and how its rows are to be emitted.

    ``resolved_expression`` is the underlying expression of the matched view
    column (``None`` for plain tables and unmatched views).
    """

    sql: str
    shape: OutputShape
    add_quotes: bool = False
    resolved_expression: str | None = None


def _matches(item: SelectItem, column: str) -> bool:
    """Case-insensitive match on the alias, else on the item's own rendering."""
    wanted = column.strip().lower()
    if item.is_aliased:
        return item.alias.strip().lower() == wanted  # type: ignore[union-attr]
    text = item.sql_text.strip().lower()
    return wanted in (text, text.strip('"'))


class QueryComposer:
    """Build the distinct-values statement for a :class:`Target`.

    Parameters
    ----------
    toolkit:
        SQL toolkit used for parsing, rewriting and rendering view SQL.
    strict_column_match:
        Raise :class:`ColumnNotFoundError` when no view column matches.
        When False the zero-column statement is returned and fails on
        execution.
    translator:
        Filter translator; built from *toolkit* when omitted.
    """

    def __init__(
        self,
        toolkit: SqlToolkit | None = None,
        *,
        strict_column_match: bool = True,
        translator: FilterTranslator | None = None,
    ) -> None:
        self._toolkit = toolkit or get_sql_toolkit()
        self._strict = strict_column_match
        self._translator = translator or FilterTranslator(self._toolkit)

    def compose(
        self,
        target: Target,
        request: DistinctValuesRequest,
        dialect: Dialect = Dialect.POSTGRES,
        *,
        log: Diagnostics | None = None,
    ) -> ComposedQuery:
        log = log or logger
        if isinstance(target, ViewTarget):
            sql, expression = self._compose_view(target, request, dialect, log)
        else:
            sql, expression = self._compose_table(target, request, dialect), None

        log.debug("Composed SQL: %s", sql)
        return ComposedQuery(
            sql=sql,
            shape=request.shape,
            add_quotes=request.add_quotes,
            resolved_expression=expression,
        )

    # ------------------------------------------------------------------
    # Plain tables
    # ------------------------------------------------------------------

    def _compose_table(self, target: TableTarget, request: DistinctValuesRequest, dialect: Dialect) -> str:
        column = request.property_name
        if not _IDENTIFIER_RE.match(column):
            raise QueryParseError(f"Invalid column name {column!r}.")

        sql = f"select distinct({column}) from {target.qualified_name} "
        if request.filter:
            sql += self._translator.to_where_clause(request.filter, dialect) + " "
        direction = request.sort_direction
        if direction is not None:
            sql += f"ORDER BY {column} {direction.value} "
        if request.limit is not None:
            sql += f"LIMIT {request.limit} "
        return sql

    # ------------------------------------------------------------------
    # Virtual views
    # ------------------------------------------------------------------

    def _compose_view(
        self,
        target: ViewTarget,
        request: DistinctValuesRequest,
        dialect: Dialect,
        log: Diagnostics,
    ) -> tuple[str, str | None]:
        view = target.view
        column = request.property_name

        view_sql = substitute_placeholders(view, parse_view_params(request.view_params))
        log.debug("Substituted view %s: %s", view.name, view_sql)

        try:
            statement = self._toolkit.parser.parse_select(view_sql, dialect)
        except SqlParseError as exc:
            raise QueryParseError(f"Could not parse view '{view.name}': {exc}") from exc

        items, expression = self._project(statement, column, dialect)
        if not items:
            if self._strict:
                raise ColumnNotFoundError(f"Column '{column}' not found in view '{view.name}'.")
            log.debug("No select item of view %s matches %s", view.name, column)

        where = UNCHANGED
        if request.filter:
            predicate = self._translator.to_predicate(
                request.filter, dialect, column=column, expression=expression
            )
            try:
                condition = self._toolkit.parser.parse_condition(predicate, dialect)
            except SqlParseError as exc:
                raise QueryParseError(f"Could not parse filter predicate: {exc}") from exc
            where = self._toolkit.rewriter.conjoin(statement.where, condition, dialect)

        direction = request.sort_direction
        rebuilt = self._toolkit.rewriter.rebuild(
            statement,
            items=items,
            where=where,
            order_by=[(column, direction.value)] if direction is not None else [],
            limit=request.limit if request.limit is not None else UNCHANGED,
        )
        return self._toolkit.renderer.render(rebuilt, dialect), expression

    def _project(
        self,
        statement: SelectStatement,
        column: str,
        dialect: Dialect,
    ) -> tuple[list[SelectItem], str | None]:
        """Keep the items matching *column*, wrapped in ``DISTINCT(...)``.

        Matching looks at each item as written in the view.  Items are not
        wrapped again when the statement already selects DISTINCT.
        """
        kept: list[SelectItem] = []
        expression: str | None = None
        for item in statement.items:
            if not _matches(item, column):
                continue
            if expression is None:
                expression = item.expression.sql_text
            kept.append(item if statement.distinct else self._toolkit.rewriter.wrap_distinct(item, dialect))
        return kept, expression
