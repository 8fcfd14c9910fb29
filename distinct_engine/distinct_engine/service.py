"""Distinct-values service: resolve, compose, execute and format one lookup.

The service is the only place errors are converted: every engine, toolkit
and database failure becomes the ``{"message": ..., "success": false}``
envelope and is logged at DEBUG with its traceback.  Nothing raised while
handling a request escapes :meth:`DistinctValuesService.execute`.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from contextlib import closing
from dataclasses import dataclass
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from distinct_engine.catalog import Catalog
from distinct_engine.composer import ComposedQuery, QueryComposer
from distinct_engine.config import Settings
from distinct_engine.diagnostics import Diagnostics, lookup_logger
from distinct_engine.errors import (
    DistinctValuesError,
    ExecutionError,
    NotFoundError,
    QueryParseError,
    UnsupportedStoreError,
)
from distinct_engine.formatting import format_rows
from distinct_engine.models.request import DistinctValuesRequest
from distinct_engine.resolver import (
    DEFAULT_STRATEGIES,
    Resolution,
    SourceResolver,
    StoreResolutionStrategy,
    ViewTarget,
    as_jdbc_store,
)
from distinct_engine.sql_toolkit import SqlParseError, SqlToolkit, SqlToolkitError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LookupResult:
    """Outcome of one lookup: the JSON payload and, on failure, the error."""

    payload: Any
    error: DistinctValuesError | None = None

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def status_code(self) -> int:
        return 200 if self.error is None else self.error.status_code


@dataclass(frozen=True, slots=True)
class LayerInfo:
    """How a catalog layer resolves: ``table``, ``view`` or ``unsupported``."""

    name: str
    store: str
    kind: str
    detail: str | None = None


def error_envelope(error: Exception) -> dict[str, Any]:
    """Build the failure payload for *error*.

    Lookup misses keep their bare message; everything else is prefixed
    with ``Error:``.
    """
    message = str(error)
    if not isinstance(error, (NotFoundError, UnsupportedStoreError)):
        message = f"Error: {message}"
    return {"message": message, "success": False}


def _first_line(exc: Exception) -> str:
    text = str(exc).strip()
    return text.splitlines()[0] if text else type(exc).__name__


class DistinctValuesService:
    """Answer distinct-value lookups against a :class:`Catalog`.

    Parameters
    ----------
    catalog:
        Catalog holding the layers and their stores.
    settings:
        Engine settings; loaded from the environment when omitted.
    toolkit:
        SQL toolkit override, mainly for tests.
    strategies:
        Store resolution strategies, tried in order.
    """

    def __init__(
        self,
        catalog: Catalog,
        settings: Settings | None = None,
        *,
        toolkit: SqlToolkit | None = None,
        strategies: Sequence[StoreResolutionStrategy] = DEFAULT_STRATEGIES,
    ) -> None:
        self.catalog = catalog
        self.settings = settings or Settings()
        self._resolver = SourceResolver(catalog, strategies)
        self._composer = QueryComposer(toolkit, strict_column_match=self.settings.strict_column_match)

    def compose(
        self,
        request: DistinctValuesRequest,
        *,
        request_id: str | None = None,
    ) -> tuple[Resolution, ComposedQuery]:
        """Resolve and compose without executing.

        Raises the engine errors :meth:`execute` would convert.
        """
        log = lookup_logger(logger, request.layer_name, request_id)
        return self._compose(self._capped(request), log)

    def describe_layers(self) -> list[LayerInfo]:
        """Resolve every catalog layer and report what backs it."""
        layers: list[LayerInfo] = []
        for feature_type in self.catalog.feature_types():
            name = feature_type.qualified_name
            try:
                resolution = self._resolver.resolve(name)
            except DistinctValuesError as exc:
                layers.append(LayerInfo(name, feature_type.store_name, "unsupported", str(exc)))
                continue
            if isinstance(resolution.target, ViewTarget):
                layers.append(LayerInfo(name, resolution.store.name, "view", resolution.target.view.name))
            else:
                layers.append(LayerInfo(name, resolution.store.name, "table", resolution.target.qualified_name))
        return layers

    def check_stores(self) -> dict[str, str]:
        """Probe every relational store with ``SELECT 1``.

        Returns ``ok``, ``unavailable`` or, for non-relational stores,
        ``skipped`` per store name.
        """
        results: dict[str, str] = {}
        for name, store in self.catalog.stores.items():
            jdbc_store = as_jdbc_store(store)
            if jdbc_store is None:
                results[name] = "skipped"
                continue
            try:
                with jdbc_store.connect() as conn:
                    conn.exec_driver_sql("SELECT 1")
            except SQLAlchemyError as exc:
                logger.warning("Store %s health check failed: %s", name, exc)
                results[name] = "unavailable"
            else:
                results[name] = "ok"
        return results

    def execute(self, request: DistinctValuesRequest, *, request_id: str | None = None) -> LookupResult:
        """Run one lookup and return its payload or error envelope."""
        log = lookup_logger(logger, request.layer_name, request_id)
        try:
            resolution, query = self._compose(self._capped(request), log)
            values = self._fetch(resolution, query, log)
        except DistinctValuesError as exc:
            return self._failed(exc, log)
        except SqlParseError as exc:
            return self._failed(QueryParseError(str(exc)), log, cause=exc)
        except SqlToolkitError as exc:
            return self._failed(ExecutionError(str(exc)), log, cause=exc)
        except SQLAlchemyError as exc:
            return self._failed(ExecutionError(_first_line(exc)), log, cause=exc)
        except Exception as exc:
            return self._failed(ExecutionError(_first_line(exc)), log, cause=exc)

        rows = format_rows(values, query.shape, query.add_quotes)
        log.debug("Lookup returned %d distinct value(s)", len(rows))
        return LookupResult(payload=rows)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _capped(self, request: DistinctValuesRequest) -> DistinctValuesRequest:
        limit = self.settings.cap_limit(request.limit)
        if limit == request.limit:
            return request
        return request.model_copy(update={"limit": limit})

    def _compose(self, request: DistinctValuesRequest, log: Diagnostics) -> tuple[Resolution, ComposedQuery]:
        resolution = self._resolver.resolve(request.layer_name, log=log)
        query = self._composer.compose(resolution.target, request, resolution.store.dialect, log=log)
        return resolution, query

    @staticmethod
    def _fetch(resolution: Resolution, query: ComposedQuery, log: Diagnostics) -> list[Any]:
        # The statement is final SQL, not a bind template: no parameter parsing.
        with resolution.store.connect() as conn:
            raw = conn.execution_options(no_parameters=True)
            with closing(raw.exec_driver_sql(query.sql)) as result:
                values = [row[0] for row in result]
        log.debug("Executed on store %s", resolution.store.name)
        return values

    @staticmethod
    def _failed(error: DistinctValuesError, log: Diagnostics, cause: Exception | None = None) -> LookupResult:
        log.debug("Error when getting distinct values: %s", error, exc_info=cause or error)
        return LookupResult(payload=error_envelope(error), error=error)
