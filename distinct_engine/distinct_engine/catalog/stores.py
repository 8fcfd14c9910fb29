"""Data stores that back catalog layers.

Only :class:`JdbcDataStore` can answer distinct-value lookups.  A store may
be wrapped in a :class:`ReadOnlyDataStore` decorator; lookups see through one
such layer.  Other store kinds (e.g. :class:`FileDataStore`) exist so that a
catalog can describe layers the lookup must refuse.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import TypeVar

from sqlalchemy import Connection, Engine

from distinct_engine.catalog.views import VirtualView
from distinct_engine.sql_toolkit import Dialect

logger = logging.getLogger(__name__)

S = TypeVar("S", bound="DataStore")


class DataStore:
    """Base class for every store kind."""

    kind: str = "unknown"

    def __init__(self, name: str) -> None:
        self.name = name

    def dispose(self) -> None:
        """Release pooled resources held by the store."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class JdbcDataStore(DataStore):
    """A relational store reached through a SQLAlchemy engine.

    Parameters
    ----------
    name:
        Store name as declared in the catalog.
    engine:
        Engine used to open one connection per lookup.
    database_schema:
        Schema that qualifies plain table names, or ``None``.
    dialect:
        SQL dialect used to parse view definitions and render statements.
    virtual_views:
        Registered views keyed by the table name they stand in for.
    """

    kind = "jdbc"

    def __init__(
        self,
        name: str,
        engine: Engine,
        *,
        database_schema: str | None = None,
        dialect: Dialect = Dialect.POSTGRES,
        virtual_views: Mapping[str, VirtualView] | None = None,
    ) -> None:
        super().__init__(name)
        self.engine = engine
        self.database_schema = database_schema
        self.dialect = dialect
        self._virtual_views = MappingProxyType(dict(virtual_views or {}))

    @property
    def virtual_views(self) -> Mapping[str, VirtualView]:
        return self._virtual_views

    def get_virtual_view(self, table_name: str) -> VirtualView | None:
        return self._virtual_views.get(table_name)

    def connect(self) -> Connection:
        """Open a new connection; callers close it with a ``with`` block."""
        return self.engine.connect()

    def dispose(self) -> None:
        self.engine.dispose()


class ReadOnlyDataStore(DataStore):
    """Decorator marking a store as read-only for lookups."""

    kind = "read-only"

    def __init__(self, wrapped: DataStore) -> None:
        super().__init__(wrapped.name)
        self.wrapped = wrapped

    def unwrap(self, store_type: type[S]) -> S | None:
        """Return the wrapped store if it is a *store_type*, else ``None``.

        Only one decorator layer is removed.
        """
        if isinstance(self.wrapped, store_type):
            return self.wrapped
        return None

    def dispose(self) -> None:
        self.wrapped.dispose()

    def __repr__(self) -> str:
        return f"ReadOnlyDataStore({self.wrapped!r})"


class FileDataStore(DataStore):
    """A file-based store (shapefile, GeoPackage directory, ...)."""

    kind = "file"

    def __init__(self, name: str, path: Path) -> None:
        super().__init__(name)
        self.path = path
