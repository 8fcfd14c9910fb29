"""Source resolution: classify a layer as a plain table or a virtual view.

The relational store behind a layer can be reached two ways: through the
layer's feature source (which may hand it out behind a read-only decorator)
or through the store binding declared on the feature type.  Both paths are
modelled as named strategies tried in order; the first one producing a usable
JDBC store wins and is logged.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from distinct_engine.catalog import Catalog, DataStore, FeatureType, JdbcDataStore, ReadOnlyDataStore, VirtualView
from distinct_engine.diagnostics import Diagnostics
from distinct_engine.errors import InvalidLayerReferenceError, NotFoundError, UnsupportedStoreError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Targets
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TableTarget:
    """A plain table, optionally schema-qualified."""

    schema: str | None
    table_name: str

    @property
    def qualified_name(self) -> str:
        if self.schema:
            return f"{self.schema}.{self.table_name}"
        return self.table_name


@dataclass(frozen=True, slots=True)
class ViewTarget:
    """A registered virtual view standing in for the layer's table."""

    view: VirtualView


Target = TableTarget | ViewTarget


@dataclass(frozen=True, slots=True)
class Resolution:
    """Outcome of :meth:`SourceResolver.resolve`.

    ``store`` is handed to the caller, which opens (and closes) the
    connection used to run the composed statement.
    """

    layer_name: str
    target: Target
    store: JdbcDataStore
    strategy: str


def split_layer_name(layer_name: str) -> tuple[str, str]:
    """Split ``namespace:table`` into its two parts."""
    namespace, sep, local_name = layer_name.partition(":")
    if not sep or not namespace or not local_name:
        raise InvalidLayerReferenceError(
            f"Layer name must have the form 'namespace:table', got {layer_name!r}."
        )
    return namespace, local_name


def as_jdbc_store(store: DataStore) -> JdbcDataStore | None:
    """Return *store* as a JDBC store, seeing through one read-only decorator."""
    if isinstance(store, JdbcDataStore):
        return store
    if isinstance(store, ReadOnlyDataStore):
        return store.unwrap(JdbcDataStore)
    return None


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


class StoreResolutionStrategy(Protocol):
    """One way of finding the store behind a feature type."""

    name: str

    def find_store(self, catalog: Catalog, feature_type: FeatureType) -> DataStore | None: ...


class FeatureSourceStrategy:
    """Use the store handed out by the layer's feature source."""

    name = "feature-source"

    def find_store(self, catalog: Catalog, feature_type: FeatureType) -> DataStore | None:
        source = catalog.get_feature_source(feature_type)
        return source.data_store if source is not None else None


class DeclaredStoreStrategy:
    """Use the store the feature type is declared against."""

    name = "declared-store"

    def find_store(self, catalog: Catalog, feature_type: FeatureType) -> DataStore | None:
        return catalog.get_data_store(feature_type.store_name)


DEFAULT_STRATEGIES: tuple[StoreResolutionStrategy, ...] = (
    FeatureSourceStrategy(),
    DeclaredStoreStrategy(),
)


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class SourceResolver:
    """Resolve layer names against a :class:`Catalog`.

    Parameters
    ----------
    catalog:
        The catalog to look layers up in.
    strategies:
        Store resolution strategies, tried in order.
    """

    def __init__(
        self,
        catalog: Catalog,
        strategies: Sequence[StoreResolutionStrategy] = DEFAULT_STRATEGIES,
    ) -> None:
        self._catalog = catalog
        self._strategies = tuple(strategies)

    def resolve(self, layer_name: str, *, log: Diagnostics | None = None) -> Resolution:
        """Classify *layer_name* as a :class:`TableTarget` or :class:`ViewTarget`.

        Raises
        ------
        NotFoundError
            The layer is malformed or unknown, or no strategy found a store.
        UnsupportedStoreError
            A store was found but none of them is relational.
        """
        log = log or logger
        _, table_name = split_layer_name(layer_name)

        feature_type = self._catalog.get_feature_type_by_name(layer_name)
        if feature_type is None:
            raise NotFoundError("Feature type not found.")

        store, strategy = self._find_jdbc_store(feature_type, log)

        view = store.get_virtual_view(table_name)
        target: Target
        if view is not None:
            target = ViewTarget(view=view)
        else:
            target = TableTarget(schema=store.database_schema, table_name=table_name)

        log.debug(
            "Resolved %s to %s on store %s via %s",
            layer_name,
            type(target).__name__,
            store.name,
            strategy,
        )
        return Resolution(layer_name=layer_name, target=target, store=store, strategy=strategy)

    def _find_jdbc_store(self, feature_type: FeatureType, log: Diagnostics) -> tuple[JdbcDataStore, str]:
        rejected: list[DataStore] = []
        for strategy in self._strategies:
            store = strategy.find_store(self._catalog, feature_type)
            if store is None:
                log.debug("Strategy %s found no store for %s", strategy.name, feature_type.qualified_name)
                continue

            jdbc_store = as_jdbc_store(store)
            if jdbc_store is None:
                log.debug("Strategy %s found non-JDBC store %r", strategy.name, store)
                rejected.append(store)
                continue

            return jdbc_store, strategy.name

        if not rejected:
            raise NotFoundError("Source not found.")
        raise UnsupportedStoreError(f"Store is not a JDBC data store (got {_describe(rejected[0])}).")


def _describe(store: DataStore) -> str:
    if isinstance(store, ReadOnlyDataStore):
        return f"{store.kind} wrapping {_describe(store.wrapped)}"
    return store.kind
