"""In-memory layer catalog.

Maps qualified layer names (``namespace:table``) to feature types, and
feature types to the stores that hold their data.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from distinct_engine.catalog.stores import DataStore, ReadOnlyDataStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FeatureType:
    """A layer registered in the catalog.

    ``store_name`` is the declared data-source binding.  ``read_only`` makes
    the feature source hand out its store behind a read-only decorator.
    """

    namespace: str
    name: str
    store_name: str
    read_only: bool = False

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}:{self.name}"


@dataclass(frozen=True, slots=True)
class FeatureSource:
    """Access handle for the data behind one feature type."""

    feature_type: FeatureType
    data_store: DataStore


class Catalog:
    """Read-only registry of stores and feature types."""

    def __init__(self, stores: Mapping[str, DataStore], feature_types: Iterable[FeatureType]) -> None:
        self._stores = dict(stores)
        self._feature_types: dict[str, FeatureType] = {}
        for feature_type in feature_types:
            self._feature_types[feature_type.qualified_name] = feature_type

    @property
    def stores(self) -> Mapping[str, DataStore]:
        return dict(self._stores)

    def feature_types(self) -> list[FeatureType]:
        return sorted(self._feature_types.values(), key=lambda ft: ft.qualified_name)

    def get_feature_type_by_name(self, qualified_name: str) -> FeatureType | None:
        return self._feature_types.get(qualified_name)

    def get_data_store(self, name: str) -> DataStore | None:
        """Return the store as declared, without any layer-level decorators."""
        return self._stores.get(name)

    def get_feature_source(self, feature_type: FeatureType) -> FeatureSource | None:
        """Return the feature source for *feature_type*, or ``None`` when unbound."""
        store = self._stores.get(feature_type.store_name)
        if store is None:
            return None
        if feature_type.read_only:
            store = ReadOnlyDataStore(store)
        return FeatureSource(feature_type=feature_type, data_store=store)

    def dispose(self) -> None:
        """Dispose every store's connection pool."""
        for store in self._stores.values():
            store.dispose()
        logger.debug("Disposed %d store(s)", len(self._stores))
