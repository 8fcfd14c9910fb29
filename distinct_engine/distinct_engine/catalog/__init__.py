"""Layer catalog: stores, virtual views, and the YAML loader."""

from __future__ import annotations

from distinct_engine.catalog.catalog import Catalog, FeatureSource, FeatureType
from distinct_engine.catalog.loader import load_catalog, parse_catalog
from distinct_engine.catalog.stores import DataStore, FileDataStore, JdbcDataStore, ReadOnlyDataStore
from distinct_engine.catalog.views import ViewParameter, VirtualView

__all__ = [
    "Catalog",
    "DataStore",
    "FeatureSource",
    "FeatureType",
    "FileDataStore",
    "JdbcDataStore",
    "ReadOnlyDataStore",
    "ViewParameter",
    "VirtualView",
    "load_catalog",
    "parse_catalog",
]
