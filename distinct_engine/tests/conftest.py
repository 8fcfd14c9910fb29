"""Shared fixtures for distinct_engine tests.

The relational fixtures run against an in-memory SQLite database shared
through a :class:`~sqlalchemy.pool.StaticPool`, so every connection the
service opens sees the same tables.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from sqlalchemy import Engine, create_engine, text
from sqlalchemy.pool import StaticPool

from distinct_engine.catalog import (
    Catalog,
    FeatureType,
    FileDataStore,
    JdbcDataStore,
    ViewParameter,
    VirtualView,
)
from distinct_engine.config import Settings
from distinct_engine.sql_toolkit import Dialect

CITIES = [
    ("Berlin", "DE", 3_600_000),
    ("Hamburg", "DE", 1_800_000),
    ("Paris", "FR", 2_100_000),
    ("Lyon", "FR", 520_000),
    ("Nowhere", None, 10),
]

POPULATION = [
    ("EU", "Berlin", 3600),
    ("EU", "Paris", 2100),
    ("EU", "Lyon", 520),
    ("EU", "Oslo", 520),
    ("AS", "Tokyo", 14000),
]

POP_BY_REGION = VirtualView(
    name="pop_by_region",
    sql="SELECT pop AS population, name FROM t WHERE region = %region% ORDER BY name",
    parameters={"region": ViewParameter(name="region", default_value="'EU'", validator=r"'[A-Z]{2}'")},
)

REGIONS = VirtualView(name="regions", sql="SELECT DISTINCT region FROM t")


@pytest.fixture()
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False})
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE cities (name TEXT, country TEXT, pop INTEGER)"))
        conn.execute(
            text("INSERT INTO cities (name, country, pop) VALUES (:name, :country, :pop)"),
            [{"name": n, "country": c, "pop": p} for n, c, p in CITIES],
        )
        conn.execute(text("CREATE TABLE t (region TEXT, name TEXT, pop INTEGER)"))
        conn.execute(
            text("INSERT INTO t (region, name, pop) VALUES (:region, :name, :pop)"),
            [{"region": r, "name": n, "pop": p} for r, n, p in POPULATION],
        )
    yield engine
    engine.dispose()


@pytest.fixture()
def sqlite_store(sqlite_engine: Engine) -> JdbcDataStore:
    return JdbcDataStore(
        "gis",
        sqlite_engine,
        database_schema="main",
        dialect=Dialect.SQLITE,
        virtual_views={"pop_by_region": POP_BY_REGION, "regions": REGIONS},
    )


@pytest.fixture()
def catalog(sqlite_store: JdbcDataStore, tmp_path) -> Catalog:
    return Catalog(
        {"gis": sqlite_store, "shapes": FileDataStore("shapes", tmp_path)},
        [
            FeatureType(namespace="geo", name="cities", store_name="gis"),
            FeatureType(namespace="geo", name="pop_by_region", store_name="gis"),
            FeatureType(namespace="geo", name="regions", store_name="gis", read_only=True),
            FeatureType(namespace="geo", name="missing_table", store_name="gis"),
            FeatureType(namespace="geo", name="rivers", store_name="shapes"),
        ],
    )


@pytest.fixture()
def settings() -> Settings:
    return Settings(_env_file=None)  # type: ignore[call-arg]
