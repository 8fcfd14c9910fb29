"""Shared fixtures for distinct_api tests.

The app is built with :func:`create_app` and its lookup service dependency
is overridden with one backed by an in-memory SQLite catalog, so the
lifespan (which loads ``catalog.yaml``) never runs.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import Engine, create_engine, text
from sqlalchemy.pool import StaticPool

from distinct_api.config import APISettings
from distinct_api.dependencies import get_service, get_settings
from distinct_api.main import create_app
from distinct_engine.catalog import Catalog, FeatureType, FileDataStore, JdbcDataStore, ViewParameter, VirtualView
from distinct_engine.config import Settings
from distinct_engine.service import DistinctValuesService
from distinct_engine.sql_toolkit import Dialect


@pytest.fixture()
def test_settings() -> APISettings:
    return APISettings(_env_file=None)  # type: ignore[call-arg]


@pytest.fixture()
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False})
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE cities (name TEXT, country TEXT)"))
        conn.execute(
            text("INSERT INTO cities (name, country) VALUES (:n, :c)"),
            [{"n": "Berlin", "c": "DE"}, {"n": "Paris", "c": "FR"}, {"n": "Lyon", "c": "FR"}],
        )
        conn.execute(text("CREATE TABLE t (region TEXT, pop INTEGER)"))
        conn.execute(
            text("INSERT INTO t (region, pop) VALUES (:r, :p)"),
            [{"r": "EU", "p": 10}, {"r": "EU", "p": 20}, {"r": "AS", "p": 30}],
        )
    yield engine
    engine.dispose()


@pytest.fixture()
def service(sqlite_engine: Engine, tmp_path) -> DistinctValuesService:
    view = VirtualView(
        name="pop_by_region",
        sql="SELECT pop AS population FROM t WHERE region = %region%",
        parameters={"region": ViewParameter(name="region", default_value="'EU'")},
    )
    store = JdbcDataStore(
        "gis",
        sqlite_engine,
        database_schema="main",
        dialect=Dialect.SQLITE,
        virtual_views={"pop_by_region": view},
    )
    catalog = Catalog(
        {"gis": store, "shapes": FileDataStore("shapes", tmp_path)},
        [
            FeatureType(namespace="geo", name="cities", store_name="gis"),
            FeatureType(namespace="geo", name="pop_by_region", store_name="gis"),
            FeatureType(namespace="geo", name="rivers", store_name="shapes"),
        ],
    )
    return DistinctValuesService(catalog, Settings(_env_file=None))  # type: ignore[call-arg]


@pytest.fixture()
def app(test_settings: APISettings, service: DistinctValuesService):
    """Create a FastAPI app with the lookup service overridden."""
    application = create_app()
    application.dependency_overrides[get_settings] = lambda: test_settings
    application.dependency_overrides[get_service] = lambda: service
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def client(app) -> AsyncIterator[AsyncClient]:
    """Async HTTP client bound to the app.

    Uses ASGITransport so requests go directly to the ASGI app without
    opening a socket.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
