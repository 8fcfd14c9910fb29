"""Shared fixtures for CLI tests: a SQLite database and a catalog file pointing at it."""

from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy import create_engine, text

CATALOG_TEMPLATE = """\
stores:
  gis:
    url: sqlite:///{db}
    schema: main
    virtual_views:
      pop_by_region:
        sql: SELECT pop AS population FROM t WHERE region = %region%
        parameters:
          region:
            default: "'EU'"
            regex: "^'[A-Z]{{2}}'$"
  shapes:
    kind: file
    path: {shapes}
layers:
  - name: geo:cities
    store: gis
  - name: geo:pop_by_region
    store: gis
  - name: geo:rivers
    store: shapes
"""


@pytest.fixture()
def catalog_file(tmp_path: Path) -> Path:
    db = tmp_path / "gis.db"
    engine = create_engine(f"sqlite:///{db}")
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
    engine.dispose()

    shapes = tmp_path / "shapes"
    shapes.mkdir()
    path = tmp_path / "catalog.yaml"
    path.write_text(CATALOG_TEMPLATE.format(db=db.as_posix(), shapes=shapes.as_posix()), encoding="utf-8")
    return path
