"""Unit tests for distinct_engine.sql_toolkit (SQLGlot implementation)."""

from __future__ import annotations

import pytest

from distinct_engine.sql_toolkit import (
    UNCHANGED,
    Dialect,
    SqlFilterError,
    SqlParseError,
    SqlToolkit,
    get_sql_toolkit,
    register_implementation,
    reset_toolkit,
)
from distinct_engine.sql_toolkit.impl.sqlglot_impl import SqlGlotToolkit


@pytest.fixture()
def tk() -> SqlToolkit:
    return get_sql_toolkit()


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


class TestFactory:
    def test_singleton(self):
        assert get_sql_toolkit() is get_sql_toolkit()

    def test_default_is_sqlglot(self):
        assert isinstance(get_sql_toolkit(), SqlGlotToolkit)

    def test_satisfies_protocol(self):
        assert isinstance(get_sql_toolkit(), SqlToolkit)

    def test_register_and_reset(self):
        try:
            first = get_sql_toolkit()
            register_implementation(SqlGlotToolkit)
            second = get_sql_toolkit()
            assert isinstance(second, SqlGlotToolkit)
            assert second is not first
        finally:
            reset_toolkit()


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class TestParseSelect:
    def test_items_and_aliases(self, tk):
        stmt = tk.parser.parse_select("SELECT pop AS population, name FROM t")
        assert [i.alias for i in stmt.items] == ["population", None]
        assert stmt.items[0].expression.sql_text == "pop"
        assert stmt.items[0].sql_text == "pop AS population"
        assert stmt.items[1].sql_text == "name"

    def test_clauses(self, tk):
        stmt = tk.parser.parse_select("SELECT a FROM t WHERE b = 1 ORDER BY a LIMIT 3")
        assert stmt.where is not None and stmt.where.sql_text == "b = 1"
        assert len(stmt.order_by) == 1
        assert stmt.limit == 3
        assert stmt.distinct is False

    def test_distinct_flag(self, tk):
        assert tk.parser.parse_select("SELECT DISTINCT a FROM t").distinct is True

    def test_rejects_non_select(self, tk):
        with pytest.raises(SqlParseError, match="plain SELECT"):
            tk.parser.parse_select("DELETE FROM t")

    def test_rejects_union(self, tk):
        with pytest.raises(SqlParseError):
            tk.parser.parse_select("SELECT a FROM t UNION SELECT a FROM u")

    def test_rejects_multiple_statements(self, tk):
        with pytest.raises(SqlParseError, match="exactly 1"):
            tk.parser.parse_select("SELECT 1; SELECT 2")

    def test_invalid_sql(self, tk):
        with pytest.raises(SqlParseError):
            tk.parser.parse_select("SELECT (a FROM t")

    def test_parse_condition(self, tk):
        assert tk.parser.parse_condition("a = 1 AND b > 2").sql_text == "a = 1 AND b > 2"

    def test_parse_condition_rejects_statement(self, tk):
        with pytest.raises(SqlParseError):
            tk.parser.parse_condition("SELECT 1")


# ---------------------------------------------------------------------------
# Rewriter
# ---------------------------------------------------------------------------


class TestRewriter:
    def test_wrap_distinct_keeps_alias(self, tk):
        stmt = tk.parser.parse_select("SELECT pop AS population FROM t")
        wrapped = tk.rewriter.wrap_distinct(stmt.items[0])
        assert wrapped.sql_text == "DISTINCT(pop) AS population"
        assert wrapped.alias == "population"

    def test_wrap_distinct_unaliased_expression(self, tk):
        stmt = tk.parser.parse_select("SELECT a + b FROM t")
        assert tk.rewriter.wrap_distinct(stmt.items[0]).sql_text == "DISTINCT(a + b)"

    def test_wrap_does_not_touch_original(self, tk):
        stmt = tk.parser.parse_select("SELECT pop AS population FROM t")
        tk.rewriter.wrap_distinct(stmt.items[0])
        assert tk.renderer.render(stmt) == "SELECT pop AS population FROM t"

    def test_conjoin(self, tk):
        left = tk.parser.parse_condition("a = 1 OR b = 2")
        right = tk.parser.parse_condition("c = 3")
        assert tk.rewriter.conjoin(left, right).sql_text == "(a = 1 OR b = 2) AND (c = 3)"

    def test_conjoin_without_left(self, tk):
        right = tk.parser.parse_condition("c = 3")
        assert tk.rewriter.conjoin(None, right).sql_text == "c = 3"

    def test_rebuild_replaces_clauses(self, tk):
        stmt = tk.parser.parse_select("SELECT a, b FROM t ORDER BY b LIMIT 10")
        rebuilt = tk.rewriter.rebuild(
            stmt,
            items=[stmt.items[0]],
            order_by=[("a", "DESC")],
            limit=5,
        )
        assert tk.renderer.render(rebuilt) == "SELECT a FROM t ORDER BY a DESC LIMIT 5"
        # the source statement is left alone
        assert tk.renderer.render(stmt) == "SELECT a, b FROM t ORDER BY b LIMIT 10"

    def test_rebuild_clears_order(self, tk):
        stmt = tk.parser.parse_select("SELECT a FROM t ORDER BY a")
        assert tk.renderer.render(tk.rewriter.rebuild(stmt, order_by=[])) == "SELECT a FROM t"

    def test_rebuild_unchanged_keeps_limit(self, tk):
        stmt = tk.parser.parse_select("SELECT a FROM t LIMIT 7")
        assert tk.rewriter.rebuild(stmt, limit=UNCHANGED).limit == 7

    def test_rebuild_where(self, tk):
        stmt = tk.parser.parse_select("SELECT a FROM t WHERE b = 1")
        where = tk.rewriter.conjoin(stmt.where, tk.parser.parse_condition("c = 2"))
        rebuilt = tk.rewriter.rebuild(stmt, where=where)
        assert tk.renderer.render(rebuilt) == "SELECT a FROM t WHERE (b = 1) AND (c = 2)"


# ---------------------------------------------------------------------------
# ECQL encoder
# ---------------------------------------------------------------------------


class TestFilterEncoder:
    @pytest.mark.parametrize(
        ("ecql", "expected"),
        [
            ("country = 'DE'", "WHERE \"country\" = 'DE'"),
            ("pop >= 10 AND pop < 20", 'WHERE "pop" >= 10 AND "pop" < 20'),
            ("country <> 'DE' OR NOT pop > 1", 'WHERE "country" <> \'DE\' OR NOT "pop" > 1'),
            ("name LIKE 'B%'", 'WHERE "name" LIKE \'B%\''),
            ("pop BETWEEN 1 AND 5", 'WHERE "pop" BETWEEN 1 AND 5'),
            ("country IN ('DE', 'FR')", 'WHERE "country" IN (\'DE\', \'FR\')'),
            ("country IS NULL", 'WHERE "country" IS NULL'),
            ("pop * 2 > 10", 'WHERE "pop" * 2 > 10'),
            ("INCLUDE", "WHERE 1 = 1"),
            ("exclude", "WHERE 1 = 0"),
        ],
    )
    def test_supported_constructs(self, tk, ecql, expected):
        assert tk.filter_encoder.encode(ecql) == expected

    def test_is_not_null(self, tk):
        # sqlglot releases differ on the NOT placement; both forms are equivalent.
        assert tk.filter_encoder.encode("country IS NOT NULL") in (
            'WHERE NOT "country" IS NULL',
            'WHERE "country" IS NOT NULL',
        )

    def test_mixed_case_attribute_keeps_case(self, tk):
        assert tk.filter_encoder.encode("Name = 'x'") == 'WHERE "Name" = \'x\''

    def test_quoted_attribute_stays_quoted(self, tk):
        assert tk.filter_encoder.encode('"Name" = \'x\'') == 'WHERE "Name" = \'x\''

    def test_qualified_attribute_quoted(self, tk):
        assert tk.filter_encoder.encode("c.Name = 'x'") == 'WHERE "c"."Name" = \'x\''

    def test_ilike_kept_on_postgres(self, tk):
        assert tk.filter_encoder.encode("name ILIKE 'b%'") == 'WHERE "name" ILIKE \'b%\''

    def test_ilike_lowered_on_sqlite(self, tk):
        sql = tk.filter_encoder.encode("name ILIKE 'b%'", Dialect.SQLITE)
        assert sql == 'WHERE LOWER("name") LIKE LOWER(\'b%\')'

    def test_bbox_with_crs(self, tk):
        sql = tk.filter_encoder.encode("BBOX(geom, 1, 2, 3, 4, 'EPSG:4326')")
        assert sql == 'WHERE ST_INTERSECTS("geom", ST_MAKEENVELOPE(1, 2, 3, 4, 4326))'

    def test_bbox_without_crs(self, tk):
        sql = tk.filter_encoder.encode("BBOX(geom, 1, 2, 3, 4)")
        assert sql == 'WHERE ST_INTERSECTS("geom", ST_SETSRID(ST_MAKEENVELOPE(1, 2, 3, 4), ST_SRID("geom")))'

    def test_bbox_requires_postgis(self, tk):
        with pytest.raises(SqlFilterError, match="PostGIS"):
            tk.filter_encoder.encode("BBOX(geom, 1, 2, 3, 4)", Dialect.SQLITE)

    def test_bbox_bad_crs(self, tk):
        with pytest.raises(SqlFilterError, match="CRS"):
            tk.filter_encoder.encode("BBOX(geom, 1, 2, 3, 4, 'WGS84')")

    @pytest.mark.parametrize(
        "ecql",
        [
            "pop > (SELECT max(pop) FROM cities)",
            "lower(name) = 'x'",
            "pop",
            "1; DROP TABLE cities",
            "CAST(pop AS TEXT) = '1'",
        ],
    )
    def test_rejected_constructs(self, tk, ecql):
        with pytest.raises(SqlFilterError):
            tk.filter_encoder.encode(ecql)
