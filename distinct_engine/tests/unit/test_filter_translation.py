"""Unit tests for distinct_engine.filters."""

from __future__ import annotations

import pytest

from distinct_engine.errors import FilterTranslationError
from distinct_engine.filters import (
    FilterTranslator,
    decode_filter,
    normalize_null_comparisons,
    strip_where_prefix,
    substitute_column,
)
from distinct_engine.sql_toolkit import Dialect


class TestDecodeAndNormalize:
    def test_decode(self):
        assert decode_filter("country%20%3D%20%27DE%27") == "country = 'DE'"

    def test_decode_keeps_plus(self):
        assert decode_filter("pop+1%20%3E%202") == "pop+1 > 2"

    def test_equals_null(self):
        assert normalize_null_comparisons("country = null") == "country IS NULL"

    def test_equals_null_case_insensitive(self):
        assert normalize_null_comparisons("country=NULL AND x = 1") == "country IS NULL AND x = 1"

    def test_other_comparisons_untouched(self):
        assert normalize_null_comparisons("a <= null") == "a <= null"
        assert normalize_null_comparisons("a != null") == "a != null"

    def test_literals_untouched(self):
        assert normalize_null_comparisons("note = '= null'") == "note = '= null'"

    def test_identifier_prefix_not_matched(self):
        assert normalize_null_comparisons("a = nullable") == "a = nullable"


class TestStripWherePrefix:
    def test_strip(self):
        assert strip_where_prefix("WHERE a = 1") == "a = 1"

    def test_strip_case_insensitive(self):
        assert strip_where_prefix("  where a = 1 ") == "a = 1"

    def test_missing_prefix(self):
        with pytest.raises(FilterTranslationError, match="WHERE"):
            strip_where_prefix("a = 1")

    def test_keyword_must_stand_alone(self):
        with pytest.raises(FilterTranslationError):
            strip_where_prefix("WHEREVER a = 1")

    def test_empty_predicate(self):
        with pytest.raises(FilterTranslationError, match="empty"):
            strip_where_prefix("WHERE   ")


class TestSubstituteColumn:
    def test_replaces_bare_name(self):
        assert substitute_column("population > 10", "population", "pop") == "pop > 10"

    def test_case_insensitive(self):
        assert substitute_column("POPULATION > 10", "population", "pop") == "pop > 10"

    def test_quoted_name(self):
        assert substitute_column('"population" > 10', "population", "pop") == "pop > 10"

    def test_compound_expression_parenthesised(self):
        assert substitute_column("total > 10", "total", "a + b") == "(a + b) > 10"

    def test_word_boundaries(self):
        assert substitute_column("population_density > 1", "population", "pop") == "population_density > 1"

    def test_qualified_reference_skipped(self):
        assert substitute_column("t.population > 1", "population", "pop") == "t.population > 1"

    def test_literals_skipped(self):
        assert (
            substitute_column("population > 1 AND note = 'population'", "population", "pop")
            == "pop > 1 AND note = 'population'"
        )

    def test_same_expression_is_noop(self):
        assert substitute_column("pop > 1", "pop", "POP") == "pop > 1"

    def test_no_expression_is_noop(self):
        assert substitute_column("pop > 1", "pop", None) == "pop > 1"


class TestFilterTranslator:
    def test_where_clause(self):
        translator = FilterTranslator()
        assert translator.to_where_clause("country = 'DE'") == 'WHERE "country" = \'DE\''

    def test_where_clause_url_encoded(self):
        translator = FilterTranslator()
        assert translator.to_where_clause("pop%20%3E%201000") == 'WHERE "pop" > 1000'

    def test_null_comparison(self):
        translator = FilterTranslator()
        assert translator.to_where_clause("country = null") == 'WHERE "country" IS NULL'

    def test_predicate_with_substitution(self):
        translator = FilterTranslator()
        predicate = translator.to_predicate(
            "population > 1000", Dialect.POSTGRES, column="population", expression="pop"
        )
        assert predicate == "pop > 1000"

    def test_rejected_filter_becomes_translation_error(self):
        translator = FilterTranslator()
        with pytest.raises(FilterTranslationError):
            translator.to_where_clause("pop > (SELECT max(pop) FROM cities)")

    def test_unparseable_filter(self):
        translator = FilterTranslator()
        with pytest.raises(FilterTranslationError):
            translator.to_where_clause("pop >")
