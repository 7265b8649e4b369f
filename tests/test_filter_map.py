"""Unit tests for FilterMap parsing and filter-key splitting."""

from __future__ import annotations

import pytest

from filterql.errors import InvalidFieldNameError, ParseError
from filterql.schema.filter_map import FilterCondition, parse_filter_key, parse_filter_map
from filterql.schema.identifiers import is_safe_identifier
from filterql.schema.operators import FilterOperator, split_filter_key


class TestSplitFilterKey:
    @pytest.mark.parametrize(
        ("key", "field", "op"),
        [
            ("status_eq", "status", FilterOperator.EQ),
            ("status", "status", FilterOperator.EQ),
            ("age_ne", "age", FilterOperator.NE),
            ("age_neq", "age", FilterOperator.NE),
            ("age_gte", "age", FilterOperator.GTE),
            ("age_gt", "age", FilterOperator.GT),
            ("code_like", "code", FilterOperator.LIKE),
            ("code_ilike", "code", FilterOperator.ILIKE),
            ("created_at_between", "created_at", FilterOperator.BETWEEN),
            ("deleted_at_null", "deleted_at", FilterOperator.NULL),
            ("status_in", "status", FilterOperator.IN),
        ],
    )
    def test_suffixes(self, key, field, op):
        assert split_filter_key(key) == (field, op)

    def test_unknown_suffix_is_part_of_field(self):
        assert split_filter_key("created_on") == ("created_on", FilterOperator.EQ)

    def test_only_last_suffix_is_an_operator(self):
        # "is_null_eq" filters the column "is_null" by equality.
        assert split_filter_key("is_null_eq") == ("is_null", FilterOperator.EQ)

    def test_suffix_without_underscore_is_a_field(self):
        assert split_filter_key("between") == ("between", FilterOperator.EQ)


def test_parse_filter_key_validates_field():
    assert parse_filter_key("user_id_in") == ("user_id", FilterOperator.IN)
    with pytest.raises(InvalidFieldNameError):
        parse_filter_key("user-id_in")


@pytest.mark.parametrize(
    ("name", "ok"),
    [("id", True), ("_private", True), ("Col9", True), ("9col", False), ("", False), (None, False)],
)
def test_is_safe_identifier(name, ok):
    assert is_safe_identifier(name) is ok


def test_parse_filter_map_produces_typed_conditions():
    conditions = parse_filter_map(
        {"status_in": ["a", "b"], "age_between": [1, 2], "deleted_at_null": False}
    )
    assert conditions == [
        FilterCondition(field="status", operator=FilterOperator.IN, value=("a", "b"), key="status_in"),
        FilterCondition(field="age", operator=FilterOperator.BETWEEN, value=(1, 2), key="age_between"),
        FilterCondition(
            field="deleted_at", operator=FilterOperator.NULL, value=False, key="deleted_at_null"
        ),
    ]


def test_parse_filter_map_none_and_empty():
    assert parse_filter_map(None) == []
    assert parse_filter_map({}) == []


def test_conditions_are_frozen():
    (cond,) = parse_filter_map({"status_eq": "a"})
    with pytest.raises(Exception):
        cond.value = "b"  # type: ignore[misc]


def test_non_string_key_rejected():
    with pytest.raises(ParseError):
        parse_filter_map({1: "a"})  # type: ignore[dict-item]
