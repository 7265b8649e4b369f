"""Unit tests for FilterPolicy and PolicyEngine."""

from __future__ import annotations

import pytest

from filterql.compile.builder import FilterQueryCompiler
from filterql.errors import (
    DisallowedFieldError,
    InvalidFilterValueError,
    ProfileConfigError,
    UnsupportedOperatorError,
)
from filterql.policy.engine import FieldKind, FieldRule, FilterPolicy, PolicyEngine
from filterql.schema.filter_map import parse_filter_map
from filterql.schema.options import SortItem

BASE = 'SELECT * FROM "users"'


def _compiler(**kwargs) -> FilterQueryCompiler:
    return FilterQueryCompiler("postgres", FilterPolicy(**kwargs))


def test_allowed_field_passes(users_policy):
    PolicyEngine(users_policy).apply(parse_filter_map({"status_eq": "a"}), [SortItem(field="id")])


def test_field_outside_allowlist_rejected(users_policy):
    with pytest.raises(DisallowedFieldError) as exc_info:
        PolicyEngine(users_policy).apply(parse_filter_map({"salary_gt": 10}))
    assert exc_info.value.details["field"] == "salary"
    assert "username" in exc_info.value.details["allowed_fields"]


def test_denied_field_rejected_even_without_allowlist():
    with pytest.raises(DisallowedFieldError):
        _compiler(denied_fields=["password_hash"]).compile(BASE, {"password_hash_eq": "x"})


def test_denied_field_wins_over_allowlist():
    policy = FilterPolicy(allowed_fields=["id", "secret"], denied_fields=["secret"])
    assert not policy.is_field_allowed("secret")
    assert policy.effective_allowed_fields() == ["id"]


def test_sort_field_checked(users_policy):
    c = FilterQueryCompiler("postgres", users_policy)
    with pytest.raises(DisallowedFieldError):
        c.compile(BASE, None, {"sort": "-password_hash"})


def test_unrestricted_policy_allows_any_safe_field():
    r = _compiler().compile(BASE, {"anything_eq": 1})
    assert r.values == [1]


def test_custom_limits():
    c = _compiler(default_limit=25, max_limit=50)
    assert c.compile(BASE).text.endswith("LIMIT 25 OFFSET 0")
    assert c.compile(BASE, None, {"limit": 1000}).text.endswith("LIMIT 50 OFFSET 0")


@pytest.mark.parametrize(
    ("kwargs", "setting"),
    [
        ({"max_limit": 0}, "max_limit"),
        ({"default_limit": 0}, "default_limit"),
        ({"default_limit": 200, "max_limit": 100}, "default_limit"),
    ],
)
def test_misconfigured_policy(kwargs, setting):
    with pytest.raises(ProfileConfigError) as exc_info:
        FilterPolicy(**kwargs)
    assert exc_info.value.setting == setting


def test_disallowed_field_raised_before_sql(users_policy):
    # The valid condition comes first; nothing is compiled for it either.
    c = FilterQueryCompiler("postgres", users_policy)
    with pytest.raises(DisallowedFieldError):
        c.compile(BASE, {"status_eq": "a", "salary_gt": 10})


# ---------------------------------------------------------------------------
# Field rules
# ---------------------------------------------------------------------------


def _ruled() -> FilterQueryCompiler:
    return _compiler(
        field_rules={
            "username": FieldRule(FieldKind.STRING),
            "status": FieldRule(FieldKind.STRING, enum_values=("active", "banned")),
            "age": FieldRule(FieldKind.NUMBER, min_value=0, max_value=150),
            "created_at": FieldRule(FieldKind.DATE),
            "verified": FieldRule(FieldKind.BOOLEAN),
        }
    )


@pytest.mark.parametrize(
    "filters",
    [
        {"age_like": "1"},
        {"created_at_ilike": "2024%"},
        {"username_between": ["a", "m"]},
        {"verified_gt": True},
        {"verified_between": [False, True]},
    ],
)
def test_operator_unsupported_for_kind(filters):
    with pytest.raises(UnsupportedOperatorError) as exc_info:
        _ruled().compile(BASE, filters)
    assert exc_info.value.code == "UNSUPPORTED_OPERATOR"


@pytest.mark.parametrize(
    "filters",
    [
        {"username_like": "doe"},
        {"username_gte": "m"},
        {"age_between": [18, 65]},
        {"created_at_between": ["2024-01-01", "2024-12-31"]},
        {"verified": True},
        {"verified_null": True},
        {"status_in": ["active", "banned"]},
        {"age_gte": "18"},
    ],
)
def test_operator_supported_for_kind(filters):
    _ruled().compile(BASE, filters)


@pytest.mark.parametrize(
    "filters",
    [
        {"status_eq": "deleted"},
        {"status_ne": "deleted"},
        {"status_in": ["active", "deleted"]},
        {"age_gt": -1},
        {"age_lte": 151},
        {"age_between": [10, 200]},
        {"age_eq": "eighteen"},
        {"age_gte": "NaN"},
        {"age_eq": True},
    ],
)
def test_value_outside_rule_rejected(filters):
    with pytest.raises(InvalidFilterValueError):
        _ruled().compile(BASE, filters)


def test_rule_checked_before_sql_is_built():
    with pytest.raises(InvalidFilterValueError) as exc_info:
        _ruled().compile(BASE, {"age_gt": 10, "status_in": ["gone"]})
    assert exc_info.value.details["key"] == "status_in"


def test_fields_without_rules_are_unrestricted():
    r = _ruled().compile(BASE, {"note_like": "x", "score_between": ["a", "b"]})
    assert r.values == ["%x%", "a", "b"]


def test_inverted_bounds_rejected():
    with pytest.raises(ProfileConfigError) as exc_info:
        FilterPolicy(field_rules={"age": FieldRule(FieldKind.NUMBER, min_value=9, max_value=1)})
    assert exc_info.value.setting == "field_rules"
