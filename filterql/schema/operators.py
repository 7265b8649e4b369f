"""Constants and helpers for filter-key operator suffixes.

A filter key is ``<field>_<suffix>`` or a bare ``<field>``.  This module
defines the recognised suffixes, the operator each maps to, and the arity
groups shared by the parser and the compiler.
"""

from __future__ import annotations

from enum import Enum

# ---------------------------------------------------------------------------
# Operator enum
# ---------------------------------------------------------------------------


class FilterOperator(str, Enum):
    """Operators a filter key can carry."""

    EQ = "eq"
    NE = "ne"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    LIKE = "like"
    ILIKE = "ilike"
    IN = "in"
    BETWEEN = "between"
    NULL = "null"


# ---------------------------------------------------------------------------
# Suffix table
# ---------------------------------------------------------------------------

#: Key suffix (without the leading underscore) -> operator.
SUFFIXES: dict[str, FilterOperator] = {
    **{op.value: op for op in FilterOperator},
    "neq": FilterOperator.NE,
}

#: Suffixes ordered longest first so that the longest match wins.
_SUFFIXES_BY_LENGTH: tuple[str, ...] = tuple(sorted(SUFFIXES, key=len, reverse=True))

# ---------------------------------------------------------------------------
# Arity groups
# ---------------------------------------------------------------------------

#: Binary comparison operators and their SQL symbols.
COMPARISON_SQL: dict[FilterOperator, str] = {
    FilterOperator.EQ: "=",
    FilterOperator.NE: "<>",
    FilterOperator.GT: ">",
    FilterOperator.GTE: ">=",
    FilterOperator.LT: "<",
    FilterOperator.LTE: "<=",
}

#: Pattern-match operators (one value, rendered with the dialect's LIKE).
PATTERN_OPS: frozenset[FilterOperator] = frozenset({FilterOperator.LIKE, FilterOperator.ILIKE})

#: Operators that take exactly one bound value.
SCALAR_OPS: frozenset[FilterOperator] = frozenset(COMPARISON_SQL) | PATTERN_OPS

#: Operators that take a list of values.
LIST_OPS: frozenset[FilterOperator] = frozenset({FilterOperator.IN, FilterOperator.BETWEEN})

# ---------------------------------------------------------------------------
# Reserved keys
# ---------------------------------------------------------------------------

#: Keys that carry pagination / sorting, never filter conditions.
RESERVED_KEYS: frozenset[str] = frozenset(
    {"page", "limit", "sort", "_page", "_limit", "_sort", "_order", "_offset"}
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def split_filter_key(key: str) -> tuple[str, FilterOperator]:
    """Split a filter key into ``(field, operator)``.

    The longest recognised suffix wins.  A key without a recognised suffix is
    an implicit equality on the whole key.

    Args:
        key: A filter key such as ``'status_in'`` or ``'username'``.

    Returns:
        The field name (not yet validated) and the operator.
    """
    for suffix in _SUFFIXES_BY_LENGTH:
        if key.endswith(f"_{suffix}"):
            return key[: -(len(suffix) + 1)], SUFFIXES[suffix]
    return key, FilterOperator.EQ
