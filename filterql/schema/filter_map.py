"""Typed filter conditions and the FilterMap parser.

A FilterMap is the flat ``{key: value}`` mapping callers deserialize from a
request.  :func:`parse_filter_map` turns it into an ordered list of
:class:`FilterCondition` objects, validating every entry first so the
compiler never sees a condition it cannot render safely.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict

from filterql.errors import (
    InvalidFieldNameError,
    InvalidFilterValueError,
    InvalidOperatorArityError,
    ParseError,
)
from filterql.schema.identifiers import is_safe_identifier
from filterql.schema.operators import (
    RESERVED_KEYS,
    SCALAR_OPS,
    FilterOperator,
    split_filter_key,
)

#: Type alias for the caller-supplied filter mapping.
FilterMap = Mapping[str, Any]

_SEQUENCE_TYPES = (list, tuple)
_COLLECTION_TYPES = (list, tuple, set, frozenset, dict)


class FilterCondition(BaseModel):
    """A single parsed ``field <operator> value`` condition.

    Attributes:
        field: Validated field name (safe SQL identifier).
        operator: The operator parsed from the key suffix.
        value: The bound value.  A tuple for ``in`` / ``between``, a bool
            for ``null``, otherwise a scalar.
        key: The original filter key, kept for error messages.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    field: str
    operator: FilterOperator
    value: Any
    key: str


def parse_filter_key(key: str) -> tuple[str, FilterOperator]:
    """Split ``key`` into ``(field, operator)`` and validate the field name.

    Raises:
        InvalidFieldNameError: If the field part is not a safe identifier.
    """
    field, operator = split_filter_key(key)
    if not is_safe_identifier(field):
        raise InvalidFieldNameError(key, field)
    return field, operator


def parse_filter_map(filters: FilterMap | None) -> list[FilterCondition]:
    """Parse a FilterMap into typed conditions in insertion order.

    Reserved pagination keys are ignored and ``None`` values are skipped.
    Every remaining entry is validated before the list is returned, so a
    single bad key rejects the whole map.

    Args:
        filters: The caller-supplied mapping, or ``None`` for no filters.

    Returns:
        The parsed conditions, one per non-skipped entry.

    Raises:
        ParseError: If ``filters`` is not a mapping with string keys.
        InvalidFieldNameError: On an unsafe field name.
        InvalidOperatorArityError: On a value with the wrong shape.
        InvalidFilterValueError: On a ``null`` value that is not a bool.
    """
    if filters is None:
        return []
    if not isinstance(filters, Mapping):
        raise ParseError(
            f"Filter must be a mapping, got {type(filters).__name__}.", raw=filters
        )

    conditions: list[FilterCondition] = []
    for key, value in filters.items():
        if not isinstance(key, str):
            raise ParseError(f"Filter keys must be strings, got {key!r}.", raw=filters)
        if key in RESERVED_KEYS or value is None:
            continue
        field, operator = parse_filter_key(key)
        conditions.append(
            FilterCondition(
                field=field,
                operator=operator,
                value=_coerce_value(key, operator, value),
                key=key,
            )
        )
    return conditions


def _coerce_value(key: str, operator: FilterOperator, value: Any) -> Any:
    """Check ``value`` against the operator's arity and normalise it."""
    if operator is FilterOperator.NULL:
        if not isinstance(value, bool):
            raise InvalidFilterValueError(key, "the null operator expects true or false.")
        return value

    if operator is FilterOperator.IN:
        if not isinstance(value, _SEQUENCE_TYPES):
            raise InvalidOperatorArityError(key, operator.value, "a list of values", value)
        # NULL never matches IN; drop those entries rather than binding them.
        items = tuple(v for v in value if v is not None)
        if not items:
            raise InvalidOperatorArityError(key, operator.value, "at least one value", value)
        return items

    if operator is FilterOperator.BETWEEN:
        if not isinstance(value, _SEQUENCE_TYPES) or len(value) != 2:
            raise InvalidOperatorArityError(
                key, operator.value, "a two-element list [low, high]", value
            )
        if value[0] is None or value[1] is None:
            raise InvalidFilterValueError(key, "between bounds must not be null.")
        return tuple(value)

    if operator in SCALAR_OPS and isinstance(value, _COLLECTION_TYPES):
        raise InvalidOperatorArityError(key, operator.value, "a single value", value)
    return value
