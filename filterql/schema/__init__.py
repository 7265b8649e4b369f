"""filterQL schema models: filter conditions, operators, query options."""
from filterql.schema.filter_map import (
    FilterCondition,
    FilterMap,
    parse_filter_key,
    parse_filter_map,
)
from filterql.schema.identifiers import IDENTIFIER_PATTERN, is_safe_identifier
from filterql.schema.operators import RESERVED_KEYS, FilterOperator
from filterql.schema.options import QueryOptions, SortDirection, SortItem, coerce_options

__all__ = [
    "FilterCondition",
    "FilterMap",
    "FilterOperator",
    "IDENTIFIER_PATTERN",
    "QueryOptions",
    "RESERVED_KEYS",
    "SortDirection",
    "SortItem",
    "coerce_options",
    "is_safe_identifier",
    "parse_filter_key",
    "parse_filter_map",
]
