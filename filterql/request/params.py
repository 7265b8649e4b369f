"""HTTP query-string → FilterMap / QueryOptions.

Web frameworks hand over query parameters as strings, often as a
multi-dict.  :func:`parse_query_params` applies the list-endpoint
conventions so the compiler itself can stay strict about value shapes:

* ``_page`` / ``page``, ``_limit`` / ``limit``, ``_offset`` – integers.
* ``_sort`` / ``sort`` – comma list of fields, ``-field`` for descending;
  ``_order=desc`` flips every field without an explicit ``-``/``+`` prefix.
* ``<field>_in`` / ``<field>_between`` – comma-separated string, or the key
  repeated (``?status_in=a&status_in=b``).
* ``<field>_null`` – ``true/false``, ``1/0``, ``yes/no``.
* Empty strings are dropped.

Example::

    parsed = parse_query_params(request.query_params.multi_items())
    compiled = compiler.compile(BASE, parsed.filters, parsed.options)
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from filterql.errors import InvalidFilterValueError, InvalidPaginationValueError
from filterql.schema.operators import RESERVED_KEYS, FilterOperator, split_filter_key
from filterql.schema.options import QueryOptions, SortDirection, SortItem

_TRUE = frozenset({"true", "1", "yes", "on"})
_FALSE = frozenset({"false", "0", "no", "off"})

_PAGE_KEYS = ("_page", "page")
_LIMIT_KEYS = ("_limit", "limit")
_SORT_KEYS = ("_sort", "sort")


@dataclass(frozen=True)
class ParsedRequest:
    """The result of :func:`parse_query_params`.

    Attributes:
        filters: FilterMap ready for the compiler, in first-seen key order.
        options: Pagination and sort options.
    """

    filters: dict[str, Any] = field(default_factory=dict)
    options: QueryOptions = field(default_factory=QueryOptions)


def parse_query_params(
    params: Mapping[str, Any] | Iterable[tuple[str, Any]],
) -> ParsedRequest:
    """Split raw query parameters into filters and options.

    Args:
        params: A mapping, or an iterable of ``(key, value)`` pairs in which
            keys may repeat.

    Returns:
        A :class:`ParsedRequest`.

    Raises:
        InvalidPaginationValueError: If page, limit or offset is not an integer.
        InvalidFilterValueError: If a ``_null`` value is not a boolean word.
    """
    grouped = _group(params)

    page = _int_param(grouped, _PAGE_KEYS)
    limit = _int_param(grouped, _LIMIT_KEYS)
    offset = _int_param(grouped, ("_offset",))
    sort = _sort_param(grouped)

    filters: dict[str, Any] = {}
    for key, values in grouped.items():
        if key in RESERVED_KEYS:
            continue
        filters[key] = _filter_value(key, values)

    return ParsedRequest(
        filters=filters,
        options=QueryOptions(page=page, limit=limit, offset=offset, sort=sort),
    )


def apply_reserved_keys(options: QueryOptions, filters: Any) -> QueryOptions:
    """Fill options that are unset from reserved keys inside a FilterMap.

    A FilterMap built straight from a query string may still carry
    ``_page``, ``_limit``, ``_offset``, ``_sort`` and ``_order``.  Explicit
    ``options`` always win; the reserved keys only fill the gaps.

    Args:
        options: Options already coerced by the caller.
        filters: The FilterMap.  Anything that is not a mapping is returned
            untouched so the filter parser can report it.

    Returns:
        ``options`` itself when nothing was filled in, else an updated copy.

    Raises:
        InvalidPaginationValueError: If a reserved page, limit or offset key
            is not an integer.
    """
    if not isinstance(filters, Mapping):
        return options
    reserved = {k: v for k, v in filters.items() if k in RESERVED_KEYS}
    if not reserved:
        return options

    parsed = parse_query_params(reserved).options
    update: dict[str, Any] = {
        name: getattr(parsed, name)
        for name in ("page", "limit", "offset")
        if getattr(options, name) is None and getattr(parsed, name) is not None
    }
    if not options.sort and parsed.sort:
        update["sort"] = parsed.sort
    return options.model_copy(update=update) if update else options


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _group(params: Mapping[str, Any] | Iterable[tuple[str, Any]]) -> dict[str, list[Any]]:
    items = params.items() if isinstance(params, Mapping) else params
    grouped: dict[str, list[Any]] = {}
    for key, value in items:
        if value is None or value == "":
            continue
        if isinstance(value, (list, tuple)):
            grouped.setdefault(key, []).extend(v for v in value if v not in (None, ""))
        else:
            grouped.setdefault(key, []).append(value)
    return grouped


def _first(grouped: dict[str, list[Any]], keys: tuple[str, ...]) -> Any:
    for key in keys:
        values = grouped.get(key)
        if values:
            return values[0]
    return None


def _int_param(grouped: dict[str, list[Any]], keys: tuple[str, ...]) -> int | None:
    raw = _first(grouped, keys)
    if raw is None:
        return None
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    try:
        return int(str(raw).strip(), 10)
    except ValueError:
        raise InvalidPaginationValueError(keys[-1], raw, "must be an integer") from None


def _sort_param(grouped: dict[str, list[Any]]) -> list[SortItem]:
    tokens: list[str] = []
    for key in _SORT_KEYS:
        for raw in grouped.get(key, []):
            tokens.extend(t.strip() for t in str(raw).split(",") if t.strip())
    if not tokens:
        return []

    order = _first(grouped, ("_order",))
    default_dir = SortDirection.DESC if str(order or "").lower() == "desc" else SortDirection.ASC
    items: list[SortItem] = []
    for token in tokens:
        if token[0] in "+-":
            items.append(SortItem.parse(token))
        else:
            items.append(SortItem(field=token, direction=default_dir))
    return items


def _filter_value(key: str, values: list[Any]) -> Any:
    _, operator = split_filter_key(key)

    if operator in (FilterOperator.IN, FilterOperator.BETWEEN):
        items: list[Any] = []
        for raw in values:
            if isinstance(raw, str):
                items.extend(t.strip() for t in raw.split(",") if t.strip())
            else:
                items.append(raw)
        return items

    raw = values[0]
    if operator is FilterOperator.NULL:
        return _parse_bool(key, raw)
    return raw


def _parse_bool(key: str, raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    word = str(raw).strip().lower()
    if word in _TRUE:
        return True
    if word in _FALSE:
        return False
    raise InvalidFilterValueError(key, f"expected true or false, got {raw!r}.")
