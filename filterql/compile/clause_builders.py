"""Clause-level SQL builders.

Each class handles exactly one SQL clause.  All of them share the
:class:`~filterql.compile.context.RuntimeContext` of the current run, so
placeholders stay contiguous across clauses.

Classes
-------
WhereClauseBuilder       — ``WHERE <cond> AND …`` (or ``WHERE (<base>) AND …``)
OrderByClauseBuilder     — ``ORDER BY <field> <dir>, …``
PaginationClauseBuilder  — ``LIMIT <n> OFFSET <m>``
"""
from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from filterql.compile.condition_builder import ConditionBuilder
from filterql.compile.context import CompilationContext, RuntimeContext
from filterql.errors import (
    CompilationError,
    InvalidFieldNameError,
    InvalidPaginationValueError,
)
from filterql.schema.filter_map import FilterCondition
from filterql.schema.identifiers import is_safe_identifier
from filterql.schema.options import QueryOptions, SortItem

_WHERE_RE = re.compile(r"\bWHERE\b", re.IGNORECASE)
_TRAILING_CLAUSE_RE = re.compile(
    r"\b(?:GROUP\s+BY|HAVING|ORDER\s+BY|LIMIT|OFFSET|UNION|INTERSECT|EXCEPT|RETURNING)\b",
    re.IGNORECASE,
)
_QUOTED_RE = re.compile(r"'(?:[^']|'')*'|\"(?:[^\"]|\"\")*\"|`[^`]*`")


def _top_level(pattern: re.Pattern[str], text: str) -> re.Match[str] | None:
    """Return the first match of ``pattern`` outside quotes and parentheses."""
    masked = _QUOTED_RE.sub(lambda m: " " * len(m.group()), text)
    depth = 0
    pos = 0
    for match in pattern.finditer(masked):
        depth += masked.count("(", pos, match.start()) - masked.count(")", pos, match.start())
        pos = match.start()
        if depth == 0:
            return match
    return None


def has_where(base_query: str) -> bool:
    """Return True when ``base_query`` has a WHERE outside any subquery."""
    return _top_level(_WHERE_RE, base_query) is not None


class WhereClauseBuilder:
    """Attaches the parsed conditions to a base query.

    A base without a top-level WHERE gets ``WHERE <cond> AND …``.  A base
    that already filters has its predicate wrapped in parentheses before the
    conditions are appended, so an ``OR`` in it cannot bypass them::

        SELECT * FROM t WHERE a OR b  ->  SELECT * FROM t WHERE (a OR b) AND "x" = $1

    The base must end with its FROM or WHERE part; a top-level trailing
    clause (``GROUP BY``, ``ORDER BY``, ``LIMIT``, ``RETURNING`` …) would put
    the conditions in the wrong place and raises :class:`CompilationError`.
    """

    def __init__(self, ctx: CompilationContext, runtime: RuntimeContext) -> None:
        self._cond = ConditionBuilder(ctx, runtime)

    def build(self, conditions: Sequence[FilterCondition], base_query: str = "") -> str:
        """Return ``base_query`` with the conditions attached."""
        base = base_query.rstrip()
        if not conditions:
            return base
        if _top_level(_TRAILING_CLAUSE_RE, base) is not None:
            raise CompilationError(
                "Base query must end with its FROM or WHERE part; "
                "move GROUP BY, ORDER BY, LIMIT and similar clauses out of it.",
                clause="WHERE",
            )
        fragments = " AND ".join(self._cond.build(c) for c in conditions)

        where = _top_level(_WHERE_RE, base)
        if where is None:
            return f"{base} WHERE {fragments}"
        head = base[: where.end()]
        predicate = base[where.end():].strip()
        if not predicate:
            return f"{head} {fragments}"
        return f"{head} ({predicate}) AND {fragments}"


class OrderByClauseBuilder:
    """Builds the ``ORDER BY`` clause from sort entries or the policy default."""

    def __init__(self, ctx: CompilationContext) -> None:
        self._ctx = ctx

    def build(self, sort: Sequence[SortItem]) -> str:
        items = sort or self._ctx.policy.default_sort
        if not items:
            return ""
        quote = self._ctx.dialect.quote_identifier
        parts = [f"{quote(item.field)} {item.direction.value}" for item in items]
        return f"ORDER BY {', '.join(parts)}"

    @staticmethod
    def validate(sort: Sequence[SortItem]) -> None:
        """Raise :class:`InvalidFieldNameError` for an unsafe sort field."""
        for item in sort:
            if not is_safe_identifier(item.field):
                raise InvalidFieldNameError(f"sort:{item.field}", item.field)


@dataclass(frozen=True)
class Pagination:
    """Resolved page window.

    Attributes:
        page: 1-based page number.
        limit: Page size after clamping.
        offset: Row offset.
    """

    page: int
    limit: int
    offset: int


class PaginationClauseBuilder:
    """Resolves page/limit/offset and renders ``LIMIT … OFFSET …``.

    ``limit`` defaults to the policy's ``default_limit`` and is clamped to
    its ``max_limit``.  ``page`` defaults to 1.  Non-positive values are
    rejected rather than clamped.
    """

    def __init__(self, ctx: CompilationContext) -> None:
        self._ctx = ctx

    def resolve(self, options: QueryOptions) -> Pagination:
        policy = self._ctx.policy
        limit = policy.default_limit if options.limit is None else options.limit
        page = 1 if options.page is None else options.page
        _require_int("limit", limit, minimum=1)
        _require_int("page", page, minimum=1)
        limit = min(limit, policy.max_limit)
        if options.offset is not None:
            _require_int("offset", options.offset, minimum=0)
            offset = options.offset
        else:
            offset = (page - 1) * limit
        return Pagination(page=page, limit=limit, offset=offset)

    def build(self, window: Pagination, runtime: RuntimeContext | None = None) -> str:
        """Render the clause; bind both numbers when ``runtime`` is given."""
        if runtime is None:
            return f"LIMIT {window.limit} OFFSET {window.offset}"
        return f"LIMIT {runtime.bind(window.limit)} OFFSET {runtime.bind(window.offset)}"


def _require_int(name: str, value: object, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidPaginationValueError(name, value, "must be an integer")
    if value < minimum:
        raise InvalidPaginationValueError(name, value, f"must be >= {minimum}")
