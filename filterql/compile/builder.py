"""Core FilterMap → SQL compilation logic.

``FilterQueryCompiler`` is the top-level orchestrator.  It parses and
validates the whole request first, then wires the clause-level builders and
assembles the statement.  All dialect-specific behaviour is delegated to the
injected ``SQLDialect``; clause rendering is delegated to the builders.

Builder hierarchy
-----------------
FilterQueryCompiler
  ├── WhereClauseBuilder       (clause_builders.py)
  │     └── ConditionBuilder   (condition_builder.py)
  ├── OrderByClauseBuilder     (clause_builders.py)
  └── PaginationClauseBuilder  (clause_builders.py)

Validate-then-build
-------------------
Every failure mode (unsafe field name, wrong operator arity, bad pagination
value, disallowed field) is detected before the first SQL fragment is
rendered, so a request either compiles completely or raises.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from filterql.compile.base import CompiledQuery, SQLDialect
from filterql.compile.clause_builders import (
    OrderByClauseBuilder,
    Pagination,
    PaginationClauseBuilder,
    WhereClauseBuilder,
)
from filterql.compile.context import CompilationContext, RuntimeContext
from filterql.compile.registry import DialectFactory
from filterql.policy.engine import FilterPolicy, PolicyEngine
from filterql.request.params import apply_reserved_keys
from filterql.schema.filter_map import FilterCondition, FilterMap, parse_filter_map
from filterql.schema.options import QueryOptions, coerce_options

logger = logging.getLogger(__name__)


class FilterQueryCompiler:
    """Compiles a FilterMap plus QueryOptions to parameterized SQL.

    Instances hold only configuration, so one compiler can be shared by any
    number of concurrent callers.

    Args:
        dialect: Dialect instance or registered target name.
        policy: Field allow/deny lists, limits and default sort.  Defaults to
            an unrestricted ``FilterPolicy()`` (limit 20, cap 100).
        bind_pagination: If ``True``, LIMIT and OFFSET are emitted as the last
            two placeholders instead of integer literals.
    """

    def __init__(
        self,
        dialect: str | SQLDialect = "postgres",
        policy: FilterPolicy | None = None,
        bind_pagination: bool = False,
    ) -> None:
        self._ctx = CompilationContext(
            dialect=DialectFactory.resolve(dialect),
            policy=policy or FilterPolicy(),
        )
        self._policy_engine = PolicyEngine(self._ctx.policy)
        self._bind_pagination = bind_pagination

    @property
    def dialect(self) -> SQLDialect:
        return self._ctx.dialect

    @property
    def policy(self) -> FilterPolicy:
        return self._ctx.policy

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def compile(
        self,
        base_query: str,
        filters: FilterMap | None = None,
        options: QueryOptions | dict[str, Any] | None = None,
        initial_values: Sequence[Any] = (),
    ) -> CompiledQuery:
        """Compile ``base_query`` + WHERE + ORDER BY + LIMIT/OFFSET.

        Reserved keys left in ``filters`` (``_page``, ``_limit``, ``_offset``,
        ``_sort``, ``_order``) fill whatever ``options`` leaves unset.

        Args:
            base_query: Caller-owned ``SELECT … FROM …`` text.
            filters: The FilterMap driving the WHERE clause.
            options: Pagination and sort options.
            initial_values: Values for placeholders already in ``base_query``;
                they are bound first and filter placeholders continue after
                them.

        Returns:
            :class:`CompiledQuery` with ``text`` and positional ``values``.

        Raises:
            ParseError: If ``filters`` or ``options`` have the wrong shape.
            InvalidFieldNameError: On an unsafe filter or sort field.
            InvalidOperatorArityError: On a value with the wrong element count.
            InvalidFilterValueError: On an unusable value type.
            InvalidPaginationValueError: On a non-positive page or limit.
            DisallowedFieldError: If the policy rejects a field.
            CompilationError: If ``base_query`` ends with a clause the WHERE
                conditions cannot follow.
        """
        opts = self._options(filters, options)
        conditions = self._prepare(filters, opts.sort)
        pagination = PaginationClauseBuilder(self._ctx)
        window = pagination.resolve(opts)

        runtime = RuntimeContext(dialect=self._ctx.dialect, values=list(initial_values))
        parts = [
            WhereClauseBuilder(self._ctx, runtime).build(conditions, base_query),
            OrderByClauseBuilder(self._ctx).build(opts.sort),
            pagination.build(window, runtime if self._bind_pagination else None),
        ]
        return self._finish(parts, runtime)

    def resolve_pagination(
        self,
        options: QueryOptions | dict[str, Any] | None = None,
        filters: FilterMap | None = None,
    ) -> Pagination:
        """Return the page window ``compile`` would use for ``options`` and ``filters``."""
        return PaginationClauseBuilder(self._ctx).resolve(self._options(filters, options))

    def compile_where(
        self,
        base_query: str,
        filters: FilterMap | None = None,
        initial_values: Sequence[Any] = (),
    ) -> CompiledQuery:
        """Compile ``base_query`` + WHERE only (no ORDER BY, no pagination).

        Suited to ``DELETE``/``UPDATE``/``COUNT`` templates.  ``initial_values``
        are bound first, so a template such as ``UPDATE t SET a = $1`` keeps
        its own placeholders and the filter placeholders continue after them.
        """
        conditions = self._prepare(filters)
        runtime = RuntimeContext(dialect=self._ctx.dialect, values=list(initial_values))
        parts = [WhereClauseBuilder(self._ctx, runtime).build(conditions, base_query)]
        return self._finish(parts, runtime)

    def compile_count(self, source: str, filters: FilterMap | None = None) -> CompiledQuery:
        """Compile ``SELECT COUNT(*) AS total FROM <source>`` + WHERE.

        Args:
            source: Already-quoted table reference, e.g. ``'"app"."users"'``.
            filters: The same FilterMap used for the page query.
        """
        return self.compile_where(f"SELECT COUNT(*) AS total FROM {source}", filters)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _options(
        self,
        filters: FilterMap | None,
        options: QueryOptions | dict[str, Any] | None,
    ) -> QueryOptions:
        return apply_reserved_keys(coerce_options(options), filters)

    def _prepare(
        self,
        filters: FilterMap | None,
        sort: Sequence[Any] = (),
    ) -> list[FilterCondition]:
        conditions = parse_filter_map(filters)
        OrderByClauseBuilder.validate(sort)
        self._policy_engine.apply(conditions, sort)
        return conditions

    def _finish(self, parts: list[str], runtime: RuntimeContext) -> CompiledQuery:
        text = " ".join(p for p in parts if p)
        logger.debug(
            "compiled %s query with %d bound value(s): %s",
            self._ctx.dialect.dialect_name,
            len(runtime.values),
            text,
        )
        return CompiledQuery(
            text=text,
            values=list(runtime.values),
            dialect=self._ctx.dialect.dialect_name,
        )
