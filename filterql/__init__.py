"""filterQL – compile request filters into safe, parameterized SQL.

Public API
----------
``compile_filter_query``
    Parse, validate, apply policy, and compile a FilterMap plus pagination
    and sort options into ``(text, values)``.

``parse_query_params``
    Turn an HTTP query string (``?status_in=a,b&_page=2&_sort=-created_at``)
    into a FilterMap and QueryOptions.

Re-exported types
-----------------
``FilterQueryCompiler``, ``CompiledQuery``, ``QueryOptions``, ``SortItem``,
``FilterPolicy``, ``FilterRepository``, and all error classes.

Extensibility
-------------
New dialects can be registered via::

    from filterql.compile.registry import DialectFactory

    @DialectFactory.register("cockroach")
    class CockroachDialect(PostgresDialect):
        ...

After registration, ``compile_filter_query(..., dialect="cockroach")`` picks
it up automatically.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from filterql.compile.base import CompiledQuery, SQLDialect
from filterql.compile.builder import FilterQueryCompiler
from filterql.compile.mysql import MySQLDialect
from filterql.compile.postgres import PostgresDialect
from filterql.compile.registry import DialectFactory, OperatorRegistry
from filterql.compile.sqlite import SQLiteDialect
from filterql.errors import (
    CompilationError,
    DisallowedFieldError,
    FilterQLError,
    InvalidFieldNameError,
    InvalidFilterValueError,
    InvalidOperatorArityError,
    InvalidPaginationValueError,
    ParseError,
    ProfileConfigError,
    UnknownDialectError,
    UnsupportedOperatorError,
    ValidationError,
)
from filterql.policy.engine import FieldKind, FieldRule, FilterPolicy, PolicyEngine
from filterql.repository import (
    AuditEvent,
    DBAPIExecutor,
    FilterRepository,
    InMemoryCache,
    LoggingAuditSink,
    Page,
)
from filterql.request.params import ParsedRequest, parse_query_params
from filterql.schema.filter_map import FilterCondition, FilterMap, parse_filter_map
from filterql.schema.operators import FilterOperator
from filterql.schema.options import QueryOptions, SortDirection, SortItem

# ---------------------------------------------------------------------------
# Register built-in dialects with DialectFactory
# ---------------------------------------------------------------------------

DialectFactory.register_class("postgres", PostgresDialect)
DialectFactory.register_class("sqlite", SQLiteDialect)
DialectFactory.register_class("mysql", MySQLDialect)

__all__ = [
    # Core pipeline
    "compile_filter_query",
    "parse_query_params",
    "parse_filter_map",
    # Schema types
    "FilterCondition",
    "FilterMap",
    "FilterOperator",
    "QueryOptions",
    "SortDirection",
    "SortItem",
    "ParsedRequest",
    # Policy
    "FieldKind",
    "FieldRule",
    "FilterPolicy",
    "PolicyEngine",
    # Compilation
    "CompiledQuery",
    "DialectFactory",
    "FilterQueryCompiler",
    "MySQLDialect",
    "OperatorRegistry",
    "PostgresDialect",
    "SQLDialect",
    "SQLiteDialect",
    # Repository
    "AuditEvent",
    "DBAPIExecutor",
    "FilterRepository",
    "InMemoryCache",
    "LoggingAuditSink",
    "Page",
    # Errors
    "FilterQLError",
    "ParseError",
    "ValidationError",
    "InvalidFieldNameError",
    "InvalidOperatorArityError",
    "InvalidFilterValueError",
    "InvalidPaginationValueError",
    "DisallowedFieldError",
    "ProfileConfigError",
    "CompilationError",
    "UnknownDialectError",
    "UnsupportedOperatorError",
]


def compile_filter_query(
    base_query: str,
    filters: FilterMap | None = None,
    options: QueryOptions | dict[str, Any] | None = None,
    *,
    dialect: str | SQLDialect = "postgres",
    policy: FilterPolicy | None = None,
    bind_pagination: bool = False,
    initial_values: Sequence[Any] = (),
) -> CompiledQuery:
    """Parse, validate, apply policy, and compile a filtered, paginated query.

    This is the main entry point::

        compiled = filterql.compile_filter_query(
            'SELECT * FROM "users"',
            {"status_in": ["active", "invited"], "username_like": "doe"},
            {"page": 2, "limit": 10, "sort": [{"field": "created_at", "direction": "DESC"}]},
        )
        rows = await conn.fetch(compiled.text, *compiled.values)

    Args:
        base_query: ``SELECT … FROM …`` text supplied by the repository.
        filters: FilterMap of suffixed keys (``status_eq``, ``code_like``, …).
        options: Page, limit, offset and sort.
        dialect: Target dialect name or instance; defaults to ``"postgres"``
            (``$1``-style placeholders).
        policy: Optional field policy; defaults to ``FilterPolicy()``.
        bind_pagination: Emit LIMIT/OFFSET as the last two placeholders.
        initial_values: Values for placeholders already in ``base_query``
            (e.g. ``$1`` in ``WHERE tenant_id = $1``); filter placeholders
            are numbered after them.

    Returns:
        ``CompiledQuery`` with ``text``, positional ``values`` and ``dialect``.

    Raises:
        ParseError: If ``filters`` or ``options`` have the wrong structure.
        ValidationError: (or subclass) if a key, value or page setting is
            rejected.
        UnknownDialectError: If ``dialect`` names no registered dialect.
    """
    compiler = FilterQueryCompiler(dialect, policy, bind_pagination=bind_pagination)
    return compiler.compile(base_query, filters, options, initial_values)
