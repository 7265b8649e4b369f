"""Filter-driven repository over a DB-API connection.

``FilterRepository`` is the data-access seam list endpoints sit on: it
compiles a FilterMap into a COUNT query and a page query, runs both through
an injected :class:`QueryExecutor`, and returns a :class:`Page`.

Cross-cutting behaviour is injected as explicit capabilities rather than
reached through module-level singletons:

* :class:`Cache` – optional read-through cache for page results.  Entries
  are keyed by the compiled SQL and its values; expiring or invalidating
  them is the cache implementation's business.
* :class:`AuditSink` – optional receiver for :class:`AuditEvent` records
  emitted by destructive operations.

Example::

    conn = sqlite3.connect("app.db")
    users = FilterRepository(
        DBAPIExecutor(conn),
        "users",
        dialect="sqlite",
        policy=FilterPolicy(default_sort=[SortItem(field="id")]),
        audit=LoggingAuditSink(),
    )
    page = users.find_with_filters({"status_in": ["active"]}, {"page": 2, "limit": 10})
"""

from __future__ import annotations

import json
import logging
import math
from collections import OrderedDict
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Protocol

from filterql.compile.base import CompiledQuery, SQLDialect
from filterql.compile.builder import FilterQueryCompiler
from filterql.compile.registry import DialectFactory
from filterql.errors import ProfileConfigError, ValidationError
from filterql.policy.engine import FilterPolicy
from filterql.schema.filter_map import FilterMap, parse_filter_map
from filterql.schema.identifiers import is_safe_identifier
from filterql.schema.options import QueryOptions, coerce_options

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("filterql.audit")

# ---------------------------------------------------------------------------
# Capabilities
# ---------------------------------------------------------------------------


class QueryExecutor(Protocol):
    """Runs compiled ``(text, values)`` pairs against a database."""

    def fetch_all(self, text: str, values: Sequence[Any]) -> list[dict[str, Any]]: ...

    def fetch_value(self, text: str, values: Sequence[Any]) -> Any: ...

    def execute(self, text: str, values: Sequence[Any]) -> int: ...


class Cache(Protocol):
    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...


@dataclass(frozen=True)
class AuditEvent:
    """A record of one destructive repository operation.

    Attributes:
        action: Operation name, e.g. ``'delete'``.
        table: Qualified table the operation ran against.
        filters: The FilterMap that selected the affected rows.
        affected: Number of rows affected.
        occurred_at: UTC timestamp.
    """

    action: str
    table: str
    filters: dict[str, Any]
    affected: int
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class AuditSink(Protocol):
    def record(self, event: AuditEvent) -> None: ...


# ---------------------------------------------------------------------------
# Reference implementations
# ---------------------------------------------------------------------------


class DBAPIExecutor:
    """Adapts a DB-API 2.0 connection (``sqlite3``, ``psycopg``, ``PyMySQL``).

    Transactions are left to the caller; this adapter never commits.
    """

    def __init__(self, connection: Any) -> None:
        self._conn = connection

    def fetch_all(self, text: str, values: Sequence[Any]) -> list[dict[str, Any]]:
        cur = self._conn.cursor()
        try:
            cur.execute(text, list(values))
            columns = [d[0] for d in cur.description]
            return [dict(zip(columns, row)) for row in cur.fetchall()]
        finally:
            cur.close()

    def fetch_value(self, text: str, values: Sequence[Any]) -> Any:
        cur = self._conn.cursor()
        try:
            cur.execute(text, list(values))
            row = cur.fetchone()
            return None if row is None else row[0]
        finally:
            cur.close()

    def execute(self, text: str, values: Sequence[Any]) -> int:
        cur = self._conn.cursor()
        try:
            cur.execute(text, list(values))
            return cur.rowcount
        finally:
            cur.close()


class InMemoryCache:
    """LRU :class:`Cache` held in process memory, mainly for tests and scripts.

    Args:
        max_entries: Entries kept before the least recently used is evicted.
    """

    def __init__(self, max_entries: int = 1024) -> None:
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}.")
        self._max_entries = max_entries
        self._entries: OrderedDict[str, Any] = OrderedDict()

    def get(self, key: str) -> Any | None:
        value = self._entries.get(key)
        if value is not None:
            self._entries.move_to_end(key)
        return value

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = value
        self._entries.move_to_end(key)
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)

    def __len__(self) -> int:
        return len(self._entries)


class LoggingAuditSink:
    """:class:`AuditSink` that writes each event to the ``filterql.audit`` logger."""

    def record(self, event: AuditEvent) -> None:
        audit_logger.info(
            "%s on %s affected %d row(s) filters=%s",
            event.action,
            event.table,
            event.affected,
            event.filters,
        )


# ---------------------------------------------------------------------------
# Page result
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Page:
    """One page of rows plus the total number of matching rows.

    Attributes:
        items: Rows on this page, as dicts.
        total: Rows matching the filters across all pages.
        page: 1-based page number.
        limit: Page size after clamping.
    """

    items: list[dict[str, Any]]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        """Total number of pages (0 when nothing matches)."""
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.pages

    def copy(self) -> Page:
        """Return a copy whose item list and row dicts are not shared."""
        return replace(self, items=[dict(row) for row in self.items])


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class FilterRepository:
    """Filtered, paginated reads and filtered deletes over one table.

    Args:
        executor: Runs compiled queries.
        table: Table name (must be a safe identifier).
        schema: Optional schema name (e.g. ``'public'``).
        dialect: Dialect instance or registered target name.
        policy: Field policy applied to every request.
        cache: Optional read-through cache for ``find_with_filters``.
        audit: Optional audit sink for ``delete_where``.
    """

    def __init__(
        self,
        executor: QueryExecutor,
        table: str,
        *,
        schema: str | None = None,
        dialect: str | SQLDialect = "postgres",
        policy: FilterPolicy | None = None,
        cache: Cache | None = None,
        audit: AuditSink | None = None,
    ) -> None:
        for setting, name in (("table", table), ("schema", schema)):
            if name is not None and not is_safe_identifier(name):
                raise ProfileConfigError(
                    f"{setting} name {name!r} is not a safe identifier.", setting=setting
                )
        resolved = DialectFactory.resolve(dialect)
        self._executor = executor
        self._compiler = FilterQueryCompiler(resolved, policy, bind_pagination=True)
        self._source = resolved.qualified_name(schema, table)
        self._cache = cache
        self._audit = audit

    @property
    def source(self) -> str:
        """The quoted, schema-qualified table reference."""
        return self._source

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find_with_filters(
        self,
        filters: FilterMap | None = None,
        options: QueryOptions | dict[str, Any] | None = None,
    ) -> Page:
        """Return one page of rows matching ``filters`` plus the total count.

        With a cache configured, pages are stored and served as copies, so
        mutating a returned page never changes what later callers see.
        """
        opts = coerce_options(options)
        data_query = self._compiler.compile(f"SELECT * FROM {self._source}", filters, opts)
        count_query = self._compiler.compile_count(self._source, filters)
        window = self._compiler.resolve_pagination(opts, filters)

        key = _cache_key(data_query)
        if self._cache is not None:
            cached = self._cache.get(key)
            if cached is not None:
                logger.debug("cache hit for %s", data_query.text)
                return cached.copy()

        items = self._run_fetch_all(data_query)
        total = int(self._run_fetch_value(count_query) or 0)
        page = Page(items=items, total=total, page=window.page, limit=window.limit)
        if self._cache is not None:
            self._cache.set(key, page.copy())
        return page

    def count(self, filters: FilterMap | None = None) -> int:
        """Return the number of rows matching ``filters``."""
        return int(self._run_fetch_value(self._compiler.compile_count(self._source, filters)) or 0)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def delete_where(self, filters: FilterMap) -> int:
        """Delete the rows matching ``filters`` and return how many were removed.

        Raises:
            ValidationError: If ``filters`` yields no conditions; a filtered
                delete never degrades into deleting the whole table.
        """
        if not parse_filter_map(filters):
            raise ValidationError(
                f"Refusing to delete from {self._source} without filter conditions.",
                code="EMPTY_FILTER",
            )
        query = self._compiler.compile_where(f"DELETE FROM {self._source}", filters)
        logger.debug("executing %s", query.text)
        affected = self._executor.execute(query.text, query.values)
        logger.info("deleted %d row(s) from %s", affected, self._source)
        if self._audit is not None:
            self._audit.record(
                AuditEvent(
                    action="delete",
                    table=self._source,
                    filters=dict(filters),
                    affected=affected,
                )
            )
        return affected

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _run_fetch_all(self, query: CompiledQuery) -> list[dict[str, Any]]:
        logger.debug("executing %s", query.text)
        return self._executor.fetch_all(query.text, query.values)

    def _run_fetch_value(self, query: CompiledQuery) -> Any:
        logger.debug("executing %s", query.text)
        return self._executor.fetch_value(query.text, query.values)


def _cache_key(query: CompiledQuery) -> str:
    return f"{query.dialect}:{query.text}:{json.dumps(query.values, default=str)}"
