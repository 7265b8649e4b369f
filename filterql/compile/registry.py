"""Dialect and operator registries.

These registries allow adding a dialect or a filter operator without
editing the compiler itself.

``DialectFactory``
    Central registry for :class:`~filterql.compile.base.SQLDialect`
    implementations.  Register a dialect once; the top-level API looks it
    up by target name.

``OperatorRegistry``
    Per-operator SQL rendering handlers.  The condition builder queries
    this registry so new operators can be added without touching
    :class:`~filterql.compile.condition_builder.ConditionBuilder`.

Usage::

    from filterql.compile.registry import DialectFactory

    @DialectFactory.register("cockroach")
    class CockroachDialect(PostgresDialect):
        ...
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, ClassVar

from filterql.compile.base import SQLDialect
from filterql.errors import UnknownDialectError

if TYPE_CHECKING:
    from filterql.compile.context import RuntimeContext
    from filterql.schema.filter_map import FilterCondition

# ---------------------------------------------------------------------------
# Dialect factory
# ---------------------------------------------------------------------------


class DialectFactory:
    """Registry mapping dialect target names to :class:`SQLDialect` classes.

    Example::

        @DialectFactory.register("mysql")
        class MySQLDialect(SQLDialect):
            ...

        dialect = DialectFactory.create("mysql")
    """

    _dialects: ClassVar[dict[str, type[SQLDialect]]] = {}

    @classmethod
    def register(cls, name: str) -> Callable[[type[SQLDialect]], type[SQLDialect]]:
        """Decorator that registers a dialect class under ``name``."""

        def decorator(dialect_cls: type[SQLDialect]) -> type[SQLDialect]:
            cls._dialects[name] = dialect_cls
            return dialect_cls

        return decorator

    @classmethod
    def register_class(cls, name: str, dialect_cls: type[SQLDialect]) -> None:
        """Register a dialect class without using the decorator form."""
        cls._dialects[name] = dialect_cls

    @classmethod
    def create(cls, name: str) -> SQLDialect:
        """Instantiate the dialect registered for ``name``.

        Raises:
            UnknownDialectError: If no dialect is registered for ``name``.
        """
        dialect_cls = cls._dialects.get(name)
        if dialect_cls is None:
            raise UnknownDialectError(name, sorted(cls._dialects))
        return dialect_cls()

    @classmethod
    def resolve(cls, dialect: str | SQLDialect) -> SQLDialect:
        """Return ``dialect`` unchanged if it is an instance, else create it by name."""
        if isinstance(dialect, SQLDialect):
            return dialect
        return cls.create(dialect)

    @classmethod
    def registered_targets(cls) -> list[str]:
        """Return the sorted list of registered dialect target names."""
        return sorted(cls._dialects)


# ---------------------------------------------------------------------------
# Operator registry
# ---------------------------------------------------------------------------

#: Type alias for a condition rendering handler.
#: ``(condition, column_sql, runtime) -> sql_fragment``
OperatorHandler = Callable[["FilterCondition", str, "RuntimeContext"], str]


class OperatorRegistry:
    """Registry mapping operator names to SQL rendering handlers.

    Handlers receive the parsed condition, the already-quoted column and the
    per-query :class:`~filterql.compile.context.RuntimeContext`, and must
    bind every value through ``runtime.bind``.

    Example::

        @OperatorRegistry.register("regex")
        def _regex_handler(cond, column, runtime):
            return f"{column} ~ {runtime.bind(cond.value)}"
    """

    _operators: ClassVar[dict[str, OperatorHandler]] = {}

    @classmethod
    def register(cls, name: str) -> Callable[[OperatorHandler], OperatorHandler]:
        """Decorator that registers an operator handler under ``name``."""

        def decorator(handler: OperatorHandler) -> OperatorHandler:
            cls._operators[name] = handler
            return handler

        return decorator

    @classmethod
    def get(cls, name: str) -> OperatorHandler | None:
        """Return the handler for ``name``, or ``None`` if not registered."""
        return cls._operators.get(name)

    @classmethod
    def registered_operators(cls) -> list[str]:
        """Return the sorted list of registered operator names."""
        return sorted(cls._operators)
