"""Condition-level SQL rendering.

Each built-in operator is registered with
:class:`~filterql.compile.registry.OperatorRegistry`;
:class:`ConditionBuilder` quotes the column and dispatches to the handler.
Handlers bind every value through the shared
:class:`~filterql.compile.context.RuntimeContext`, so placeholders are
numbered in the order fragments are emitted.
"""
from __future__ import annotations

from filterql.compile.context import CompilationContext, RuntimeContext
from filterql.compile.registry import OperatorRegistry
from filterql.errors import CompilationError
from filterql.schema.filter_map import FilterCondition
from filterql.schema.operators import COMPARISON_SQL, FilterOperator

# ---------------------------------------------------------------------------
# Built-in operator handlers
# ---------------------------------------------------------------------------


def _comparison(cond: FilterCondition, column: str, runtime: RuntimeContext) -> str:
    return f"{column} {COMPARISON_SQL[cond.operator]} {runtime.bind(cond.value)}"


for _op in COMPARISON_SQL:
    OperatorRegistry.register(_op.value)(_comparison)


@OperatorRegistry.register(FilterOperator.LIKE.value)
def _like(cond: FilterCondition, column: str, runtime: RuntimeContext) -> str:
    like = runtime.dialect.like_operator()
    return f"{column} {like} {runtime.bind(f'%{cond.value}%')}"


@OperatorRegistry.register(FilterOperator.ILIKE.value)
def _ilike(cond: FilterCondition, column: str, runtime: RuntimeContext) -> str:
    like = runtime.dialect.like_operator()
    return f"{column} {like} {runtime.bind(cond.value)}"


@OperatorRegistry.register(FilterOperator.IN.value)
def _in(cond: FilterCondition, column: str, runtime: RuntimeContext) -> str:
    placeholders = ", ".join(runtime.bind(v) for v in cond.value)
    return f"{column} IN ({placeholders})"


@OperatorRegistry.register(FilterOperator.BETWEEN.value)
def _between(cond: FilterCondition, column: str, runtime: RuntimeContext) -> str:
    low, high = cond.value
    return f"{column} BETWEEN {runtime.bind(low)} AND {runtime.bind(high)}"


@OperatorRegistry.register(FilterOperator.NULL.value)
def _null(cond: FilterCondition, column: str, runtime: RuntimeContext) -> str:
    return f"{column} IS NULL" if cond.value else f"{column} IS NOT NULL"


# ---------------------------------------------------------------------------
# Condition builder
# ---------------------------------------------------------------------------


class ConditionBuilder:
    """Compiles one :class:`FilterCondition` to a SQL fragment.

    Args:
        ctx: Static compilation context (dialect + policy).
        runtime: Bind-value accumulator for this query.
    """

    def __init__(self, ctx: CompilationContext, runtime: RuntimeContext) -> None:
        self._ctx = ctx
        self._runtime = runtime

    def build(self, cond: FilterCondition) -> str:
        handler = OperatorRegistry.get(cond.operator.value)
        if handler is None:
            raise CompilationError(
                f"No handler registered for operator '{cond.operator.value}'.",
                clause="WHERE",
            )
        column = self._ctx.dialect.quote_identifier(cond.field)
        return handler(cond, column, self._runtime)
