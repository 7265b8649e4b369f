"""Compilation context objects.

``CompilationContext`` packages the static ``(dialect, policy)`` pair shared
by the compiler and its clause builders.  ``RuntimeContext`` accumulates the
bind values of a single compilation run.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from filterql.compile.base import SQLDialect
from filterql.policy.engine import FilterPolicy


@dataclass(frozen=True)
class CompilationContext:
    """Immutable context shared by every compilation run of one compiler.

    Attributes:
        dialect: Dialect-specific renderer.
        policy: Field allow/deny lists, limits and default sort.
    """

    dialect: SQLDialect
    policy: FilterPolicy


@dataclass
class RuntimeContext:
    """Accumulates positional bind values during a single compilation run.

    Every placeholder in the statement is produced by :meth:`bind`, so the
    placeholder numbering and ``values`` can never drift apart.
    """

    dialect: SQLDialect
    values: list[Any] = field(default_factory=list)

    def bind(self, value: Any) -> str:
        """Store ``value`` and return the placeholder that references it."""
        self.values.append(value)
        return self.dialect.placeholder(len(self.values))
