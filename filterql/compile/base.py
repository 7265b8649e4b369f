"""Compiler abstractions: CompiledQuery and the SQLDialect ABC.

The Template Method pattern is used:
- ``FilterQueryCompiler`` owns the algorithm for assembling a statement.
- ``SQLDialect`` subclasses override the dialect-specific steps
  (placeholder style, case-insensitive LIKE, identifier quoting).
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class CompiledQuery:
    """The output of a successful compilation.

    Attributes:
        text: SQL string with positional placeholders.
        values: Bind values, aligned with the placeholders by position.
        dialect: The target dialect name (e.g. ``'postgres'``).
    """

    text: str
    values: list[Any] = field(default_factory=list)
    dialect: str = "postgres"

    @property
    def placeholder_count(self) -> int:
        """Number of bound values, i.e. the number of placeholders in ``text``."""
        return len(self.values)

    def as_tuple(self) -> tuple[str, list[Any]]:
        """Return ``(text, values)`` for ``cursor.execute(*compiled.as_tuple())``."""
        return self.text, list(self.values)


class SQLDialect(ABC):
    """Abstract base for dialect-specific rendering.

    Subclasses implement the dialect-specific methods; the
    ``FilterQueryCompiler`` uses this interface via the Strategy / Template
    Method patterns.
    """

    @abstractmethod
    def placeholder(self, index: int) -> str:
        """Return the SQL placeholder for the ``index``-th bound value.

        Args:
            index: 1-based position of the value in ``CompiledQuery.values``.

        Returns:
            Dialect-specific placeholder string.
        """

    @abstractmethod
    def like_operator(self) -> str:
        """Return the SQL keyword for a case-insensitive pattern match.

        SQLite and MySQL have no ``ILIKE``; they fall back to ``LIKE``.
        """

    @abstractmethod
    def quote_identifier(self, name: str) -> str:
        """Return a properly-quoted SQL identifier.

        Args:
            name: Unquoted identifier (table or column name).

        Returns:
            Quoted identifier.
        """

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        """Return the canonical dialect name (``'postgres'``, ``'sqlite'``, ...)."""

    def qualified_name(self, *parts: str | None) -> str:
        """Quote and dot-join ``parts``, skipping ``None`` (e.g. a missing schema)."""
        return ".".join(self.quote_identifier(p) for p in parts if p)
