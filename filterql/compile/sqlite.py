"""SQLite dialect compiler."""
from __future__ import annotations

from filterql.compile.base import SQLDialect


class SQLiteDialect(SQLDialect):
    """Renders filter queries as SQLite-flavoured parameterized SQL.

    Parameter style: ``?1, ?2, ...`` – numbered positional parameters,
    compatible with Python's built-in ``sqlite3`` when values are passed as
    a sequence (``cursor.execute(sql, values)``).

    Note: SQLite does not support ``ILIKE``; it is mapped to ``LIKE``.
    SQLite's ``LIKE`` is case-insensitive for ASCII by default.
    """

    @property
    def dialect_name(self) -> str:
        return "sqlite"

    def placeholder(self, index: int) -> str:
        return f"?{index}"

    def like_operator(self) -> str:
        return "LIKE"  # SQLite has no ILIKE; fall back to LIKE

    def quote_identifier(self, name: str) -> str:
        escaped = name.replace('"', '""')
        return f'"{escaped}"'
