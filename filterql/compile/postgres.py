"""PostgreSQL dialect compiler."""

from __future__ import annotations

from filterql.compile.base import SQLDialect


class PostgresDialect(SQLDialect):
    """Renders filter queries as PostgreSQL-flavoured parameterized SQL.

    Parameter style: ``$1, $2, ...`` – the native server-side style used by
    ``asyncpg`` and by prepared statements.
    """

    @property
    def dialect_name(self) -> str:
        return "postgres"

    def placeholder(self, index: int) -> str:
        return f"${index}"

    def like_operator(self) -> str:
        return "ILIKE"

    def quote_identifier(self, name: str) -> str:
        escaped = name.replace('"', '""')
        return f'"{escaped}"'
