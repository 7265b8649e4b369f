"""MySQL dialect compiler."""

from __future__ import annotations

from filterql.compile.base import SQLDialect


class MySQLDialect(SQLDialect):
    """Renders filter queries as MySQL-flavoured parameterized SQL.

    Parameter style: ``%s`` – positional format style, compatible with
    ``PyMySQL`` and ``mysql-connector-python``.  Values are still emitted in
    placeholder order, so ``CompiledQuery.values`` can be passed as-is.

    Note: MySQL does not support ``ILIKE``; it is mapped to ``LIKE``.
    MySQL's ``LIKE`` is case-insensitive for non-binary TEXT/VARCHAR columns
    by default.

    Identifiers are quoted with backticks (`` ` ``) rather than double-quotes.
    """

    @property
    def dialect_name(self) -> str:
        return "mysql"

    def placeholder(self, index: int) -> str:
        return "%s"

    def like_operator(self) -> str:
        return "LIKE"  # MySQL has no ILIKE; LIKE is case-insensitive for TEXT by default

    def quote_identifier(self, name: str) -> str:
        escaped = name.replace("`", "``")
        return f"`{escaped}`"
