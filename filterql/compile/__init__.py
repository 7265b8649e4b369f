"""filterQL compilation layer: FilterMap → parameterized SQL."""
from filterql.compile.base import CompiledQuery, SQLDialect
from filterql.compile.builder import FilterQueryCompiler
from filterql.compile.mysql import MySQLDialect
from filterql.compile.postgres import PostgresDialect
from filterql.compile.sqlite import SQLiteDialect

__all__ = [
    "CompiledQuery",
    "SQLDialect",
    "FilterQueryCompiler",
    "MySQLDialect",
    "PostgresDialect",
    "SQLiteDialect",
]
