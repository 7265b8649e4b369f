"""Utilities for building a FilterPolicy from external sources.

SQLAlchemy converter
--------------------
:func:`policy_from_sqlalchemy` turns a :class:`sqlalchemy.Table` into a
:class:`~filterql.policy.engine.FilterPolicy` whose allowlist is the table's
columns and whose default sort is its primary key.
:func:`policy_from_engine` reflects the table from a live engine first.

Install the optional dependency before using this module::

    pip install "filterql[sqlalchemy]"

Example::

    from sqlalchemy import create_engine
    from filterql.schema.converters import policy_from_engine

    engine = create_engine("sqlite:///mydb.db")
    policy = policy_from_engine(engine, "users", denied_fields=["password_hash"])
"""

from __future__ import annotations

import datetime
from collections.abc import Iterable
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from filterql.policy.engine import (
    DEFAULT_LIMIT,
    DEFAULT_MAX_LIMIT,
    FieldKind,
    FieldRule,
    FilterPolicy,
)
from filterql.schema.identifiers import is_safe_identifier
from filterql.schema.options import SortItem

if TYPE_CHECKING:
    from sqlalchemy import Engine, Table


def policy_from_sqlalchemy(
    table: Table,
    *,
    denied_fields: Iterable[str] = (),
    default_limit: int = DEFAULT_LIMIT,
    max_limit: int = DEFAULT_MAX_LIMIT,
) -> FilterPolicy:
    """Build a :class:`FilterPolicy` from a SQLAlchemy ``Table``.

    Columns whose names are not safe identifiers (e.g. containing spaces or
    dashes) are left out of the allowlist, since they could never be named
    by a filter key anyway.

    Args:
        table: A declared or reflected :class:`sqlalchemy.Table`.
        denied_fields: Columns to exclude even though they exist.
        default_limit: Page size used when a request has no limit.
        max_limit: Upper bound on the page size.

    Returns:
        A policy allowing the table's columns, sorted by primary key, with
        a :class:`FieldRule` per column whose type maps to a :class:`FieldKind`.
    """
    denied = list(denied_fields)
    allowed = [col.name for col in table.columns if is_safe_identifier(col.name)]
    default_sort = [
        SortItem(field=col.name)
        for col in table.primary_key.columns
        if col.name in allowed and col.name not in denied
    ]
    rules = {}
    for col in table.columns:
        rule = field_rule_for_column(col)
        if col.name in allowed and rule is not None:
            rules[col.name] = rule
    return FilterPolicy(
        allowed_fields=allowed,
        denied_fields=denied,
        default_limit=default_limit,
        max_limit=max_limit,
        default_sort=default_sort,
        field_rules=rules,
    )


def field_rule_for_column(column: Any) -> FieldRule | None:
    """Derive a :class:`FieldRule` from a SQLAlchemy column's type.

    ``Enum`` columns become string rules restricted to their labels.  Types
    without a usable ``python_type`` (e.g. ``JSON``, ``NullType``) yield
    ``None``.
    """
    enums = getattr(column.type, "enums", None)
    if enums:
        return FieldRule(FieldKind.STRING, enum_values=tuple(enums))
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return None
    kind = _KIND_BY_PYTHON_TYPE.get(python_type)
    if kind is None:
        kind = next(
            (k for base, k in _KIND_BY_PYTHON_TYPE.items() if issubclass(python_type, base)),
            None,
        )
    return None if kind is None else FieldRule(kind)


#: Checked in order; ``bool`` precedes ``int`` since it subclasses it.
_KIND_BY_PYTHON_TYPE: dict[type, FieldKind] = {
    bool: FieldKind.BOOLEAN,
    int: FieldKind.NUMBER,
    float: FieldKind.NUMBER,
    Decimal: FieldKind.NUMBER,
    str: FieldKind.STRING,
    datetime.date: FieldKind.DATE,
    datetime.time: FieldKind.DATE,
}


def policy_from_engine(
    engine: Engine,
    table_name: str,
    *,
    schema: str | None = None,
    denied_fields: Iterable[str] = (),
    default_limit: int = DEFAULT_LIMIT,
    max_limit: int = DEFAULT_MAX_LIMIT,
) -> FilterPolicy:
    """Reflect ``table_name`` from ``engine`` and build its :class:`FilterPolicy`.

    Args:
        engine: A connected :class:`sqlalchemy.engine.Engine` instance.
        table_name: Table to reflect.
        schema: Optional database schema name (e.g. ``"public"``).
        denied_fields: Columns to exclude.
        default_limit: Page size used when a request has no limit.
        max_limit: Upper bound on the page size.

    Raises:
        ImportError: If ``sqlalchemy`` is not installed.
        sqlalchemy.exc.NoSuchTableError: If the table does not exist.
    """
    try:
        from sqlalchemy import MetaData, Table
    except ImportError as exc:
        raise ImportError(
            "SQLAlchemy is required for policy_from_engine(). "
            'Install it with: pip install "filterql[sqlalchemy]"'
        ) from exc

    with engine.connect() as conn:
        table = Table(table_name, MetaData(), schema=schema, autoload_with=conn)
    return policy_from_sqlalchemy(
        table,
        denied_fields=denied_fields,
        default_limit=default_limit,
        max_limit=max_limit,
    )
