"""Unit tests for the SQLAlchemy → FilterPolicy converters."""

from __future__ import annotations

import pytest

sqlalchemy = pytest.importorskip("sqlalchemy")

from sqlalchemy import (  # noqa: E402
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    create_engine,
    text,
)

from filterql.compile.builder import FilterQueryCompiler  # noqa: E402
from filterql.errors import (  # noqa: E402
    DisallowedFieldError,
    InvalidFilterValueError,
    UnsupportedOperatorError,
)
from filterql.policy.engine import FieldKind, FieldRule  # noqa: E402
from filterql.schema.converters import policy_from_engine, policy_from_sqlalchemy  # noqa: E402
from filterql.schema.options import SortItem  # noqa: E402


def _users_table() -> Table:
    return Table(
        "users",
        MetaData(),
        Column("id", Integer, primary_key=True),
        Column("username", String(50)),
        Column("password_hash", String(128)),
        Column("display name", String(50)),
    )


def test_columns_become_allowlist():
    policy = policy_from_sqlalchemy(_users_table(), denied_fields=["password_hash"])
    assert policy.allowed_fields == ["id", "username", "password_hash"]
    assert policy.effective_allowed_fields() == ["id", "username"]
    assert policy.default_sort == [SortItem(field="id")]


def test_limits_forwarded():
    policy = policy_from_sqlalchemy(_users_table(), default_limit=5, max_limit=10)
    assert policy.default_limit == 5
    assert policy.max_limit == 10


def test_denied_primary_key_not_used_for_default_sort():
    policy = policy_from_sqlalchemy(_users_table(), denied_fields=["id"])
    assert policy.default_sort == []


def test_policy_drives_compiler():
    c = FilterQueryCompiler("postgres", policy_from_sqlalchemy(_users_table()))
    r = c.compile('SELECT * FROM "users"', {"username_like": "doe"})
    assert r.text == 'SELECT * FROM "users" WHERE "username" ILIKE $1 ORDER BY "id" ASC LIMIT 20 OFFSET 0'
    with pytest.raises(DisallowedFieldError):
        c.compile('SELECT * FROM "users"', {"email_eq": "x"})


def test_policy_from_engine_reflects_table():
    engine = create_engine("sqlite://")
    with engine.begin() as conn:
        conn.execute(
            text(
                "CREATE TABLE orders (order_id INTEGER PRIMARY KEY, status TEXT, total REAL)"
            )
        )
    policy = policy_from_engine(engine, "orders", max_limit=50)
    assert policy.allowed_fields == ["order_id", "status", "total"]
    assert policy.default_sort == [SortItem(field="order_id")]
    assert policy.max_limit == 50


def test_policy_from_engine_missing_table():
    engine = create_engine("sqlite://")
    with pytest.raises(sqlalchemy.exc.NoSuchTableError):
        policy_from_engine(engine, "nope")


def test_column_types_become_field_rules():
    table = Table(
        "events",
        MetaData(),
        Column("id", Integer, primary_key=True),
        Column("title", String(80)),
        Column("price", Numeric(10, 2)),
        Column("starts_at", DateTime),
        Column("day", Date),
        Column("public", Boolean),
        Column("state", Enum("draft", "live", name="event_state")),
        Column("payload", JSON),
    )
    rules = policy_from_sqlalchemy(table).field_rules
    assert rules["id"] == FieldRule(FieldKind.NUMBER)
    assert rules["title"] == FieldRule(FieldKind.STRING)
    assert rules["price"] == FieldRule(FieldKind.NUMBER)
    assert rules["starts_at"] == FieldRule(FieldKind.DATE)
    assert rules["day"] == FieldRule(FieldKind.DATE)
    assert rules["public"] == FieldRule(FieldKind.BOOLEAN)
    assert rules["state"] == FieldRule(FieldKind.STRING, enum_values=("draft", "live"))
    assert "payload" not in rules


def test_derived_rules_enforced_by_compiler():
    table = Table(
        "events",
        MetaData(),
        Column("id", Integer, primary_key=True),
        Column("state", Enum("draft", "live", name="event_state")),
    )
    c = FilterQueryCompiler("postgres", policy_from_sqlalchemy(table))
    with pytest.raises(UnsupportedOperatorError):
        c.compile('SELECT * FROM "events"', {"id_like": "1"})
    with pytest.raises(InvalidFilterValueError):
        c.compile('SELECT * FROM "events"', {"state_eq": "archived"})
    assert c.compile('SELECT * FROM "events"', {"state_in": ["draft"]}).values == ["draft"]


def test_reflected_rules():
    engine = create_engine("sqlite://")
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE items (id INTEGER PRIMARY KEY, name TEXT, weight REAL)"))
    rules = policy_from_engine(engine, "items").field_rules
    assert rules == {
        "id": FieldRule(FieldKind.NUMBER),
        "name": FieldRule(FieldKind.STRING),
        "weight": FieldRule(FieldKind.NUMBER),
    }
