"""Integration tests: compile → execute against a real SQLite in-memory DB.

Covers every operator, pagination with totals, sort overrides, the
WHERE-append path for base queries, and filtered deletes through
``FilterRepository`` + ``DBAPIExecutor``.
"""
from __future__ import annotations

import sqlite3

import pytest

import filterql
from filterql.errors import ValidationError
from filterql.repository import DBAPIExecutor, FilterRepository, InMemoryCache
from tests.fixtures import USERS, load_ddl

pytestmark = pytest.mark.integration


@pytest.fixture()
def db() -> sqlite3.Connection:
    conn = sqlite3.connect(":memory:")
    conn.executescript(load_ddl("sqlite"))
    conn.executemany(
        "INSERT INTO users (id, username, email, status, created_at, deleted_at) "
        "VALUES (?, ?, ?, ?, ?, ?)",
        USERS,
    )
    conn.commit()
    yield conn
    conn.close()


@pytest.fixture()
def users(db, users_policy) -> FilterRepository:
    return FilterRepository(DBAPIExecutor(db), "users", dialect="sqlite", policy=users_policy)


def _ids(page) -> list[int]:
    return [row["id"] for row in page.items]


# ---------------------------------------------------------------------------
# Direct compile + execute
# ---------------------------------------------------------------------------


def test_compiled_query_runs_on_sqlite(db):
    compiled = filterql.compile_filter_query(
        'SELECT id FROM "users"',
        {"status_in": ["active", "invited"], "username_like": "r"},
        {"sort": "id"},
        dialect="sqlite",
    )
    rows = db.execute(compiled.text, compiled.values).fetchall()
    # carol, erin, frank
    assert [r[0] for r in rows] == [3, 5, 6]


def test_base_query_where_is_extended(db):
    compiled = filterql.compile_filter_query(
        "SELECT id FROM users WHERE deleted_at IS NULL",
        {"status_eq": "active"},
        {"sort": "-id"},
        dialect="sqlite",
    )
    assert " AND " in compiled.text
    rows = db.execute(compiled.text, compiled.values).fetchall()
    assert [r[0] for r in rows] == [5, 3, 1]


def test_base_or_predicate_keeps_filters_applied(db):
    compiled = filterql.compile_filter_query(
        "SELECT id FROM users WHERE status = 'banned' OR status = 'invited'",
        {"id_eq": 6},
        {"sort": "id"},
        dialect="sqlite",
    )
    rows = db.execute(compiled.text, compiled.values).fetchall()
    assert [r[0] for r in rows] == [6]


def test_base_placeholders_come_first(db):
    compiled = filterql.compile_filter_query(
        "SELECT id FROM users WHERE status = ?1",
        {"created_at_gte": "2024-05-01"},
        {"sort": "id"},
        dialect="sqlite",
        initial_values=["active"],
    )
    assert compiled.values == ["active", "2024-05-01"]
    rows = db.execute(compiled.text, compiled.values).fetchall()
    assert [r[0] for r in rows] == [3, 5]


def test_or_template_delete_respects_filters(db):
    compiler = filterql.FilterQueryCompiler("sqlite")
    query = compiler.compile_where(
        "DELETE FROM users WHERE status = 'banned' OR status = 'invited'",
        {"deleted_at_null": False},
    )
    assert db.execute(query.text, query.values).rowcount == 1
    remaining = [r[0] for r in db.execute("SELECT id FROM users ORDER BY id").fetchall()]
    assert remaining == [1, 2, 3, 5, 6]


def test_bound_pagination_runs_on_sqlite(db):
    compiled = filterql.compile_filter_query(
        'SELECT id FROM "users"',
        {"status_ne": "banned"},
        {"page": 2, "limit": 2, "sort": "id"},
        dialect="sqlite",
        bind_pagination=True,
    )
    assert compiled.values == ["banned", 2, 2]
    rows = db.execute(compiled.text, compiled.values).fetchall()
    assert [r[0] for r in rows] == [3, 5]


# ---------------------------------------------------------------------------
# Operators through the repository
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("filters", "expected"),
    [
        ({"username_like": "o"}, [2, 3]),
        ({"username_like": "A"}, [1, 3, 4, 6]),
        ({"username_ilike": "%e"}, [1, 4]),
        ({"created_at_between": ["2024-01-01", "2024-06-30"]}, [1, 2, 3]),
        ({"status_in": ["active", "invited"]}, [1, 3, 5, 6]),
        ({"deleted_at_null": False}, [4]),
        ({"id_gt": 2, "id_lte": 4}, [3, 4]),
        ({"status_neq": "active"}, [2, 4, 6]),
        ({"status": "active", "created_at_gte": "2024-05-01"}, [3, 5]),
    ],
)
def test_operators(users, filters, expected):
    page = users.find_with_filters(filters)
    assert _ids(page) == expected
    assert page.total == len(expected)


def test_null_true_matches_live_rows(users):
    page = users.find_with_filters({"deleted_at_null": True})
    assert page.total == 5
    assert 4 not in _ids(page)


def test_quote_in_value_is_data_not_sql(users):
    page = users.find_with_filters({"username_eq": "x' OR '1'='1"})
    assert page.items == []
    assert page.total == 0


# ---------------------------------------------------------------------------
# Pagination and sort
# ---------------------------------------------------------------------------


def test_second_page(users):
    page = users.find_with_filters(None, {"page": 2, "limit": 2})
    assert _ids(page) == [3, 4]
    assert page.total == 6
    assert page.pages == 3
    assert page.has_next


def test_last_page_has_no_next(users):
    page = users.find_with_filters(None, {"page": 3, "limit": 2})
    assert _ids(page) == [5, 6]
    assert not page.has_next


def test_sort_override(users):
    page = users.find_with_filters(None, {"sort": "-created_at", "limit": 3})
    assert _ids(page) == [6, 5, 4]
    assert page.total == 6


def test_rows_are_dicts(users):
    (row,) = users.find_with_filters({"id_eq": 1}).items
    assert row["username"] == "alice"
    assert row["deleted_at"] is None


def test_cached_page_reused(db, users_policy):
    cache = InMemoryCache()
    repo = FilterRepository(
        DBAPIExecutor(db), "users", dialect="sqlite", policy=users_policy, cache=cache
    )
    first = repo.find_with_filters({"status_eq": "active"})
    db.execute("DELETE FROM users WHERE id = 1")
    assert repo.find_with_filters({"status_eq": "active"}) == first
    assert len(cache) == 1


# ---------------------------------------------------------------------------
# Count and delete
# ---------------------------------------------------------------------------


def test_count(users):
    assert users.count() == 6
    assert users.count({"status_eq": "active"}) == 3


def test_delete_where(users):
    assert users.delete_where({"status_eq": "banned"}) == 1
    assert users.count() == 5
    assert users.count({"status_eq": "banned"}) == 0


def test_delete_without_conditions_refused(users):
    with pytest.raises(ValidationError) as exc_info:
        users.delete_where({"status_eq": None, "_page": 1})
    assert exc_info.value.code == "EMPTY_FILTER"
    assert users.count() == 6
