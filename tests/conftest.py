"""Shared pytest fixtures for filterQL unit and integration tests."""
from __future__ import annotations

import pytest

from filterql.compile.builder import FilterQueryCompiler
from filterql.policy.engine import FilterPolicy
from filterql.schema.options import SortItem

USER_FIELDS = ["id", "username", "email", "status", "created_at", "deleted_at"]


@pytest.fixture(scope="session")
def users_policy() -> FilterPolicy:
    """Allowlist of the sample ``users`` columns, sorted by id."""
    return FilterPolicy(
        allowed_fields=USER_FIELDS,
        denied_fields=["password_hash"],
        default_sort=[SortItem(field="id")],
    )


@pytest.fixture(scope="session")
def pg() -> FilterQueryCompiler:
    """Unrestricted PostgreSQL compiler."""
    return FilterQueryCompiler("postgres")


@pytest.fixture(scope="session")
def sq() -> FilterQueryCompiler:
    """Unrestricted SQLite compiler."""
    return FilterQueryCompiler("sqlite")


@pytest.fixture(scope="session")
def my() -> FilterQueryCompiler:
    """Unrestricted MySQL compiler."""
    return FilterQueryCompiler("mysql")
