"""Test fixtures: sample DDL and seed rows for the ``users`` table."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

_FIXTURES_DIR = Path(__file__).parent

#: (id, username, email, status, created_at, deleted_at)
USERS: list[tuple] = [
    (1, "alice", "alice@example.com", "active", "2024-01-15", None),
    (2, "bob", "bob@example.com", "inactive", "2024-03-02", None),
    (3, "carol", "carol@example.com", "active", "2024-05-20", None),
    (4, "dave", "dave@example.com", "banned", "2024-07-04", "2024-08-01"),
    (5, "erin", "erin@example.com", "active", "2024-09-12", None),
    (6, "frank", "frank@example.com", "invited", "2024-11-30", None),
]


def load_ddl(target: Literal["sqlite"] = "sqlite") -> str:
    """Return the sample DDL SQL string for the given backend.

    Args:
        target: ``'sqlite'`` (the only backend the integration suite runs).

    Returns:
        DDL string ready to execute against the target backend.
    """
    filename = f"ddl_{target}.sql"
    return (_FIXTURES_DIR / filename).read_text()
