"""Safe SQL identifier checks.

Field names from filter and sort keys end up as SQL identifiers, so they
are restricted to a conservative pattern before any quoting happens.
"""

from __future__ import annotations

import re

#: Letters, digits and underscores; must not start with a digit; at most 63
#: characters (the PostgreSQL identifier limit).
IDENTIFIER_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_]{0,62}")


def is_safe_identifier(name: object) -> bool:
    """Return True when ``name`` is a string matching :data:`IDENTIFIER_PATTERN`."""
    return isinstance(name, str) and IDENTIFIER_PATTERN.fullmatch(name) is not None
