"""Policy layer for filter queries.

``PolicyEngine`` runs after a FilterMap has been parsed and before any SQL
is assembled.  It enforces:

* **Field access control** – a positive allowlist (``allowed_fields``)
  and/or a negative blocklist (``denied_fields``) applied to both filter and
  sort fields.  The identifier-pattern check keeps keys safe as SQL; the
  allowlist keeps them pointing at real, public columns.
* **Field rules** – optional per-field :class:`FieldRule` metadata (column
  kind, enum values, min/max bounds) checked against each condition's
  operator and value.
* **Page size limits** – ``default_limit`` and ``max_limit`` drive the
  LIMIT clause the compiler emits.
* **Default ordering** – ``default_sort`` is used when the caller supplies
  no sort.

Example, a public listing endpoint::

    users_policy = FilterPolicy(
        allowed_fields=["username", "email", "status", "created_at"],
        denied_fields=["password_hash"],
        default_limit=20,
        max_limit=100,
        default_sort=[SortItem(field="id")],
        field_rules={
            "status": FieldRule(FieldKind.STRING, enum_values=("active", "banned")),
            "age": FieldRule(FieldKind.NUMBER, min_value=0, max_value=150),
        },
    )

    compiled = filterql.compile_filter_query(
        'SELECT * FROM "users"', request_filters, options, policy=users_policy
    )
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from filterql.errors import (
    DisallowedFieldError,
    InvalidFilterValueError,
    ProfileConfigError,
    UnsupportedOperatorError,
)
from filterql.schema.filter_map import FilterCondition
from filterql.schema.operators import COMPARISON_SQL, PATTERN_OPS, FilterOperator
from filterql.schema.options import SortItem

#: Upper bound on page size when no policy is given.
DEFAULT_MAX_LIMIT = 100

#: Page size used when the caller does not request one.
DEFAULT_LIMIT = 20

# ---------------------------------------------------------------------------
# Field rules
# ---------------------------------------------------------------------------


class FieldKind(str, Enum):
    """Broad column type a :class:`FieldRule` checks operators against."""

    STRING = "string"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"


_ORDERING_OPS = frozenset(
    {FilterOperator.GT, FilterOperator.GTE, FilterOperator.LT, FilterOperator.LTE}
)
_ENUM_OPS = frozenset({FilterOperator.EQ, FilterOperator.NE, FilterOperator.IN})

#: Operator -> column kinds it may be used with.  Operators not listed here
#: (eq, ne, in, null) work on every kind.
_OPERATOR_KINDS: dict[FilterOperator, frozenset[FieldKind]] = {
    **{op: frozenset({FieldKind.STRING}) for op in PATTERN_OPS},
    **{
        op: frozenset({FieldKind.STRING, FieldKind.NUMBER, FieldKind.DATE})
        for op in _ORDERING_OPS
    },
    FilterOperator.BETWEEN: frozenset({FieldKind.NUMBER, FieldKind.DATE}),
}


@dataclass(frozen=True)
class FieldRule:
    """Column metadata used to validate the conditions on one field.

    Attributes:
        kind: Column kind; restricts which operators apply.  ``None``
            skips the operator check.
        enum_values: If non-empty, ``eq``/``ne``/``in`` values must be
            members.
        min_value: Inclusive lower bound for ordering and ``between`` values.
        max_value: Inclusive upper bound for ordering and ``between`` values.
    """

    kind: FieldKind | None = None
    enum_values: tuple[Any, ...] = ()
    min_value: Any = None
    max_value: Any = None


@dataclass
class FilterPolicy:
    """Runtime policy applied to every compiled query of one resource.

    Attributes:
        allowed_fields: If non-empty, only these fields may be filtered or
            sorted on.  Empty (the default) means any safe identifier.
        denied_fields: Fields that may never be filtered or sorted on.
            Applied on top of ``allowed_fields``.
        default_limit: Page size used when the request has no limit.
        max_limit: Larger requested limits are clamped to this value.
        default_sort: ORDER BY used when the request has no sort.
        field_rules: Per-field :class:`FieldRule` metadata.  Fields without
            a rule are only subject to the allow/deny lists.
    """

    allowed_fields: list[str] = field(default_factory=list)
    denied_fields: list[str] = field(default_factory=list)
    default_limit: int = DEFAULT_LIMIT
    max_limit: int = DEFAULT_MAX_LIMIT
    default_sort: list[SortItem] = field(default_factory=list)
    field_rules: Mapping[str, FieldRule] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.max_limit < 1:
            raise ProfileConfigError(
                f"max_limit must be >= 1, got {self.max_limit}.", setting="max_limit"
            )
        if not 1 <= self.default_limit <= self.max_limit:
            raise ProfileConfigError(
                f"default_limit must be between 1 and max_limit ({self.max_limit}), "
                f"got {self.default_limit}.",
                setting="default_limit",
            )
        for name, rule in self.field_rules.items():
            if (
                rule.min_value is not None
                and rule.max_value is not None
                and rule.min_value > rule.max_value
            ):
                raise ProfileConfigError(
                    f"field_rules[{name!r}]: min_value is greater than max_value.",
                    setting="field_rules",
                )

    def is_field_allowed(self, name: str) -> bool:
        """Return True when ``name`` passes both the allowlist and the denylist."""
        if name in self.denied_fields:
            return False
        return not self.allowed_fields or name in self.allowed_fields

    def effective_allowed_fields(self) -> list[str]:
        """Return the allowlist minus the denylist (empty when unrestricted)."""
        return [f for f in self.allowed_fields if f not in self.denied_fields]


class PolicyEngine:
    """Checks parsed conditions and sort entries against a FilterPolicy.

    Args:
        config: Policy rules for this resource.
    """

    def __init__(self, config: FilterPolicy) -> None:
        self._config = config

    def apply(
        self,
        conditions: Iterable[FilterCondition],
        sort: Iterable[SortItem] = (),
    ) -> None:
        """Raise on the first filter or sort field the policy rejects.

        Raises:
            DisallowedFieldError: If a field is outside the allowlist or in
                the denylist.
            UnsupportedOperatorError: If the field's rule declares a kind the
                operator does not support.
            InvalidFilterValueError: If a value is outside the rule's enum
                or bounds.
        """
        for cond in conditions:
            self._assert_allowed(cond.field)
            rule = self._config.field_rules.get(cond.field)
            if rule is not None:
                _check_rule(cond, rule)
        for item in sort:
            self._assert_allowed(item.field)

    def _assert_allowed(self, name: str) -> None:
        if not self._config.is_field_allowed(name):
            raise DisallowedFieldError(name, self._config.effective_allowed_fields())


# ---------------------------------------------------------------------------
# Rule checks
# ---------------------------------------------------------------------------


def _check_rule(cond: FilterCondition, rule: FieldRule) -> None:
    op = cond.operator
    if op is FilterOperator.NULL:
        return

    allowed_kinds = _OPERATOR_KINDS.get(op)
    if rule.kind is not None and allowed_kinds is not None and rule.kind not in allowed_kinds:
        raise UnsupportedOperatorError(cond.key, op.value, rule.kind.value)

    values = cond.value if op in (FilterOperator.IN, FilterOperator.BETWEEN) else (cond.value,)

    if rule.enum_values and op in _ENUM_OPS:
        invalid = [v for v in values if v not in rule.enum_values]
        if invalid:
            raise InvalidFilterValueError(
                cond.key, f"{invalid!r} not in allowed values {list(rule.enum_values)!r}."
            )

    if op in _ORDERING_OPS or op is FilterOperator.BETWEEN or (
        rule.kind is FieldKind.NUMBER and op in COMPARISON_SQL
    ):
        for value in values:
            _check_bounds(cond.key, _comparable(cond.key, rule, value), rule)


def _comparable(key: str, rule: FieldRule, value: Any) -> Any:
    """Return ``value`` in a form comparable with the rule's bounds."""
    if rule.kind is not FieldKind.NUMBER:
        return value
    if isinstance(value, bool):
        raise InvalidFilterValueError(key, f"expected a number, got {value!r}.")
    if isinstance(value, (int, float, Decimal)):
        return value
    try:
        # Query-string values arrive as text.
        number = Decimal(str(value).strip())
    except InvalidOperation:
        raise InvalidFilterValueError(key, f"expected a number, got {value!r}.") from None
    if number.is_nan():
        raise InvalidFilterValueError(key, f"expected a number, got {value!r}.")
    return number


def _check_bounds(key: str, value: Any, rule: FieldRule) -> None:
    try:
        if rule.min_value is not None and value < rule.min_value:
            raise InvalidFilterValueError(
                key, f"{value!r} is less than the minimum {rule.min_value!r}."
            )
        if rule.max_value is not None and value > rule.max_value:
            raise InvalidFilterValueError(
                key, f"{value!r} is greater than the maximum {rule.max_value!r}."
            )
    except TypeError:
        raise InvalidFilterValueError(
            key, f"{value!r} cannot be compared with the field's bounds."
        ) from None
