"""Pydantic models for pagination and sort options.

Structural parsing (types, shapes) happens here.  Range checks on ``page``,
``limit`` and ``offset`` are done by the compiler so they surface as
:class:`~filterql.errors.InvalidPaginationValueError` rather than as a
pydantic error.
"""
from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from filterql.errors import ParseError


class SortDirection(str, Enum):
    """ORDER BY direction of a :class:`SortItem`."""

    ASC = "ASC"
    DESC = "DESC"


class SortItem(BaseModel):
    """A single ORDER BY entry.

    Attributes:
        field: Column to sort on.  Checked against the identifier pattern at
            compile time.
        direction: ``ASC`` or ``DESC``.  Missing or unrecognised values fall
            back to ``ASC``.  Also accepted under the key ``order``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    field: str
    direction: SortDirection = Field(
        default=SortDirection.ASC,
        validation_alias=AliasChoices("direction", "order"),
    )

    @field_validator("direction", mode="before")
    @classmethod
    def _normalise_direction(cls, value: Any) -> SortDirection:
        if isinstance(value, SortDirection):
            return value
        if isinstance(value, str) and value.strip().upper() == "DESC":
            return SortDirection.DESC
        return SortDirection.ASC

    @classmethod
    def parse(cls, token: str) -> SortItem:
        """Parse ``'field'`` or ``'-field'`` (descending) into a SortItem."""
        token = token.strip()
        if token.startswith("-"):
            return cls(field=token[1:], direction=SortDirection.DESC)
        return cls(field=token.lstrip("+"))


class QueryOptions(BaseModel):
    """Pagination and sort options for one compiled query.

    Attributes:
        page: 1-based page number (default 1).
        limit: Page size (default and cap come from the policy).
        offset: Explicit row offset; overrides the value derived from
            ``page`` when set.
        sort: Ordered sort entries.  A comma-separated string such as
            ``"-created_at,name"`` is also accepted.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    page: int | None = None
    limit: int | None = None
    offset: int | None = None
    sort: list[SortItem] = Field(default_factory=list)

    @field_validator("sort", mode="before")
    @classmethod
    def _coerce_sort(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [SortItem.parse(tok) for tok in value.split(",") if tok.strip()]
        if isinstance(value, (SortItem, dict)):
            value = [value]
        if isinstance(value, (list, tuple)):
            return [SortItem.parse(v) if isinstance(v, str) else v for v in value]
        return value


def coerce_options(options: QueryOptions | dict[str, Any] | None) -> QueryOptions:
    """Return ``options`` as a :class:`QueryOptions` instance.

    Raises:
        ParseError: If ``options`` cannot be validated as QueryOptions.
    """
    if options is None:
        return QueryOptions()
    if isinstance(options, QueryOptions):
        return options
    try:
        return QueryOptions.model_validate(options)
    except Exception as exc:
        raise ParseError(f"QueryOptions structure is invalid: {exc}", raw=options) from exc
