"""Custom exception hierarchy for filterQL.

All public errors inherit from FilterQLError so callers can catch the base
class for any filterQL-specific failure.
"""
from __future__ import annotations

from typing import Any


class FilterQLError(Exception):
    """Base exception for all filterQL errors."""


class ParseError(FilterQLError):
    """Raised when filter or option input does not have the expected shape.

    Args:
        message: Human-readable description.
        raw: The raw input that failed to parse.
    """

    def __init__(self, message: str, raw: Any = None) -> None:
        super().__init__(message)
        self.raw = raw


class ValidationError(FilterQLError):
    """Raised when a filter map or query options fail validation.

    Args:
        message: Human-readable description.
        code: Machine-readable error code (e.g. INVALID_FIELD_NAME).
        details: Extra context returned to the API caller.
    """

    def __init__(
        self,
        message: str,
        code: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details: dict[str, Any] = details or {}

    def to_error_response(self) -> dict[str, Any]:
        """Returns a structured error response suitable for an HTTP 400 body."""
        return {
            "error": self.code,
            "message": str(self),
            "details": self.details,
        }


class InvalidFieldNameError(ValidationError):
    """Raised when a filter or sort key does not name a safe SQL identifier."""

    def __init__(self, key: str, field: str) -> None:
        super().__init__(
            f"Filter key '{key}' does not reference a valid field name.",
            code="INVALID_FIELD_NAME",
            details={"key": key, "field": field},
        )


class InvalidOperatorArityError(ValidationError):
    """Raised when a value has the wrong shape or element count for its operator."""

    def __init__(self, key: str, operator: str, expected: str, received: Any) -> None:
        super().__init__(
            f"Filter key '{key}' expects {expected} for operator '{operator}'.",
            code="INVALID_OPERATOR_ARITY",
            details={
                "key": key,
                "operator": operator,
                "expected": expected,
                "received": type(received).__name__,
            },
        )


class InvalidFilterValueError(ValidationError):
    """Raised when a value has the right arity but an unusable type."""

    def __init__(self, key: str, message: str) -> None:
        super().__init__(
            f"Filter key '{key}': {message}",
            code="INVALID_FILTER_VALUE",
            details={"key": key},
        )


class InvalidPaginationValueError(ValidationError):
    """Raised when page, limit or offset is not a usable integer."""

    def __init__(self, name: str, value: Any, reason: str) -> None:
        super().__init__(
            f"Invalid value for '{name}': {value!r} ({reason}).",
            code="INVALID_PAGINATION_VALUE",
            details={"name": name, "value": value, "reason": reason},
        )


class DisallowedFieldError(ValidationError):
    """Raised when a filter or sort field is not permitted by the policy."""

    def __init__(self, field: str, allowed_fields: list[str]) -> None:
        super().__init__(
            f"Field '{field}' is not allowed.",
            code="DISALLOWED_FIELD",
            details={"field": field, "allowed_fields": allowed_fields},
        )


class UnsupportedOperatorError(ValidationError):
    """Raised when an operator does not suit the column kind the policy declares.

    For example ``_like`` on a numeric column or ``_between`` on a boolean.
    """

    def __init__(self, key: str, operator: str, kind: str) -> None:
        super().__init__(
            f"Operator '{operator}' is not supported for {kind} field in '{key}'.",
            code="UNSUPPORTED_OPERATOR",
            details={"key": key, "operator": operator, "kind": kind},
        )


class ProfileConfigError(FilterQLError):
    """Raised when a FilterPolicy is misconfigured.

    Detected when the policy is constructed, before any query is compiled,
    so the developer gets a clear message instead of a failure at request
    time.

    Args:
        message: Human-readable description.
        setting: Name of the offending setting.
    """

    def __init__(self, message: str, setting: str | None = None) -> None:
        super().__init__(message)
        self.setting = setting


class CompilationError(FilterQLError):
    """Raised when SQL compilation fails for an unexpected reason.

    Args:
        message: Human-readable description.
        clause: The clause being compiled when the error occurred.
    """

    def __init__(self, message: str, clause: str | None = None) -> None:
        super().__init__(message)
        self.clause = clause


class UnknownDialectError(CompilationError):
    """Raised when no dialect compiler is registered for a target name."""

    def __init__(self, name: str, registered: list[str]) -> None:
        super().__init__(
            f"Unsupported dialect target: '{name}'. Registered targets: {registered}."
        )
        self.name = name
        self.registered = registered
