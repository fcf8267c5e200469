"""Shared error taxonomy for dashkit."""

from __future__ import annotations

from typing import Any, Mapping, Sequence, TypeVar


def _normalize_context_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        return normalize_context(value)
    if isinstance(value, (list, tuple)):
        return [_normalize_context_value(item) for item in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


def normalize_context(context: Mapping[str, Any]) -> dict[str, Any]:
    """Return a JSON-friendly copy of an error context mapping."""
    return {key: _normalize_context_value(val) for key, val in context.items()}


class DKError(Exception):
    """Base error type for typed failure handling."""

    def __init__(
        self,
        message: str,
        *,
        context: Mapping[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.context = normalize_context(context or {})
        if cause is not None:
            self.__cause__ = cause

    @property
    def error_type(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.error_type, "message": str(self), "context": self.context}


class ContentError(DKError):
    """Invalid arguments passed to a public add/set call."""


class ContractError(DKError):
    """Internals called with inputs of the wrong shape (programmer error)."""


class DatasetError(DKError):
    """A dataset reference could not be resolved."""


class ConfigurationError(DKError):
    """Failure due to invalid configuration or collection files."""


class SpecValidationError(DKError):
    """Item specs failed validation; ``issues`` holds what was found."""

    def __init__(
        self,
        message: str,
        *,
        issues: Sequence[Any] = (),
        context: Mapping[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, context=context, cause=cause)
        self.issues = tuple(issues)


class StructuralWarning(UserWarning):
    """Ambiguous but recoverable structure, e.g. a group path with odd separators."""


T = TypeVar("T", bound=DKError)


def wrap_error(
    error_cls: type[T],
    message: str,
    *,
    context: Mapping[str, Any] | None = None,
    cause: Exception | None = None,
) -> T:
    """Create a typed DKError with optional context and cause."""
    return error_cls(message, context=context, cause=cause)


def error_to_payload(error: DKError) -> dict[str, Any]:
    """Convert a DKError to a JSON-friendly payload."""
    return {
        "error_type": error.error_type,
        "error": str(error),
        "error_context": error.context,
    }
