"""Result types returned across the core's public boundary.

Nothing in the core raises to its callers: validators return a
``ValidationResult``, store and codec operations return an
``OperationResult`` (or ``None`` for an absent read), and decoding an
untrusted document returns either the typed value or a ``DecodeError``.
"""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a validation check.

    ``path`` names the offending location when the check covers a
    container (``elements[3]``, ``canvasSize``).
    """

    is_valid: bool
    error: str | None = None
    warning: str | None = None
    path: str | None = None

    def __bool__(self) -> bool:
        return self.is_valid

    @classmethod
    def ok(cls, warning: str | None = None) -> "ValidationResult":
        return cls(is_valid=True, warning=warning)

    @classmethod
    def fail(cls, error: str, path: str | None = None) -> "ValidationResult":
        return cls(is_valid=False, error=error, path=path)


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """Success/failure of a fallible operation, with the reason on failure."""

    ok: bool
    error: str | None = None
    value: T | None = None

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, value: T | None = None) -> "OperationResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> "OperationResult[T]":
        return cls(ok=False, error=error)


@dataclass(frozen=True)
class ParseResult:
    """Outcome of ``safe_json_parse``: parsed data, or ``None`` with an error."""

    data: Any = None
    error: str | None = None


@dataclass(frozen=True)
class DecodeError:
    """Rejection of an untrusted document, naming where it went wrong."""

    message: str
    path: str | None = None

    def __str__(self) -> str:
        if self.path:
            return f"{self.path}: {self.message}"
        return self.message
