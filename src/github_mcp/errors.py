"""Structured error types and envelope helpers.

Every failure that crosses the gateway boundary is represented by a
`StructuredError` value with a kind from a closed taxonomy. Errors are
returned, not raised; exceptions are reserved for configuration problems
and for leaf helpers (the content codec) whose errors the gateway converts
back into values.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Closed set of error kinds surfaced to callers."""

    UNKNOWN_TOOL = "UnknownTool"
    VALIDATION_ERROR = "ValidationError"
    UNAUTHORIZED = "Unauthorized"
    RATE_LIMITED = "RateLimited"
    FORBIDDEN = "Forbidden"
    NOT_FOUND = "NotFound"
    INVALID_REQUEST = "InvalidRequest"
    PARSE_FAILURE = "ParseFailure"
    DECODE_ERROR = "DecodeError"
    ENCODE_ERROR = "EncodeError"
    UNKNOWN = "Unknown"


@dataclass(frozen=True, slots=True)
class FieldIssue:
    """A single argument that failed validation."""

    field: str
    reason: str
    error_type: str

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "reason": self.reason, "type": self.error_type}


@dataclass(frozen=True, slots=True)
class StructuredError:
    """A normalized failure.

    Created once, where the raw failure is first observed, and never mutated.
    `context` names the operation in progress (e.g. "creating a pull request").
    """

    kind: ErrorKind
    message: str
    context: str | None = None
    http_status: int | None = None
    origin_method: str | None = None
    origin_path: str | None = None
    raw_body: Any = None
    fields: tuple[FieldIssue, ...] = ()

    def to_result(self) -> dict[str, Any]:
        """Render the standard tool error envelope."""
        out = to_error_result(code=self.kind.value, message=self.message)
        if self.context is not None:
            out["context"] = self.context
        if self.http_status is not None:
            out["status"] = self.http_status
        if self.origin_method is not None:
            out["method"] = self.origin_method
        if self.origin_path is not None:
            out["path"] = self.origin_path
        if self.fields:
            out["fields"] = [f.to_dict() for f in self.fields]
        if self.raw_body is not None:
            out["response"] = self.raw_body
        return out


class ToolError(Exception):
    """Raised by leaf helpers; carries the StructuredError the gateway returns."""

    def __init__(self, error: StructuredError) -> None:
        super().__init__(error.message)
        self.error = error


class ConfigError(Exception):
    """Host configuration is missing or invalid.

    The message must never include secret values.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


def to_error_result(*, code: str, message: str, hint: str | None = None) -> dict[str, Any]:
    """Build a standard tool error envelope."""
    out: dict[str, Any] = {"ok": False, "code": code, "message": message}
    if hint:
        out["hint"] = hint
    return out


def internal_error(message: str = "Internal error") -> dict[str, Any]:
    """Error for unexpected failures."""
    return to_error_result(code="Internal", message=message)
