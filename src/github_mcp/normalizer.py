"""Translate raw GitHub responses into structured errors or typed values.

`normalize` must always produce a StructuredError: the error body is parsed
best-effort (JSON `message` -> transport reason phrase -> generic text) and no
failure on that path is allowed to escape.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError

from .errors import ErrorKind, StructuredError
from .github_client import TRANSPORT_FAILURE_STATUS, TransportResponse

T = TypeVar("T")

GENERIC_DETAILS = "No error details provided"

# GitHub's wording for primary and secondary rate limits. Kept verbatim: the
# remote message text is the contract.
RATE_LIMIT_MARKER = "rate limit exceeded"


def _load_body(body: Any) -> Any:
    """Return parsed JSON, the decoded text, or None. Never raises."""
    if body is None:
        return None
    if isinstance(body, Mapping):
        return dict(body)
    if isinstance(body, (bytes, bytearray)):
        if not body:
            return None
        try:
            text = bytes(body).decode("utf-8")
        except UnicodeDecodeError:
            return None
    elif isinstance(body, str):
        text = body
    else:
        return body
    if not text.strip():
        return None
    try:
        return json.loads(text)
    except (ValueError, RecursionError):
        return text


def _error_details(payload: Any, reason_phrase: str) -> str:
    if isinstance(payload, dict):
        message = payload.get("message")
        if isinstance(message, str) and message:
            return message
    if reason_phrase:
        return reason_phrase
    return GENERIC_DETAILS


def normalize(
    status: int,
    body: Any,
    context: str,
    *,
    reason_phrase: str = "",
    method: str | None = None,
    path: str | None = None,
) -> StructuredError:
    """Classify a non-2xx response.

    Args:
        status: HTTP status code, or 0 when the transport itself failed.
        body: Raw bytes, text, an already-parsed mapping, or None.
        context: The operation in progress, e.g. "creating a pull request".
        reason_phrase: Transport status text used when the body has no message.
        method: Request method, for diagnostics.
        path: Request path, for diagnostics.
    """
    payload = _load_body(body)
    details = _error_details(payload, reason_phrase or "")

    if status == 401:
        kind = ErrorKind.UNAUTHORIZED
        message = f"Authentication failed while {context}: {details}"
    elif status == 403 and RATE_LIMIT_MARKER in details:
        kind = ErrorKind.RATE_LIMITED
        message = f"Rate limit exceeded while {context}. Please try again later."
    elif status == 403:
        kind = ErrorKind.FORBIDDEN
        message = f"Access denied while {context}: {details}"
    elif status == 404:
        kind = ErrorKind.NOT_FOUND
        message = f"Resource not found while {context}: {details}"
    elif status == 422:
        kind = ErrorKind.INVALID_REQUEST
        message = f"Invalid request while {context}: {details}"
    elif status == TRANSPORT_FAILURE_STATUS:
        kind = ErrorKind.UNKNOWN
        message = f"Network request failed while {context}: {details}"
    else:
        kind = ErrorKind.UNKNOWN
        message = f"GitHub API error ({status}) while {context}: {details}"

    return StructuredError(
        kind=kind,
        message=message,
        context=context,
        http_status=None if status == TRANSPORT_FAILURE_STATUS else status,
        origin_method=method,
        origin_path=path,
        raw_body=payload,
    )


def normalize_response(response: TransportResponse, context: str) -> StructuredError:
    """Classify a failed TransportResponse."""
    return normalize(
        response.status_code,
        response.body,
        context,
        reason_phrase=response.reason_phrase,
        method=response.method,
        path=response.path,
    )


def parse_failure(response: TransportResponse, context: str, detail: str, raw_body: Any = None) -> StructuredError:
    """A 2xx response whose body does not match the expected shape."""
    return StructuredError(
        kind=ErrorKind.PARSE_FAILURE,
        message=f"Failed to parse GitHub API response while {context}: {detail}",
        context=context,
        http_status=response.status_code,
        origin_method=response.method,
        origin_path=response.path,
        raw_body=raw_body,
    )


def _summarize_validation_error(exc: ValidationError) -> str:
    parts: list[str] = []
    for err in exc.errors()[:5]:
        loc = ".".join(str(p) for p in err.get("loc", ())) or "<root>"
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    return "; ".join(parts)


def parse_response(response: TransportResponse, context: str, shape: type[T] | Any) -> T | StructuredError:
    """Classify a failed response, or validate a successful body against `shape`.

    `shape` is anything pydantic can adapt: a model class, `list[Model]`, a
    union. The validated value is returned; never a partially-populated one.
    """
    if not response.is_success:
        return normalize_response(response, context)

    try:
        data = json.loads(response.body)
    except (ValueError, RecursionError) as exc:
        return parse_failure(response, context, f"invalid JSON ({exc.__class__.__name__})")

    try:
        return TypeAdapter(shape).validate_python(data)
    except ValidationError as exc:
        return parse_failure(response, context, _summarize_validation_error(exc), raw_body=data)
