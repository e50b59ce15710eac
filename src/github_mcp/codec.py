"""File content transcoding.

GitHub exchanges file content as base64. This module is the single place where
file bytes are encoded or decoded; text is always UTF-8.
"""

from __future__ import annotations

import base64
import binascii

from .errors import ErrorKind, StructuredError, ToolError

# GitHub wraps base64 content at 60 columns.
_LINE_BREAKS = str.maketrans("", "", "\r\n")


class ContentEncodeError(ToolError):
    """Text cannot be represented as UTF-8 bytes."""

    def __init__(self, message: str) -> None:
        super().__init__(StructuredError(kind=ErrorKind.ENCODE_ERROR, message=message))


class ContentDecodeError(ToolError):
    """Encoded text is not valid base64, or does not decode to UTF-8 text."""

    def __init__(self, message: str) -> None:
        super().__init__(StructuredError(kind=ErrorKind.DECODE_ERROR, message=message))


def encode_content(content: str) -> str:
    """Encode text as base64 of its UTF-8 bytes."""
    try:
        raw = content.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise ContentEncodeError(f"Failed to encode content: {exc.reason} at position {exc.start}") from exc
    return base64.b64encode(raw).decode("ascii")


def decode_content(encoded: str) -> str:
    """Decode base64 text back into a UTF-8 string.

    Raises:
        ContentDecodeError: On characters outside the base64 alphabet, bad
            padding, or bytes that are not valid UTF-8.
    """
    compact = encoded.translate(_LINE_BREAKS)
    try:
        raw = base64.b64decode(compact.encode("ascii"), validate=True)
    except (UnicodeEncodeError, binascii.Error) as exc:
        raise ContentDecodeError("Failed to decode content: input is not valid base64") from exc

    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ContentDecodeError("Failed to decode content: file is not valid UTF-8 text") from exc
