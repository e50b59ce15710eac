"""Audit trail for tool dispatches.

One JSON line per dispatch attempt, on stderr and optionally appended to a
size-rotated file. Events are derived from the dispatch outcome only: the access
token, request bodies and file content never reach the audit log.
"""

from __future__ import annotations

import json
import logging
import sys
import time
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from .errors import ErrorKind, StructuredError

logger = logging.getLogger(__name__)

# Rejected because of the caller's input; every other error is a failed call.
DENIED_KINDS = frozenset({ErrorKind.UNKNOWN_TOOL, ErrorKind.VALIDATION_ERROR, ErrorKind.ENCODE_ERROR})


def new_correlation_id() -> str:
    """Random id tying the audit event to the envelope returned to the caller."""
    return uuid.uuid4().hex


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def outcome_for(error: StructuredError | None) -> str:
    if error is None:
        return "succeeded"
    return "denied" if error.kind in DENIED_KINDS else "failed"


@dataclass(frozen=True, slots=True)
class AuditEvent:
    """What happened to one dispatch."""

    correlation_id: str
    operation: str
    target_repo: str
    outcome: str
    duration_ms: int
    error_kind: str | None = None
    http_status: int | None = None
    reason: str | None = None
    timestamp: str = field(default_factory=_utc_timestamp)

    @classmethod
    def for_dispatch(
        cls,
        *,
        correlation_id: str,
        operation: str,
        target_repo: str,
        error: StructuredError | None,
        duration_ms: int,
    ) -> AuditEvent:
        return cls(
            correlation_id=correlation_id,
            operation=operation,
            target_repo=target_repo,
            outcome=outcome_for(error),
            duration_ms=duration_ms,
            error_kind=error.kind.value if error else None,
            http_status=error.http_status if error else None,
            reason=error.message if error else None,
        )

    def to_json(self) -> str:
        payload = {key: value for key, value in asdict(self).items() if value is not None}
        return json.dumps(payload, sort_keys=True, separators=(",", ":"))


class AuditLogger:
    """Emits AuditEvents to stderr and, when configured, a JSONL file."""

    def __init__(self, *, sink_path: Path | None, max_bytes: int = 5 * 1024 * 1024, max_backups: int = 2) -> None:
        self._sink_path = sink_path
        self._max_bytes = max_bytes
        self._max_backups = max_backups

    @property
    def has_file_sink(self) -> bool:
        return self._sink_path is not None

    def record(
        self,
        *,
        correlation_id: str,
        operation: str,
        target_repo: str,
        error: StructuredError | None,
        started_at: float,
    ) -> AuditEvent:
        """Build and write the event for a finished dispatch.

        `started_at` is a `time.monotonic()` reading taken before lookup.
        """
        event = AuditEvent.for_dispatch(
            correlation_id=correlation_id,
            operation=operation,
            target_repo=target_repo,
            error=error,
            duration_ms=int((time.monotonic() - started_at) * 1000),
        )
        self.write_event(event)
        return event

    def write_event(self, event: AuditEvent) -> None:
        line = event.to_json()
        print(line, file=sys.stderr)
        if self._sink_path is None:
            return
        try:
            self._append(self._sink_path, line)
        except OSError as exc:
            # The file sink is optional; a broken sink must not fail the dispatch.
            logger.warning("Audit sink %s unavailable: %s", self._sink_path, exc)

    def _append(self, sink: Path, line: str) -> None:
        sink.parent.mkdir(parents=True, exist_ok=True)
        if sink.exists() and sink.stat().st_size >= self._max_bytes:
            self._rotate(sink)
        with sink.open("a", encoding="utf-8") as fh:
            fh.write(line + "\n")

    def _rotate(self, sink: Path) -> None:
        if self._max_backups <= 0:
            sink.write_text("", encoding="utf-8")
            return
        # audit.jsonl.1 -> .2 -> ... ; the oldest backup is overwritten.
        for index in range(self._max_backups - 1, 0, -1):
            older = sink.with_name(f"{sink.name}.{index}")
            if older.exists():
                older.replace(sink.with_name(f"{sink.name}.{index + 1}"))
        sink.replace(sink.with_name(f"{sink.name}.1"))
