"""Audit event sink implementations for PCRM.

Provides append-only sinks for workspace audit events (e.g. contact merges).
All sinks implement the AuditSink protocol.

Design requirements:
- Append-only: never truncate/overwrite
- Fail closed: any IO failure raises AuditSinkError
- Deterministic: consistent JSON serialization (sorted keys, no extra whitespace)
"""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from pcrm.config import AUDIT_LOG_PATH_ENV, DEFAULT_AUDIT_LOG_PATH

logger = logging.getLogger(__name__)


class AuditSinkError(Exception):
    """Raised when audit event emission fails."""

    pass


@runtime_checkable
class AuditSink(Protocol):
    """Protocol for audit event sinks."""

    def emit(self, event: dict[str, Any]) -> None:
        """Emit an audit event to the sink.

        Raises:
            AuditSinkError: If emission fails for any reason
        """
        ...


def _serialize(event: dict[str, Any]) -> str:
    try:
        return json.dumps(event, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise AuditSinkError(f"Failed to serialize audit event: {e}") from e


class JsonlFileAuditSink:
    """Append-only JSONL file sink for audit events.

    Configuration:
    - File path from env PCRM_AUDIT_LOG_PATH (default: ./var/audit/audit_events.jsonl)
    - Creates parent directories if missing
    - Appends one line per event
    """

    def __init__(self, file_path: str | None = None) -> None:
        """Initialize the JSONL file sink.

        Args:
            file_path: Override path for the audit log file. If None, reads
                PCRM_AUDIT_LOG_PATH, falling back to DEFAULT_AUDIT_LOG_PATH.
        """
        if file_path is not None:
            self._file_path = Path(file_path)
        else:
            self._file_path = Path(os.environ.get(AUDIT_LOG_PATH_ENV) or DEFAULT_AUDIT_LOG_PATH)
        self._lock = threading.Lock()

    @property
    def file_path(self) -> Path:
        """Return the configured file path."""
        return self._file_path

    def emit(self, event: dict[str, Any]) -> None:
        """Append an event as a single JSON line.

        Raises:
            AuditSinkError: If serialization, directory creation or the write fails
        """
        line = _serialize(event) + "\n"
        parent = self._file_path.parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise AuditSinkError(f"Failed to create audit log directory {parent}: {e}") from e

        with self._lock:
            try:
                with open(self._file_path, mode="a", encoding="utf-8") as f:
                    f.write(line)
            except OSError as e:
                raise AuditSinkError(
                    f"Failed to write audit event to {self._file_path}: {e}"
                ) from e


class InMemoryAuditSink:
    """In-memory audit sink for testing (no disk writes).

    Stores emitted events in a list for later inspection.
    """

    def __init__(self) -> None:
        self._events: list[dict[str, Any]] = []

    def emit(self, event: dict[str, Any]) -> None:
        # Round-trip through JSON so tests see exactly what a file sink would write
        self._events.append(json.loads(_serialize(event)))

    @property
    def events(self) -> list[dict[str, Any]]:
        """Return all emitted events."""
        return list(self._events)

    def clear(self) -> None:
        self._events.clear()


def get_audit_sink() -> AuditSink:
    """Factory function to get the configured audit sink."""
    return JsonlFileAuditSink()
