"""Structured debug event schema helpers with compatibility guards."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
import json
from pathlib import Path
import re
from typing import Any

from feed_sorter.errors import DiagnosticsError

DEBUG_EVENT_SCHEMA_VERSION = "v1"
EVENT_COLLECTION_RUN = "collection_run"

_REQUIRED_TOP_LEVEL_FIELDS = (
    "schema_version",
    "event_type",
    "occurred_at",
    "run_id",
    "session_key",
    "payload",
)


class JsonlEventLogger:
    """Append schema-validated JSONL debug events."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise DiagnosticsError(f"Could not prepare event log directory for '{self._path}': {exc}.") from exc

    @property
    def path(self) -> Path:
        return self._path

    def append(
        self,
        event_type: str,
        *,
        run_id: str,
        session_key: str | None = None,
        payload: dict[str, Any] | None = None,
        occurred_at: datetime | None = None,
    ) -> dict[str, Any]:
        event = build_debug_event(
            event_type,
            run_id=run_id,
            session_key=session_key,
            payload=payload,
            occurred_at=occurred_at,
        )
        line = json.dumps(event, sort_keys=True, default=_json_default)
        try:
            with self._path.open("a", encoding="utf-8") as stream:
                stream.write(line)
                stream.write("\n")
        except OSError as exc:
            raise DiagnosticsError(f"Could not append debug event to '{self._path}': {exc}.") from exc
        return event


def build_debug_event(
    event_type: str,
    *,
    run_id: str,
    session_key: str | None = None,
    payload: dict[str, Any] | None = None,
    occurred_at: datetime | None = None,
    schema_version: str = DEBUG_EVENT_SCHEMA_VERSION,
) -> dict[str, Any]:
    resolved_payload = payload if payload is not None else {}
    if not isinstance(resolved_payload, dict):
        raise DiagnosticsError("payload must be a dictionary.")
    if not event_type.strip():
        raise DiagnosticsError("event_type must be non-empty.")
    if not run_id.strip():
        raise DiagnosticsError("run_id must be non-empty.")

    resolved_time = occurred_at or datetime.now(timezone.utc)
    if resolved_time.tzinfo is None:
        resolved_time = resolved_time.replace(tzinfo=timezone.utc)
    event = {
        "schema_version": schema_version,
        "event_type": event_type.strip(),
        "occurred_at": resolved_time.isoformat(),
        "run_id": run_id.strip(),
        "session_key": session_key.strip() if isinstance(session_key, str) and session_key.strip() else None,
        "payload": resolved_payload,
    }
    validate_debug_event(event)
    return event


def validate_debug_event(event: dict[str, Any]) -> None:
    """Validate required fields and enforce schema compatibility policy."""
    for field in _REQUIRED_TOP_LEVEL_FIELDS:
        if field not in event:
            raise DiagnosticsError(f"Debug event missing required field '{field}'.")

    schema_version = event["schema_version"]
    if not isinstance(schema_version, str) or not schema_version.strip():
        raise DiagnosticsError("schema_version must be a non-empty string.")
    ensure_schema_compatible(schema_version)

    if not isinstance(event["event_type"], str) or not event["event_type"].strip():
        raise DiagnosticsError("event_type must be a non-empty string.")
    if not isinstance(event["run_id"], str) or not event["run_id"].strip():
        raise DiagnosticsError("run_id must be a non-empty string.")
    if event["session_key"] is not None and not isinstance(event["session_key"], str):
        raise DiagnosticsError("session_key must be a string or null.")
    if not isinstance(event["payload"], dict):
        raise DiagnosticsError("payload must be an object.")


def read_debug_events(path: str | Path, *, run_id: str | None = None) -> list[dict[str, Any]]:
    """Load validated events from a JSONL log, optionally for one run."""
    source = Path(path)
    if not source.exists():
        return []
    events: list[dict[str, Any]] = []
    try:
        lines = source.read_text(encoding="utf-8").splitlines()
    except OSError as exc:
        raise DiagnosticsError(f"Could not read debug events from '{source}': {exc}.") from exc
    for number, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            event = json.loads(line)
        except json.JSONDecodeError as exc:
            raise DiagnosticsError(f"Debug event line {number} in '{source}' is not valid JSON.") from exc
        if not isinstance(event, dict):
            raise DiagnosticsError(f"Debug event line {number} in '{source}' must be an object.")
        validate_debug_event(event)
        if run_id is None or event["run_id"] == run_id:
            events.append(event)
    return events


def ensure_schema_compatible(schema_version: str) -> None:
    current_major = _schema_major(DEBUG_EVENT_SCHEMA_VERSION)
    incoming_major = _schema_major(schema_version)
    if incoming_major != current_major:
        raise DiagnosticsError(
            f"Incompatible debug event schema '{schema_version}'. Expected major '{current_major}'."
        )


def _schema_major(version: str) -> str:
    raw = version.strip().lower()
    match = re.match(r"^v?(?P<major>\d+)(?:[._-]\d+)?$", raw)
    if match is None:
        raise DiagnosticsError(f"Invalid schema version '{version}'. Use forms like 'v1' or '1.0'.")
    return match.group("major")


def _json_default(value: object) -> object:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
