"""Diagnostics helpers."""

from .events import (
    DEBUG_EVENT_SCHEMA_VERSION,
    EVENT_COLLECTION_RUN,
    JsonlEventLogger,
    build_debug_event,
    ensure_schema_compatible,
    read_debug_events,
    validate_debug_event,
)

__all__ = [
    "DEBUG_EVENT_SCHEMA_VERSION",
    "EVENT_COLLECTION_RUN",
    "JsonlEventLogger",
    "build_debug_event",
    "ensure_schema_compatible",
    "read_debug_events",
    "validate_debug_event",
]
