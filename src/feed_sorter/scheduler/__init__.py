"""Collection session state and run orchestration."""

from .run import (
    STATUS_ALREADY_RUNNING,
    STATUS_COMPLETED,
    STATUS_FAILED,
    STATUS_PARTIAL,
    STATUS_RENDER_FAILED,
    STATUS_STOPPED,
    CollectionRunResult,
    run_collection,
    select_items,
)
from .state import (
    BUFFER_SIZE,
    COLLECT_ALL,
    DEFAULT_REQUESTED_SIZE,
    MAX_REQUESTED_SIZE,
    CollectionStateMachine,
    resolve_requested_size,
)

__all__ = [
    "BUFFER_SIZE",
    "COLLECT_ALL",
    "CollectionRunResult",
    "CollectionStateMachine",
    "DEFAULT_REQUESTED_SIZE",
    "MAX_REQUESTED_SIZE",
    "STATUS_ALREADY_RUNNING",
    "STATUS_COMPLETED",
    "STATUS_FAILED",
    "STATUS_PARTIAL",
    "STATUS_RENDER_FAILED",
    "STATUS_STOPPED",
    "resolve_requested_size",
    "run_collection",
    "select_items",
]
