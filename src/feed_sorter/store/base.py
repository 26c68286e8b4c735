"""Storage interfaces for collection sessions, fused items and runs."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Protocol

from feed_sorter.models import PostItem, SessionState


class SessionStore(Protocol):
    def get(self, session_key: str) -> SessionState | None:
        """Load the persisted session state if present."""

    def set(self, session_key: str, state: SessionState) -> None:
        """Persist the session state, replacing any previous value."""


class ItemStore(Protocol):
    def load_items(self, session_key: str) -> tuple[PostItem, ...]:
        """Load the fused set saved for a session."""

    def save_items(self, session_key: str, items: Iterable[PostItem]) -> int:
        """Upsert fused items and return the number written."""

    def clear_items(self, session_key: str) -> int:
        """Delete fused items for a session and return the number removed."""


class RunLedger(Protocol):
    def begin_run(self, session_key: str, started_at: datetime | None = None) -> int:
        """Create a run record and return its run id."""

    def finish_run(
        self,
        run_id: int,
        *,
        status: str,
        fused_count: int = 0,
        emitted_count: int = 0,
        stop_reason: str | None = None,
        error: str | None = None,
        finished_at: datetime | None = None,
    ) -> None:
        """Complete a run record with terminal status and counters."""
