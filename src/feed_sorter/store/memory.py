"""In-process store used for ephemeral runs and tests."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone

from feed_sorter.errors import StoreError
from feed_sorter.models import PostItem, SessionState


@dataclass(frozen=True)
class RunRecord:
    run_id: int
    session_key: str
    started_at: datetime
    status: str = "running"
    fused_count: int = 0
    emitted_count: int = 0
    stop_reason: str | None = None
    error: str | None = None
    finished_at: datetime | None = None


class MemoryStore:
    """Dictionary-backed implementation of the session, item and run stores."""

    def __init__(self) -> None:
        self._sessions: dict[str, SessionState] = {}
        self._items: dict[str, dict[str, PostItem]] = {}
        self._runs: dict[int, RunRecord] = {}

    def get(self, session_key: str) -> SessionState | None:
        return self._sessions.get(session_key)

    def set(self, session_key: str, state: SessionState) -> None:
        self._sessions[session_key] = state

    def load_items(self, session_key: str) -> tuple[PostItem, ...]:
        return tuple(self._items.get(session_key, {}).values())

    def save_items(self, session_key: str, items: Iterable[PostItem]) -> int:
        bucket = self._items.setdefault(session_key, {})
        written = 0
        for item in items:
            bucket[item.item_id] = item
            written += 1
        return written

    def clear_items(self, session_key: str) -> int:
        return len(self._items.pop(session_key, {}))

    def begin_run(self, session_key: str, started_at: datetime | None = None) -> int:
        run_id = len(self._runs) + 1
        self._runs[run_id] = RunRecord(
            run_id=run_id,
            session_key=session_key,
            started_at=started_at or datetime.now(timezone.utc),
        )
        return run_id

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
        record = self._runs.get(run_id)
        if record is None:
            raise StoreError(f"Run id '{run_id}' was not found.")
        self._runs[run_id] = RunRecord(
            run_id=run_id,
            session_key=record.session_key,
            started_at=record.started_at,
            status=status,
            fused_count=fused_count,
            emitted_count=emitted_count,
            stop_reason=stop_reason,
            error=error,
            finished_at=finished_at or datetime.now(timezone.utc),
        )

    def runs(self) -> tuple[RunRecord, ...]:
        return tuple(self._runs[run_id] for run_id in sorted(self._runs))
