"""Collection session state machine backed by the persisted session store."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timezone

from feed_sorter.errors import SessionError
from feed_sorter.logging import get_logger
from feed_sorter.models import (
    CollectionMode,
    CollectionPhase,
    FeedVariant,
    SessionState,
    SortKey,
)
from feed_sorter.store.base import SessionStore

logger = get_logger(__name__)

NowFn = Callable[[], datetime]

BUFFER_SIZE = 11
DEFAULT_REQUESTED_SIZE = 25
MAX_REQUESTED_SIZE = 2000
COLLECT_ALL = "all"


def resolve_requested_size(raw: int | str | None, *, max_size: int = MAX_REQUESTED_SIZE) -> int | None:
    """Return a clamped positive count, or None for ``"all"``."""
    if raw is None:
        return DEFAULT_REQUESTED_SIZE
    if isinstance(raw, str):
        value = raw.strip().lower()
        if value == COLLECT_ALL:
            return None
        try:
            parsed = int(value)
        except ValueError as exc:
            raise SessionError(
                f"Invalid item count '{raw}'. Use a positive integer or '{COLLECT_ALL}'."
            ) from exc
    elif isinstance(raw, bool):
        raise SessionError("Item count must be an integer, not a boolean.")
    else:
        parsed = int(raw)
    if parsed <= 0:
        raise SessionError(f"Item count must be positive, got {parsed}.")
    return min(parsed, max_size)


class CollectionStateMachine:
    """Track whether collection is active, its target and its progress.

    Every transition is written through the session store and every check
    re-reads it, so a stop issued by another process is honored mid-run. A
    session left collecting by a process that died is resumed by the next
    ``start`` with its stored target and sort key.
    """

    def __init__(
        self,
        store: SessionStore,
        *,
        session_key: str = "default",
        buffer_size: int = BUFFER_SIZE,
        now_fn: NowFn | None = None,
    ) -> None:
        if buffer_size < 0:
            raise SessionError("buffer_size must be >= 0.")
        self._store = store
        self._session_key = session_key
        self._buffer_size = buffer_size
        self._now_fn = now_fn or (lambda: datetime.now(timezone.utc))
        self._state = store.get(session_key) or SessionState()
        self._running = False

    @property
    def session_key(self) -> str:
        return self._session_key

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_running(self) -> bool:
        """True while a run started by this machine is still collecting."""
        return self._running and self.refresh().is_collecting

    def progress(self) -> int:
        return self._state.progress

    def refresh(self) -> SessionState:
        """Adopt the persisted state, picking up transitions made elsewhere."""
        stored = self._store.get(self._session_key)
        if stored is not None:
            self._state = stored
        if not self._state.is_collecting:
            self._running = False
        return self._state

    def should_stop(self) -> bool:
        return not self.refresh().is_collecting

    def start(
        self,
        requested: int | str | None,
        sort_key: SortKey | str | None,
        *,
        mode: CollectionMode = CollectionMode.PRECISION,
        variant: FeedVariant = FeedVariant.MAIN_FEED,
        fused_count: int = 0,
    ) -> SessionState:
        """Begin collecting.

        A no-op returning the current state while this machine's run is active.
        A stored collecting phase with no live run here is an interrupted
        session: it resumes with its stored target, sort key, mode and variant.
        """
        current = self.refresh()
        if current.is_collecting and self._running:
            logger.info("Collection already active for session '%s'; start ignored", self._session_key)
            return current
        now = self._now_fn()
        if current.is_collecting:
            logger.info(
                "Resuming interrupted collection for session '%s' (target %s, sort %s)",
                self._session_key,
                current.target_size if current.target_size is not None else "all",
                current.sort_key.value if current.sort_key else None,
            )
            state = replace(current, fused_count=max(0, fused_count), updated_at=now)
            if state.sort_key is None:
                state = replace(state, sort_key=_require_sort_key(sort_key))
        else:
            resolved_key = _require_sort_key(sort_key)
            requested_size = resolve_requested_size(requested)
            target_size = requested_size + self._buffer_size if requested_size is not None else None
            state = SessionState(
                phase=CollectionPhase.COLLECTING,
                target_size=target_size,
                requested_size=requested_size,
                collect_all=requested_size is None,
                sort_key=resolved_key,
                mode=mode,
                variant=variant,
                fused_count=max(0, fused_count),
                started_at=now,
                updated_at=now,
            )
        self._persist(state)
        self._running = True
        return self.observe_fused_count(state.fused_count)

    def observe_fused_count(self, fused_count: int) -> SessionState:
        """Record a new fused count; completes once a bounded target is met."""
        current = self.refresh()
        if not current.is_collecting:
            return current
        state = replace(current, fused_count=max(0, fused_count), updated_at=self._now_fn())
        if state.target_size is not None and state.fused_count >= state.target_size:
            state = replace(state, phase=CollectionPhase.COMPLETED)
            logger.info(
                "Collection target reached for session '%s': %d/%d",
                self._session_key,
                state.fused_count,
                state.target_size,
            )
        self._persist(state)
        return state

    def complete(self) -> SessionState:
        """Finish collection now and hand the fused set to sorting."""
        return self._finish(CollectionPhase.COMPLETED)

    def stop(self) -> SessionState:
        """Cancel collection; fused data collected so far is kept."""
        return self._finish(CollectionPhase.STOPPED)

    def reset(self) -> SessionState:
        state = SessionState(updated_at=self._now_fn())
        self._persist(state)
        return state

    def _finish(self, phase: CollectionPhase) -> SessionState:
        current = self.refresh()
        if not current.is_collecting:
            return current
        state = replace(current, phase=phase, updated_at=self._now_fn())
        self._persist(state)
        return state

    def _persist(self, state: SessionState) -> None:
        self._store.set(self._session_key, state)
        self._state = state
        if not state.is_collecting:
            self._running = False


def _require_sort_key(sort_key: SortKey | str | None) -> SortKey:
    if sort_key is None or (isinstance(sort_key, str) and not sort_key.strip()):
        raise SessionError("A sort key is required to start collection.")
    if isinstance(sort_key, SortKey):
        return sort_key
    try:
        return SortKey(sort_key.strip().lower())
    except ValueError as exc:
        choices = ", ".join(key.value for key in SortKey)
        raise SessionError(f"Unsupported sort key '{sort_key}'. Use one of: {choices}.") from exc
