"""Collection run orchestration: collect, fuse, sort, trim and render."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone

from feed_sorter.collectors.base import CollectionOutcome, FeedSource
from feed_sorter.collectors.controller import CollectionController
from feed_sorter.diagnostics.events import EVENT_COLLECTION_RUN, JsonlEventLogger
from feed_sorter.errors import RenderError
from feed_sorter.fusion.store import FusionStore
from feed_sorter.logging import get_logger
from feed_sorter.models import (
    CollectionMode,
    CollectionPhase,
    FeedVariant,
    PostItem,
    SessionState,
    SortKey,
    is_displayable,
)
from feed_sorter.render.base import FeedRenderer, RenderReport, build_render_request
from feed_sorter.scheduler.state import CollectionStateMachine
from feed_sorter.sorting.dates import DateRange
from feed_sorter.sorting.engine import sort_and_trim
from feed_sorter.store.base import ItemStore, RunLedger

logger = get_logger(__name__)

STATUS_COMPLETED = "completed"
STATUS_PARTIAL = "partial"
STATUS_STOPPED = "stopped"
STATUS_RENDER_FAILED = "render_failed"
STATUS_ALREADY_RUNNING = "already_running"
STATUS_FAILED = "failed"


@dataclass(frozen=True)
class CollectionRunResult:
    run_id: str
    status: str
    items: tuple[PostItem, ...]
    session: SessionState
    fused_count: int
    outcome: CollectionOutcome | None = None
    render_report: RenderReport | None = None

    @property
    def requested_size(self) -> int | None:
        return self.session.requested_size

    @property
    def emitted_count(self) -> int:
        return len(self.items)

    @property
    def partial(self) -> bool:
        return self.requested_size is not None and self.emitted_count < self.requested_size

    @property
    def stop_reason(self) -> str | None:
        return self.outcome.stop_reason if self.outcome is not None else None


def select_items(
    items: Iterable[PostItem],
    *,
    sort_key: SortKey | str,
    target_size: int | None,
    date_range: DateRange | None = None,
    displayable_only: bool = True,
) -> tuple[PostItem, ...]:
    """Apply the placeholder filter, then sort and trim."""
    candidates = tuple(item for item in items if is_displayable(item)) if displayable_only else tuple(items)
    return sort_and_trim(candidates, sort_key, target_size, date_range=date_range)


def run_collection(
    source: FeedSource,
    *,
    state_machine: CollectionStateMachine,
    controller: CollectionController,
    requested: int | str | None,
    sort_key: SortKey | str | None,
    mode: CollectionMode = CollectionMode.PRECISION,
    variant: FeedVariant = FeedVariant.MAIN_FEED,
    fusion: FusionStore | None = None,
    item_store: ItemStore | None = None,
    renderer: FeedRenderer | None = None,
    date_range: DateRange | None = None,
    ledger: RunLedger | None = None,
    event_logger: JsonlEventLogger | None = None,
    run_id: str | None = None,
) -> CollectionRunResult:
    """Execute one collection session end to end.

    A start while this state machine already owns a live run is a no-op
    reported as ``already_running``; a session left collecting by an
    interrupted process is resumed with its stored target and sort key.
    Progress counts the ids observed by this run, not items carried over from
    earlier runs. Running out of content is not an error: the run ends
    ``partial`` with the actual count. A render failure ends ``render_failed``
    and is not retried.
    """
    session_key = state_machine.session_key
    resolved_run_id = run_id or _new_run_id("collect")
    if state_machine.is_running:
        return CollectionRunResult(
            run_id=resolved_run_id,
            status=STATUS_ALREADY_RUNNING,
            items=(),
            session=state_machine.state,
            fused_count=state_machine.state.fused_count,
        )

    fused_set = fusion if fusion is not None else FusionStore(
        item_store.load_items(session_key) if item_store is not None else ()
    )
    session = state_machine.start(
        requested,
        sort_key,
        mode=mode,
        variant=variant,
        fused_count=fused_set.observed_count(),
    )
    ledger_run_id = ledger.begin_run(session_key) if ledger is not None else None

    def on_fused_count(_: int) -> None:
        state_machine.observe_fused_count(fused_set.observed_count())

    fused_set.add_listener(on_fused_count)
    try:
        outcome = controller.run(
            source,
            fused_set,
            needed=session.target_size,
            should_stop=state_machine.should_stop,
            date_range=date_range,
        )
    except Exception as exc:
        state_machine.stop()
        if ledger is not None and ledger_run_id is not None:
            ledger.finish_run(ledger_run_id, status=STATUS_FAILED, fused_count=len(fused_set), error=str(exc))
        raise
    finally:
        fused_set.remove_listener(on_fused_count)

    final_state = state_machine.complete()

    if item_store is not None:
        item_store.save_items(session_key, fused_set.snapshot())

    assert final_state.sort_key is not None
    items = select_items(
        fused_set.snapshot(),
        sort_key=final_state.sort_key,
        target_size=final_state.requested_size,
        date_range=date_range,
    )
    render_report = _apply_renderer(renderer, items) if renderer is not None else None
    status = _resolve_status(final_state, items, render_report)
    if status == STATUS_PARTIAL:
        logger.warning(
            "Collection exhausted before target: %d of %s requested item(s)",
            len(items),
            final_state.requested_size,
        )

    result = CollectionRunResult(
        run_id=resolved_run_id,
        status=status,
        items=items,
        session=final_state,
        fused_count=len(fused_set),
        outcome=outcome,
        render_report=render_report,
    )
    if ledger is not None and ledger_run_id is not None:
        ledger.finish_run(
            ledger_run_id,
            status=status,
            fused_count=result.fused_count,
            emitted_count=result.emitted_count,
            stop_reason=outcome.stop_reason,
            error=render_report.message if status == STATUS_RENDER_FAILED and render_report else None,
        )
    if event_logger is not None:
        event_logger.append(
            EVENT_COLLECTION_RUN,
            run_id=resolved_run_id,
            session_key=session_key,
            payload={
                "status": status,
                "stop_reason": outcome.stop_reason,
                "requested_size": final_state.requested_size,
                "target_size": final_state.target_size,
                "fused_count": result.fused_count,
                "emitted_count": result.emitted_count,
                "iterations": outcome.stats.iterations,
                "scans": outcome.stats.scans,
                "load_more_attempts": outcome.stats.load_more_attempts,
                "sort_key": final_state.sort_key.value,
                "mode": final_state.mode.value,
                "variant": final_state.variant.value,
            },
        )
    return result


def _apply_renderer(renderer: FeedRenderer, items: tuple[PostItem, ...]) -> RenderReport:
    try:
        return renderer.apply(build_render_request(items))
    except RenderError as exc:
        return RenderReport(success=False, applied_count=0, message=str(exc))


def _resolve_status(
    state: SessionState,
    items: tuple[PostItem, ...],
    render_report: RenderReport | None,
) -> str:
    if render_report is not None and not render_report.success:
        return STATUS_RENDER_FAILED
    if state.phase is CollectionPhase.STOPPED:
        return STATUS_STOPPED
    if state.requested_size is not None and len(items) < state.requested_size:
        return STATUS_PARTIAL
    return STATUS_COMPLETED


def _new_run_id(prefix: str) -> str:
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
    return f"{prefix}-{stamp}"
