"""Bounded scroll/scan collection loop with stall and no-progress detection."""

from __future__ import annotations

from collections.abc import Callable, Collection
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
import time

from feed_sorter.collectors.base import CollectionOutcome, CollectionStats, FeedSource
from feed_sorter.errors import CollectError
from feed_sorter.extract.normalize import normalize_observations
from feed_sorter.fusion.channels import merge_scraped_items
from feed_sorter.fusion.store import FusionStore
from feed_sorter.logging import get_logger
from feed_sorter.models import CollectionMode, FeedVariant
from feed_sorter.sorting.dates import DateRange, reached_date_boundary

logger = get_logger(__name__)

SleepFn = Callable[[float], None]
StopFn = Callable[[], bool]
NowFn = Callable[[], datetime]

STOP_TARGET_REACHED = "target_reached"
STOP_NO_PROGRESS = "no_progress"
STOP_END_OF_CONTENT = "end_of_content"
STOP_MAX_ITERATIONS = "max_iterations"
STOP_STOPPED = "stopped"
STOP_DATE_BOUNDARY = "date_boundary"


@dataclass(frozen=True)
class ScrollBounds:
    """Limits for one collection loop.

    Thresholds are inclusive: load-more is tried on the round where the
    container size has been unchanged for ``stall_threshold`` consecutive
    rounds, and the loop ends on the ``no_progress_threshold``-th round in a
    row without new ids or fused items.
    """

    max_iterations: int = 60
    stall_threshold: int = 4
    no_progress_threshold: int = 8
    max_load_more_attempts: int = 5
    step: int | None = 800
    settle_delay_seconds: float = 0.6
    load_more_delay_seconds: float = 2.0
    rewind_delay_seconds: float = 1.0
    loop_back_on_end: bool = True


MAIN_FEED_BOUNDS = ScrollBounds(
    max_iterations=60,
    stall_threshold=4,
    no_progress_threshold=8,
    max_load_more_attempts=3,
    step=None,
    settle_delay_seconds=1.5,
    load_more_delay_seconds=2.0,
    loop_back_on_end=False,
)
PROFILE_FEED_BOUNDS = ScrollBounds()


def bounds_for_variant(
    variant: FeedVariant,
    *,
    max_iterations: int | None = None,
    stall_threshold: int | None = None,
    no_progress_threshold: int | None = None,
) -> ScrollBounds:
    """Return the scroll bounds for a feed variant with optional configured limits."""
    base = MAIN_FEED_BOUNDS if variant is FeedVariant.MAIN_FEED else PROFILE_FEED_BOUNDS
    overrides = {
        name: value
        for name, value in (
            ("max_iterations", max_iterations),
            ("stall_threshold", stall_threshold),
            ("no_progress_threshold", no_progress_threshold),
        )
        if value is not None
    }
    return _validate_bounds(replace(base, **overrides)) if overrides else base


@dataclass
class ControllerSession:
    """Mutable per-run counters; one instance per ``run`` call."""

    found_ids: list[str] = field(default_factory=list)
    seen: set[str] = field(default_factory=set)
    iterations: int = 0
    scans: int = 0
    stall_rounds: int = 0
    no_progress_rounds: int = 0
    load_more_attempts: int = 0
    last_container_size: int | None = None
    looped_back: bool = False
    stop_reason: str = STOP_MAX_ITERATIONS


class CollectionController:
    """Drive a feed source until the fused set is complete enough or progress stops."""

    def __init__(
        self,
        bounds: ScrollBounds = ScrollBounds(),
        *,
        mode: CollectionMode = CollectionMode.PRECISION,
        sleep_fn: SleepFn = time.sleep,
        now_fn: NowFn | None = None,
    ) -> None:
        self._bounds = _validate_bounds(bounds)
        self._mode = mode
        self._sleep_fn = sleep_fn
        self._now_fn = now_fn or (lambda: datetime.now(timezone.utc))

    @property
    def bounds(self) -> ScrollBounds:
        return self._bounds

    def run(
        self,
        source: FeedSource,
        store: FusionStore,
        *,
        needed: int | None = None,
        target_ids: Collection[str] | None = None,
        should_stop: StopFn | None = None,
        date_range: DateRange | None = None,
    ) -> CollectionOutcome:
        if needed is not None and needed <= 0:
            raise CollectError("needed must be positive when provided.")
        if needed is None and target_ids is not None:
            needed = len(set(target_ids))

        bounds = self._bounds
        session = ControllerSession()
        stop_requested = should_stop or (lambda: False)

        def fused_so_far() -> int:
            if target_ids is not None:
                return store.count_of(target_ids)
            return store.observed_count()

        def target_met() -> bool:
            return needed is not None and fused_so_far() >= needed

        def boundary_met() -> bool:
            return date_range is not None and reached_date_boundary(store.snapshot(), date_range)

        while True:
            if target_met():
                session.stop_reason = STOP_TARGET_REACHED
                break
            if session.iterations >= bounds.max_iterations:
                session.stop_reason = STOP_MAX_ITERATIONS
                break
            if stop_requested():
                session.stop_reason = STOP_STOPPED
                break
            session.iterations += 1
            found_before = len(session.found_ids)
            fused_before = fused_so_far()

            self._scan(source, store, session)
            if target_met():
                session.stop_reason = STOP_TARGET_REACHED
                break

            container_size = self._probe_size(source, session)
            self._advance(source, bounds.step)
            self._sleep_fn(bounds.settle_delay_seconds)
            self._scan(source, store, session)
            self._sleep_fn(bounds.settle_delay_seconds)
            self._scan(source, store, session)

            if container_size is not None and container_size == session.last_container_size:
                session.stall_rounds += 1
                if (
                    session.stall_rounds >= bounds.stall_threshold
                    and session.load_more_attempts < bounds.max_load_more_attempts
                ):
                    session.load_more_attempts += 1
                    if self._try_load_more(source):
                        logger.debug(
                            "Load-more triggered after %d stalled rounds", session.stall_rounds
                        )
                        session.stall_rounds = 0
                        self._sleep_fn(bounds.load_more_delay_seconds)
                        self._scan(source, store, session)
            else:
                session.stall_rounds = 0
                session.last_container_size = container_size

            progressed = (
                len(session.found_ids) > found_before or fused_so_far() > fused_before
            )
            session.no_progress_rounds = 0 if progressed else session.no_progress_rounds + 1

            if target_met():
                session.stop_reason = STOP_TARGET_REACHED
                break
            if boundary_met():
                session.stop_reason = STOP_DATE_BOUNDARY
                break
            if session.no_progress_rounds >= bounds.no_progress_threshold:
                session.stop_reason = STOP_NO_PROGRESS
                break
            if self._at_end(source):
                if bounds.loop_back_on_end and not session.looped_back:
                    session.looped_back = True
                    self._rewind(source)
                    self._sleep_fn(bounds.rewind_delay_seconds)
                    self._scan(source, store, session)
                    continue
                session.stop_reason = STOP_END_OF_CONTENT
                break

        fused_count = fused_so_far()
        logger.info(
            "Collection stopped (%s) after %d iteration(s): fused=%d needed=%s",
            session.stop_reason,
            session.iterations,
            fused_count,
            needed if needed is not None else "all",
        )
        stats = CollectionStats(
            iterations=session.iterations,
            scans=session.scans,
            found_ids=len(session.found_ids),
            fused_count=fused_count,
            stall_rounds=session.stall_rounds,
            no_progress_rounds=session.no_progress_rounds,
            load_more_attempts=session.load_more_attempts,
            looped_back=session.looped_back,
            stop_reason=session.stop_reason,
        )
        return CollectionOutcome(
            found_ids=tuple(session.found_ids),
            fused_count=fused_count,
            needed=needed,
            stats=stats,
        )

    def _scan(self, source: FeedSource, store: FusionStore, session: ControllerSession) -> None:
        session.scans += 1
        try:
            observations = tuple(source.scan())
        except Exception as exc:
            logger.warning("Scan failed; counting as zero progress: %s", exc)
            return
        normalized = normalize_observations(observations, now=self._now_fn())
        for item in normalized.items:
            if item.item_id not in session.seen:
                session.seen.add(item.item_id)
                session.found_ids.append(item.item_id)
        merge_scraped_items(store, normalized.items, mode=self._mode)

    def _probe_size(self, source: FeedSource, session: ControllerSession) -> int | None:
        try:
            return int(source.container_size())
        except Exception as exc:
            logger.warning("Container size probe failed: %s", exc)
            return session.last_container_size

    def _advance(self, source: FeedSource, step: int | None) -> None:
        try:
            source.advance(step)
        except Exception as exc:
            logger.warning("Advance failed: %s", exc)

    def _try_load_more(self, source: FeedSource) -> bool:
        try:
            return bool(source.try_load_more())
        except Exception as exc:
            logger.warning("Load-more action failed: %s", exc)
            return False

    def _at_end(self, source: FeedSource) -> bool:
        try:
            return bool(source.at_end())
        except Exception as exc:
            logger.warning("End-of-content probe failed: %s", exc)
            return False

    def _rewind(self, source: FeedSource) -> None:
        try:
            source.rewind()
        except Exception as exc:
            logger.warning("Rewind failed: %s", exc)


def _validate_bounds(bounds: ScrollBounds) -> ScrollBounds:
    if bounds.max_iterations <= 0:
        raise CollectError("max_iterations must be > 0.")
    if bounds.stall_threshold <= 0:
        raise CollectError("stall_threshold must be > 0.")
    if bounds.no_progress_threshold <= 0:
        raise CollectError("no_progress_threshold must be > 0.")
    if bounds.max_load_more_attempts < 0:
        raise CollectError("max_load_more_attempts must be >= 0.")
    if bounds.step is not None and bounds.step <= 0:
        raise CollectError("step must be > 0 when provided.")
    if min(bounds.settle_delay_seconds, bounds.load_more_delay_seconds, bounds.rewind_delay_seconds) < 0:
        raise CollectError("delays must be >= 0.")
    return bounds
