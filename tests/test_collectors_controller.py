"""Bounded collection loop behavior against a scripted feed source."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from feed_sorter.collectors import (
    MAIN_FEED_BOUNDS,
    PROFILE_FEED_BOUNDS,
    CollectionController,
    ScrollBounds,
    bounds_for_variant,
)
from feed_sorter.collectors.controller import (
    STOP_DATE_BOUNDARY,
    STOP_END_OF_CONTENT,
    STOP_MAX_ITERATIONS,
    STOP_NO_PROGRESS,
    STOP_STOPPED,
    STOP_TARGET_REACHED,
)
from feed_sorter.errors import CollectError
from feed_sorter.fusion import FusionStore
from feed_sorter.models import CollectionMode, FeedVariant, PostItem, ScrapedObservation
from feed_sorter.sorting import DateRange
from feed_sorter.testing import SleepRecorder, fixed_now

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


def _obs(item_id: int, *, likes: int = 1, time_text: str | None = None) -> ScrapedObservation:
    return ScrapedObservation(
        raw_id=f"urn:li:activity:{item_id}",
        author_text="Ada Lovelace",
        reactions_label=str(likes),
        time_text=time_text,
    )


class FakeFeedSource:
    """Reveals one batch per scan/advance step; a load-more click appends a batch."""

    def __init__(
        self,
        batches: list[list[ScrapedObservation]],
        *,
        per_scan: bool = False,
        load_more_batches: list[list[ScrapedObservation]] | None = None,
        at_end: bool = False,
        scan_errors: int = 0,
    ) -> None:
        self.batches = [list(batch) for batch in batches]
        self.per_scan = per_scan
        self.load_more_batches = [list(batch) for batch in load_more_batches or []]
        self.end = at_end
        self.scan_errors = scan_errors
        self.index = 0
        self.scan_calls = 0
        self.advance_calls: list[int | None] = []
        self.load_more_calls = 0
        self.rewind_calls = 0

    def advance(self, step_hint: int | None) -> None:
        self.advance_calls.append(step_hint)
        if not self.per_scan and self.index < len(self.batches) - 1:
            self.index += 1

    def scan(self) -> list[ScrapedObservation]:
        self.scan_calls += 1
        if self.scan_errors:
            self.scan_errors -= 1
            raise RuntimeError("page detached")
        batch = self.batches[self.index] if self.batches else []
        if self.per_scan and self.index < len(self.batches) - 1:
            self.index += 1
        return batch

    def try_load_more(self) -> bool:
        self.load_more_calls += 1
        if not self.load_more_batches:
            return False
        self.batches.append(self.load_more_batches.pop(0))
        self.index = len(self.batches) - 1
        return True

    def at_end(self) -> bool:
        return self.end

    def container_size(self) -> int:
        return 1000 * (self.index + 1)

    def rewind(self) -> None:
        self.rewind_calls += 1


def _controller(bounds: ScrollBounds, *, mode: CollectionMode = CollectionMode.PRECISION) -> tuple[CollectionController, SleepRecorder]:
    sleeper = SleepRecorder()
    return CollectionController(bounds, mode=mode, sleep_fn=sleeper, now_fn=fixed_now(NOW)), sleeper


def test_target_reached_counts_fused_items_not_scans() -> None:
    source = FakeFeedSource([[_obs(1), _obs(2)], [_obs(3), _obs(4)], [_obs(5), _obs(6)]], per_scan=True)
    controller, _ = _controller(ScrollBounds())
    store = FusionStore()

    outcome = controller.run(source, store, needed=5)

    assert outcome.stop_reason == STOP_TARGET_REACHED
    assert outcome.fused_count == 6
    assert outcome.target_reached
    assert not outcome.partial
    assert outcome.stats.iterations == 1
    assert source.scan_calls == 3
    assert len(store) == 6


def test_no_progress_stops_after_threshold_and_tries_load_more_once() -> None:
    source = FakeFeedSource([[_obs(1), _obs(2)]])
    bounds = ScrollBounds(max_iterations=50, stall_threshold=2, no_progress_threshold=3, max_load_more_attempts=1)
    controller, _ = _controller(bounds)

    outcome = controller.run(source, FusionStore(), needed=10)

    assert outcome.stop_reason == STOP_NO_PROGRESS
    assert outcome.stats.iterations == 4
    assert outcome.stats.load_more_attempts == 1
    assert source.load_more_calls == 1
    assert outcome.partial
    assert outcome.fused_count == 2


def test_load_more_after_stall_reveals_new_items() -> None:
    source = FakeFeedSource([[_obs(1), _obs(2)]], load_more_batches=[[_obs(3), _obs(4)]])
    bounds = ScrollBounds(stall_threshold=1, load_more_delay_seconds=2.0, settle_delay_seconds=0.5)
    controller, sleeper = _controller(bounds)

    outcome = controller.run(source, FusionStore(), needed=4)

    assert outcome.stop_reason == STOP_TARGET_REACHED
    assert outcome.stats.load_more_attempts == 1
    assert outcome.fused_count == 4
    assert 2.0 in sleeper.calls


def test_end_of_content_loops_back_once_then_stops() -> None:
    source = FakeFeedSource([[_obs(1)]], at_end=True)
    controller, sleeper = _controller(ScrollBounds(loop_back_on_end=True, rewind_delay_seconds=1.0))

    outcome = controller.run(source, FusionStore())

    assert outcome.stop_reason == STOP_END_OF_CONTENT
    assert outcome.stats.looped_back
    assert source.rewind_calls == 1
    assert outcome.stats.iterations == 2
    assert 1.0 in sleeper.calls


def test_end_of_content_without_loop_back_stops_immediately() -> None:
    source = FakeFeedSource([[_obs(1)]], at_end=True)
    controller, _ = _controller(MAIN_FEED_BOUNDS)

    outcome = controller.run(source, FusionStore())

    assert outcome.stop_reason == STOP_END_OF_CONTENT
    assert source.rewind_calls == 0
    assert source.advance_calls == [None]


def test_max_iterations_bounds_the_loop() -> None:
    batches = [[_obs(n)] for n in range(1, 100)]
    source = FakeFeedSource(batches)
    controller, _ = _controller(ScrollBounds(max_iterations=3, step=400))

    outcome = controller.run(source, FusionStore())

    assert outcome.stop_reason == STOP_MAX_ITERATIONS
    assert outcome.stats.iterations == 3
    assert source.advance_calls == [400, 400, 400]


def test_should_stop_is_checked_before_each_iteration() -> None:
    source = FakeFeedSource([[_obs(n)] for n in range(1, 20)])
    calls: list[int] = []

    def should_stop() -> bool:
        calls.append(1)
        return len(calls) > 1

    controller, _ = _controller(ScrollBounds())
    outcome = controller.run(source, FusionStore(), should_stop=should_stop)

    assert outcome.stop_reason == STOP_STOPPED
    assert outcome.stats.iterations == 1


def test_scan_failures_count_as_zero_progress_not_errors() -> None:
    source = FakeFeedSource([[_obs(1), _obs(2)]], scan_errors=2)
    controller, _ = _controller(ScrollBounds())

    outcome = controller.run(source, FusionStore(), needed=2)

    assert outcome.stop_reason == STOP_TARGET_REACHED
    assert outcome.fused_count == 2


def test_lite_mode_tracks_found_ids_without_writing_scraped_data() -> None:
    source = FakeFeedSource([[_obs(1), _obs(2)]], at_end=True)
    controller, _ = _controller(ScrollBounds(loop_back_on_end=False), mode=CollectionMode.LITE)
    store = FusionStore()

    outcome = controller.run(source, store)

    assert outcome.found_ids == ("urn:li:activity:1", "urn:li:activity:2")
    assert outcome.fused_count == 0
    assert len(store) == 0


def test_date_boundary_stops_once_older_items_appear() -> None:
    source = FakeFeedSource([[_obs(1, time_text="1d"), _obs(2, time_text="3w")]])
    controller, _ = _controller(ScrollBounds())
    window = DateRange(start=NOW - timedelta(days=7), end=NOW)

    outcome = controller.run(source, FusionStore(), date_range=window)

    assert outcome.stop_reason == STOP_DATE_BOUNDARY


def test_target_ids_restrict_the_fused_count() -> None:
    source = FakeFeedSource([[_obs(1), _obs(2)], [_obs(3)]], per_scan=True)
    controller, _ = _controller(ScrollBounds())

    outcome = controller.run(
        source,
        FusionStore(),
        target_ids=["urn:li:activity:1", "urn:li:activity:3"],
    )

    assert outcome.needed == 2
    assert outcome.fused_count == 2
    assert outcome.stop_reason == STOP_TARGET_REACHED


def test_invalid_bounds_and_needed_are_rejected() -> None:
    with pytest.raises(CollectError):
        CollectionController(ScrollBounds(max_iterations=0))
    with pytest.raises(CollectError):
        CollectionController(ScrollBounds(step=0))
    controller, _ = _controller(ScrollBounds())
    with pytest.raises(CollectError):
        controller.run(FakeFeedSource([]), FusionStore(), needed=0)


def test_bounds_for_variant_applies_configured_limits() -> None:
    assert bounds_for_variant(FeedVariant.MAIN_FEED) is MAIN_FEED_BOUNDS
    assert bounds_for_variant(FeedVariant.PROFILE_FEED) is PROFILE_FEED_BOUNDS
    tuned = bounds_for_variant(FeedVariant.MAIN_FEED, max_iterations=5, no_progress_threshold=2)
    assert tuned.max_iterations == 5
    assert tuned.no_progress_threshold == 2
    assert tuned.step is None
    with pytest.raises(CollectError):
        bounds_for_variant(FeedVariant.PROFILE_FEED, stall_threshold=0)


def test_items_carried_over_from_earlier_runs_do_not_count_as_progress() -> None:
    store = FusionStore(
        PostItem(item_id=f"urn:li:activity:{900 + n}", author_name="Old", like_count=n) for n in range(10)
    )
    source = FakeFeedSource([[_obs(1), _obs(2)], [_obs(3), _obs(4)]])
    controller, _ = _controller(ScrollBounds())

    outcome = controller.run(source, store, needed=2)

    assert outcome.stop_reason == STOP_TARGET_REACHED
    assert source.scan_calls == 1
    assert outcome.fused_count == 2
    assert len(store) == 12


def test_target_already_met_before_the_first_scan_stops_without_scanning() -> None:
    store = FusionStore()
    store.ingest_batch(
        PostItem(item_id=f"urn:li:activity:{n}", author_name="Ada", like_count=n) for n in range(1, 4)
    )
    source = FakeFeedSource([[_obs(9)]])
    controller, _ = _controller(ScrollBounds())

    outcome = controller.run(source, store, needed=3)

    assert outcome.stop_reason == STOP_TARGET_REACHED
    assert outcome.stats.iterations == 0
    assert source.scan_calls == 0


@pytest.mark.parametrize(("max_iterations", "expected_calls"), [(4, 0), (5, 1)])
def test_load_more_fires_once_stall_rounds_reach_the_threshold(max_iterations: int, expected_calls: int) -> None:
    # The first round records the size; rounds 2-5 are the four stalled ones.
    source = FakeFeedSource([[_obs(1), _obs(2)]], load_more_batches=[[_obs(3)]])
    bounds = ScrollBounds(
        max_iterations=max_iterations,
        stall_threshold=4,
        no_progress_threshold=20,
        max_load_more_attempts=1,
    )
    controller, _ = _controller(bounds)

    outcome = controller.run(source, FusionStore())

    assert outcome.stop_reason == STOP_MAX_ITERATIONS
    assert source.load_more_calls == expected_calls
