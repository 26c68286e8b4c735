"""Keyed fused set with best-evidence merge policies."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
import threading

from feed_sorter.errors import FusionError
from feed_sorter.logging import get_logger
from feed_sorter.models import MergeOutcome, MergePolicy, PostItem, score

logger = get_logger(__name__)

FusedCountListener = Callable[[int], None]


@dataclass(frozen=True)
class FusionReport:
    inserted: int = 0
    replaced: int = 0
    updated: int = 0
    unchanged: int = 0
    ignored: int = 0
    fused_count: int = 0

    @property
    def changed(self) -> int:
        return self.inserted + self.replaced + self.updated

    @property
    def total(self) -> int:
        return self.changed + self.unchanged + self.ignored


class FusionStore:
    """Mapping of ``item_id`` to the best record observed so far.

    Two merge policies coexist. The replacement policy swaps in a whole record
    when its score is strictly higher. The field-merge policy corrects an
    existing record counter by counter and never creates one. Every merge is
    serialized on one lock because structured-channel callbacks may run outside
    the collection loop.

    Items passed to the constructor are carried over from earlier runs. Only ids
    merged afterwards count as observed, which is what run progress measures.
    """

    def __init__(self, items: Iterable[PostItem] = ()) -> None:
        self._lock = threading.RLock()
        self._items: dict[str, PostItem] = {}
        self._listeners: list[FusedCountListener] = []
        self._observed: set[str] = set()
        for item in items:
            self._items[item.item_id] = item

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        with self._lock:
            return item_id in self._items

    def get(self, item_id: str) -> PostItem | None:
        with self._lock:
            return self._items.get(item_id)

    def snapshot(self) -> tuple[PostItem, ...]:
        with self._lock:
            return tuple(self._items.values())

    def count_of(self, item_ids: Iterable[str] | None = None) -> int:
        """Fused count overall, or restricted to a targeted identifier set."""
        with self._lock:
            if item_ids is None:
                return len(self._items)
            return sum(1 for item_id in set(item_ids) if item_id in self._items)

    def observed_count(self) -> int:
        """Distinct ids merged since construction, carried-over items excluded."""
        with self._lock:
            return len(self._observed)

    def observed_ids(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._observed)

    def add_listener(self, listener: FusedCountListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: FusedCountListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def clear(self) -> None:
        with self._lock:
            self._items.clear()
            self._observed.clear()
        self._notify()

    def merge(self, incoming: PostItem, *, policy: MergePolicy = MergePolicy.REPLACEMENT) -> MergeOutcome:
        if policy is MergePolicy.REPLACEMENT:
            return self.merge_replacement(incoming)
        if policy is MergePolicy.FIELD_MERGE:
            return self.merge_fields(incoming)
        raise FusionError(f"Unsupported merge policy '{policy}'.")

    def merge_replacement(self, incoming: PostItem) -> MergeOutcome:
        with self._lock:
            self._observed.add(incoming.item_id)
            existing = self._items.get(incoming.item_id)
            if existing is None:
                self._items[incoming.item_id] = incoming
                return MergeOutcome.INSERTED
            if score(incoming) > score(existing):
                self._items[incoming.item_id] = incoming
                return MergeOutcome.REPLACED
            return MergeOutcome.UNCHANGED

    def merge_fields(self, incoming: PostItem) -> MergeOutcome:
        with self._lock:
            existing = self._items.get(incoming.item_id)
            if existing is None:
                return MergeOutcome.IGNORED
            self._observed.add(incoming.item_id)
            if score(incoming) <= score(existing):
                return MergeOutcome.UNCHANGED
            merged = replace(
                existing,
                like_count=max(existing.like_count, incoming.like_count),
                comment_count=max(existing.comment_count, incoming.comment_count),
                share_count=max(existing.share_count, incoming.share_count),
                author_name=(
                    incoming.author_name
                    if not existing.has_known_author and incoming.has_known_author
                    else existing.author_name
                ),
            )
            self._items[incoming.item_id] = merged
            return MergeOutcome.UPDATED

    def ingest_batch(self, records: Iterable[PostItem]) -> FusionReport:
        """Apply full records from the structured channel (replacement policy)."""
        return self._ingest(records, MergePolicy.REPLACEMENT)

    def ingest_corrections(self, updates: Iterable[PostItem]) -> FusionReport:
        """Apply partial corrections from the scrape channel (field-merge policy)."""
        return self._ingest(updates, MergePolicy.FIELD_MERGE)

    def ingest_mixed(self, records: Iterable[PostItem]) -> FusionReport:
        """Field-merge known ids and insert unknown ids with the replacement policy."""
        counts = {outcome: 0 for outcome in MergeOutcome}
        with self._lock:
            for record in records:
                if record.item_id in self._items:
                    counts[self.merge_fields(record)] += 1
                else:
                    counts[self.merge_replacement(record)] += 1
            fused_count = len(self._items)
        return self._finish(counts, fused_count)

    def _ingest(self, records: Iterable[PostItem], policy: MergePolicy) -> FusionReport:
        counts = {outcome: 0 for outcome in MergeOutcome}
        with self._lock:
            for record in records:
                counts[self.merge(record, policy=policy)] += 1
            fused_count = len(self._items)
        return self._finish(counts, fused_count)

    def _finish(self, counts: dict[MergeOutcome, int], fused_count: int) -> FusionReport:
        report = FusionReport(
            inserted=counts[MergeOutcome.INSERTED],
            replaced=counts[MergeOutcome.REPLACED],
            updated=counts[MergeOutcome.UPDATED],
            unchanged=counts[MergeOutcome.UNCHANGED],
            ignored=counts[MergeOutcome.IGNORED],
            fused_count=fused_count,
        )
        if report.changed:
            logger.debug(
                "Fused batch: inserted=%d replaced=%d updated=%d total=%d",
                report.inserted,
                report.replaced,
                report.updated,
                fused_count,
            )
        self._notify(fused_count)
        return report

    def _notify(self, fused_count: int | None = None) -> None:
        count = len(self) if fused_count is None else fused_count
        for listener in tuple(self._listeners):
            listener(count)
