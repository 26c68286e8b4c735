"""Fusion store merge policies and channel adapters."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from feed_sorter.errors import FusionError
from feed_sorter.extract.structured import COUNTS_TYPE, MAIN_FEED_KEY
from feed_sorter.fusion import FusionStore, ingest_scraped, ingest_structured_payload, merge_scraped_items
from feed_sorter.models import (
    UNKNOWN_AUTHOR,
    CollectionMode,
    MergeOutcome,
    MergePolicy,
    PostItem,
    ScrapedObservation,
)

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


def _item(item_id: int, likes: int = 0, comments: int = 0, shares: int = 0, author: str = "Ada") -> PostItem:
    return PostItem(
        item_id=f"urn:li:activity:{item_id}",
        author_name=author,
        like_count=likes,
        comment_count=comments,
        share_count=shares,
    )


def test_replacement_keeps_highest_score_record_per_id() -> None:
    store = FusionStore()
    report = store.ingest_batch([_item(1, likes=3), _item(2, likes=9), _item(1, likes=1)])

    assert report.inserted == 2
    assert report.unchanged == 1
    assert report.fused_count == 2
    assert store.get("urn:li:activity:1").like_count == 3
    assert store.get("urn:li:activity:2").like_count == 9


def test_replacement_swaps_whole_record_on_strictly_higher_score() -> None:
    store = FusionStore([_item(1, likes=5, comments=5, author="Old")])
    assert store.merge(_item(1, likes=11, author="New")) is MergeOutcome.REPLACED
    replaced = store.get("urn:li:activity:1")
    assert replaced.author_name == "New"
    assert replaced.counters() == (11, 0, 0)
    assert store.merge(_item(1, likes=11)) is MergeOutcome.UNCHANGED


def test_field_merge_never_inserts_and_takes_counter_maxima() -> None:
    store = FusionStore([_item(1, likes=10, comments=1, author=UNKNOWN_AUTHOR)])

    assert store.merge(_item(2, likes=50), policy=MergePolicy.FIELD_MERGE) is MergeOutcome.IGNORED
    assert "urn:li:activity:2" not in store

    outcome = store.merge(_item(1, likes=8, comments=6, author="Grace"), policy=MergePolicy.FIELD_MERGE)
    assert outcome is MergeOutcome.UPDATED
    merged = store.get("urn:li:activity:1")
    assert merged.counters() == (10, 6, 0)
    assert merged.author_name == "Grace"


def test_field_merge_keeps_known_author_and_ignores_lower_scores() -> None:
    store = FusionStore([_item(1, likes=10, author="Ada")])
    assert store.merge(_item(1, likes=2, author="Someone"), policy=MergePolicy.FIELD_MERGE) is MergeOutcome.UNCHANGED
    store.merge(_item(1, likes=20, author="Someone"), policy=MergePolicy.FIELD_MERGE)
    assert store.get("urn:li:activity:1").author_name == "Ada"


def test_field_merge_counters_never_decrease_across_corrections() -> None:
    store = FusionStore([_item(1, likes=5, comments=5, shares=5)])
    for likes, comments, shares in [(9, 0, 0), (0, 12, 0), (1, 1, 30), (2, 2, 2)]:
        before = store.get("urn:li:activity:1").counters()
        store.ingest_corrections([_item(1, likes, comments, shares)])
        after = store.get("urn:li:activity:1").counters()
        assert all(new >= old for new, old in zip(after, before))
    assert store.get("urn:li:activity:1").counters() == (5, 5, 30)


def test_ingest_mixed_corrects_known_and_inserts_unknown() -> None:
    store = FusionStore([_item(1, likes=2)])
    report = store.ingest_mixed([_item(1, likes=4), _item(3, likes=1)])
    assert report.updated == 1
    assert report.inserted == 1
    assert len(store) == 2


def test_listeners_receive_fused_count_after_each_batch() -> None:
    store = FusionStore()
    counts: list[int] = []
    store.add_listener(counts.append)
    store.ingest_batch([_item(1), _item(2)])
    store.ingest_batch([_item(3)])
    store.remove_listener(counts.append)
    store.ingest_batch([_item(4)])
    assert counts == [2, 3]


def test_count_of_restricts_to_target_ids() -> None:
    store = FusionStore([_item(1), _item(2), _item(3)])
    assert store.count_of() == 3
    assert store.count_of(["urn:li:activity:1", "urn:li:activity:9", "urn:li:activity:1"]) == 1


def test_merge_rejects_unknown_policy() -> None:
    with pytest.raises(FusionError):
        FusionStore().merge(_item(1), policy="blend")  # type: ignore[arg-type]


def test_ingest_structured_payload_uses_replacement_policy() -> None:
    store = FusionStore([_item(7, likes=100)])
    payload = {
        "data": {"data": {MAIN_FEED_KEY: {"*elements": ["urn:li:activity:7", "urn:li:activity:8"]}}},
        "included": [
            {"$type": COUNTS_TYPE, "urn": "urn:li:activity:7", "numLikes": 1},
            {"$type": COUNTS_TYPE, "urn": "urn:li:activity:8", "numLikes": 4},
        ],
    }
    report = ingest_structured_payload(store, payload)
    assert report is not None
    assert report.inserted == 1
    assert report.unchanged == 1
    assert store.get("urn:li:activity:7").like_count == 100


def test_ingest_structured_payload_drops_malformed_payload() -> None:
    store = FusionStore([_item(1)])
    assert ingest_structured_payload(store, ["not", "an", "object"]) is None
    assert len(store) == 1


@pytest.mark.parametrize(
    ("mode", "expected_len", "expected_likes"),
    [
        (CollectionMode.LITE, 1, 2),
        (CollectionMode.SYNCED, 1, 40),
        (CollectionMode.PRECISION, 2, 40),
    ],
)
def test_scraped_merge_depends_on_mode(mode: CollectionMode, expected_len: int, expected_likes: int) -> None:
    store = FusionStore([_item(1, likes=2)])
    ingest_scraped(
        store,
        [
            ScrapedObservation(raw_id="urn:li:activity:1", reactions_label="40"),
            ScrapedObservation(raw_id="urn:li:activity:2", reactions_label="5", author_text="Grace"),
        ],
        mode=mode,
        now=NOW,
    )
    assert len(store) == expected_len
    assert store.get("urn:li:activity:1").like_count == expected_likes


def test_lite_mode_reports_everything_ignored() -> None:
    store = FusionStore()
    report = merge_scraped_items(store, [_item(1), _item(2)], mode=CollectionMode.LITE)
    assert report.ignored == 2
    assert report.fused_count == 0
