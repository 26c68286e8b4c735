"""In-memory store behavior."""

from __future__ import annotations

import pytest

from feed_sorter.errors import StoreError
from feed_sorter.models import CollectionPhase, PostItem, SessionState
from feed_sorter.store import MemoryStore


def test_memory_store_sessions_and_items_are_keyed_by_session() -> None:
    store = MemoryStore()
    store.set("a", SessionState(phase=CollectionPhase.STOPPED))
    store.save_items("a", [PostItem(item_id="urn:li:activity:1"), PostItem(item_id="urn:li:activity:2")])
    store.save_items("a", [PostItem(item_id="urn:li:activity:1", like_count=4)])

    assert store.get("a").phase is CollectionPhase.STOPPED
    assert store.get("b") is None
    items = store.load_items("a")
    assert [item.item_id for item in items] == ["urn:li:activity:1", "urn:li:activity:2"]
    assert items[0].like_count == 4
    assert store.clear_items("a") == 2
    assert store.load_items("a") == ()


def test_memory_store_run_ledger() -> None:
    store = MemoryStore()
    run_id = store.begin_run("a")
    store.finish_run(run_id, status="completed", fused_count=3, emitted_count=2, stop_reason="target_reached")
    (record,) = store.runs()
    assert record.status == "completed"
    assert record.finished_at is not None
    with pytest.raises(StoreError):
        store.finish_run(42, status="completed")
