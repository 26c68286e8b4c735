"""Channel adapters that feed observations into the fusion store."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any

from feed_sorter.errors import ExtractError
from feed_sorter.extract.normalize import normalize_observations
from feed_sorter.extract.structured import parse_feed_payload
from feed_sorter.fusion.store import FusionReport, FusionStore
from feed_sorter.logging import get_logger
from feed_sorter.models import CollectionMode, PostItem, RawObservation

logger = get_logger(__name__)


def ingest_structured_payload(store: FusionStore, payload: Any) -> FusionReport | None:
    """Merge one structured feed response; a malformed payload is dropped."""
    try:
        parsed = parse_feed_payload(payload)
    except ExtractError as exc:
        logger.warning("Dropped structured payload: %s", exc)
        return None
    for warning in parsed.warnings:
        logger.debug(warning)
    normalized = normalize_observations(parsed.observations)
    return store.ingest_batch(normalized.items)


def ingest_scraped(
    store: FusionStore,
    observations: Iterable[RawObservation],
    *,
    mode: CollectionMode,
    now: datetime | None = None,
) -> FusionReport:
    """Merge scraped observations according to how much the mode trusts them.

    ``lite`` never writes scraped data, ``synced`` only corrects stored records,
    ``precision`` also inserts records the structured channel never delivered.
    """
    normalized = normalize_observations(observations, now=now)
    return merge_scraped_items(store, normalized.items, mode=mode)


def merge_scraped_items(
    store: FusionStore,
    items: Sequence[PostItem],
    *,
    mode: CollectionMode,
) -> FusionReport:
    if mode is CollectionMode.LITE:
        return FusionReport(ignored=len(items), fused_count=len(store))
    if mode is CollectionMode.SYNCED:
        return store.ingest_corrections(items)
    return store.ingest_mixed(items)
