"""Deterministic multi-key ordering and trimming of the fused set."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import timezone

from feed_sorter.errors import SortError
from feed_sorter.models import PostItem, SortKey
from feed_sorter.sorting.dates import DateRange

ENGAGEMENT_WEIGHTS = (1, 2, 3)


def metric_value(item: PostItem, key: SortKey | str) -> int:
    resolved = parse_sort_key(key)
    if resolved is SortKey.LIKES:
        return item.like_count
    if resolved is SortKey.COMMENTS:
        return item.comment_count
    if resolved is SortKey.SHARES:
        return item.share_count
    like_weight, comment_weight, share_weight = ENGAGEMENT_WEIGHTS
    return (
        item.like_count * like_weight
        + item.comment_count * comment_weight
        + item.share_count * share_weight
    )


def parse_sort_key(value: SortKey | str | None) -> SortKey:
    if isinstance(value, SortKey):
        return value
    if value is None:
        raise SortError("A sort key is required. Use one of: likes, comments, shares, engagement.")
    try:
        return SortKey(str(value).strip().lower())
    except ValueError as exc:
        raise SortError(
            f"Unsupported sort key '{value}'. Use one of: likes, comments, shares, engagement."
        ) from exc


def filter_by_date_range(items: Iterable[PostItem], date_range: DateRange) -> tuple[PostItem, ...]:
    """Keep items whose timestamp falls inside the inclusive range; untimed items are dropped."""
    return tuple(
        item for item in items if item.timestamp is not None and date_range.contains(item.timestamp)
    )


def sort_items(
    items: Iterable[PostItem],
    key: SortKey | str,
    *,
    date_range: DateRange | None = None,
) -> tuple[PostItem, ...]:
    """Order by metric, then timestamp, then item id; all descending."""
    resolved = parse_sort_key(key)
    candidates = tuple(items)
    if date_range is not None:
        candidates = filter_by_date_range(candidates, date_range)
    return tuple(
        sorted(
            candidates,
            key=lambda item: (metric_value(item, resolved), _timestamp_key(item), item.item_id),
            reverse=True,
        )
    )


def trim(items: Iterable[PostItem], target_size: int | None) -> tuple[PostItem, ...]:
    ordered = tuple(items)
    if target_size is None:
        return ordered
    if target_size < 0:
        raise SortError("target_size must be >= 0.")
    return ordered[:target_size]


def sort_and_trim(
    items: Iterable[PostItem],
    key: SortKey | str,
    target_size: int | None,
    *,
    date_range: DateRange | None = None,
) -> tuple[PostItem, ...]:
    return trim(sort_items(items, key, date_range=date_range), target_size)


def _timestamp_key(item: PostItem) -> float:
    if item.timestamp is None:
        return 0.0
    value = item.timestamp
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()
