"""Fail-closed conversion of raw channel observations into items."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone

from feed_sorter.errors import ExtractError
from feed_sorter.extract.scrape import normalize_author, normalize_text, scraped_to_item
from feed_sorter.logging import get_logger
from feed_sorter.models import (
    PostItem,
    RawObservation,
    ScrapedObservation,
    StructuredObservation,
    normalize_id,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class NormalizationResult:
    items: tuple[PostItem, ...]
    skipped: int = 0
    warnings: tuple[str, ...] = ()


def normalize_observation(observation: RawObservation, *, now: datetime | None = None) -> PostItem | None:
    """Return the item for an observation, or None when it cannot be keyed."""
    if isinstance(observation, StructuredObservation):
        return _structured_to_item(observation)
    if isinstance(observation, ScrapedObservation):
        return scraped_to_item(observation, now=now)
    raise ExtractError(f"Unsupported observation type '{type(observation).__name__}'.")


def normalize_observations(
    observations: Iterable[RawObservation],
    *,
    now: datetime | None = None,
) -> NormalizationResult:
    """Normalize a batch, skipping entries that fail; later duplicates win in order."""
    resolved_now = now or datetime.now(timezone.utc)
    items: list[PostItem] = []
    warnings: list[str] = []
    skipped = 0
    for observation in observations:
        try:
            item = normalize_observation(observation, now=resolved_now)
        except (ExtractError, ValueError, TypeError) as exc:
            item = None
            warnings.append(f"Skipped observation: {exc}")
        if item is None:
            skipped += 1
            raw_id = getattr(observation, "raw_id", None)
            logger.debug("Skipped observation with unusable id %r", raw_id)
            continue
        items.append(item)
    return NormalizationResult(items=tuple(items), skipped=skipped, warnings=tuple(warnings))


def _structured_to_item(observation: StructuredObservation) -> PostItem | None:
    item_id = normalize_id(observation.raw_id)
    if item_id is None:
        return None
    return PostItem(
        item_id=item_id,
        author_name=normalize_author(observation.author_name),
        text=normalize_text(observation.text),
        timestamp=observation.timestamp,
        like_count=max(0, int(observation.like_count)),
        comment_count=max(0, int(observation.comment_count)),
        share_count=max(0, int(observation.share_count)),
        is_promoted=bool(observation.is_promoted),
        author_urn=observation.author_urn or "",
        hashtags=tuple(observation.hashtags),
    )
