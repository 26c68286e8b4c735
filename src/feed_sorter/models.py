"""Data model contracts for cross-module use."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
import re

UNKNOWN_AUTHOR = "Unknown"
ITEM_ID_PREFIX = "urn:li:activity:"
DEFAULT_ITEM_URL_TEMPLATE = "https://www.linkedin.com/feed/update/{item_id}"

_ACTIVITY_ID_RE = re.compile(r"activity:(\d+)")
_HASHTAG_RE = re.compile(r"#(\w+)")


class SortKey(str, Enum):
    LIKES = "likes"
    COMMENTS = "comments"
    SHARES = "shares"
    ENGAGEMENT = "engagement"


class CollectionMode(str, Enum):
    LITE = "lite"
    SYNCED = "synced"
    PRECISION = "precision"


class FeedVariant(str, Enum):
    MAIN_FEED = "main-feed"
    PROFILE_FEED = "profile-feed"


class MergePolicy(str, Enum):
    REPLACEMENT = "replacement"
    FIELD_MERGE = "field-merge"


class MergeOutcome(str, Enum):
    INSERTED = "inserted"
    REPLACED = "replaced"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    IGNORED = "ignored"


class CollectionPhase(str, Enum):
    IDLE = "idle"
    COLLECTING = "collecting"
    STOPPED = "stopped"
    COMPLETED = "completed"


@dataclass(frozen=True, eq=False)
class PostItem:
    """Canonical fused record; identity is the normalized ``item_id`` only."""

    item_id: str
    author_name: str = UNKNOWN_AUTHOR
    text: str = ""
    timestamp: datetime | None = None
    like_count: int = 0
    comment_count: int = 0
    share_count: int = 0
    is_promoted: bool = False
    author_urn: str = ""
    hashtags: tuple[str, ...] = ()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PostItem):
            return NotImplemented
        return self.item_id == other.item_id

    def __hash__(self) -> int:
        return hash(self.item_id)

    @property
    def has_known_author(self) -> bool:
        return bool(self.author_name) and self.author_name != UNKNOWN_AUTHOR

    def counters(self) -> tuple[int, int, int]:
        return (self.like_count, self.comment_count, self.share_count)


@dataclass(frozen=True)
class StructuredObservation:
    """Full record parsed from the structured-data channel."""

    raw_id: str
    author_name: str | None = None
    author_urn: str | None = None
    text: str | None = None
    timestamp: datetime | None = None
    like_count: int = 0
    comment_count: int = 0
    share_count: int = 0
    is_promoted: bool = False
    hashtags: tuple[str, ...] = ()


@dataclass(frozen=True)
class ScrapedObservation:
    """Best-effort strings scraped from a rendered feed entry."""

    raw_id: str
    author_text: str | None = None
    text: str | None = None
    reactions_label: str | None = None
    comments_label: str | None = None
    reposts_label: str | None = None
    time_text: str | None = None
    promoted_hint: str | None = None


RawObservation = StructuredObservation | ScrapedObservation


def normalize_id(raw: str | None) -> str | None:
    """Return the canonical item id for a source identifier, or None when absent."""
    if not raw:
        return None
    match = _ACTIVITY_ID_RE.search(str(raw))
    if match is None:
        return None
    return f"{ITEM_ID_PREFIX}{match.group(1)}"


def score(item: PostItem) -> int:
    return item.like_count + item.comment_count + item.share_count


def extract_hashtags(text: str | None) -> tuple[str, ...]:
    if not text:
        return ()
    return tuple(_HASHTAG_RE.findall(text))


def item_url(item: PostItem, template: str = DEFAULT_ITEM_URL_TEMPLATE) -> str:
    return template.format(item_id=item.item_id)


def is_displayable(item: PostItem) -> bool:
    """Items with no author and no engagement are layout placeholders, not posts."""
    return item.has_known_author or item.like_count > 0 or item.comment_count > 0


@dataclass(frozen=True)
class SessionState:
    phase: CollectionPhase = CollectionPhase.IDLE
    target_size: int | None = None
    requested_size: int | None = None
    collect_all: bool = False
    sort_key: SortKey | None = None
    mode: CollectionMode = CollectionMode.PRECISION
    variant: FeedVariant = FeedVariant.MAIN_FEED
    fused_count: int = 0
    started_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_collecting(self) -> bool:
        return self.phase is CollectionPhase.COLLECTING

    @property
    def progress(self) -> int:
        """Items counted toward the user-facing request."""
        if self.requested_size is None:
            return self.fused_count
        return min(self.fused_count, self.requested_size)
