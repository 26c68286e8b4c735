"""Parsing helpers for best-effort strings scraped from rendered feed entries."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
import re
import unicodedata

from feed_sorter.models import (
    UNKNOWN_AUTHOR,
    PostItem,
    ScrapedObservation,
    extract_hashtags,
    normalize_id,
)

_COUNT_SEPARATORS_RE = re.compile(r"[\s\u00a0\u202f,]")
_FIRST_NUMBER_RE = re.compile(r"(\d+)")
_OTHERS_RE = re.compile(r"and\s+([\d\s\u00a0\u202f,]+?)\s+others?\b", re.IGNORECASE)
_COMPACT_AGE_RE = re.compile(r"(\d+)\s*(mo|yrs|yr|y|w|d|h|m)\b", re.IGNORECASE)
_WORD_AGE_RE = re.compile(r"(\d+)\s*(minute|hour|day|week|month|year)s?\b", re.IGNORECASE)
_ZERO_WIDTH_RE = re.compile(r"[\u200b\u200c\u200d\ufeff]")
_JUST_NOW_RE = re.compile(r"\b(?:just now|now)\b", re.IGNORECASE)

PROMOTED_MARKERS = ("promoted", "sponsored", "реклама")
_SCRAPED_TEXT_FIELDS = (
    "author_text",
    "text",
    "reactions_label",
    "comments_label",
    "reposts_label",
    "time_text",
    "promoted_hint",
)

_UNIT_DELTAS = {
    "m": timedelta(minutes=1),
    "minute": timedelta(minutes=1),
    "h": timedelta(hours=1),
    "hour": timedelta(hours=1),
    "d": timedelta(days=1),
    "day": timedelta(days=1),
    "w": timedelta(weeks=1),
    "week": timedelta(weeks=1),
    "mo": timedelta(days=30),
    "month": timedelta(days=30),
    "y": timedelta(days=365),
    "yr": timedelta(days=365),
    "yrs": timedelta(days=365),
    "year": timedelta(days=365),
}


def parse_count(label: str | None) -> int:
    """Parse a displayed counter such as ``"1,234 reactions"`` into an int."""
    if not label:
        return 0
    others = _OTHERS_RE.search(label)
    if others is not None:
        digits = _COUNT_SEPARATORS_RE.sub("", others.group(1))
        if digits.isdigit():
            return int(digits) + 1
    cleaned = _COUNT_SEPARATORS_RE.sub("", label)
    match = _FIRST_NUMBER_RE.search(cleaned)
    if match is None:
        return 0
    return int(match.group(1))


def parse_relative_timestamp(text: str | None, *, now: datetime) -> datetime | None:
    """Resolve relative age text (``"3h"``, ``"2 weeks ago"``) against ``now``."""
    if not text:
        return None
    compact = _COMPACT_AGE_RE.search(text)
    if compact is not None:
        amount, unit = compact.groups()
        return now - int(amount) * _UNIT_DELTAS[unit.lower()]
    worded = _WORD_AGE_RE.search(text)
    if worded is not None:
        amount, unit = worded.groups()
        return now - int(amount) * _UNIT_DELTAS[unit.lower()]
    if _JUST_NOW_RE.search(text):
        return now
    return None


def is_promoted_hint(text: str | None) -> bool:
    if not text:
        return False
    lowered = text.lower()
    return any(marker in lowered for marker in PROMOTED_MARKERS)


def normalize_text(raw: str | None) -> str:
    if raw is None:
        return ""
    normalized = unicodedata.normalize("NFKC", raw)
    without_zero_width = _ZERO_WIDTH_RE.sub("", normalized)
    return " ".join(without_zero_width.split())


def normalize_author(raw: str | None) -> str:
    if raw is None:
        return UNKNOWN_AUTHOR
    first_line = next((line.strip() for line in raw.splitlines() if line.strip()), "")
    return normalize_text(first_line) or UNKNOWN_AUTHOR


def scraped_to_item(observation: ScrapedObservation, *, now: datetime | None = None) -> PostItem | None:
    """Convert one scraped observation into an item; None when the id is unusable."""
    item_id = normalize_id(observation.raw_id)
    if item_id is None:
        return None
    resolved_now = now or datetime.now(timezone.utc)
    text = normalize_text(observation.text)
    return PostItem(
        item_id=item_id,
        author_name=normalize_author(observation.author_text),
        text=text,
        timestamp=parse_relative_timestamp(observation.time_text, now=resolved_now),
        like_count=parse_count(observation.reactions_label),
        comment_count=parse_count(observation.comments_label),
        share_count=parse_count(observation.reposts_label),
        is_promoted=is_promoted_hint(observation.promoted_hint),
        hashtags=extract_hashtags(text),
    )


def scraped_observation_from_mapping(entry: object) -> ScrapedObservation | None:
    """Build an observation from a page-script or fixture object; None without an id."""
    if not isinstance(entry, Mapping):
        return None
    raw_id = entry.get("raw_id")
    if not isinstance(raw_id, str) or not raw_id:
        return None
    fields = {
        name: value if isinstance(value, str) else None
        for name, value in ((name, entry.get(name)) for name in _SCRAPED_TEXT_FIELDS)
    }
    return ScrapedObservation(raw_id=raw_id, **fields)
