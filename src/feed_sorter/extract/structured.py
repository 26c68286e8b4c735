"""Structured-data channel payload parsing.

Feed responses arrive as a normalized entity graph: ``data`` names the ordered
feed element urns and ``included`` carries the referenced entities (updates,
social-activity counters, profiles). Parsing indexes ``included`` once and then
resolves each element urn to one :class:`StructuredObservation`.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
import re
from typing import Any

from feed_sorter.errors import ExtractError
from feed_sorter.logging import get_logger
from feed_sorter.models import (
    ITEM_ID_PREFIX,
    UNKNOWN_AUTHOR,
    StructuredObservation,
    extract_hashtags,
)

logger = get_logger(__name__)

COUNTS_TYPE = "com.linkedin.voyager.dash.feed.SocialActivityCounts"
SOCIAL_DETAIL_TYPE = "com.linkedin.voyager.dash.social.SocialDetail"
UPDATE_TYPES = frozenset(
    {
        "com.linkedin.voyager.dash.feed.Update",
        "com.linkedin.voyager.dash.feed.UpdateV2",
    }
)
MAIN_FEED_KEY = "feedDashMainFeedByMainFeed"
PROFILE_FEED_KEY = "feedDashProfileUpdatesByMemberShareFeed"

_ACTIVITY_RE = re.compile(r"activity:(\d+)")
_UGC_RE = re.compile(r"ugcPost:(\d+)")
_SHARE_RE = re.compile(r"share:(\d+)")
_FSD_COUNTS_PREFIX = "urn:li:fsd_socialActivityCounts:urn:li:activity:"


@dataclass(frozen=True)
class Counts:
    likes: int = 0
    comments: int = 0
    shares: int = 0


@dataclass(frozen=True)
class StructuredParseResult:
    observations: tuple[StructuredObservation, ...]
    feed_kind: str | None = None
    warnings: tuple[str, ...] = ()


@dataclass
class _IncludedIndex:
    counts_by_activity: dict[str, Counts] = field(default_factory=dict)
    counts_by_ugc: dict[str, Counts] = field(default_factory=dict)
    counts_by_urn: dict[str, Counts] = field(default_factory=dict)
    updates: dict[str, Mapping[str, Any]] = field(default_factory=dict)
    counts_refs: dict[str, str] = field(default_factory=dict)


def parse_feed_payload(payload: Any) -> StructuredParseResult:
    """Parse one intercepted feed response into structured observations."""
    if not isinstance(payload, Mapping):
        raise ExtractError(
            f"Feed payload must be a JSON object, got {type(payload).__name__}."
        )
    included = payload.get("included") or []
    if not isinstance(included, Sequence) or isinstance(included, (str, bytes)):
        raise ExtractError("Feed payload 'included' must be an array of entities.")

    feed_kind, elements = _feed_elements(payload)
    if not elements:
        return StructuredParseResult(observations=(), feed_kind=feed_kind)

    index = _index_included(included)
    observations: list[StructuredObservation] = []
    warnings: list[str] = []
    for element_urn in elements:
        if not isinstance(element_urn, str) or not element_urn:
            continue
        match = _ACTIVITY_RE.search(element_urn)
        if match is None:
            warnings.append(f"Skipped element without activity id: '{element_urn}'.")
            continue
        activity_id = match.group(1)
        update = _find_update(index, activity_id)
        if update is None:
            update = _scan_included_update(included, activity_id)
        counts = _find_counts(index, activity_id, update)
        if counts is None:
            logger.debug("No social activity counts found for activity %s", activity_id)
        author_name, author_urn = _actor_fields(update)
        text = _commentary_text(update)
        resolved = counts or Counts()
        observations.append(
            StructuredObservation(
                raw_id=f"{ITEM_ID_PREFIX}{activity_id}",
                author_name=author_name,
                author_urn=author_urn,
                text=text,
                like_count=resolved.likes,
                comment_count=resolved.comments,
                share_count=resolved.shares,
                is_promoted="sponsored" in element_urn,
                hashtags=extract_hashtags(text),
            )
        )
    return StructuredParseResult(
        observations=tuple(observations),
        feed_kind=feed_kind,
        warnings=tuple(warnings),
    )


def _feed_elements(payload: Mapping[str, Any]) -> tuple[str | None, list[Any]]:
    outer = payload.get("data")
    inner = outer.get("data") if isinstance(outer, Mapping) else None
    if not isinstance(inner, Mapping):
        return None, []

    main_feed = inner.get(MAIN_FEED_KEY)
    if isinstance(main_feed, Mapping):
        return "main", list(main_feed.get("*elements") or [])

    profile_feed = inner.get(PROFILE_FEED_KEY)
    if isinstance(profile_feed, Mapping):
        elements = list(profile_feed.get("*elements") or [])
        if not elements:
            for entry in profile_feed.get("elements") or []:
                if isinstance(entry, Mapping):
                    ref = entry.get("*update") or entry.get("entityUrn") or entry.get("urn")
                    if ref:
                        elements.append(ref)
        return "profile", elements
    return None, []


def _index_included(included: Sequence[Any]) -> _IncludedIndex:
    index = _IncludedIndex()
    for entity in included:
        if not isinstance(entity, Mapping):
            continue
        entity_type = entity.get("$type")
        if entity_type == COUNTS_TYPE:
            _index_counts(index, entity)
        elif entity_type == SOCIAL_DETAIL_TYPE:
            ref = entity.get("*totalSocialActivityCounts")
            if isinstance(ref, str):
                match = _ACTIVITY_RE.search(ref)
                if match is not None:
                    index.counts_refs[match.group(1)] = ref
        elif entity_type in UPDATE_TYPES:
            urn = str(entity.get("entityUrn") or entity.get("urn") or "")
            if not urn:
                continue
            index.updates[urn] = entity
            activity = _ACTIVITY_RE.search(urn)
            if activity is not None:
                index.updates[activity.group(1)] = entity
                index.updates[f"{ITEM_ID_PREFIX}{activity.group(1)}"] = entity
            ugc = _UGC_RE.search(urn)
            if ugc is not None:
                index.updates[ugc.group(1)] = entity

    for activity_id, ref in index.counts_refs.items():
        counts = index.counts_by_urn.get(ref)
        if counts is not None and activity_id not in index.counts_by_activity:
            index.counts_by_activity[activity_id] = counts
    return index


def _index_counts(index: _IncludedIndex, entity: Mapping[str, Any]) -> None:
    urn = str(entity.get("urn") or "")
    entity_urn = str(entity.get("entityUrn") or "")
    counts = Counts(
        likes=_as_count(entity.get("numLikes")),
        comments=_as_count(entity.get("numComments")),
        shares=_as_count(entity.get("numShares")),
    )
    full_urn = urn or entity_urn
    if full_urn:
        index.counts_by_urn[full_urn] = counts
    activity = _ACTIVITY_RE.search(urn) or _ACTIVITY_RE.search(entity_urn)
    if activity is not None:
        index.counts_by_activity[activity.group(1)] = counts
    ugc = _UGC_RE.search(urn) or _UGC_RE.search(entity_urn)
    if ugc is not None:
        index.counts_by_ugc[ugc.group(1)] = counts


def _find_update(index: _IncludedIndex, activity_id: str) -> Mapping[str, Any] | None:
    update = index.updates.get(activity_id)
    if update is not None:
        return update
    for key, value in index.updates.items():
        if activity_id in key:
            return value
    return None


def _scan_included_update(included: Sequence[Any], activity_id: str) -> Mapping[str, Any] | None:
    for entity in included:
        if not isinstance(entity, Mapping):
            continue
        urn = str(entity.get("entityUrn") or entity.get("urn") or "")
        if activity_id in urn and "Update" in str(entity.get("$type") or ""):
            return entity
    return None


def _find_counts(
    index: _IncludedIndex,
    activity_id: str,
    update: Mapping[str, Any] | None,
) -> Counts | None:
    counts = (
        index.counts_by_activity.get(activity_id)
        or index.counts_by_urn.get(f"{ITEM_ID_PREFIX}{activity_id}")
        or index.counts_by_urn.get(f"{_FSD_COUNTS_PREFIX}{activity_id}")
    )
    if counts is None and update is not None:
        counts = _counts_from_update_refs(index, update)
    if counts is None:
        for urn, candidate in index.counts_by_urn.items():
            if activity_id in urn:
                return candidate
    return counts


def _counts_from_update_refs(index: _IncludedIndex, update: Mapping[str, Any]) -> Counts | None:
    detail_ref = str(update.get("*socialDetail") or "")
    if detail_ref:
        thread = _ACTIVITY_RE.search(detail_ref)
        if thread is not None:
            counts = index.counts_by_activity.get(thread.group(1)) or index.counts_by_urn.get(
                f"{_FSD_COUNTS_PREFIX}{thread.group(1)}"
            )
            if counts is not None:
                return counts
        for ugc_id in _UGC_RE.findall(detail_ref):
            if ugc_id in index.counts_by_ugc:
                return index.counts_by_ugc[ugc_id]

    metadata = update.get("metadata")
    share_urn = str(metadata.get("shareUrn") or "") if isinstance(metadata, Mapping) else ""
    if share_urn:
        ugc = _UGC_RE.search(share_urn)
        if ugc is not None and ugc.group(1) in index.counts_by_ugc:
            return index.counts_by_ugc[ugc.group(1)]
        share = _SHARE_RE.search(share_urn)
        if share is not None:
            for urn, candidate in index.counts_by_urn.items():
                if share.group(1) in urn:
                    return candidate
    return None


def _actor_fields(update: Mapping[str, Any] | None) -> tuple[str, str]:
    if update is None:
        return UNKNOWN_AUTHOR, ""
    actor = update.get("actor")
    if not isinstance(actor, Mapping):
        return UNKNOWN_AUTHOR, ""
    name = _text_value(actor.get("name"))
    if not name:
        name = f"{actor.get('firstName') or ''} {actor.get('lastName') or ''}".strip()
    urn = ""
    for key in ("urn", "entityUrn", "backendUrn", "trackingUrn"):
        if actor.get(key):
            urn = str(actor[key])
            break
    return name or UNKNOWN_AUTHOR, urn


def _commentary_text(update: Mapping[str, Any] | None) -> str:
    if update is None:
        return ""
    commentary = update.get("commentary")
    if isinstance(commentary, Mapping):
        return _text_value(commentary.get("text"))
    if isinstance(commentary, str):
        return commentary
    return ""


def _text_value(value: Any) -> str:
    if isinstance(value, Mapping):
        text = value.get("text")
        return text if isinstance(text, str) else ""
    if isinstance(value, str):
        return value
    return ""


def _as_count(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return max(0, int(value))
