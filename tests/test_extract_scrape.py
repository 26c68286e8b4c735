"""Scraped-string parsing behavior."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from feed_sorter.extract.scrape import (
    is_promoted_hint,
    normalize_author,
    normalize_text,
    parse_count,
    parse_relative_timestamp,
    scraped_observation_from_mapping,
    scraped_to_item,
)
from feed_sorter.models import UNKNOWN_AUTHOR, ScrapedObservation

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    ("label", "expected"),
    [
        ("1,234", 1234),
        ("1 234 reactions", 1234),
        ("1\u00a0234", 1234),
        ("12 comments", 12),
        ("Jane Doe and 41 others", 42),
        ("", 0),
        (None, 0),
        ("no digits", 0),
    ],
)
def test_parse_count_handles_localized_and_social_proof_labels(label: str | None, expected: int) -> None:
    assert parse_count(label) == expected


@pytest.mark.parametrize(
    ("text", "delta"),
    [
        ("3h", timedelta(hours=3)),
        ("15m • Edited", timedelta(minutes=15)),
        ("2d", timedelta(days=2)),
        ("1w", timedelta(weeks=1)),
        ("2mo", timedelta(days=60)),
        ("1yr", timedelta(days=365)),
        ("5 days ago", timedelta(days=5)),
        ("2 weeks ago", timedelta(weeks=2)),
    ],
)
def test_parse_relative_timestamp_resolves_against_now(text: str, delta: timedelta) -> None:
    assert parse_relative_timestamp(text, now=NOW) == NOW - delta


def test_parse_relative_timestamp_returns_none_for_unparseable_text() -> None:
    assert parse_relative_timestamp("Promoted", now=NOW) is None
    assert parse_relative_timestamp(None, now=NOW) is None
    assert parse_relative_timestamp("just now", now=NOW) == NOW


def test_normalize_text_collapses_whitespace_and_zero_width_characters() -> None:
    assert normalize_text("  Hello\u200b   world\n\nagain ") == "Hello world again"
    assert normalize_text(None) == ""


def test_normalize_author_keeps_first_line_or_unknown() -> None:
    assert normalize_author("Ada Lovelace\nAda Lovelace\n1st") == "Ada Lovelace"
    assert normalize_author("   ") == UNKNOWN_AUTHOR
    assert normalize_author(None) == UNKNOWN_AUTHOR


def test_is_promoted_hint_matches_known_markers() -> None:
    assert is_promoted_hint("Promoted")
    assert is_promoted_hint("Реклама")
    assert not is_promoted_hint("3h")
    assert not is_promoted_hint(None)


def test_scraped_to_item_builds_canonical_item() -> None:
    item = scraped_to_item(
        ScrapedObservation(
            raw_id="urn:li:activity:77",
            author_text="Grace Hopper\nGrace Hopper",
            text="Compilers are fun #history",
            reactions_label="1,024",
            comments_label="12 comments",
            reposts_label="3 reposts",
            time_text="1d",
        ),
        now=NOW,
    )
    assert item is not None
    assert item.item_id == "urn:li:activity:77"
    assert item.author_name == "Grace Hopper"
    assert item.counters() == (1024, 12, 3)
    assert item.timestamp == NOW - timedelta(days=1)
    assert item.hashtags == ("history",)
    assert not item.is_promoted


def test_scraped_to_item_rejects_unusable_ids() -> None:
    assert scraped_to_item(ScrapedObservation(raw_id="ember123"), now=NOW) is None


def test_scraped_observation_from_mapping_ignores_non_string_fields() -> None:
    observation = scraped_observation_from_mapping(
        {"raw_id": "urn:li:activity:5", "text": "hello", "reactions_label": 7, "extra": "x"}
    )
    assert observation == ScrapedObservation(raw_id="urn:li:activity:5", text="hello")
    assert scraped_observation_from_mapping({"text": "no id"}) is None
    assert scraped_observation_from_mapping(["not", "a", "mapping"]) is None
