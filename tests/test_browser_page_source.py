"""Rendered-page feed source behavior against a scripted page."""

from __future__ import annotations

from typing import Any

import pytest

from feed_sorter.browser.page_source import PageFeedSource, detect_variant
from feed_sorter.config import SelectorsConfig
from feed_sorter.errors import CollectError
from feed_sorter.models import FeedVariant, ScrapedObservation


class FakePage:
    def __init__(self, results: list[Any] | None = None, *, error: Exception | None = None) -> None:
        self.results = list(results or [])
        self.calls: list[tuple[str, Any]] = []
        self.error = error

    def evaluate(self, expression: str, arg: Any = None) -> Any:
        self.calls.append((expression, arg))
        if self.error is not None:
            raise self.error
        return self.results.pop(0) if self.results else None


def test_scan_converts_entries_and_drops_ones_without_id() -> None:
    page = FakePage(
        [
            [
                {"raw_id": "urn:li:activity:1", "author_text": "Ada", "reactions_label": "12", "comments_label": 3},
                {"raw_id": "", "author_text": "Nobody"},
                "not-a-mapping",
            ]
        ]
    )
    observations = PageFeedSource(page).scan()

    assert observations == (
        ScrapedObservation(raw_id="urn:li:activity:1", author_text="Ada", reactions_label="12"),
    )
    _, arg = page.calls[0]
    assert arg["id_attributes"] == ["data-urn", "data-id"]
    assert arg["promoted"] == "[data-ad-banner]"


def test_scan_rejects_non_list_results() -> None:
    with pytest.raises(CollectError, match="expected a list"):
        PageFeedSource(FakePage([{"raw_id": "x"}])).scan()


def test_page_script_failures_become_collect_errors() -> None:
    source = PageFeedSource(FakePage(error=RuntimeError("Execution context was destroyed")))
    with pytest.raises(CollectError, match="Execution context was destroyed"):
        source.advance(800)


def test_advance_passes_step_and_jump_to_end() -> None:
    page = FakePage()
    source = PageFeedSource(page)
    source.advance(600)
    source.advance(None)
    assert [arg for _, arg in page.calls] == [600, None]


def test_load_more_sends_lowercased_button_texts() -> None:
    page = FakePage([True, False])
    source = PageFeedSource(page, SelectorsConfig(load_more_texts=("Show MORE results",)))

    assert source.try_load_more()
    assert not source.try_load_more()
    _, arg = page.calls[0]
    assert arg == {"button": ".scaffold-finite-scroll__load-button", "texts": ["show more results"]}


def test_container_size_and_end_probe() -> None:
    page = FakePage([4200, True])
    source = PageFeedSource(page)
    assert source.container_size() == 4200
    assert source.at_end()


def test_container_size_rejects_non_numeric_probe() -> None:
    with pytest.raises(CollectError, match="Container size probe"):
        PageFeedSource(FakePage(["tall"])).container_size()


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://www.linkedin.com/feed/", FeedVariant.MAIN_FEED),
        ("https://www.linkedin.com/in/ada/recent-activity/all/", FeedVariant.PROFILE_FEED),
        ("https://www.linkedin.com/company/acme/recent-activity/", FeedVariant.PROFILE_FEED),
        ("https://www.linkedin.com/in/ada/", FeedVariant.PROFILE_FEED),
    ],
)
def test_detect_variant_from_url(url: str, expected: FeedVariant) -> None:
    assert detect_variant(url) is expected
