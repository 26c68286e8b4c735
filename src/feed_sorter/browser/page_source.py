"""Rendered-page feed source driven through Playwright ``page.evaluate`` calls."""

from __future__ import annotations

from typing import Any, Protocol
from urllib.parse import urlparse

from feed_sorter.config import SelectorsConfig
from feed_sorter.errors import CollectError
from feed_sorter.extract.scrape import scraped_observation_from_mapping
from feed_sorter.logging import get_logger
from feed_sorter.models import FeedVariant, ScrapedObservation

logger = get_logger(__name__)

_SCAN_SCRIPT = """
(sel) => {
  const pick = (root, selector) => {
    const node = root.querySelector(selector);
    return node ? (node.innerText || node.textContent || "").trim() : null;
  };
  const results = [];
  for (const node of document.querySelectorAll(sel.item)) {
    let rawId = null;
    for (const attr of sel.id_attributes) {
      rawId = node.getAttribute(attr);
      if (rawId) break;
    }
    if (!rawId) continue;
    const promotedNode = node.querySelector(sel.promoted);
    results.push({
      raw_id: rawId,
      author_text: pick(node, sel.author),
      text: pick(node, sel.text),
      reactions_label: pick(node, sel.reactions),
      comments_label: pick(node, sel.comments),
      reposts_label: pick(node, sel.reposts),
      time_text: pick(node, sel.time),
      promoted_hint: promotedNode ? "promoted" : pick(node, sel.time),
    });
  }
  return results;
}
"""

_CONTAINER_SIZE_SCRIPT = """
(selector) => {
  const container = document.querySelector(selector);
  return container ? container.scrollHeight : document.body.scrollHeight;
}
"""

_ADVANCE_SCRIPT = """
(step) => {
  if (step === null) {
    window.scrollTo(0, document.body.scrollHeight);
  } else {
    window.scrollBy(0, step);
  }
}
"""

_AT_END_SCRIPT = """
() => window.innerHeight + window.scrollY >= document.body.scrollHeight - 2
"""

_REWIND_SCRIPT = "() => window.scrollTo(0, 0)"

_LOAD_MORE_SCRIPT = """
(sel) => {
  const visible = (node) => node && node.offsetParent !== null && !node.disabled;
  const direct = document.querySelector(sel.button);
  if (visible(direct)) {
    direct.click();
    return true;
  }
  for (const button of document.querySelectorAll("button")) {
    const label = (button.innerText || "").trim().toLowerCase();
    if (!label || !visible(button)) continue;
    if (sel.texts.some((text) => label.includes(text))) {
      button.click();
      return true;
    }
  }
  return false;
}
"""


class EvaluatingPage(Protocol):
    def evaluate(self, expression: str, arg: Any = None) -> Any:
        """Run a script in the page and return its result."""


class PageFeedSource:
    """Feed source that scrolls a live page and scrapes the rendered entries."""

    def __init__(self, page: EvaluatingPage, selectors: SelectorsConfig | None = None) -> None:
        self._page = page
        self._selectors = selectors or SelectorsConfig()

    def advance(self, step_hint: int | None) -> None:
        self._evaluate(_ADVANCE_SCRIPT, step_hint)

    def scan(self) -> tuple[ScrapedObservation, ...]:
        selectors = self._selectors
        payload = self._evaluate(
            _SCAN_SCRIPT,
            {
                "item": selectors.item,
                "id_attributes": list(selectors.id_attributes),
                "author": selectors.author,
                "text": selectors.text,
                "reactions": selectors.reactions,
                "comments": selectors.comments,
                "reposts": selectors.reposts,
                "time": selectors.time,
                "promoted": selectors.promoted,
            },
        )
        if not isinstance(payload, list):
            raise CollectError(f"Feed scan returned {type(payload).__name__}; expected a list.")
        observations = tuple(
            observation
            for observation in (scraped_observation_from_mapping(entry) for entry in payload)
            if observation is not None
        )
        if len(observations) < len(payload):
            logger.debug("Scan dropped %d entry(ies) without an id", len(payload) - len(observations))
        return observations

    def try_load_more(self) -> bool:
        clicked = self._evaluate(
            _LOAD_MORE_SCRIPT,
            {
                "button": self._selectors.load_more_button,
                "texts": [text.lower() for text in self._selectors.load_more_texts],
            },
        )
        return bool(clicked)

    def at_end(self) -> bool:
        return bool(self._evaluate(_AT_END_SCRIPT))

    def container_size(self) -> int:
        size = self._evaluate(_CONTAINER_SIZE_SCRIPT, self._selectors.container)
        try:
            return int(size)
        except (TypeError, ValueError) as exc:
            raise CollectError(f"Container size probe returned {size!r}.") from exc

    def rewind(self) -> None:
        self._evaluate(_REWIND_SCRIPT)

    def _evaluate(self, script: str, arg: Any = None) -> Any:
        try:
            return self._page.evaluate(script, arg)
        except Exception as exc:
            raise CollectError(f"Page script failed: {exc}") from exc


def detect_variant(url: str) -> FeedVariant:
    """Profile activity pages scroll a container; everything else is the main feed."""
    path = urlparse(url).path.lower()
    if "/recent-activity" in path or path.startswith("/in/"):
        return FeedVariant.PROFILE_FEED
    return FeedVariant.MAIN_FEED

