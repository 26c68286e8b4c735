"""Capture structured feed responses and route them into the fusion store."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Protocol

from feed_sorter.fusion.channels import ingest_structured_payload
from feed_sorter.fusion.store import FusionStore
from feed_sorter.logging import get_logger

logger = get_logger(__name__)

FEED_RESPONSE_RE = re.compile(
    r"voyager/api/graphql.*(?:feedDashMainFeed|MainFeed|feedDashProfileUpdates|ProfileUpdates)"
)


class FeedResponse(Protocol):
    @property
    def url(self) -> str:
        """Response URL."""

    def json(self) -> Any:
        """Decode the body as JSON."""


class ResponseEventPage(Protocol):
    def on(self, event: str, handler: Any) -> None:
        """Register an event handler."""

    def remove_listener(self, event: str, handler: Any) -> None:
        """Unregister an event handler."""


def is_feed_response(url: str) -> bool:
    return FEED_RESPONSE_RE.search(url) is not None


@dataclass
class InterceptorStats:
    matched: int = 0
    ingested: int = 0
    dropped: int = 0


class FeedResponseInterceptor:
    """Response listener that merges every matching payload with the replacement policy."""

    def __init__(self, store: FusionStore) -> None:
        self._store = store
        self.stats = InterceptorStats()
        self._page: ResponseEventPage | None = None

    def install(self, page: ResponseEventPage) -> FeedResponseInterceptor:
        page.on("response", self.handle_response)
        self._page = page
        return self

    def uninstall(self) -> None:
        if self._page is None:
            return
        try:
            self._page.remove_listener("response", self.handle_response)
        except Exception as exc:
            logger.debug("Response listener removal failed: %s", exc)
        self._page = None

    def handle_response(self, response: FeedResponse) -> None:
        try:
            url = str(response.url)
        except Exception:
            return
        if not is_feed_response(url):
            return
        self.stats.matched += 1
        try:
            payload = response.json()
        except Exception as exc:
            self.stats.dropped += 1
            logger.warning("Feed response body was not JSON (%s): %s", url, exc)
            return
        report = ingest_structured_payload(self._store, payload)
        if report is None:
            self.stats.dropped += 1
            return
        self.stats.ingested += 1
        logger.debug(
            "Structured feed response merged: inserted=%d replaced=%d fused=%d",
            report.inserted,
            report.replaced,
            report.fused_count,
        )


def install_feed_interceptor(page: ResponseEventPage, store: FusionStore) -> FeedResponseInterceptor:
    return FeedResponseInterceptor(store).install(page)
