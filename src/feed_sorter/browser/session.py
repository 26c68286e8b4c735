"""Playwright browser lifecycle for live feed collection."""

from __future__ import annotations

from collections.abc import Callable
from contextlib import AbstractContextManager
from dataclasses import dataclass
import os
from pathlib import Path
from typing import Any, Protocol

from feed_sorter.config import RuntimeConfig
from feed_sorter.errors import BrowserError
from feed_sorter.logging import get_logger

logger = get_logger(__name__)

PlaywrightFactory = Callable[[], AbstractContextManager[Any]]


class BrowserPage(Protocol):
    def goto(self, url: str, **kwargs: Any) -> Any:
        """Navigate to a URL."""

    def evaluate(self, expression: str, arg: Any = None) -> Any:
        """Run a script in the page and return its result."""

    def on(self, event: str, handler: Callable[..., Any]) -> None:
        """Register an event handler."""


@dataclass(frozen=True)
class BrowserSessionOptions:
    engine: str
    headless: bool
    navigation_timeout_ms: int
    action_timeout_ms: int
    locale: str
    viewport_width: int
    viewport_height: int
    storage_state: str | dict[str, Any] | None = None

    @classmethod
    def from_config(
        cls,
        config: RuntimeConfig,
        *,
        headless: bool | None = None,
        storage_state: str | Path | dict[str, Any] | None = None,
    ) -> BrowserSessionOptions:
        browser = config.browser
        if storage_state is None and browser.storage_state.strip():
            configured = Path(browser.storage_state).expanduser()
            if configured.is_file():
                storage_state = str(configured)
            else:
                logger.warning(
                    "Configured storage_state '%s' does not exist; run `feedsort browser login`",
                    configured,
                )
        if isinstance(storage_state, Path):
            storage_state = str(storage_state)
        if isinstance(storage_state, str):
            storage_state = str(Path(storage_state).expanduser())
        return cls(
            engine=browser.engine,
            headless=browser.headless if headless is None else headless,
            navigation_timeout_ms=browser.navigation_timeout_ms,
            action_timeout_ms=browser.action_timeout_ms,
            locale=browser.locale,
            viewport_width=browser.viewport_width,
            viewport_height=browser.viewport_height,
            storage_state=storage_state,
        )


class PlaywrightBrowserSession:
    """One browser and context pair, torn down in reverse order of creation."""

    def __init__(
        self,
        config: RuntimeConfig,
        *,
        headless: bool | None = None,
        storage_state: str | Path | dict[str, Any] | None = None,
        playwright_factory: PlaywrightFactory | None = None,
    ) -> None:
        self.options = BrowserSessionOptions.from_config(
            config, headless=headless, storage_state=storage_state
        )
        self._playwright_factory = playwright_factory or _default_playwright_factory
        self._playwright_cm: AbstractContextManager[Any] | None = None
        self._browser: Any | None = None
        self._context: Any | None = None

    @property
    def is_open(self) -> bool:
        return self._context is not None

    def open(self) -> None:
        if self._context is not None:
            return

        try:
            self._playwright_cm = self._playwright_factory()
            playwright = self._playwright_cm.__enter__()

            launcher = getattr(playwright, self.options.engine, None)
            if launcher is None:
                raise BrowserError(f"Unsupported browser engine '{self.options.engine}'.")
            self._browser = launcher.launch(headless=self.options.headless)

            context_kwargs: dict[str, Any] = {
                "locale": self.options.locale,
                "viewport": {
                    "width": self.options.viewport_width,
                    "height": self.options.viewport_height,
                },
            }
            if self.options.storage_state is not None:
                context_kwargs["storage_state"] = self.options.storage_state
            self._context = self._browser.new_context(**context_kwargs)
            self._context.set_default_timeout(self.options.action_timeout_ms)
        except BrowserError:
            self._teardown(raise_on_error=False)
            raise
        except Exception as exc:
            self._teardown(raise_on_error=False)
            raise BrowserError(f"Failed to open browser session: {exc}") from exc
        logger.debug("Browser session opened (%s, headless=%s)", self.options.engine, self.options.headless)

    def new_page(self) -> BrowserPage:
        if self._context is None:
            self.open()
        if self._context is None:
            raise BrowserError("Browser session is not open.")

        try:
            page = self._context.new_page()
            set_navigation_timeout = getattr(page, "set_default_navigation_timeout", None)
            if callable(set_navigation_timeout):
                set_navigation_timeout(self.options.navigation_timeout_ms)
            return page
        except Exception as exc:
            raise BrowserError(f"Failed to create browser page: {exc}") from exc

    def open_feed(self, url: str) -> BrowserPage:
        """Create a page and navigate it to a feed URL."""
        return self.navigate(self.new_page(), url)

    def navigate(self, page: BrowserPage, url: str) -> BrowserPage:
        try:
            page.goto(url, wait_until="domcontentloaded")
        except Exception as exc:
            raise BrowserError(f"Failed to open feed '{url}': {exc}") from exc
        return page

    def save_storage_state(self, path: str | Path) -> Path:
        """Persist cookies and local storage so later runs reuse the login."""
        if self._context is None:
            raise BrowserError("Browser session is not open.")
        target = Path(path).expanduser()
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            self._context.storage_state(path=str(target))
            os.chmod(target, 0o600)
        except Exception as exc:
            raise BrowserError(f"Failed to save browser storage_state to '{target}': {exc}") from exc
        return target

    def close(self) -> None:
        self._teardown(raise_on_error=True)

    def __enter__(self) -> PlaywrightBrowserSession:
        self.open()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> bool:
        try:
            self.close()
        except BrowserError:
            if exc_type is None:
                raise
        return False

    def _teardown(self, *, raise_on_error: bool) -> None:
        errors: list[str] = []
        for label, attr in (("context", "_context"), ("browser", "_browser")):
            resource = getattr(self, attr)
            if resource is None:
                continue
            try:
                resource.close()
            except Exception as exc:
                errors.append(f"{label} close failed: {exc}")
            finally:
                setattr(self, attr, None)

        if self._playwright_cm is not None:
            try:
                self._playwright_cm.__exit__(None, None, None)
            except Exception as exc:
                errors.append(f"playwright teardown failed: {exc}")
            finally:
                self._playwright_cm = None

        if raise_on_error and errors:
            raise BrowserError("Browser session teardown failed: " + "; ".join(errors))


def _default_playwright_factory() -> AbstractContextManager[Any]:
    try:
        from playwright.sync_api import sync_playwright
    except ModuleNotFoundError as exc:
        raise BrowserError(
            "Playwright is not available. Install dependencies and run "
            "`python -m playwright install chromium`."
        ) from exc
    return sync_playwright()
