"""Browser session lifecycle behavior."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from feed_sorter.browser.session import PlaywrightBrowserSession
from feed_sorter.config import BrowserConfig, RuntimeConfig
from feed_sorter.errors import BrowserError


class FakePage:
    def __init__(self, *, goto_error: Exception | None = None) -> None:
        self.navigation_timeouts: list[int] = []
        self.visited: list[tuple[str, dict[str, object]]] = []
        self.goto_error = goto_error

    def set_default_navigation_timeout(self, timeout: int) -> None:
        self.navigation_timeouts.append(timeout)

    def goto(self, url: str, **kwargs: object) -> None:
        if self.goto_error is not None:
            raise self.goto_error
        self.visited.append((url, kwargs))


class FakeContext:
    def __init__(
        self,
        *,
        events: list[str] | None = None,
        close_error: Exception | None = None,
        page: FakePage | None = None,
    ) -> None:
        self.default_timeout_ms: int | None = None
        self.new_page_calls = 0
        self.saved_paths: list[str] = []
        self.events = events
        self.close_error = close_error
        self.page = page

    def set_default_timeout(self, timeout_ms: int) -> None:
        self.default_timeout_ms = timeout_ms

    def new_page(self) -> FakePage:
        self.new_page_calls += 1
        return self.page or FakePage()

    def storage_state(self, *, path: str) -> None:
        self.saved_paths.append(path)
        Path(path).write_text('{"cookies": [], "origins": []}', encoding="utf-8")

    def close(self) -> None:
        if self.events is not None:
            self.events.append("context.close")
        if self.close_error is not None:
            raise self.close_error


class FakeBrowser:
    def __init__(
        self,
        context: FakeContext,
        *,
        events: list[str] | None = None,
        close_error: Exception | None = None,
    ) -> None:
        self.context = context
        self.new_context_kwargs: dict[str, object] | None = None
        self.events = events
        self.close_error = close_error

    def new_context(self, **kwargs: object) -> FakeContext:
        self.new_context_kwargs = kwargs
        return self.context

    def close(self) -> None:
        if self.events is not None:
            self.events.append("browser.close")
        if self.close_error is not None:
            raise self.close_error


class FakeLauncher:
    def __init__(self, browser: FakeBrowser) -> None:
        self.browser = browser
        self.launch_headless_values: list[bool] = []

    def launch(self, *, headless: bool) -> FakeBrowser:
        self.launch_headless_values.append(headless)
        return self.browser


class FakePlaywright:
    def __init__(self, **engines: FakeLauncher) -> None:
        for name, launcher in engines.items():
            setattr(self, name, launcher)


class FakePlaywrightContextManager:
    def __init__(
        self,
        playwright: FakePlaywright,
        *,
        events: list[str] | None = None,
    ) -> None:
        self.playwright = playwright
        self.events = events
        self.entered = 0
        self.exited = 0

    def __enter__(self) -> FakePlaywright:
        self.entered += 1
        return self.playwright

    def __exit__(self, exc_type: object, exc: object, tb: object) -> bool:
        self.exited += 1
        if self.events is not None:
            self.events.append("playwright.exit")
        return False


def _config(**browser_overrides: object) -> RuntimeConfig:
    return RuntimeConfig(browser=BrowserConfig(**browser_overrides))


def _manager(context: FakeContext, *, events: list[str] | None = None) -> tuple[FakePlaywrightContextManager, FakeBrowser, FakeLauncher]:
    browser = FakeBrowser(context, events=events)
    launcher = FakeLauncher(browser)
    return FakePlaywrightContextManager(FakePlaywright(chromium=launcher), events=events), browser, launcher


def test_open_and_new_page_wire_defaults_from_config() -> None:
    context = FakeContext()
    manager, browser, launcher = _manager(context)

    session = PlaywrightBrowserSession(
        _config(headless=True, navigation_timeout_ms=12_345, action_timeout_ms=4_321, locale="en-GB"),
        playwright_factory=lambda: manager,
    )
    session.open()
    page = session.new_page()

    assert session.is_open
    assert launcher.launch_headless_values == [True]
    assert browser.new_context_kwargs == {
        "locale": "en-GB",
        "viewport": {"width": 1280, "height": 900},
    }
    assert context.default_timeout_ms == 4_321
    assert page.navigation_timeouts == [12_345]

    session.close()
    assert not session.is_open
    assert (manager.entered, manager.exited) == (1, 1)


def test_configured_storage_state_is_passed_to_context(tmp_path: Path) -> None:
    context = FakeContext()
    manager, browser, _ = _manager(context)
    state_path = tmp_path / "state.json"
    state_path.write_text('{"cookies": [], "origins": []}', encoding="utf-8")

    with PlaywrightBrowserSession(_config(storage_state=str(state_path)), playwright_factory=lambda: manager):
        pass

    assert browser.new_context_kwargs is not None
    assert browser.new_context_kwargs["storage_state"] == str(state_path)


def test_missing_configured_storage_state_starts_a_fresh_context(tmp_path: Path) -> None:
    context = FakeContext()
    manager, browser, _ = _manager(context)

    config = _config(storage_state=str(tmp_path / "not-yet-saved.json"))
    with PlaywrightBrowserSession(config, playwright_factory=lambda: manager):
        pass

    assert browser.new_context_kwargs is not None
    assert "storage_state" not in browser.new_context_kwargs


def test_headless_override_takes_precedence_over_config() -> None:
    context = FakeContext()
    manager, _, launcher = _manager(context)

    session = PlaywrightBrowserSession(_config(headless=False), headless=True, playwright_factory=lambda: manager)
    session.new_page()
    session.new_page()

    assert launcher.launch_headless_values == [True]
    assert context.new_page_calls == 2
    assert manager.entered == 1
    session.close()


def test_open_feed_navigates_until_dom_is_ready() -> None:
    page = FakePage()
    manager, _, _ = _manager(FakeContext(page=page))

    with PlaywrightBrowserSession(_config(), playwright_factory=lambda: manager) as session:
        assert session.open_feed("https://www.linkedin.com/feed/") is page

    assert page.visited == [("https://www.linkedin.com/feed/", {"wait_until": "domcontentloaded"})]


def test_navigate_wraps_page_errors() -> None:
    page = FakePage(goto_error=RuntimeError("net::ERR_NAME_NOT_RESOLVED"))
    manager, _, _ = _manager(FakeContext(page=page))

    with PlaywrightBrowserSession(_config(), playwright_factory=lambda: manager) as session:
        with pytest.raises(BrowserError, match="ERR_NAME_NOT_RESOLVED"):
            session.open_feed("https://invalid.test/feed/")


def test_save_storage_state_requires_open_session(tmp_path: Path) -> None:
    manager, _, _ = _manager(FakeContext())
    session = PlaywrightBrowserSession(_config(), playwright_factory=lambda: manager)
    with pytest.raises(BrowserError, match="not open"):
        session.save_storage_state(tmp_path / "state.json")


def test_save_storage_state_writes_through_context(tmp_path: Path) -> None:
    context = FakeContext()
    manager, _, _ = _manager(context)
    target = tmp_path / "auth" / "state.json"

    with PlaywrightBrowserSession(_config(), playwright_factory=lambda: manager) as session:
        assert session.save_storage_state(target) == target

    assert context.saved_paths == [str(target)]
    assert target.exists()
    if os.name == "posix":
        assert target.stat().st_mode & 0o777 == 0o600


def test_close_attempts_full_teardown_even_if_context_close_fails() -> None:
    events: list[str] = []
    context = FakeContext(events=events, close_error=RuntimeError("context boom"))
    manager, _, _ = _manager(context, events=events)

    session = PlaywrightBrowserSession(_config(), playwright_factory=lambda: manager)
    session.open()

    with pytest.raises(BrowserError, match="context boom"):
        session.close()

    assert events == ["context.close", "browser.close", "playwright.exit"]
    session.close()


def test_open_raises_for_unsupported_engine() -> None:
    manager, _, _ = _manager(FakeContext())
    session = PlaywrightBrowserSession(_config(engine="firefox"), playwright_factory=lambda: manager)

    with pytest.raises(BrowserError, match="Unsupported browser engine"):
        session.open()
    assert manager.exited == 1
    assert not session.is_open
