"""Import smoke tests for package modules."""

from importlib import import_module

from feed_sorter import __version__
from feed_sorter.models import SessionState


MODULES = [
    "feed_sorter.cli",
    "feed_sorter.config",
    "feed_sorter.models",
    "feed_sorter.errors",
    "feed_sorter.logging",
    "feed_sorter.browser.session",
    "feed_sorter.browser.page_source",
    "feed_sorter.browser.interceptor",
    "feed_sorter.collectors.base",
    "feed_sorter.collectors.controller",
    "feed_sorter.extract.normalize",
    "feed_sorter.extract.scrape",
    "feed_sorter.extract.structured",
    "feed_sorter.fusion.channels",
    "feed_sorter.fusion.store",
    "feed_sorter.sorting.dates",
    "feed_sorter.sorting.engine",
    "feed_sorter.store.base",
    "feed_sorter.store.memory",
    "feed_sorter.store.sqlite",
    "feed_sorter.render.base",
    "feed_sorter.render.csvout",
    "feed_sorter.scheduler.state",
    "feed_sorter.scheduler.run",
    "feed_sorter.diagnostics.events",
    "feed_sorter.browser.login",
    "feed_sorter.testing.time_control",
]


def test_core_modules_import_cleanly() -> None:
    for module in MODULES:
        assert import_module(module) is not None


def test_session_state_defaults_to_idle() -> None:
    state = SessionState()
    assert not state.is_collecting
    assert state.progress == 0
    assert __version__
