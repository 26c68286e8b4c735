"""Manual browser login capture so later collections reuse the signed-in state."""

from __future__ import annotations

from collections.abc import Callable
import json
from pathlib import Path
from typing import Any

from feed_sorter.browser.session import PlaywrightBrowserSession
from feed_sorter.config import RuntimeConfig, resolve_data_dir
from feed_sorter.errors import BrowserError
from feed_sorter.logging import get_logger

logger = get_logger(__name__)

DEFAULT_LOGIN_URL = "https://www.linkedin.com/login"
STORAGE_STATE_FILENAME = "storage_state.json"

WaitForLoginFn = Callable[[], object]
SessionFactory = Callable[..., Any]


def resolve_storage_state_path(config: RuntimeConfig) -> Path:
    """Configured ``browser.storage_state``, else ``storage_state.json`` in the data dir."""
    configured = config.browser.storage_state.strip()
    if configured:
        return Path(configured).expanduser()
    return resolve_data_dir() / STORAGE_STATE_FILENAME


def existing_storage_state(config: RuntimeConfig) -> Path | None:
    path = resolve_storage_state_path(config)
    return path if path.is_file() else None


def login_and_save_storage_state(
    config: RuntimeConfig,
    wait_for_login: WaitForLoginFn,
    *,
    login_url: str = DEFAULT_LOGIN_URL,
    target_path: str | Path | None = None,
    session_factory: SessionFactory = PlaywrightBrowserSession,
) -> Path:
    """Open a visible browser at ``login_url``, wait for the user, then save cookies.

    ``wait_for_login`` blocks until the user has finished signing in. The saved
    file is rejected when it holds neither cookies nor origin storage.
    """
    target = Path(target_path).expanduser() if target_path is not None else resolve_storage_state_path(config)
    with session_factory(config, headless=False) as browser:
        browser.open_feed(login_url)
        wait_for_login()
        saved = browser.save_storage_state(target)
    _validate_storage_state_file(saved)
    logger.info("Saved browser storage_state to %s", saved)
    return saved


def _validate_storage_state_file(path: Path) -> None:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise BrowserError(f"Could not read saved storage_state '{path}': {exc}.") from exc

    cookies = data.get("cookies") if isinstance(data, dict) else None
    origins = data.get("origins") if isinstance(data, dict) else None
    if not isinstance(cookies, list) or not isinstance(origins, list):
        path.unlink(missing_ok=True)
        raise BrowserError("Saved storage_state is invalid: expected Playwright cookies/origins arrays.")
    if not cookies and not origins:
        path.unlink(missing_ok=True)
        raise BrowserError(
            "Saved storage_state is empty. Finish signing in before confirming, then retry."
        )
