"""Shared configuration contracts and validation helpers for feed-sorter."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import os
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir, user_data_dir

from .errors import ConfigError
from .models import DEFAULT_ITEM_URL_TEMPLATE, CollectionMode, FeedVariant, SortKey

APP_NAME = "feed-sorter"
CONFIG_ENV_VAR = "FEEDSORT_CONFIG"
VALID_OUTPUT_FORMATS = {"pretty", "plain", "json", "jsonl", "csv"}
VALID_BROWSER_ENGINES = {"chromium", "firefox", "webkit"}
VALID_SORT_KEYS = {key.value for key in SortKey}
VALID_MODES = {mode.value for mode in CollectionMode}
VALID_VARIANTS = {variant.value for variant in FeedVariant}
DEFAULT_CONFIG_FILENAME = "config.toml"
DEFAULT_DB_FILENAME = "feed.db"

DEFAULT_CONFIG_TEMPLATE = """[app]
default_session = "default"
timezone = "UTC"
default_format = "pretty"
item_url_template = "https://www.linkedin.com/feed/update/{item_id}"

[browser]
engine = "chromium"
headless = false
navigation_timeout_ms = 30000
action_timeout_ms = 10000
viewport_width = 1280
viewport_height = 900
locale = "en-US"
storage_state = ""

[collection]
default_count = 25
max_count = 2000
sort_key = "likes"
mode = "precision"
variant = "main-feed"
max_iterations = 60
stall_threshold = 4
no_progress_threshold = 8

[storage]
db_path = ""

[selectors]
item = '[data-urn^="urn:li:activity:"], [data-id^="urn:li:activity:"]'
id_attributes = ["data-urn", "data-id"]
author = '.update-components-actor__title span[dir="ltr"] span[aria-hidden="true"]'
text = '.update-components-text span[dir="ltr"]'
reactions = ".social-details-social-counts__reactions-count"
comments = ".social-details-social-counts__comments button"
reposts = '.social-details-social-counts button[aria-label*="repost"]'
time = ".update-components-actor__sub-description"
promoted = "[data-ad-banner]"
container = ".scaffold-finite-scroll__content"
load_more_button = ".scaffold-finite-scroll__load-button"
load_more_texts = ["show more feed updates", "show more results", "see new posts", "показать больше"]
"""


@dataclass(frozen=True)
class AppConfig:
    default_session: str = "default"
    timezone: str = "UTC"
    default_format: str = "pretty"
    item_url_template: str = DEFAULT_ITEM_URL_TEMPLATE
    debug: bool = False


@dataclass(frozen=True)
class BrowserConfig:
    engine: str = "chromium"
    headless: bool = False
    navigation_timeout_ms: int = 30_000
    action_timeout_ms: int = 10_000
    viewport_width: int = 1280
    viewport_height: int = 900
    locale: str = "en-US"
    storage_state: str = ""


@dataclass(frozen=True)
class CollectionConfig:
    default_count: int = 25
    max_count: int = 2000
    sort_key: str = SortKey.LIKES.value
    mode: str = CollectionMode.PRECISION.value
    variant: str = FeedVariant.MAIN_FEED.value
    max_iterations: int = 60
    stall_threshold: int = 4
    no_progress_threshold: int = 8


@dataclass(frozen=True)
class StorageConfig:
    db_path: str = ""


@dataclass(frozen=True)
class SelectorsConfig:
    item: str = '[data-urn^="urn:li:activity:"], [data-id^="urn:li:activity:"]'
    id_attributes: tuple[str, ...] = ("data-urn", "data-id")
    author: str = '.update-components-actor__title span[dir="ltr"] span[aria-hidden="true"]'
    text: str = '.update-components-text span[dir="ltr"]'
    reactions: str = ".social-details-social-counts__reactions-count"
    comments: str = ".social-details-social-counts__comments button"
    reposts: str = '.social-details-social-counts button[aria-label*="repost"]'
    time: str = ".update-components-actor__sub-description"
    promoted: str = "[data-ad-banner]"
    container: str = ".scaffold-finite-scroll__content"
    load_more_button: str = ".scaffold-finite-scroll__load-button"
    load_more_texts: tuple[str, ...] = (
        "show more feed updates",
        "show more results",
        "see new posts",
        "показать больше",
    )


@dataclass(frozen=True)
class RuntimeConfig:
    app: AppConfig = field(default_factory=AppConfig)
    browser: BrowserConfig = field(default_factory=BrowserConfig)
    collection: CollectionConfig = field(default_factory=CollectionConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    selectors: SelectorsConfig = field(default_factory=SelectorsConfig)


def default_config() -> RuntimeConfig:
    return RuntimeConfig()


def default_config_toml() -> str:
    return DEFAULT_CONFIG_TEMPLATE


def resolve_config_path(config_path: str | Path | None = None) -> Path:
    if config_path:
        return Path(config_path).expanduser()

    env_value = os.getenv(CONFIG_ENV_VAR)
    if env_value:
        return Path(env_value).expanduser()

    config_dir = Path(user_config_dir(APP_NAME, appauthor=False))
    return config_dir / DEFAULT_CONFIG_FILENAME


def resolve_data_dir() -> Path:
    return Path(user_data_dir(APP_NAME, appauthor=False))


def resolve_db_path(config: RuntimeConfig) -> Path:
    if config.storage.db_path.strip():
        return Path(config.storage.db_path).expanduser()
    return resolve_data_dir() / DEFAULT_DB_FILENAME


def init_default_config(config_path: str | Path | None = None, force: bool = False) -> Path:
    path = resolve_config_path(config_path)
    if path.exists() and path.is_dir():
        raise ConfigError(
            f"Config path '{path}' is a directory; expected a TOML file path (for example '{path / DEFAULT_CONFIG_FILENAME}')."
        )
    if path.exists() and not force:
        raise ConfigError(
            f"Config file already exists at '{path}'. Re-run with --force to overwrite."
        )

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(default_config_toml(), encoding="utf-8")
    except OSError as exc:
        raise ConfigError(
            f"Could not write config file at '{path}': {exc}. "
            "Check path permissions or choose a writable location with `--path`."
        ) from exc
    return path


def load_runtime_config(config_path: str | Path | None = None, *, missing_ok: bool = False) -> RuntimeConfig:
    """Load and validate the TOML config; ``missing_ok`` falls back to defaults when absent."""
    path = resolve_config_path(config_path)
    if not path.exists():
        if missing_ok:
            return default_config()
        raise ConfigError(
            f"Config file not found at '{path}'. Run `feedsort config init --path \"{path}\"` to generate defaults."
        )
    if path.is_dir():
        raise ConfigError(
            f"Config path '{path}' is a directory; pass a file path ending in '{DEFAULT_CONFIG_FILENAME}'."
        )

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(
            f"Could not read config file '{path}': {exc}. "
            "Check file permissions and that the path points to a readable TOML file."
        ) from exc
    raw = _load_toml(text, path)
    return _parse_runtime_config(raw)


def config_to_dict(config: RuntimeConfig) -> dict[str, Any]:
    return asdict(config)


def _load_toml(text: str, path: Path) -> dict[str, Any]:
    try:
        import tomllib  # Python 3.11+
    except ModuleNotFoundError:
        import tomli as tomllib  # type: ignore[no-redef]

    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(
            f"Config file '{path}' contains invalid TOML: {exc}. "
            "Fix the syntax or regenerate defaults with `feedsort config init --force`."
        ) from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Config file '{path}' must parse to a TOML table.")
    return data


def _parse_runtime_config(data: dict[str, Any]) -> RuntimeConfig:
    app_raw = _expect_table(data, "app", default={})
    browser_raw = _expect_table(data, "browser", default={})
    collection_raw = _expect_table(data, "collection", default={})
    storage_raw = _expect_table(data, "storage", default={})
    selectors_raw = _expect_table(data, "selectors", default={})

    url_template = _expect_non_empty_string(
        app_raw, "app.item_url_template", DEFAULT_ITEM_URL_TEMPLATE
    )
    if "{item_id}" not in url_template:
        raise ConfigError("Invalid value for 'app.item_url_template': must contain '{item_id}'.")

    app_config = AppConfig(
        default_session=_expect_non_empty_string(app_raw, "app.default_session", "default"),
        timezone=_expect_non_empty_string(app_raw, "app.timezone", "UTC"),
        default_format=_expect_choice(
            app_raw,
            "app.default_format",
            default="pretty",
            valid_values=VALID_OUTPUT_FORMATS,
        ),
        item_url_template=url_template,
        debug=_expect_bool(app_raw, "app.debug", default=False),
    )

    browser_config = BrowserConfig(
        engine=_expect_choice(
            browser_raw,
            "browser.engine",
            default="chromium",
            valid_values=VALID_BROWSER_ENGINES,
        ),
        headless=_expect_bool(browser_raw, "browser.headless", default=False),
        navigation_timeout_ms=_expect_positive_int(
            browser_raw, "browser.navigation_timeout_ms", default=30_000
        ),
        action_timeout_ms=_expect_positive_int(browser_raw, "browser.action_timeout_ms", default=10_000),
        viewport_width=_expect_positive_int(browser_raw, "browser.viewport_width", default=1280),
        viewport_height=_expect_positive_int(browser_raw, "browser.viewport_height", default=900),
        locale=_expect_non_empty_string(browser_raw, "browser.locale", "en-US"),
        storage_state=_expect_string(browser_raw, "browser.storage_state", default=""),
    )

    max_count = _expect_positive_int(collection_raw, "collection.max_count", default=2000)
    default_count = _expect_positive_int(collection_raw, "collection.default_count", default=25)
    if default_count > max_count:
        raise ConfigError(
            "Invalid value for 'collection.default_count': must not exceed 'collection.max_count'."
        )
    collection_config = CollectionConfig(
        default_count=default_count,
        max_count=max_count,
        sort_key=_expect_choice(
            collection_raw,
            "collection.sort_key",
            default=SortKey.LIKES.value,
            valid_values=VALID_SORT_KEYS,
        ),
        mode=_expect_choice(
            collection_raw,
            "collection.mode",
            default=CollectionMode.PRECISION.value,
            valid_values=VALID_MODES,
        ),
        variant=_expect_choice(
            collection_raw,
            "collection.variant",
            default=FeedVariant.MAIN_FEED.value,
            valid_values=VALID_VARIANTS,
        ),
        max_iterations=_expect_positive_int(collection_raw, "collection.max_iterations", default=60),
        stall_threshold=_expect_positive_int(collection_raw, "collection.stall_threshold", default=4),
        no_progress_threshold=_expect_positive_int(
            collection_raw, "collection.no_progress_threshold", default=8
        ),
    )

    storage_config = StorageConfig(
        db_path=_expect_string(storage_raw, "storage.db_path", default=""),
    )

    defaults = SelectorsConfig()
    selectors_config = SelectorsConfig(
        item=_expect_non_empty_string(selectors_raw, "selectors.item", defaults.item),
        id_attributes=_expect_string_list(
            selectors_raw, "selectors.id_attributes", default=defaults.id_attributes
        ),
        author=_expect_non_empty_string(selectors_raw, "selectors.author", defaults.author),
        text=_expect_non_empty_string(selectors_raw, "selectors.text", defaults.text),
        reactions=_expect_non_empty_string(selectors_raw, "selectors.reactions", defaults.reactions),
        comments=_expect_non_empty_string(selectors_raw, "selectors.comments", defaults.comments),
        reposts=_expect_non_empty_string(selectors_raw, "selectors.reposts", defaults.reposts),
        time=_expect_non_empty_string(selectors_raw, "selectors.time", defaults.time),
        promoted=_expect_non_empty_string(selectors_raw, "selectors.promoted", defaults.promoted),
        container=_expect_non_empty_string(selectors_raw, "selectors.container", defaults.container),
        load_more_button=_expect_non_empty_string(
            selectors_raw, "selectors.load_more_button", defaults.load_more_button
        ),
        load_more_texts=_expect_string_list(
            selectors_raw, "selectors.load_more_texts", default=defaults.load_more_texts
        ),
    )

    return RuntimeConfig(
        app=app_config,
        browser=browser_config,
        collection=collection_config,
        storage=storage_config,
        selectors=selectors_config,
    )


def _expect_table(data: dict[str, Any], key: str, default: dict[str, Any]) -> dict[str, Any]:
    value = data.get(key, default)
    if not isinstance(value, dict):
        raise ConfigError(f"Invalid [{key}] table: expected table, got {type(value).__name__}.")
    return value


def _expect_non_empty_string(
    data: dict[str, Any], key: str, default: str | None
) -> str:
    field = key.split(".")[-1]
    if field in data:
        value = data[field]
    else:
        if default is None:
            raise ConfigError(f"Missing required value '{key}'.")
        value = default

    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"Invalid value for '{key}': expected non-empty string.")
    return value


def _expect_string(data: dict[str, Any], key: str, default: str) -> str:
    field = key.split(".")[-1]
    value = data.get(field, default)
    if not isinstance(value, str):
        raise ConfigError(f"Invalid value for '{key}': expected string.")
    return value


def _expect_positive_int(data: dict[str, Any], key: str, default: int) -> int:
    field = key.split(".")[-1]
    value = data.get(field, default)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"Invalid value for '{key}': expected positive integer.")
    return value


def _expect_bool(data: dict[str, Any], key: str, default: bool) -> bool:
    field = key.split(".")[-1]
    value = data.get(field, default)
    if not isinstance(value, bool):
        raise ConfigError(f"Invalid value for '{key}': expected boolean true/false.")
    return value


def _expect_string_list(
    data: dict[str, Any], key: str, default: tuple[str, ...]
) -> tuple[str, ...]:
    field = key.split(".")[-1]
    value = data.get(field, list(default))
    if not isinstance(value, list) or not value:
        raise ConfigError(f"Invalid value for '{key}': expected non-empty array of strings.")
    if not all(isinstance(entry, str) and entry.strip() for entry in value):
        raise ConfigError(f"Invalid value for '{key}': every entry must be a non-empty string.")
    return tuple(value)


def _expect_choice(
    data: dict[str, Any],
    key: str,
    default: str | None,
    valid_values: set[str],
) -> str:
    field = key.split(".")[-1]
    if field in data:
        value = data[field]
    else:
        if default is None:
            raise ConfigError(f"Missing required value '{key}'.")
        value = default

    if not isinstance(value, str) or value not in valid_values:
        choices = ", ".join(sorted(valid_values))
        raise ConfigError(f"Invalid value for '{key}': expected one of [{choices}].")
    return value
