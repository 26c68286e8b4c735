"""Live browser adapters for feed collection."""

from .interceptor import (
    FEED_RESPONSE_RE,
    FeedResponseInterceptor,
    InterceptorStats,
    install_feed_interceptor,
    is_feed_response,
)
from .login import (
    DEFAULT_LOGIN_URL,
    existing_storage_state,
    login_and_save_storage_state,
    resolve_storage_state_path,
)
from .page_source import PageFeedSource, detect_variant
from .session import (
    BrowserPage,
    BrowserSessionOptions,
    PlaywrightBrowserSession,
)

__all__ = [
    "DEFAULT_LOGIN_URL",
    "FEED_RESPONSE_RE",
    "BrowserPage",
    "BrowserSessionOptions",
    "FeedResponseInterceptor",
    "InterceptorStats",
    "PageFeedSource",
    "PlaywrightBrowserSession",
    "detect_variant",
    "existing_storage_state",
    "install_feed_interceptor",
    "is_feed_response",
    "login_and_save_storage_state",
    "resolve_storage_state_path",
]
