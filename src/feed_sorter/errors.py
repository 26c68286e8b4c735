"""Error taxonomy for stable module boundaries."""


class FeedSorterError(Exception):
    """Base exception for feed-sorter."""


class ConfigError(FeedSorterError):
    """Raised when configuration is invalid or missing."""


class BrowserError(FeedSorterError):
    """Raised for browser/session management failures."""


class CollectError(FeedSorterError):
    """Raised for collection lifecycle failures."""


class ExtractError(FeedSorterError):
    """Raised when a channel payload cannot be parsed into observations."""


class FusionError(FeedSorterError):
    """Raised when records cannot be merged into the fused set."""


class SessionError(FeedSorterError):
    """Raised for invalid collection session transitions or configuration."""


class SortError(FeedSorterError):
    """Raised for invalid sort keys or date ranges."""


class StoreError(FeedSorterError):
    """Raised for session/item persistence failures."""


class RenderError(FeedSorterError):
    """Raised when rendering output fails."""


class DiagnosticsError(FeedSorterError):
    """Raised for debug event schema failures."""
