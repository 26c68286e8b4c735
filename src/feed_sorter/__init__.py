"""feed_sorter package: collect, fuse and rank social feed items."""

from .config import (
    AppConfig,
    BrowserConfig,
    CollectionConfig,
    RuntimeConfig,
    SelectorsConfig,
    StorageConfig,
    config_to_dict,
    default_config,
    init_default_config,
    load_runtime_config,
    resolve_config_path,
)
from .fusion import FusionStore
from .models import PostItem, SessionState, SortKey

__all__ = [
    "AppConfig",
    "BrowserConfig",
    "CollectionConfig",
    "FusionStore",
    "PostItem",
    "RuntimeConfig",
    "SelectorsConfig",
    "SessionState",
    "SortKey",
    "StorageConfig",
    "config_to_dict",
    "default_config",
    "init_default_config",
    "load_runtime_config",
    "resolve_config_path",
]

__version__ = "0.1.0"
