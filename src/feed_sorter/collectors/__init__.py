"""Collection loop and feed source contracts."""

from .base import CollectionOutcome, CollectionStats, FeedSource
from .controller import (
    MAIN_FEED_BOUNDS,
    PROFILE_FEED_BOUNDS,
    CollectionController,
    ControllerSession,
    ScrollBounds,
    bounds_for_variant,
)

__all__ = [
    "CollectionController",
    "CollectionOutcome",
    "CollectionStats",
    "ControllerSession",
    "FeedSource",
    "MAIN_FEED_BOUNDS",
    "PROFILE_FEED_BOUNDS",
    "ScrollBounds",
    "bounds_for_variant",
]
