"""Observation parsing and normalization."""

from .normalize import (
    NormalizationResult,
    normalize_observation,
    normalize_observations,
)
from .scrape import parse_count, parse_relative_timestamp, scraped_observation_from_mapping
from .structured import StructuredParseResult, parse_feed_payload

__all__ = [
    "NormalizationResult",
    "StructuredParseResult",
    "normalize_observation",
    "normalize_observations",
    "parse_count",
    "parse_feed_payload",
    "parse_relative_timestamp",
    "scraped_observation_from_mapping",
]
