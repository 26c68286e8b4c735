"""Sort, filter and trim helpers for fused items."""

from .dates import (
    DatePreset,
    DateRange,
    date_range_from_dates,
    date_range_from_preset,
    reached_date_boundary,
)
from .engine import (
    ENGAGEMENT_WEIGHTS,
    filter_by_date_range,
    metric_value,
    parse_sort_key,
    sort_and_trim,
    sort_items,
    trim,
)

__all__ = [
    "DatePreset",
    "DateRange",
    "ENGAGEMENT_WEIGHTS",
    "date_range_from_dates",
    "date_range_from_preset",
    "filter_by_date_range",
    "metric_value",
    "parse_sort_key",
    "reached_date_boundary",
    "sort_and_trim",
    "sort_items",
    "trim",
]
