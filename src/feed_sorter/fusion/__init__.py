"""Cross-channel observation fusion."""

from .channels import (
    ingest_scraped,
    ingest_structured_payload,
    merge_scraped_items,
)
from .store import FusionReport, FusionStore

__all__ = [
    "FusionReport",
    "FusionStore",
    "ingest_scraped",
    "ingest_structured_payload",
    "merge_scraped_items",
]
