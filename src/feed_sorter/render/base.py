"""Render collaborator contracts."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol

from feed_sorter.models import PostItem


@dataclass(frozen=True)
class RenderRequest:
    """Final ordering plus per-item display data for items the consumer cannot locate."""

    ordered_ids: tuple[str, ...]
    fallback_data: Mapping[str, PostItem] = field(default_factory=dict)

    def items(self) -> tuple[PostItem, ...]:
        return tuple(
            self.fallback_data[item_id] for item_id in self.ordered_ids if item_id in self.fallback_data
        )


@dataclass(frozen=True)
class RenderReport:
    success: bool
    applied_count: int
    message: str = ""


class FeedRenderer(Protocol):
    def apply(self, request: RenderRequest) -> RenderReport:
        """Re-render the feed in the requested order."""


def build_render_request(items: tuple[PostItem, ...]) -> RenderRequest:
    return RenderRequest(
        ordered_ids=tuple(item.item_id for item in items),
        fallback_data={item.item_id: item for item in items},
    )
