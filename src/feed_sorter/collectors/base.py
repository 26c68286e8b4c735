"""Collection interfaces for scrolling feed sources."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from feed_sorter.models import RawObservation


class FeedSource(Protocol):
    def advance(self, step_hint: int | None) -> None:
        """Reveal more content; ``None`` jumps to the end of the container."""

    def scan(self) -> Iterable[RawObservation]:
        """Return observations for the items currently visible."""

    def try_load_more(self) -> bool:
        """Trigger an explicit load-more control if one is available."""

    def at_end(self) -> bool:
        """Report whether the viewport sits at the end of the content."""

    def container_size(self) -> int:
        """Return the current size of the scrollable content container."""

    def rewind(self) -> None:
        """Jump back to the start of the content."""


@dataclass(frozen=True)
class CollectionStats:
    iterations: int
    scans: int
    found_ids: int
    fused_count: int
    stall_rounds: int
    no_progress_rounds: int
    load_more_attempts: int
    looped_back: bool
    stop_reason: str


@dataclass(frozen=True)
class CollectionOutcome:
    found_ids: tuple[str, ...]
    fused_count: int
    needed: int | None
    stats: CollectionStats

    @property
    def stop_reason(self) -> str:
        return self.stats.stop_reason

    @property
    def target_reached(self) -> bool:
        return self.needed is not None and self.fused_count >= self.needed

    @property
    def partial(self) -> bool:
        return self.needed is not None and self.fused_count < self.needed
