"""Clock and sleep stand-ins so collection loops run instantly under test."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

NowFn = Callable[[], datetime]


def fixed_now(moment: datetime) -> NowFn:
    """Clock pinned to ``moment``; relative post times resolve against it."""
    if moment.tzinfo is None:
        raise ValueError("fixed_now needs a datetime with tzinfo; relative post times are resolved in UTC.")
    return lambda: moment


class SleepRecorder:
    """Replaces ``time.sleep`` in the controller and keeps every settle or load-more wait."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(float(seconds))

    @property
    def total(self) -> float:
        return sum(self.calls)
