"""Test-only utilities for deterministic controller assertions."""

from .time_control import SleepRecorder, fixed_now

__all__ = [
    "SleepRecorder",
    "fixed_now",
]
