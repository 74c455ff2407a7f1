"""
Opt-in timing of the scanner, parser and serializer sections.

Collection starts switched on when ``SJZON_PROFILE`` is set in the
environment (and Python is not running with ``-O``); ``set_profiling`` flips
it at runtime. Switched off, a section costs one attribute check.
"""

import os
import time
from dataclasses import dataclass
from typing import Any

_enabled = __debug__ and "SJZON_PROFILE" in os.environ


@dataclass
class HotPathStats:
    """Accumulated timings of one named section."""

    function_name: str
    call_count: int = 0
    total_time_ns: int = 0
    chars_processed: int = 0

    def record_call(self, duration_ns: int, chars: int = 0) -> None:
        self.call_count += 1
        self.total_time_ns += duration_ns
        self.chars_processed += chars

    @property
    def mean_time_ns(self) -> float:
        return self.total_time_ns / self.call_count if self.call_count else 0.0


_hot_path_stats: dict[str, HotPathStats] = {}


class ProfileContext:
    """
    Times the enclosed block under ``section`` when profiling is enabled.

    ``chars`` is the amount of input the block is responsible for, so the
    summary can report throughput for whole-document sections.
    """

    __slots__ = ("section", "chars", "_start")

    def __init__(self, section: str, chars: int = 0) -> None:
        self.section = section
        self.chars = chars
        self._start = 0

    def __enter__(self) -> "ProfileContext":
        if _enabled:
            self._start = time.perf_counter_ns()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if not _enabled or not self._start:
            return
        duration = time.perf_counter_ns() - self._start
        stats = _hot_path_stats.get(self.section)
        if stats is None:
            stats = _hot_path_stats[self.section] = HotPathStats(self.section)
        stats.record_call(duration, self.chars)


def set_profiling(enabled: bool) -> None:
    """Switches collection on or off; gathered statistics are kept."""
    global _enabled
    _enabled = enabled


def get_hot_path_stats() -> dict[str, HotPathStats]:
    """Snapshot of the statistics gathered so far, keyed by section."""
    return dict(_hot_path_stats)


def clear_hot_path_stats() -> None:
    _hot_path_stats.clear()
