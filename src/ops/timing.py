"""
Latency timers for pipeline stages.

Durations are in milliseconds. The smoothed value is an exponential moving
average with weight 0.1 on the newest call.
"""

from __future__ import annotations

import time
from typing import Dict, Optional

SMOOTHING_ALPHA = 0.1


class CallStat:
    """Call count, total and smoothed duration of one named stage."""

    def __init__(self):
        self.number_of_calls = 0
        self._total_duration = 0.0
        self.last_call_duration = 0.0
        self._smoothed_duration = -1.0
        self._last_call_start: Optional[float] = None

    @property
    def smoothed_duration(self) -> float:
        # Before the first finished call, report the time spent in the running one.
        if self._smoothed_duration < 0:
            if self._last_call_start is None:
                return 0.0
            return (time.perf_counter() - self._last_call_start) * 1000.0
        return self._smoothed_duration

    @property
    def total_duration(self) -> float:
        return self._total_duration

    def set_start_time(self) -> None:
        self._last_call_start = time.perf_counter()

    def calculate_duration(self) -> None:
        if self._last_call_start is None:
            raise RuntimeError("calculate_duration() called before set_start_time()")
        now = time.perf_counter()
        self.last_call_duration = (now - self._last_call_start) * 1000.0
        self.number_of_calls += 1
        self._total_duration += self.last_call_duration
        if self._smoothed_duration < 0:
            self._smoothed_duration = self.last_call_duration
        self._smoothed_duration = (
            self._smoothed_duration * (1.0 - SMOOTHING_ALPHA)
            + self.last_call_duration * SMOOTHING_ALPHA
        )

    def fps(self) -> float:
        """Throughput implied by the smoothed duration (0 when unknown)."""
        duration = self.smoothed_duration
        return 1000.0 / duration if duration > 0 else 0.0


class Timer:
    """
    A set of named CallStats.

    Example:
        timer = Timer()
        timer.start("detection")
        ...
        timer.finish("detection")
        print(timer["detection"].smoothed_duration)
    """

    def __init__(self):
        self._timers: Dict[str, CallStat] = {}

    def start(self, name: str) -> None:
        if name not in self._timers:
            self._timers[name] = CallStat()
        self._timers[name].set_start_time()

    def finish(self, name: str) -> None:
        self[name].calculate_duration()

    def __getitem__(self, name: str) -> CallStat:
        if name not in self._timers:
            raise KeyError(f"No timer with name {name}.")
        return self._timers[name]

    def __contains__(self, name: str) -> bool:
        return name in self._timers

    def snapshot(self) -> Dict[str, Dict[str, float]]:
        """Return a plain-dict view of every timer for status reporting."""
        return {
            name: {
                "smoothed_ms": stat.smoothed_duration,
                "last_ms": stat.last_call_duration,
                "total_ms": stat.total_duration,
                "calls": stat.number_of_calls,
            }
            for name, stat in self._timers.items()
        }
