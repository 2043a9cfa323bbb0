import time
from typing import Callable, Optional

from logging_utils import log_event


class TapTempo:
    """Running average of the interval between manual taps."""

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or time.monotonic
        self._last_tap: Optional[float] = None
        self._interval_sum_ms = 0.0
        self._entries = 0

    def tap(self) -> float:
        """Register a tap; returns the running average interval in ms."""
        now = self._clock()
        if self._last_tap is None:
            # first tap only arms the clock
            self._last_tap = now
            return 0.0

        delta_ms = (now - self._last_tap) * 1000.0
        self._last_tap = now
        self._interval_sum_ms += delta_ms
        self._entries += 1

        average = self.average_interval_ms
        log_event("DEBUG", "TapTempo", "Tap", average_ms=f"{average:.0f}", bpm=f"{self.bpm:.1f}")
        return average

    @property
    def average_interval_ms(self) -> float:
        if self._entries == 0:
            return 0.0
        return self._interval_sum_ms / self._entries

    @property
    def bpm(self) -> float:
        average = self.average_interval_ms
        return 60000.0 / average if average > 0 else 0.0

    def reset(self) -> None:
        self._last_tap = None
        self._interval_sum_ms = 0.0
        self._entries = 0
