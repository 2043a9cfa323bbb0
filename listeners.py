from typing import Callable, Optional

import numpy as np

from logging_utils import log_event

# (direction, first band, last band) checked in order
DIRECTION_BANDS = (
    ("left", 0, 2),
    ("right", 3, 5),
    ("up", 6, 8),
    ("down", 9, 11),
)


class BeatDirectionListener:
    """Maps beats to a direction from the band energies that follow them.

    After an accepted beat the next spectrum picks the first band group
    with any band above ``threshold``: bass -> left, low-mid -> right,
    high-mid -> up, treble -> down. ``skip_beats`` beats are ignored
    between accepted ones.
    """

    def __init__(
        self,
        skip_beats: int = 0,
        threshold: float = 0.5,
        callback: Optional[Callable[[str], None]] = None,
    ):
        self.skip_beats = max(0, int(skip_beats))
        self.threshold = float(threshold)
        self.callback = callback
        self.last_direction: Optional[str] = None
        self._beat_pending = False
        self._skipped = 0

    @classmethod
    def from_config(cls, cfg, callback: Optional[Callable[[str], None]] = None) -> "BeatDirectionListener":
        return cls(cfg.direction_skip_beats, cfg.direction_threshold, callback)

    def attach(self, engine) -> None:
        engine.add_beat_listener(self.on_beat)
        engine.add_spectrum_listener(self.on_spectrum)

    def on_beat(self) -> None:
        if self._skipped < self.skip_beats:
            self._skipped += 1
            return
        self._beat_pending = True
        self._skipped = 0

    def on_spectrum(self, band_energies: np.ndarray) -> None:
        if not self._beat_pending:
            return
        self._beat_pending = False

        direction = classify_direction(band_energies, self.threshold)
        if direction is None:
            return
        self.last_direction = direction
        log_event("INFO", "Direction", direction)
        if self.callback is not None:
            self.callback(direction)


def classify_direction(band_energies: np.ndarray, threshold: float = 0.5) -> Optional[str]:
    """First band group with a band above threshold, or None."""
    energies = np.asarray(band_energies, dtype=np.float64)
    for name, first, last in DIRECTION_BANDS:
        if np.any(energies[first:last + 1] > threshold):
            return name
    return None
