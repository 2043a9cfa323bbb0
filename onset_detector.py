from typing import Optional

import numpy as np

DB_FLOOR = -100.0
DB_OFFSET = 160.0
DB_SCALE = 0.025


def compress_band_energies(band_energies: np.ndarray) -> np.ndarray:
    """Clamped, scaled log energy per band.

    Zero (or negative) energy lands on the floor instead of -inf.
    """
    energies = np.asarray(band_energies, dtype=np.float64)
    with np.errstate(divide='ignore', invalid='ignore'):
        db = 20.0 * np.log10(energies) + DB_OFFSET
    db = np.where(np.isnan(db), DB_FLOOR, db)
    return np.maximum(DB_FLOOR, db) * DB_SCALE


class OnsetDetector:
    """
    Onset strength from successive band-energy vectors.

    The onset of a frame is the summed per-band change of the compressed
    log energy against the previous frame. Drops count negatively. The first
    frame after construction or ``reset()`` only primes the previous state
    and yields 0.0.
    """

    def __init__(self):
        self._previous: Optional[np.ndarray] = None

    @property
    def primed(self) -> bool:
        return self._previous is not None

    def update(self, band_energies: np.ndarray) -> float:
        current = compress_band_energies(band_energies)
        if self._previous is None or len(self._previous) != len(current):
            self._previous = current
            return 0.0

        onset = float(np.sum(current - self._previous))
        self._previous = current
        return onset

    def reset(self) -> None:
        self._previous = None
