import math

import numpy as np

from config import NUMBER_OF_BANDS


def band_frequency_edges(sample_rate: int, number_of_bands: int = NUMBER_OF_BANDS) -> list[tuple[float, float]]:
    """(low_hz, high_hz) per octave band, bass first.

    Band i spans ``nyquist / 2**(n - i)`` to ``nyquist / 2**(n - 1 - i)``;
    the lowest band starts at 0 Hz and the highest ends at Nyquist.
    """
    nyquist = sample_rate / 2.0
    edges = []
    for i in range(number_of_bands):
        low = 0.0 if i == 0 else nyquist / 2.0 ** (number_of_bands - i)
        high = nyquist / 2.0 ** (number_of_bands - 1 - i)
        edges.append((low, high))
    return edges


def frequency_to_index(frequency: float, fft_size: int, sample_rate: int) -> int:
    """Map a frequency (Hz) to its spectrum bin."""
    bandwidth = 2.0 / fft_size * (sample_rate / 2.0)

    # below the bandwidth of bin 0
    if frequency < bandwidth / 2.0:
        return 0

    # within the bandwidth of the Nyquist bin
    if frequency > sample_rate / 2.0 - bandwidth / 2.0:
        return fft_size // 2

    return int(round(fft_size * (frequency / sample_rate)))


class BandReducer:
    """Reduces a magnitude spectrum to 12 octave-spaced band energies."""

    def __init__(self, fft_size: int, sample_rate: int, number_of_bands: int = NUMBER_OF_BANDS):
        self.fft_size = int(fft_size)
        self.sample_rate = int(sample_rate)
        self.number_of_bands = int(number_of_bands)

        # Bin ranges are fixed for the reducer's lifetime
        bounds = []
        for low_hz, high_hz in band_frequency_edges(self.sample_rate, self.number_of_bands):
            low_bin = frequency_to_index(math.floor(low_hz), self.fft_size, self.sample_rate)
            high_bin = frequency_to_index(math.floor(high_hz), self.fft_size, self.sample_rate)
            bounds.append((low_bin, high_bin))
        self.bin_bounds: tuple[tuple[int, int], ...] = tuple(bounds)
        self._energies = np.zeros(self.number_of_bands, dtype=np.float64)

    def reduce(self, spectrum: np.ndarray) -> np.ndarray:
        """Mean magnitude per band. Returns a new array each call."""
        for i, (low_bin, high_bin) in enumerate(self.bin_bounds):
            band = spectrum[low_bin:high_bin + 1]
            self._energies[i] = float(np.sum(band)) / max(1, high_bin - low_bin + 1)
        return self._energies.copy()
