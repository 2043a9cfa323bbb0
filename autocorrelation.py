"""
Online autocorrelation of the onset signal and tempo selection.

The tracker keeps an exponentially-forgetting autocorrelation per lag and
weights it with a Gaussian prior on a log2-BPM axis, so that the zero lag
(self-correlation) and implausible tempos do not win the argmax.
"""

import numpy as np

from ring_buffer import RingBuffer


class AutoCorrelationTracker:
    """Running weighted autocorrelation over a delay line of onset values."""

    def __init__(
        self,
        lag_horizon: int,
        decay: float,
        frame_period: float,
        octave_width: float,
        center_bpm: float = 120.0,
    ):
        self.lag_horizon = int(lag_horizon)
        self.decay = float(decay)
        self.frame_period = float(frame_period)
        self.octave_width = float(octave_width)
        self.center_bpm = float(center_bpm)

        self._delays = RingBuffer(self.lag_horizon)
        self._outputs = np.zeros(self.lag_horizon, dtype=np.float64)
        self._lags = np.arange(self.lag_horizon, dtype=np.int64)

        # Lag 0 is infinite BPM; its weight collapses to exactly 0
        with np.errstate(divide='ignore', invalid='ignore'):
            bpms = 60.0 / (self.frame_period * self._lags.astype(np.float64))
            octaves = np.log2(bpms / self.center_bpm) / self.octave_width
            weights = np.exp(-0.5 * octaves ** 2)
        weights = np.where(np.isfinite(weights), weights, 0.0)

        bpms.flags.writeable = False
        weights.flags.writeable = False
        self.candidate_bpms: np.ndarray = bpms
        self.weights: np.ndarray = weights

    def push(self, onset: float) -> None:
        """Feed one onset value and update every lag's running average."""
        self._delays.write(onset)
        current = self._delays.read(0)
        products = current * self._delays.read_many(self._lags)
        self._outputs += (1.0 - self.decay) * (products - self._outputs)
        self._delays.advance()

    def correlation(self, lag: int) -> float:
        """Unweighted running autocorrelation at ``lag``."""
        return float(self._outputs[lag])

    def weighted_correlation(self, lag: int) -> float:
        return float(self.weights[lag] * self._outputs[lag])

    def weighted_correlations(self) -> np.ndarray:
        return self.weights * self._outputs

    def mean_candidate_bpm(self) -> float:
        """Mean of the finite candidate tempos (lag 0 excluded)."""
        finite = self.candidate_bpms[np.isfinite(self.candidate_bpms)]
        if len(finite) == 0:
            return 0.0
        return float(np.mean(finite))

    def reset(self) -> None:
        self._delays.reset()
        self._outputs.fill(0.0)


class TempoEstimator:
    """Picks the lag with the strongest weighted autocorrelation."""

    def __init__(self, tracker: AutoCorrelationTracker):
        self.tracker = tracker
        self.tempo = 0

    def estimate(self) -> int:
        """Current tempo in frames; 0 while no lag correlates positively."""
        weighted = self.tracker.weighted_correlations()
        # sqrt of a non-positive correlation is never a candidate
        strength = np.sqrt(np.maximum(weighted, 0.0))
        lag = int(np.argmax(strength))
        self.tempo = lag if strength[lag] > 0.0 else 0
        return self.tempo

    def to_bpm(self, tempo: int) -> float:
        if tempo <= 0:
            return 0.0
        return 60.0 / (self.tracker.frame_period * tempo)

    def reset(self) -> None:
        self.tempo = 0
