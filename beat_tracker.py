"""
Beat phase selection.

BeatScoreTracker runs the dynamic-programming recurrence over a circular
score history: the score of "a beat now" is the current onset plus the best
score roughly one tempo period ago, minus a log-distance penalty from the
estimated period. BeatDecider fires when the current frame holds the global
best score, gated by a refractory period of a quarter tempo.
"""

from dataclasses import dataclass

import numpy as np

from autocorrelation import AutoCorrelationTracker, TempoEstimator
from ring_buffer import RingBuffer


class BeatScoreTracker:
    """Circular beat-likelihood scores, renormalized to a zero minimum."""

    def __init__(self, history: int, sensitivity: float):
        self.history = int(history)
        self.sensitivity = float(sensitivity)
        self.scores = RingBuffer(self.history)

    @property
    def cursor(self) -> int:
        return self.scores.head

    @property
    def penalty_weight(self) -> float:
        return 100.0 * self.sensitivity

    def update(self, tempo: int, onset: float) -> bool:
        """Write the score for the current frame.

        Returns False when the tempo is 0: the frame then carries the buffer
        floor and there is not enough signal to decide a beat.
        """
        if tempo <= 0:
            self.scores.write(self.scores.min())
            self._renormalize()
            return False

        start = max(1, tempo // 2)
        stop = min(self.history, 2 * tempo)
        if start >= stop:
            self.scores.write(self.scores.min())
            self._renormalize()
            return False

        offsets = np.arange(start, stop, dtype=np.int64)
        penalties = self.penalty_weight * np.log(offsets / float(tempo)) ** 2
        candidates = onset + self.scores.read_many(offsets) - penalties
        self.scores.write(float(np.max(candidates)))
        self._renormalize()
        return True

    def _renormalize(self) -> None:
        self.scores.subtract(self.scores.min())

    def reset(self) -> None:
        self.scores.reset()


class BeatDecider:
    """Global-max beat decision with a tempo/4 refractory gate."""

    def __init__(self, score_tracker: BeatScoreTracker):
        self.score_tracker = score_tracker
        self.frames_since_beat = 0

    def decide(self, tempo: int, has_signal: bool = True) -> bool:
        """Judge the current frame, then advance the score cursor."""
        scores = self.score_tracker.scores
        best_index, _ = scores.argmax()

        self.frames_since_beat += 1
        beat = False
        if has_signal and tempo > 0 and best_index == scores.head:
            if self.frames_since_beat > tempo // 4:
                beat = True
                self.frames_since_beat = 0

        scores.advance()
        return beat

    def reset(self) -> None:
        self.frames_since_beat = 0


@dataclass(frozen=True)
class BeatStep:
    """Outcome of feeding one onset value"""
    tempo: int
    beat: bool
    has_signal: bool


class BeatTracker:
    """
    Tempo and beat stages driven by a scalar onset signal.

    Owns the autocorrelation tracker, tempo estimator, score tracker and
    decider, and advances them in that order once per frame.
    """

    def __init__(
        self,
        lag_horizon: int = 100,
        decay: float = 0.997,
        frame_period: float = 1024 / 44100,
        octave_width: float = 44100 / 1024,
        center_bpm: float = 120.0,
        score_history: int = 120,
        sensitivity: float = 0.1,
    ):
        self.correlator = AutoCorrelationTracker(lag_horizon, decay, frame_period, octave_width, center_bpm)
        self.tempo_estimator = TempoEstimator(self.correlator)
        self.score_tracker = BeatScoreTracker(score_history, sensitivity)
        self.decider = BeatDecider(self.score_tracker)
        self.onsets = RingBuffer(score_history)

    @classmethod
    def from_config(cls, cfg) -> "BeatTracker":
        return cls(
            lag_horizon=cfg.lag_horizon,
            decay=cfg.decay,
            frame_period=cfg.frame_period,
            octave_width=cfg.prior_width,
            center_bpm=cfg.tempo_center_bpm,
            score_history=cfg.score_history,
            sensitivity=cfg.sensitivity,
        )

    @property
    def tempo(self) -> int:
        return self.tempo_estimator.tempo

    @property
    def bpm(self) -> float:
        return self.tempo_estimator.to_bpm(self.tempo_estimator.tempo)

    def process_onset(self, onset: float) -> BeatStep:
        onset = float(onset)
        # onset history shares the score cursor
        self.onsets.write(onset)
        self.correlator.push(onset)
        tempo = self.tempo_estimator.estimate()
        has_signal = self.score_tracker.update(tempo, self.onsets.read(0))
        beat = self.decider.decide(tempo, has_signal)
        self.onsets.advance()
        return BeatStep(tempo=tempo, beat=beat, has_signal=has_signal)

    def reset(self) -> None:
        self.correlator.reset()
        self.tempo_estimator.reset()
        self.score_tracker.reset()
        self.decider.reset()
        self.onsets.reset()
