"""
beatpulse - Analysis Engine
Estimates tempo and emits beats from a stream of magnitude spectra.

Per tick: band reduction -> onset strength -> weighted autocorrelation ->
tempo -> DP score buffer -> global-max beat decision. The host supplies one
spectrum per fixed frame period and owns capture, FFT and playback.
"""

from dataclasses import dataclass
from typing import Callable, Optional
import time

import numpy as np

from beat_tracker import BeatTracker
from config import AnalysisConfig, validate_analysis_config
from frequency_utils import BandReducer
from logging_utils import log_event
from onset_detector import OnsetDetector


BeatListener = Callable[[], None]
SpectrumListener = Callable[[np.ndarray], None]


@dataclass(frozen=True)
class TickResult:
    """What one spectrum frame produced"""
    frame_index: int          # 0-based tick counter
    band_energies: np.ndarray # 12 octave band means, bass first
    onset: float              # Onset strength of this frame
    tempo: int                # Beat period in frames (0 = not converged)
    bpm: float                # Tempo in BPM (0.0 when tempo is 0)
    beat: bool                # True if a beat fired on this frame


class AnalysisEngine:
    """
    Owns every analysis buffer and advances them once per ``tick``.

    Not thread-safe: give each audio source its own engine.
    """

    def __init__(
        self,
        config: AnalysisConfig,
        on_beat: Optional[BeatListener] = None,
        on_spectrum: Optional[SpectrumListener] = None,
    ):
        validate_analysis_config(config)
        self.config = config
        self.fft_size = int(config.fft_size)
        self.frame_period = config.frame_period

        self.band_reducer = BandReducer(self.fft_size, int(config.sample_rate))
        self.onset_detector = OnsetDetector()
        self.beat_tracker = BeatTracker.from_config(config)

        self._beat_listeners: list[BeatListener] = []
        self._spectrum_listeners: list[SpectrumListener] = []
        if on_beat is not None:
            self.add_beat_listener(on_beat)
        if on_spectrum is not None:
            self.add_spectrum_listener(on_spectrum)

        self.frame_index = 0
        self.beat_count = 0
        self._locked = False

        self._reset_session_stats()

    def add_beat_listener(self, listener: BeatListener) -> None:
        self._beat_listeners.append(listener)

    def add_spectrum_listener(self, listener: SpectrumListener) -> None:
        self._spectrum_listeners.append(listener)

    @property
    def tempo(self) -> int:
        return self.beat_tracker.tempo

    @property
    def bpm(self) -> float:
        return self.beat_tracker.bpm

    def tick(self, spectrum) -> TickResult:
        """Process one spectrum frame."""
        frame = np.asarray(spectrum, dtype=np.float64)
        if frame.ndim != 1:
            raise ValueError(f"spectrum must be one-dimensional, got shape {frame.shape}")
        if frame.shape[0] != self.fft_size:
            raise ValueError(f"spectrum length {frame.shape[0]} does not match fft_size {self.fft_size}")

        band_energies = self.band_reducer.reduce(frame)
        for listener in self._spectrum_listeners:
            listener(band_energies)

        onset = self.onset_detector.update(band_energies)
        step = self.beat_tracker.process_onset(onset)
        bpm = self.beat_tracker.tempo_estimator.to_bpm(step.tempo)

        self._track_lock(step.tempo, bpm)
        if step.beat:
            self.beat_count += 1
            log_event("DEBUG", "Beat", "Beat", frame=self.frame_index, tempo=step.tempo, bpm=f"{bpm:.1f}")
            for listener in self._beat_listeners:
                listener()

        self._update_session_stats(onset, step.beat, bpm)
        result = TickResult(
            frame_index=self.frame_index,
            band_energies=band_energies,
            onset=onset,
            tempo=step.tempo,
            bpm=bpm,
            beat=step.beat,
        )
        self.frame_index += 1
        return result

    def _track_lock(self, tempo: int, bpm: float) -> None:
        if tempo > 0 and not self._locked:
            self._locked = True
            log_event("INFO", "Tempo", "Tempo lock", frame=self.frame_index, tempo=tempo, bpm=f"{bpm:.1f}")
        elif tempo == 0 and self._locked:
            self._locked = False
            log_event("INFO", "Tempo", "Tempo lost", frame=self.frame_index)

    def reset(self) -> None:
        """Clear all analysis state, keeping configuration and listeners."""
        self.onset_detector.reset()
        self.beat_tracker.reset()
        self.frame_index = 0
        self.beat_count = 0
        self._locked = False
        self._reset_session_stats()
        log_event("INFO", "Engine", "Reset")

    # ------------------------------------------------------------------
    # Session summary
    # ------------------------------------------------------------------

    def _reset_session_stats(self) -> None:
        self._session_started_at = time.time()
        self._session_frame_count = 0
        self._session_beat_count = 0
        self._session_onset_min: float | None = None
        self._session_onset_max: float | None = None
        self._session_onset_sum = 0.0
        self._session_last_bpm = 0.0

    def _update_session_stats(self, onset: float, beat: bool, bpm: float) -> None:
        self._session_frame_count += 1
        self._session_onset_sum += onset
        if beat:
            self._session_beat_count += 1
        if bpm > 0:
            self._session_last_bpm = bpm
        if self._session_onset_min is None or onset < self._session_onset_min:
            self._session_onset_min = onset
        if self._session_onset_max is None or onset > self._session_onset_max:
            self._session_onset_max = onset

    def session_summary(self) -> dict:
        frames = self._session_frame_count
        onset_min = float(self._session_onset_min or 0.0)
        onset_max = float(self._session_onset_max or 0.0)
        return {
            "frames": frames,
            "beats": self._session_beat_count,
            "seconds_of_audio": frames * self.frame_period,
            "onset_min": onset_min,
            "onset_max": onset_max,
            "onset_mean": self._session_onset_sum / frames if frames else 0.0,
            "last_bpm": self._session_last_bpm,
        }

    def log_summary(self) -> None:
        if self._session_frame_count <= 0:
            return

        summary = self.session_summary()
        elapsed_s = max(0.0, time.time() - self._session_started_at)
        log_event(
            "INFO",
            "Engine",
            "Session summary",
            frames=summary["frames"],
            beats=summary["beats"],
            audio_seconds=f"{summary['seconds_of_audio']:.1f}",
            wall_seconds=f"{elapsed_s:.1f}",
            onset_min=f"{summary['onset_min']:.4f}",
            onset_max=f"{summary['onset_max']:.4f}",
            onset_mean=f"{summary['onset_mean']:.4f}",
            last_bpm=f"{summary['last_bpm']:.1f}",
        )
