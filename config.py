# beatpulse Configuration
# All default values and constants

import math
from dataclasses import dataclass, field, is_dataclass
from typing import Optional

from logging_utils import log_event


CURRENT_CONFIG_VERSION = 3

NUMBER_OF_BANDS = 12

LEGACY_TEMPO_OCTAVE_WIDTH = 1.4  # v2 default prior width


@dataclass
class AnalysisConfig:
    """Tempo/beat analysis parameters (fixed for an engine's lifetime)"""
    fft_size: int = 1024              # Spectrum frame length (bins per tick)
    sample_rate: int = 44100          # Sample rate of the analysed signal (Hz)
    sensitivity: float = 0.1          # Tempo-deviation penalty weight (x100 in the score recurrence)
    lag_horizon: int = 100            # Autocorrelation lags tracked (frames)
    decay: float = 0.997              # Autocorrelation forgetting factor (0-1, exclusive)
    score_history: int = 120          # Beat score history window (frames)
    tempo_octave_width: Optional[float] = None  # Std-dev of the log2 tempo prior (octaves); None = bin bandwidth
    tempo_center_bpm: float = 120.0   # Centre of the tempo prior (BPM)

    @property
    def frame_period(self) -> float:
        """Seconds covered by one spectrum frame."""
        return float(self.fft_size) / float(self.sample_rate)

    @property
    def bin_bandwidth(self) -> float:
        """Frequency span of one spectrum bin (Hz)."""
        return 2.0 / self.fft_size * (self.sample_rate / 2.0)

    @property
    def prior_width(self) -> float:
        """Tempo prior width actually used: the bin bandwidth unless overridden."""
        if self.tempo_octave_width is None:
            return self.bin_bandwidth
        return float(self.tempo_octave_width)


@dataclass
class ListenerConfig:
    """Settings for the bundled example listeners"""
    direction_skip_beats: int = 0     # Beats ignored between accepted direction beats
    direction_threshold: float = 0.5  # Band energy above this counts as active


@dataclass
class Config:
    """Master configuration"""
    version: int = CURRENT_CONFIG_VERSION  # Schema version for persisted configs
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    listeners: ListenerConfig = field(default_factory=ListenerConfig)
    log_level: str = "INFO"           # Logging level (DEBUG/INFO/WARNING/ERROR)


def validate_analysis_config(cfg: AnalysisConfig) -> None:
    """Raise ValueError if *cfg* cannot drive an analysis engine."""
    if int(cfg.fft_size) <= 0:
        raise ValueError(f"fft_size must be positive, got {cfg.fft_size}")
    if int(cfg.sample_rate) <= 0:
        raise ValueError(f"sample_rate must be positive, got {cfg.sample_rate}")
    if int(cfg.lag_horizon) < 2:
        raise ValueError(f"lag_horizon must be at least 2, got {cfg.lag_horizon}")
    if int(cfg.score_history) < 2:
        raise ValueError(f"score_history must be at least 2, got {cfg.score_history}")
    if not 0.0 < float(cfg.decay) < 1.0:
        raise ValueError(f"decay must lie in (0, 1), got {cfg.decay}")
    if not math.isfinite(float(cfg.sensitivity)) or float(cfg.sensitivity) < 0.0:
        raise ValueError(f"sensitivity must be a finite value >= 0, got {cfg.sensitivity}")
    if not cfg.prior_width > 0.0:
        raise ValueError(f"tempo_octave_width must be positive, got {cfg.tempo_octave_width}")
    if not float(cfg.tempo_center_bpm) > 0.0:
        raise ValueError(f"tempo_center_bpm must be positive, got {cfg.tempo_center_bpm}")


def apply_dict_to_dataclass(target, data) -> None:
    """Recursively apply values from a dict onto a dataclass instance.
    Unknown keys are ignored."""
    if not isinstance(data, dict):
        return

    for key, value in data.items():
        if not hasattr(target, key):
            continue

        current = getattr(target, key)

        if is_dataclass(current):
            if isinstance(value, dict):
                apply_dict_to_dataclass(current, value)
            else:
                log_event("WARNING", "Config", "Ignoring non-object value for section", key=key)
            continue

        setattr(target, key, value)


def migrate_config(config: Config, loaded_version) -> None:
    """Upgrade older config structures to the current schema.
    Restores defaults for missing/None fields and bumps version."""
    try:
        version = int(loaded_version) if loaded_version is not None else 0
    except (TypeError, ValueError):
        version = 0

    defaults = AnalysisConfig()
    if version < 3:
        # v2 persisted a fixed 1.4-octave prior; v3 follows the bin bandwidth
        if config.analysis.tempo_octave_width == LEGACY_TEMPO_OCTAVE_WIDTH:
            config.analysis.tempo_octave_width = None

    # tempo_octave_width may legitimately be None
    for name in ('fft_size', 'sample_rate', 'sensitivity', 'lag_horizon',
                 'decay', 'score_history', 'tempo_center_bpm'):
        if getattr(config.analysis, name, None) is None:
            setattr(config.analysis, name, getattr(defaults, name))

    listener_defaults = ListenerConfig()
    if getattr(config.listeners, 'direction_skip_beats', None) is None:
        config.listeners.direction_skip_beats = listener_defaults.direction_skip_beats
    if getattr(config.listeners, 'direction_threshold', None) is None:
        config.listeners.direction_threshold = listener_defaults.direction_threshold

    log_level = getattr(config, 'log_level', None)
    if not isinstance(log_level, str) or not log_level.strip():
        config.log_level = "INFO"

    # Always clamp sensitivity to a non-negative penalty
    try:
        sensitivity = float(config.analysis.sensitivity)
    except (TypeError, ValueError):
        sensitivity = defaults.sensitivity
    config.analysis.sensitivity = max(0.0, sensitivity)

    try:
        skip = int(config.listeners.direction_skip_beats)
    except (TypeError, ValueError):
        skip = listener_defaults.direction_skip_beats
    config.listeners.direction_skip_beats = max(0, skip)

    config.version = CURRENT_CONFIG_VERSION

