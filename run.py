#!/usr/bin/env python3
"""
beatpulse - Tempo and beat tracking over magnitude spectra

Feeds a file of pre-computed spectrum frames (numpy .npy, shape
(n_frames, fft_size)) through the analysis engine and logs each beat.
"""

import argparse
import cProfile
import sys
from pathlib import Path

import numpy as np

from analysis_engine import AnalysisEngine
from config import Config, validate_analysis_config
from config_persistence import get_config_file, load_config
from listeners import BeatDirectionListener
from logging_utils import log_event, set_log_level


def load_frames(path: Path, fft_size: int) -> np.ndarray:
    frames = np.load(path, allow_pickle=False)
    if frames.ndim != 2:
        raise ValueError(f"expected a 2-D array of frames, got shape {frames.shape}")
    if frames.shape[1] != fft_size:
        raise ValueError(f"frames have {frames.shape[1]} bins, config expects fft_size={fft_size}")
    return frames


def analyze(frames: np.ndarray, config: Config, with_directions: bool = False) -> AnalysisEngine:
    engine = AnalysisEngine(config.analysis)

    def on_beat() -> None:
        log_event("INFO", "Beat", "Beat", frame=engine.frame_index, bpm=f"{engine.bpm:.1f}")

    engine.add_beat_listener(on_beat)
    if with_directions:
        BeatDirectionListener.from_config(config.listeners).attach(engine)

    for frame in frames:
        engine.tick(frame)
    engine.log_summary()
    return engine


def run_cli(args: argparse.Namespace) -> int:
    config_path = Path(args.config) if args.config else get_config_file()
    config = load_config(config_path)
    set_log_level(args.log_level or config.log_level)

    try:
        validate_analysis_config(config.analysis)
    except (TypeError, ValueError) as e:
        log_event("ERROR", "CLI", "Invalid analysis configuration", error=e)
        return 2

    try:
        frames = load_frames(Path(args.frames), int(config.analysis.fft_size))
    except (OSError, ValueError) as e:
        log_event("ERROR", "CLI", "Could not load frames", path=args.frames, error=e)
        return 1

    log_event("INFO", "CLI", "Analysing", frames=len(frames), fft_size=config.analysis.fft_size,
              sample_rate=config.analysis.sample_rate)
    analyze(frames, config, with_directions=args.directions)
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Run beatpulse over pre-computed spectrum frames")
    parser.add_argument("frames", help="Path to a .npy array of shape (n_frames, fft_size)")
    parser.add_argument("--config", default=None, help="Path to a JSON config (default: ~/.beatpulse/config.json)")
    parser.add_argument("--log-level", default=None, help="Override log level (DEBUG/INFO/WARNING/ERROR)")
    parser.add_argument("--directions", action="store_true", help="Log a beat direction after every beat")
    parser.add_argument(
        "--profile",
        action="store_true",
        help="Enable cProfile and save stats to --profile-out",
    )
    parser.add_argument(
        "--profile-out",
        default="profile.prof",
        help="Path to save cProfile stats (default: profile.prof)",
    )
    args = parser.parse_args()

    if args.profile:
        profiler = cProfile.Profile()
        profiler.enable()
        exit_code = run_cli(args)
        profiler.disable()
        profiler.dump_stats(args.profile_out)
    else:
        exit_code = run_cli(args)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
