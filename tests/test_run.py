import argparse
import tempfile
import unittest
from pathlib import Path
from unittest import mock

import numpy as np

from config import Config
import config_persistence
import run


def _args(frames: Path, config: Path, **overrides) -> argparse.Namespace:
    values = dict(frames=str(frames), config=str(config), log_level="WARNING", directions=False)
    values.update(overrides)
    return argparse.Namespace(**values)


class TestRunCli(unittest.TestCase):
    def test_analyze_counts_beats(self):
        cfg = Config()
        fft_size = cfg.analysis.fft_size
        frames = np.zeros((300, fft_size))
        frames[5::20] = 1.0
        with mock.patch("run.log_event"), mock.patch("analysis_engine.log_event"):
            engine = run.analyze(frames, cfg, with_directions=True)
        self.assertEqual(engine.frame_index, 300)
        self.assertGreater(engine.beat_count, 0)
        self.assertEqual(engine.tempo, 20)

    def test_run_cli_success(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            tmp = Path(tmpdir)
            cfg = Config()
            cfg.analysis.fft_size = 256
            config_file = tmp / "config.json"
            config_persistence.save_config(cfg, config_file)

            frames_file = tmp / "frames.npy"
            np.save(frames_file, np.zeros((50, 256)))

            self.assertEqual(run.run_cli(_args(frames_file, config_file)), 0)

    def test_run_cli_rejects_mismatched_frames(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            tmp = Path(tmpdir)
            config_file = tmp / "config.json"
            config_persistence.save_config(Config(), config_file)

            frames_file = tmp / "frames.npy"
            np.save(frames_file, np.zeros((10, 100)))

            self.assertEqual(run.run_cli(_args(frames_file, config_file)), 1)

    def test_run_cli_missing_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            tmp = Path(tmpdir)
            config_file = tmp / "config.json"
            config_persistence.save_config(Config(), config_file)
            self.assertEqual(run.run_cli(_args(tmp / "nope.npy", config_file)), 1)

    def test_run_cli_invalid_analysis_config(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            tmp = Path(tmpdir)
            cfg = Config()
            cfg.analysis.fft_size = 64
            cfg.analysis.decay = 1.5
            config_file = tmp / "config.json"
            config_persistence.save_config(cfg, config_file)

            frames_file = tmp / "frames.npy"
            np.save(frames_file, np.zeros((5, 64)))

            self.assertEqual(run.run_cli(_args(frames_file, config_file)), 2)

    def test_run_cli_non_string_log_level(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            tmp = Path(tmpdir)
            cfg = Config()
            cfg.analysis.fft_size = 256
            cfg.log_level = 10
            config_file = tmp / "config.json"
            config_persistence.save_config(cfg, config_file)

            frames_file = tmp / "frames.npy"
            np.save(frames_file, np.zeros((20, 256)))

            self.assertEqual(run.run_cli(_args(frames_file, config_file, log_level=None)), 0)

    def test_run_cli_does_not_mask_analysis_errors(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            tmp = Path(tmpdir)
            cfg = Config()
            cfg.analysis.fft_size = 256
            config_file = tmp / "config.json"
            config_persistence.save_config(cfg, config_file)

            frames_file = tmp / "frames.npy"
            np.save(frames_file, np.zeros((5, 256)))

            with mock.patch("run.analyze", side_effect=ValueError("listener failed")):
                with self.assertRaises(ValueError):
                    run.run_cli(_args(frames_file, config_file))

    def test_load_frames_requires_2d(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            frames_file = Path(tmpdir) / "frames.npy"
            np.save(frames_file, np.zeros(256))
            with self.assertRaises(ValueError):
                run.load_frames(frames_file, 256)


if __name__ == "__main__":
    unittest.main()
