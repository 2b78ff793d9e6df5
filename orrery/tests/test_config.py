import dataclasses
import unittest
from pathlib import Path

from orrery.config import (
    DEFAULT_FPS,
    OrreryConfig,
    make_config,
    snap_time_scale,
)


class TestConfig(unittest.TestCase):

    def test_defaults(self):
        config = make_config()
        self.assertEqual(config, OrreryConfig())
        self.assertEqual(config.fps, DEFAULT_FPS)
        self.assertEqual(config.music_volume, 0.25)
        self.assertEqual(config.tour_time_scale, 0.2)
        self.assertIsNone(config.catalog_path)
        self.assertAlmostEqual(config.frame_interval_s, 1.0 / DEFAULT_FPS)

    def test_normalization(self):
        config = make_config(fps=0, time_scale=3.3, music_volume=2.0, narration_volume=-1.0,
                             clip_duration_s=-5.0, catalog_path='bodies.csv')
        self.assertEqual(config.fps, DEFAULT_FPS)
        self.assertEqual(config.time_scale, 3.5)
        self.assertEqual(config.music_volume, 1.0)
        self.assertEqual(config.narration_volume, 0.0)
        self.assertGreater(config.clip_duration_s, 0.0)
        self.assertEqual(config.catalog_path, Path('bodies.csv'))

    def test_snap_time_scale(self):
        self.assertEqual(snap_time_scale(10.0), 5.0)
        self.assertEqual(snap_time_scale(-1.0), 0.0)
        self.assertEqual(snap_time_scale(0.74), 0.5)
        self.assertEqual(snap_time_scale(0.76), 1.0)

    def test_config_is_frozen(self):
        with self.assertRaises(dataclasses.FrozenInstanceError):
            OrreryConfig().fps = 60


if __name__ == '__main__':
    unittest.main()
