"""Headless checks of the matplotlib preview"""
import math
import tempfile
import unittest
from pathlib import Path

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402
from matplotlib.backend_bases import KeyEvent  # noqa: E402
from numpy.testing import assert_allclose  # noqa: E402

from orrery import Orrery, bodies_data  # noqa: E402
from orrery.anim import animate, camera_view, create_animation, MIN_VIEW_HALF_WIDTH  # noqa: E402
from orrery.camera import CameraState  # noqa: E402
from orrery.config import OrreryConfig  # noqa: E402
from orrery.tour import ManualClock, SimulatedAudioBackend  # noqa: E402


def make_orrery():
    clock = ManualClock()
    return Orrery(OrreryConfig(), bodies=bodies_data, clock=clock, audio=SimulatedAudioBackend(clock))


class TestCameraView(unittest.TestCase):

    def test_view_from_above(self):
        camera = CameraState(position=np.array([0.0, 3.0, 0.0]), target=np.zeros(3))
        elev, _, half_width = camera_view(camera)
        assert_allclose(elev, 90.0)
        assert_allclose(half_width, 1.8)

    def test_view_along_render_z(self):
        camera = CameraState(position=np.array([1.0, 0.0, 1.0]), target=np.array([1.0, 0.0, 0.0]))
        elev, azim, _ = camera_view(camera)
        assert_allclose(elev, 0.0)
        assert_allclose(azim, 90.0)

    def test_half_width_has_a_floor(self):
        camera = CameraState(position=np.zeros(3), target=np.zeros(3))
        self.assertEqual(camera_view(camera)[2], MIN_VIEW_HALF_WIDTH)


class TestAnimation(unittest.TestCase):

    def tearDown(self):
        plt.close('all')

    def test_frames_tick_the_orrery(self):
        orrery = make_orrery()
        orrery.controls.select_body('earth')
        fig, anim = create_animation(orrery, n_frames=5, orbit_segments=16)
        ax = fig.axes[0]

        for frame in range(5):
            anim._func(frame)
        fig.canvas.draw()

        self.assertEqual(orrery.frame, 5)
        self.assertGreater(orrery.simulation.elapsed_years, 0.0)
        elev, azim, _ = camera_view(orrery.camera)
        assert_allclose(ax.elev, elev)
        assert_allclose(ax.azim, azim)
        self.assertIn('[earth]', fig.texts[0].get_text())

    def test_key_presses_reach_the_controls(self):
        orrery = make_orrery()
        fig, _ = create_animation(orrery, n_frames=1, orbit_segments=16)

        def press(key):
            fig.canvas.callbacks.process('key_press_event', KeyEvent('key_press_event', fig.canvas, key))

        press(' ')
        self.assertTrue(orrery.simulation.paused)
        press('+')
        self.assertEqual(orrery.simulation.time_scale, orrery.config.time_scale + 0.5)
        press('-')
        press('-')
        self.assertEqual(orrery.simulation.time_scale, orrery.config.time_scale - 0.5)
        press('h')
        self.assertTrue(orrery.visuals.show_small_targets)

    def test_highlights_color_labels(self):
        orrery = make_orrery()
        orrery.controls.toggle_highlights()
        fig, anim = create_animation(orrery, n_frames=1, orbit_segments=16)
        anim._func(0)
        colors = {text.get_text(): text.get_color() for text in fig.axes[0].texts}
        self.assertEqual(colors[bodies_data['pluto'].name_en], 'red')
        self.assertEqual(colors[bodies_data['jupiter'].name_en], 'black')

    def test_animate_saves_a_gif(self):
        orrery = make_orrery()
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / 'preview.gif'
            animate(orrery, n_frames=3, select='mars', save_path=str(path))
            self.assertTrue(path.exists())
        self.assertGreaterEqual(orrery.frame, 3)
        self.assertEqual(orrery.controls.selected_id, 'mars')
        self.assertTrue(math.isfinite(orrery.simulation.elapsed_years))


if __name__ == '__main__':
    unittest.main()
