"""Frame loop and whole-tour runs on a virtual clock"""
import unittest

import numpy as np
from numpy.testing import assert_allclose

from orrery import Orrery, bodies_data, orbit_position
from orrery.app import drive
from orrery.config import OrreryConfig
from orrery.constants import BASE_SPEED_YEARS_PER_SECOND
from orrery.tour import GRAND_TOUR_ID, IDLE, ManualClock, SimulatedAudioBackend, TourOutcome


def make_orrery(clip_duration_s=0.5, **config):
    clock = ManualClock()
    audio = SimulatedAudioBackend(clock, default_duration_s=clip_duration_s)
    return Orrery(OrreryConfig(**config), bodies=bodies_data, clock=clock, audio=audio)


class TestFrameLoop(unittest.TestCase):

    def test_tick_advances_time_and_positions(self):
        orrery = make_orrery(fps=30)
        for _ in range(30):
            orrery.tick(1.0 / 30.0)
        assert_allclose(orrery.simulation.elapsed_years, BASE_SPEED_YEARS_PER_SECOND, rtol=1e-12)
        earth = bodies_data['earth']
        expected = orbit_position(earth.elements, earth.period_years, orrery.simulation.elapsed_years)
        assert_allclose(orrery.scene.world_position('earth'), expected, atol=1e-12)
        self.assertEqual(orrery.frame, 30)

    def test_orbit_multiplier_slows_one_body(self):
        orrery = make_orrery()
        orrery.visuals.orbit_speed_multipliers = {'moon': 0.25}
        for _ in range(10):
            orrery.tick(0.1)
        years = orrery.body_clocks.years
        assert_allclose(years['moon'], 0.25 * years['earth'], rtol=1e-12)
        moon = bodies_data['moon']
        local = orbit_position(moon.elements, moon.period_years, years['moon'])
        assert_allclose(orrery.scene.world_position('moon') - orrery.scene.world_position('earth'), local,
                        atol=1e-12)

    def test_paused_simulation_keeps_bodies_still(self):
        orrery = make_orrery()
        orrery.tick(0.5)
        before = orrery.scene.positions()
        orrery.controls.toggle_pause()
        for _ in range(5):
            orrery.tick(0.5)
        after = orrery.scene.positions()
        for body_id in before:
            assert_allclose(after[body_id], before[body_id])

    def test_selection_drives_the_camera(self):
        orrery = make_orrery()
        orrery.controls.toggle_pause()
        orrery.controls.select_body('jupiter')
        for _ in range(600):
            camera = orrery.tick(1.0 / 60.0)
        target = orrery.scene.world_position('jupiter')
        zoom = bodies_data['jupiter'].selection_zoom_distance()
        self.assertLess(abs(np.linalg.norm(camera.position - target) - zoom), 0.1)
        assert_allclose(camera.target, target, atol=1e-6)


class TestTourRuns(unittest.IsolatedAsyncioTestCase):

    async def test_grand_tour_completes(self):
        orrery = make_orrery()
        outcome = await drive(orrery, orrery.run_tour(GRAND_TOUR_ID))
        self.assertIs(outcome, TourOutcome.COMPLETED)
        self.assertFalse(orrery.controls.locked)
        self.assertEqual(orrery.simulation.time_scale, 1.0)
        self.assertIs(orrery.engine.command, IDLE)
        self.assertEqual(orrery.audio.active(), [])
        self.assertGreater(orrery.frame, 0)
        self.assertGreater(orrery.simulation.elapsed_years, 0.0)

    async def test_frame_limit_stops_the_tour(self):
        orrery = make_orrery()
        outcome = await drive(orrery, orrery.run_tour(GRAND_TOUR_ID, max_frames=10))
        self.assertIs(outcome, TourOutcome.ABORTED)
        self.assertEqual(orrery.frame, 10)
        self.assertFalse(orrery.controls.locked)

    async def test_unknown_tour(self):
        orrery = make_orrery()
        self.assertIsNone(await orrery.run_tour('nowhere'))


if __name__ == '__main__':
    unittest.main()
