import unittest

from orrery import Orrery, bodies_data
from orrery.config import USER_MUSIC, OrreryConfig
from orrery.tour import ManualClock, SelectBodyCommand, SimulatedAudioBackend, TourOutcome


class TestControlPanel(unittest.IsolatedAsyncioTestCase):

    def make_orrery(self, missing=()):
        clock = ManualClock()
        audio = SimulatedAudioBackend(clock, default_duration_s=1.0, missing=missing)
        self.orrery = Orrery(OrreryConfig(time_scale=2.0), bodies=bodies_data, clock=clock, audio=audio)
        return self.orrery.controls

    async def test_select_body(self):
        controls = self.make_orrery()
        self.assertTrue(controls.select_body('saturn'))
        command = controls.camera_command
        self.assertIsInstance(command, SelectBodyCommand)
        self.assertEqual(command.target_body_id, 'saturn')
        self.assertEqual(command.zoom_distance, bodies_data['saturn'].selection_zoom_distance())

        self.assertFalse(controls.select_body('vulcan'))
        self.assertEqual(controls.selected_id, 'saturn')

        self.assertTrue(controls.select_body(None))
        self.assertIsNone(controls.selected_id)
        self.assertEqual(controls.camera_command.mode, 'idle')

    async def test_time_scale_is_clamped_and_snapped(self):
        controls = self.make_orrery()
        for value, expected in ((7.0, 5.0), (1.3, 1.5), (1.2, 1.0), (-2.0, 0.0), (0.0, 0.0)):
            with self.subTest(value=value):
                self.assertTrue(controls.set_time_scale(value))
                self.assertEqual(self.orrery.simulation.time_scale, expected)

    async def test_toggles(self):
        controls = self.make_orrery()
        self.assertTrue(controls.toggle_pause())
        self.assertTrue(self.orrery.simulation.paused)
        self.assertTrue(controls.toggle_highlights())
        self.assertTrue(self.orrery.visuals.show_small_targets)
        self.assertIn('pluto', self.orrery.highlighted_ids())
        self.assertNotIn('jupiter', self.orrery.highlighted_ids())

        self.assertTrue(controls.toggle_music())
        self.assertTrue(controls.music_on)
        self.assertEqual(controls.music.current.path, USER_MUSIC)
        self.assertTrue(controls.music.current.loop)
        self.assertEqual(controls.music.current.volume, 0.25)
        self.assertTrue(controls.toggle_music())
        self.assertFalse(controls.music_on)

    async def test_music_failure_turns_music_off(self):
        controls = self.make_orrery(missing={USER_MUSIC})
        self.assertTrue(controls.toggle_music())
        self.assertFalse(controls.music_on)

    async def test_body_narration(self):
        controls = self.make_orrery()
        self.assertFalse(controls.toggle_narration())
        controls.select_body('mars')
        self.assertTrue(controls.toggle_narration())
        self.assertEqual(controls.narration.current.path, bodies_data['mars'].narration_clip)
        # Changing the selection stops the narration
        controls.select_body('venus')
        self.assertFalse(controls.narration.is_playing)

    async def test_controls_are_locked_during_a_tour(self):
        controls = self.make_orrery()
        controls.select_body('mars')
        controls.toggle_music()

        task = controls.start_tour('earth')
        self.assertIsNotNone(task)
        self.assertTrue(controls.locked)
        # User audio and selection give way to the tour
        self.assertFalse(controls.music_on)
        self.assertIsNone(controls.selected_id)
        self.assertEqual(self.orrery.simulation.time_scale, self.orrery.config.tour_time_scale)

        self.assertFalse(controls.select_body('mars'))
        self.assertIsNone(controls.selected_id)
        self.assertFalse(controls.set_time_scale(4.0))
        self.assertEqual(self.orrery.simulation.time_scale, self.orrery.config.tour_time_scale)
        self.assertFalse(controls.toggle_pause())
        self.assertFalse(self.orrery.simulation.paused)
        self.assertFalse(controls.toggle_highlights())
        self.assertFalse(controls.toggle_music())
        self.assertFalse(controls.toggle_narration())
        self.assertIsNone(controls.start_tour('grand_tour'))

        await self.orrery.clock.advance(0.1)
        self.assertIs(controls.camera_command, self.orrery.engine.command)

        self.assertTrue(controls.stop_tour())
        self.assertIs(await self.orrery.engine.wait_closed(), TourOutcome.ABORTED)
        self.assertFalse(controls.locked)
        self.assertEqual(self.orrery.simulation.time_scale, 2.0)
        self.assertFalse(controls.stop_tour())
        self.assertTrue(controls.select_body('mars'))

    async def test_unknown_tour(self):
        controls = self.make_orrery()
        self.assertIsNone(controls.start_tour('nowhere'))
        self.assertFalse(controls.locked)


class TestControlPanelWithoutLoop(unittest.TestCase):

    def test_start_tour_outside_a_loop_leaves_controls_unlocked(self):
        clock = ManualClock()
        audio = SimulatedAudioBackend(clock, default_duration_s=1.0)
        orrery = Orrery(OrreryConfig(time_scale=2.0), bodies=bodies_data, clock=clock, audio=audio)

        with self.assertRaises(RuntimeError):
            orrery.controls.start_tour('earth')

        self.assertFalse(orrery.controls.locked)
        self.assertFalse(orrery.engine.is_active)
        self.assertEqual(orrery.simulation.time_scale, 2.0)
        self.assertTrue(orrery.controls.set_time_scale(1.0))


if __name__ == '__main__':
    unittest.main()
