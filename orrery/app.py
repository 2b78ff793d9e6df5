"""
Frame loop that wires the orrery together.

One Orrery instance is one mounted scene: it owns the simulation clock, the
per-body clocks, the scene positions, the camera and the tour engine, and
advances them all once per tick in a fixed order.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

import numpy as np

from orrery.bodies import Body, load_bodies_data
from orrery.camera import CameraCommandInterpreter, CameraState
from orrery.config import OrreryConfig
from orrery.controls import ControlPanel
from orrery.scene import SolarSystemScene, VisualState
from orrery.simulation import BodyClocks, SimulationState
from orrery.tour.audio import AudioBackend, SimulatedAudioBackend
from orrery.tour.clock import AsyncioClock, Clock, ManualClock
from orrery.tour.engine import TourEngine, TourOutcome, UiLock

logger = logging.getLogger(__name__)


class Orrery:
    """
    Args:
        config: Frame rate, speeds and audio volumes
        bodies: Catalog to display (loaded from config.catalog_path when omitted)
        clock: Time source shared by the frame loop, the tour and the audio
        audio: Audio backend (a silent simulated backend when omitted)
    """

    def __init__(self, config: Optional[OrreryConfig] = None, bodies: Optional[dict[str, Body]] = None,
                 clock: Optional[Clock] = None, audio: Optional[AudioBackend] = None):
        self.config = config or OrreryConfig()
        self.bodies = bodies if bodies is not None else load_bodies_data(self.config.catalog_path)
        self.clock = clock or AsyncioClock()
        self.audio = audio or SimulatedAudioBackend(self.clock, default_duration_s=self.config.clip_duration_s)

        self.simulation = SimulationState(time_scale=self.config.time_scale)
        self.scene = SolarSystemScene(self.bodies)
        self.body_clocks = BodyClocks(tuple(self.scene.order))
        self.visuals = VisualState()
        self.camera = CameraState()
        self.interpreter = CameraCommandInterpreter(self.scene)
        self.engine = TourEngine(
            self.clock,
            self.audio,
            self.simulation,
            self.visuals,
            ui_lock=UiLock(),
            music_volume=self.config.music_volume,
            narration_volume=self.config.narration_volume,
        )
        self.controls = ControlPanel(self.bodies, self.simulation, self.visuals, self.engine, self.audio,
                                     self.config)
        self.frame = 0
        self.scene.update(0.0)

    def tick(self, delta_s: float) -> CameraState:
        """
        Advance one frame: simulated time, body positions, then the camera.
        The camera reads positions from this frame's update.
        """
        dt_years = self.simulation.advance(delta_s)
        self.body_clocks.advance(dt_years, self.visuals.orbit_speed_multipliers)
        self.scene.update(np.array(self.body_clocks.times(self.scene.order)))
        self.camera = self.interpreter.update(self.controls.camera_command, self.camera, delta_s,
                                              self.clock.now_ms())
        self.frame += 1
        return self.camera

    def highlighted_ids(self) -> frozenset[str]:
        """Bodies drawn with a highlight: the tour's picks plus small targets when toggled on."""
        ids = set(self.visuals.highlight_ids)
        if self.visuals.show_small_targets:
            ids.update(b.id for b in self.bodies.values() if b.is_small_target())
        return frozenset(ids)

    async def run_frames(self, count: int) -> None:
        interval = self.config.frame_interval_s
        for _ in range(count):
            await self.clock.sleep(interval)
            self.tick(interval)

    async def run_tour(self, tour_id: str, max_frames: Optional[int] = None) -> Optional[TourOutcome]:
        """
        Start a tour and drive frames until it finishes.

        Returns the tour outcome, or None when the tour could not be started.
        Stops the tour when max_frames is reached first.
        """
        task = self.controls.start_tour(tour_id)
        if task is None:
            return None
        interval = self.config.frame_interval_s
        frames = 0
        while self.engine.is_active:
            if max_frames is not None and frames >= max_frames:
                logger.info("Frame limit reached, stopping tour '%s'", tour_id)
                self.controls.stop_tour()
                break
            await self.clock.sleep(interval)
            self.tick(interval)
            frames += 1
        outcome = await self.engine.wait_closed()
        logger.info("Tour '%s' ran %d frames (%.1f simulated years)", tour_id, frames,
                    self.simulation.elapsed_years)
        return outcome

    async def aclose(self) -> None:
        await self.engine.aclose()
        self.controls.music.stop()
        self.controls.narration.stop()


async def drive(orrery: Orrery, coro):
    """
    Run `coro` against an orrery on a ManualClock, advancing virtual time until
    it completes. Used by the --virtual CLI mode.
    """
    clock: ManualClock = orrery.clock
    task = asyncio.ensure_future(coro)
    while not task.done():
        deadline = clock.next_deadline()
        if deadline is None:
            await clock.settle()
            continue
        await clock.advance(deadline - clock.now)
    return task.result()
