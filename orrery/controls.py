"""
User input boundary.

Every user action goes through ControlPanel. While a tour holds the UI lock
all actions except stop_tour are ignored.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Optional

from orrery.bodies import Body
from orrery.config import OrreryConfig, snap_time_scale
from orrery.errors import PlaybackError
from orrery.scene import VisualState
from orrery.simulation import SimulationState
from orrery.tour.audio import AudioBackend, AudioChannel
from orrery.tour.commands import IDLE, SelectBodyCommand, TourCommand
from orrery.tour.engine import TourEngine
from orrery.tour.script import build_tour

logger = logging.getLogger(__name__)


class ControlPanel:

    def __init__(self, bodies: dict[str, Body], simulation: SimulationState, visuals: VisualState,
                 engine: TourEngine, audio: AudioBackend, config: Optional[OrreryConfig] = None):
        self.bodies = bodies
        self.simulation = simulation
        self.visuals = visuals
        self.engine = engine
        self.config = config or OrreryConfig()
        self.music = AudioChannel(audio, 'user-music', volume=self.config.music_volume, loop=True)
        self.narration = AudioChannel(audio, 'user-narration', volume=self.config.narration_volume)
        self.selected_id: Optional[str] = None
        self._selection_command: TourCommand = IDLE

    @property
    def locked(self) -> bool:
        return self.engine.ui_lock.locked

    @property
    def music_on(self) -> bool:
        return self.music.current is not None

    @property
    def camera_command(self) -> TourCommand:
        """The tour's command while a tour runs, otherwise the user's selection."""
        if self.engine.is_active:
            return self.engine.command
        return self._selection_command

    def _ignored(self, action: str) -> bool:
        logger.debug("Ignored '%s': controls are locked by a tour", action)
        return False

    def select_body(self, body_id: Optional[str]) -> bool:
        if self.locked:
            return self._ignored('select_body')
        # Changing (or clearing) the selection stops the info narration
        self.narration.stop()
        if not body_id:
            self.selected_id = None
            self._selection_command = IDLE
            return True
        body = self.bodies.get(body_id)
        if body is None:
            logger.warning("Unknown body '%s'", body_id)
            return False
        self.selected_id = body.id
        self._selection_command = SelectBodyCommand(target_body_id=body.id,
                                                    zoom_distance=body.selection_zoom_distance())
        return True

    def set_time_scale(self, value: float) -> bool:
        if self.locked:
            return self._ignored('set_time_scale')
        self.simulation.time_scale = snap_time_scale(value)
        return True

    def toggle_pause(self) -> bool:
        if self.locked:
            return self._ignored('toggle_pause')
        self.simulation.paused = not self.simulation.paused
        return True

    def toggle_highlights(self) -> bool:
        if self.locked:
            return self._ignored('toggle_highlights')
        self.visuals.show_small_targets = not self.visuals.show_small_targets
        return True

    def toggle_music(self) -> bool:
        if self.locked:
            return self._ignored('toggle_music')
        if self.music_on:
            self.music.stop()
            return True
        try:
            self.music.start(self.config.user_music)
        except PlaybackError as exc:
            logger.warning("Background music unavailable: %s", exc)
        return True

    def toggle_narration(self) -> bool:
        """Play or stop the selected body's narration clip."""
        if self.locked:
            return self._ignored('toggle_narration')
        if self.narration.is_playing:
            self.narration.stop()
            return True
        body = self.bodies.get(self.selected_id) if self.selected_id else None
        if body is None or not body.narration_clip:
            return False
        try:
            self.narration.start(body.narration_clip)
        except PlaybackError as exc:
            logger.warning("Narration unavailable for '%s': %s", body.id, exc)
            return False
        return True

    def start_tour(self, tour_id: str) -> Optional[asyncio.Task]:
        if self.locked or self.engine.is_active:
            self._ignored('start_tour')
            return None
        try:
            tour = build_tour(tour_id, self.bodies)
        except KeyError as exc:
            logger.warning("%s", exc.args[0])
            return None
        tour = dataclasses.replace(tour, time_scale=self.config.tour_time_scale)
        self.music.stop()
        self.narration.stop()
        self.selected_id = None
        self._selection_command = IDLE
        return self.engine.start(tour)

    def stop_tour(self) -> bool:
        if not self.engine.is_active:
            return False
        self.engine.stop("stopped by user")
        return True
