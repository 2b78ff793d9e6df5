"""
Tour script engine.

Runs one tour at a time as an asyncio task and owns the tour's lifecycle:

    IDLE --start()--> RUNNING --steps done / failure--> IDLE
                         |
                       stop()
                         v
                      ABORTING --in-flight step unwinds--> IDLE

Every exit path goes through a single finalize routine that stops narration
and music, clears visual overrides, returns the camera to idle, restores the
pre-tour time scale and releases the UI lock. It runs exactly once per run.
"""
from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from orrery.errors import PlaybackError, TourAborted
from orrery.scene import VisualState
from orrery.simulation import SimulationState
from orrery.tour.audio import AudioBackend, AudioChannel
from orrery.tour.clock import AbortToken, Clock
from orrery.tour.commands import IDLE, TourCommand
from orrery.tour.script import Tour, TourStep

logger = logging.getLogger(__name__)

DEFAULT_MUSIC_VOLUME = 0.25  # keeps narration audible over the music
DEFAULT_NARRATION_VOLUME = 1.0


class TourState(enum.Enum):
    IDLE = 'idle'
    RUNNING = 'running'
    ABORTING = 'aborting'


class TourOutcome(enum.Enum):
    COMPLETED = 'completed'
    ABORTED = 'aborted'
    FAILED = 'failed'


@dataclass
class UiLock:
    """Set while a tour holds the user controls."""
    locked: bool = False


class TourEngine:
    """
    Sequential, cancellable executor of tour scripts.

    Args:
        clock: Time source for timed waits (AsyncioClock or ManualClock)
        audio: Backend that opens narration and music clips
        simulation: Simulation clock whose time scale the tour pins
        visuals: Visual overrides the steps mutate
        ui_lock: Lock shared with the user controls
        on_command: Called with every camera command the engine issues
    """

    def __init__(self, clock: Clock, audio: AudioBackend, simulation: SimulationState,
                 visuals: VisualState, ui_lock: Optional[UiLock] = None,
                 on_command: Optional[Callable[[TourCommand], None]] = None,
                 music_volume: float = DEFAULT_MUSIC_VOLUME,
                 narration_volume: float = DEFAULT_NARRATION_VOLUME):
        self.clock = clock
        self.simulation = simulation
        self.visuals = visuals
        self.ui_lock = ui_lock if ui_lock is not None else UiLock()
        self.on_command = on_command
        self.narration = AudioChannel(audio, 'narration', volume=narration_volume)
        self.music = AudioChannel(audio, 'music', volume=music_volume)

        self.state = TourState.IDLE
        self.command: TourCommand = IDLE
        self.tour: Optional[Tour] = None
        self.step_index = -1
        self.last_outcome: Optional[TourOutcome] = None
        self.last_error: Optional[BaseException] = None
        self.finalize_count = 0

        self._token: Optional[AbortToken] = None
        self._task: Optional[asyncio.Task] = None
        self._saved_time_scale = simulation.time_scale
        self._saved_lock = False
        self._finalized = True

    @property
    def is_active(self) -> bool:
        return self.state is not TourState.IDLE

    @property
    def current_step(self) -> Optional[TourStep]:
        if self.tour is None or not 0 <= self.step_index < len(self.tour.steps):
            return None
        return self.tour.steps[self.step_index]

    def start(self, tour: Tour) -> asyncio.Task:
        """Lock the UI, pin the time scale and launch the tour task."""
        if self.state is not TourState.IDLE:
            raise RuntimeError(f"Cannot start tour '{tour.id}': engine is {self.state.value}")
        # Raises outside a running loop, before any state has been touched
        loop = asyncio.get_running_loop()

        self.tour = tour
        self.step_index = -1
        self.last_outcome = None
        self.last_error = None
        self._token = AbortToken()
        self._saved_time_scale = self.simulation.time_scale
        self._saved_lock = self.ui_lock.locked
        self._finalized = False

        self.ui_lock.locked = True
        self.simulation.time_scale = tour.time_scale
        self.state = TourState.RUNNING
        logger.info("Tour '%s' started (%d steps)", tour.id, len(tour.steps))

        self._task = loop.create_task(self._run(tour, self._token))
        return self._task

    def stop(self, reason: str = "stop requested") -> None:
        """Request cancellation. The run unwinds at its next suspension point."""
        if self.state is not TourState.RUNNING:
            return
        self.state = TourState.ABORTING
        self._token.abort(reason)
        self.narration.stop()
        self.music.stop()
        logger.info("Tour '%s' stopping: %s", self.tour.id, reason)

    async def wait_closed(self) -> Optional[TourOutcome]:
        """Wait for the current run (if any) to finish and return its outcome."""
        if self._task is not None:
            await asyncio.shield(self._task)
        return self.last_outcome

    async def aclose(self) -> None:
        self.stop("shutdown")
        await self.wait_closed()

    def _set_command(self, command: TourCommand) -> None:
        self.command = command
        if self.on_command is not None:
            self.on_command(command)

    def _require_token(self) -> AbortToken:
        if self._token is None:
            raise RuntimeError("No tour is running")
        return self._token

    async def _run(self, tour: Tour, token: AbortToken) -> None:
        outcome = TourOutcome.ABORTED
        try:
            for index, step in enumerate(tour.steps):
                token.raise_if_aborted()
                self.step_index = index
                logger.debug("Tour '%s' step %d/%d: %s", tour.id, index + 1, len(tour.steps), step.name)
                await self._execute(step, token)
            outcome = TourOutcome.COMPLETED
        except TourAborted as exc:
            outcome = TourOutcome.ABORTED
            logger.info("Tour '%s' aborted at step %d: %s", tour.id, self.step_index, exc.reason)
        except PlaybackError as exc:
            outcome = TourOutcome.FAILED
            self.last_error = exc
            logger.error("Tour '%s' narration failed at step %d: %s", tour.id, self.step_index, exc)
        except Exception as exc:
            outcome = TourOutcome.FAILED
            self.last_error = exc
            logger.exception("Tour '%s' failed at step %d", tour.id, self.step_index)
        finally:
            self.last_outcome = outcome
            self._finalize()

    async def _execute(self, step: TourStep, token: AbortToken) -> None:
        # Visual state and camera command land together, before any await
        if step.visuals is not None:
            step.visuals.apply(self.visuals)
        if step.camera is not None:
            self._set_command(step.camera)
        if step.music:
            self.start_music(step.music)

        if step.narration:
            await self.play_narration(step.narration)
        if step.wait_ms > 0.0:
            await self.wait(step.wait_ms)
        if step.wait_music_end:
            await self.wait_for_music_end()
            token.raise_if_aborted()

    async def wait(self, duration_ms: float) -> None:
        """Resolve after duration_ms; raise TourAborted if stopped meanwhile."""
        await self._require_token().sleep(self.clock, duration_ms)

    async def play_narration(self, clip_path: str) -> None:
        """
        Play one narration clip to its end.

        Raises PlaybackError when the clip cannot be played and TourAborted when
        it is paused (e.g. by stop()) before finishing. Either way the narration
        channel is left empty.
        """
        token = self._require_token()
        token.raise_if_aborted()
        clip = self.narration.start(clip_path)
        try:
            natural_end = await token.race(clip.wait_finished())
        except TourAborted:
            if self.narration.current is clip:
                self.narration.stop()
            raise
        self.narration.release(clip)
        if not natural_end:
            raise TourAborted(token.reason or f"narration paused: {clip_path}")
        token.raise_if_aborted()

    def start_music(self, clip_path: str) -> None:
        """Start the background track once. Failures are logged and the tour goes on silently."""
        try:
            self.music.start(clip_path, loop=False)
        except PlaybackError as exc:
            logger.warning("Background music unavailable, continuing without it: %s", exc)

    async def wait_for_music_end(self) -> None:
        """
        Resolve when the background track ends, immediately if none is playing.
        Never raises TourAborted: on abort it returns at once so cleanup can run.
        """
        clip = self.music.current
        if clip is None or not clip.is_playing:
            return
        token = self._require_token()
        try:
            await token.race(clip.wait_finished())
        except TourAborted:
            return
        self.music.release(clip)

    def _finalize(self) -> None:
        if self._finalized:
            return
        self._finalized = True
        self.finalize_count += 1

        self.narration.stop()
        self.music.stop()
        self.visuals.reset_overrides()
        self._set_command(IDLE)
        self.simulation.time_scale = self._saved_time_scale
        self.ui_lock.locked = self._saved_lock
        self.state = TourState.IDLE
        logger.info("Tour '%s' finished: %s", self.tour.id if self.tour else '?',
                    self.last_outcome.value if self.last_outcome else 'unknown')
