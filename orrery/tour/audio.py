"""
Playback contract between the tour engine and an audio backend.

Two channels exist, narration and music. Each holds at most one clip; starting
a clip on a channel first tears down whatever that channel was playing
(pause, rewind, drop the handle).
"""
from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Iterable, Mapping, Optional

from orrery.errors import PlaybackError
from orrery.tour.clock import Clock

logger = logging.getLogger(__name__)

DEFAULT_CLIP_DURATION_S = 5.0


class AudioClip(ABC):
    """
    One playable clip.

    wait_finished() resolves True when the clip reaches its natural end and
    False when it is paused before that.
    """

    def __init__(self, path: str, loop: bool = False, volume: float = 1.0):
        self.path = path
        self.loop = loop
        self.volume = volume
        self._playing = False
        self._done: Optional[asyncio.Future] = None

    @property
    def is_playing(self) -> bool:
        return self._playing

    @abstractmethod
    def _start(self) -> None:
        """Begin or resume output. Raise PlaybackError if the clip cannot play."""

    @abstractmethod
    def _halt(self) -> None:
        """Stop output, keeping the play position."""

    @abstractmethod
    def rewind(self) -> None:
        """Reset the play position to the beginning."""

    def play(self) -> None:
        if self._playing:
            return
        self._done = asyncio.get_running_loop().create_future()
        try:
            self._start()
        except PlaybackError:
            self._done = None
            raise
        self._playing = True

    def pause(self) -> None:
        if not self._playing:
            return
        self._halt()
        self._playing = False
        self._resolve(False)

    def _ended(self) -> None:
        self._playing = False
        self._resolve(True)

    def _resolve(self, natural_end: bool) -> None:
        if self._done is not None and not self._done.done():
            self._done.set_result(natural_end)

    async def wait_finished(self) -> bool:
        if self._done is None:
            return False
        return await asyncio.shield(self._done)


class AudioBackend(ABC):
    @abstractmethod
    def open(self, path: str, loop: bool = False, volume: float = 1.0) -> AudioClip:
        ...


class SimulatedClip(AudioClip):
    """A clip that produces no sound and simply lasts duration_s on a clock."""

    def __init__(self, path: str, clock: Clock, duration_s: float, available: bool = True,
                 loop: bool = False, volume: float = 1.0):
        super().__init__(path, loop=loop, volume=volume)
        self.clock = clock
        self.duration_s = duration_s
        self.available = available
        self.position_s = 0.0
        self._started_ms = 0.0
        self._task: Optional[asyncio.Task] = None

    def _start(self) -> None:
        if not self.available:
            raise PlaybackError(self.path, "clip not found")
        self._started_ms = self.clock.now_ms()
        self._task = asyncio.ensure_future(self._run())

    async def _run(self) -> None:
        while True:
            await self.clock.sleep(max(0.0, self.duration_s - self.position_s))
            if not self.loop:
                break
            self.position_s = 0.0
            self._started_ms = self.clock.now_ms()
        self.position_s = self.duration_s
        self._task = None
        self._ended()

    def _halt(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self.position_s = min(self.duration_s,
                              self.position_s + (self.clock.now_ms() - self._started_ms) / 1000.0)

    def rewind(self) -> None:
        self.position_s = 0.0


class SimulatedAudioBackend(AudioBackend):
    """
    Backend for headless runs and tests.

    Args:
        clock: Clock the clips run on
        durations: Duration in seconds per clip path
        default_duration_s: Duration of clips not listed in durations
        missing: Clip paths that fail with PlaybackError when played
    """

    def __init__(self, clock: Clock, durations: Optional[Mapping[str, float]] = None,
                 default_duration_s: float = DEFAULT_CLIP_DURATION_S, missing: Iterable[str] = ()):
        self.clock = clock
        self.durations = dict(durations or {})
        self.default_duration_s = default_duration_s
        self.missing = set(missing)
        self.opened: list[SimulatedClip] = []

    def open(self, path: str, loop: bool = False, volume: float = 1.0) -> SimulatedClip:
        clip = SimulatedClip(
            path,
            self.clock,
            self.durations.get(path, self.default_duration_s),
            available=path not in self.missing,
            loop=loop,
            volume=volume,
        )
        self.opened.append(clip)
        return clip

    def active(self) -> list[SimulatedClip]:
        return [clip for clip in self.opened if clip.is_playing]


class AudioChannel:
    """At most one clip at a time on a named channel (narration or music)."""

    def __init__(self, backend: AudioBackend, name: str, volume: float = 1.0, loop: bool = False):
        self.backend = backend
        self.name = name
        self.volume = volume
        self.loop = loop
        self.current: Optional[AudioClip] = None

    @property
    def is_playing(self) -> bool:
        return self.current is not None and self.current.is_playing

    def start(self, path: str, loop: Optional[bool] = None) -> AudioClip:
        """
        Tear down the previous clip and start `path`.
        Raises PlaybackError, leaving the channel empty, when the clip cannot play.
        """
        self.stop()
        clip = self.backend.open(path, loop=self.loop if loop is None else loop, volume=self.volume)
        clip.play()
        self.current = clip
        logger.debug("%s channel playing %s", self.name, path)
        return clip

    def stop(self) -> None:
        if self.current is not None:
            clip = self.current
            self.current = None
            clip.pause()
            clip.rewind()
            logger.debug("%s channel stopped %s", self.name, clip.path)

    def release(self, clip: AudioClip) -> None:
        """Drop the handle if it still belongs to `clip` (after a natural end)."""
        if self.current is clip:
            self.current = None
