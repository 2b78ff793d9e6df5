"""
Time sources and the shared abort token used by tour scripts.

A tour never calls asyncio.sleep directly: it waits on a clock, so tests and
the `--virtual` CLI mode can swap in ManualClock and run a whole tour without
real timers.
"""
from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
import time as _time
from typing import Optional, Protocol

from orrery.errors import TourAborted

logger = logging.getLogger(__name__)


class Clock(Protocol):
    def now_ms(self) -> float:
        ...

    async def sleep(self, seconds: float) -> None:
        ...


class AsyncioClock:
    """Wall-clock time backed by the running event loop."""

    def now_ms(self) -> float:
        return _time.monotonic() * 1000.0

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(max(0.0, seconds))


class ManualClock:
    """
    Virtual clock for deterministic scheduling.

    Sleepers park on futures keyed by their deadline; advance() moves time
    forward and wakes them in deadline order, letting the event loop run the
    woken tasks before moving on to the next deadline.
    """

    def __init__(self, start_s: float = 0.0, settle_rounds: int = 20):
        self._now = float(start_s)
        self._sleepers: list[tuple[float, int, asyncio.Future]] = []
        self._seq = itertools.count()
        self.settle_rounds = settle_rounds

    def now_ms(self) -> float:
        return self._now * 1000.0

    @property
    def now(self) -> float:
        return self._now

    async def sleep(self, seconds: float) -> None:
        if seconds <= 0.0:
            await asyncio.sleep(0)
            return
        future = asyncio.get_running_loop().create_future()
        heapq.heappush(self._sleepers, (self._now + seconds, next(self._seq), future))
        await future

    def pending(self) -> int:
        return sum(1 for _, _, f in self._sleepers if not f.done())

    def next_deadline(self) -> Optional[float]:
        while self._sleepers and self._sleepers[0][2].done():
            heapq.heappop(self._sleepers)
        return self._sleepers[0][0] if self._sleepers else None

    async def settle(self) -> None:
        """Give every ready task a chance to run."""
        for _ in range(self.settle_rounds):
            await asyncio.sleep(0)

    async def advance(self, seconds: float) -> None:
        """Move time forward by `seconds`, waking every sleeper whose deadline is reached."""
        end = self._now + max(0.0, seconds)
        await self.settle()
        while True:
            deadline = self.next_deadline()
            if deadline is None or deadline > end:
                break
            _, _, future = heapq.heappop(self._sleepers)
            self._now = max(self._now, deadline)
            future.set_result(None)
            await self.settle()
        self._now = end
        await self.settle()

    async def run_until_idle(self, limit_s: float = 3600.0) -> None:
        """Jump from deadline to deadline until nobody is sleeping (or limit_s is reached)."""
        end = self._now + limit_s
        await self.settle()
        while True:
            deadline = self.next_deadline()
            if deadline is None or deadline > end:
                break
            await self.advance(deadline - self._now)


class AbortToken:
    """
    Shared cancellation flag for one tour run.

    Every wait in the run takes the token and checks it before and after
    suspending; once set, pending waits fail with TourAborted and no later
    step starts.
    """

    def __init__(self):
        self._event = asyncio.Event()
        self.reason: Optional[str] = None

    @property
    def aborted(self) -> bool:
        return self._event.is_set()

    def abort(self, reason: str = "stop requested") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    def raise_if_aborted(self) -> None:
        if self._event.is_set():
            raise TourAborted(self.reason or "stop requested")

    async def wait(self) -> None:
        await self._event.wait()

    async def race(self, awaitable):
        """
        Await `awaitable` unless the token fires first.

        Returns the awaitable's result, or raises TourAborted when the abort
        wins. The losing side is cancelled.
        """
        if self.aborted:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            self.raise_if_aborted()
        work = asyncio.ensure_future(awaitable)
        stop = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait({work, stop}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (work, stop):
                if not task.done():
                    task.cancel()
        if work in done:
            return work.result()
        raise TourAborted(self.reason or "stop requested")

    async def sleep(self, clock: Clock, duration_ms: float) -> None:
        """
        Resolve after duration_ms on `clock`; raise TourAborted if the token is
        set before or during the wait.
        """
        self.raise_if_aborted()
        await self.race(clock.sleep(duration_ms / 1000.0))
        self.raise_if_aborted()
