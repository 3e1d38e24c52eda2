"""Suspension primitives for the engine and detector.

All timed behavior goes through a clock so playback can run against real
time (AsyncioClock) or virtual time (ManualClock). Units are milliseconds.
"""

import asyncio
import heapq
import itertools
from typing import List, Optional, Tuple

from blockstage.config import CONFIG


class AsyncioClock:
    """Real-time clock backed by the running event loop."""

    def __init__(self, frame_interval_ms: Optional[float] = None):
        if frame_interval_ms is None:
            frame_interval_ms = CONFIG["frame_interval_ms"]
        self.frame_interval_ms = frame_interval_ms

    def now(self) -> float:
        return asyncio.get_running_loop().time() * 1000.0

    async def sleep(self, ms: float):
        await asyncio.sleep(max(ms, 0) / 1000.0)

    async def next_frame(self):
        """Wait for the next display frame."""
        await self.sleep(self.frame_interval_ms)


class ManualClock:
    """Virtual clock: time only moves when advance() is awaited.

    Sleepers are parked on futures ordered by deadline. advance() wakes them
    in deadline order, letting the event loop settle between wake-ups so that
    follow-up sleeps registered by woken tasks are honored within the same
    advance window.
    """

    def __init__(self, frame_interval_ms: Optional[float] = None, settle_rounds: int = 20):
        if frame_interval_ms is None:
            frame_interval_ms = CONFIG["frame_interval_ms"]
        self.frame_interval_ms = frame_interval_ms
        self._now = 0.0
        self._settle_rounds = settle_rounds
        self._seq = itertools.count()
        self._timers: List[Tuple[float, int, asyncio.Future]] = []

    def now(self) -> float:
        return self._now

    @property
    def pending(self) -> int:
        """Number of sleepers still waiting."""
        return sum(1 for _, _, fut in self._timers if not fut.done())

    async def sleep(self, ms: float):
        if ms <= 0:
            await asyncio.sleep(0)
            return
        fut = asyncio.get_running_loop().create_future()
        heapq.heappush(self._timers, (self._now + ms, next(self._seq), fut))
        await fut

    async def next_frame(self):
        await self.sleep(self.frame_interval_ms)

    async def advance(self, ms: float):
        """Move virtual time forward by ``ms``, waking every due sleeper."""
        target = self._now + ms
        while True:
            await self._settle()
            if not self._timers or self._timers[0][0] > target:
                break
            deadline, _, fut = heapq.heappop(self._timers)
            self._now = max(self._now, deadline)
            if not fut.done():
                fut.set_result(None)
        self._now = target
        await self._settle()

    async def _settle(self):
        for _ in range(self._settle_rounds):
            await asyncio.sleep(0)
