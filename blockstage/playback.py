"""Playback orchestration — runs every sprite at once alongside the detector."""

import asyncio
import sys
from typing import Optional

from blockstage.clock import AsyncioClock
from blockstage.collision import CollisionDetector
from blockstage.engine import ExecutionEngine
from blockstage.state import SessionState, SpriteActions


def _log(msg: str):
    print(msg, file=sys.stderr)


class Playback:
    """Starts and stops playback for all sprites of a session."""

    def __init__(
        self,
        actions: SpriteActions,
        engine: ExecutionEngine,
        detector: CollisionDetector,
    ):
        self.actions = actions
        self.engine = engine
        self.detector = detector
        self._task: Optional[asyncio.Task] = None
        self._stopped_task: Optional[asyncio.Task] = None
        self._unwound: Optional[asyncio.Future] = None

    @property
    def is_playing(self) -> bool:
        return self.actions.is_playing()

    @property
    def is_stopping(self) -> bool:
        """True after stop() until the stopped runs have unwound."""
        return self._unwound is not None and not self.is_playing

    async def play(self):
        """Run every sprite's program concurrently; returns when all finish.

        The detector runs for exactly as long as playback does. A play that
        follows a stop waits for the stopped runs to unwind before starting.
        """
        if self.is_playing:
            return
        while self._unwound is not None:
            await asyncio.shield(self._unwound)
            if self.is_playing:
                return

        unwound = asyncio.get_running_loop().create_future()
        self._unwound = unwound
        self.actions.set_playing(True)
        self.engine.reset()
        sprites = self.actions.sprites()
        self.detector.start(sprites)
        try:
            results = await asyncio.gather(
                *(self.engine.run(sprite) for sprite in list(sprites)),
                return_exceptions=True,
            )
            for result in results:
                if isinstance(result, Exception):
                    _log(f"[Playback] animation execution error: {result}")
        finally:
            self.actions.set_playing(False)
            self.detector.stop()
            self._unwound = None
            unwound.set_result(None)

    def start(self) -> Optional[asyncio.Task]:
        """Launch play() as a background task.

        Returns None if already playing or a launched play has not begun yet.
        After stop() a new task is launched even while the stopped one unwinds.
        """
        pending = self._task is not None and not self._task.done()
        if self.is_playing or (pending and self._task is not self._stopped_task):
            return None
        self._task = asyncio.get_running_loop().create_task(self.play())
        return self._task

    def stop(self):
        """Cooperative stop: runs halt at their next suspension boundary."""
        if self.is_playing:
            self._stopped_task = self._task
            _log("[Playback] stopping")
        self.engine.cancel()
        self.actions.set_playing(False)
        self.detector.stop()

    async def toggle(self):
        """Play if idle, stop if playing (the stage's play button)."""
        if self.is_playing:
            self.stop()
            return
        await self.play()

    async def wait(self):
        """Wait for a background playback started with start()."""
        if self._task is not None:
            await self._task


class Stage:
    """Composition root: one session wired to engine, detector and playback."""

    def __init__(self, state: Optional[SessionState] = None, clock=None):
        self.state = state or SessionState()
        self.clock = clock or AsyncioClock()
        self.actions = SpriteActions(self.state)
        self.engine = ExecutionEngine(self.actions, self.clock)
        self.detector = CollisionDetector(self.actions, self.clock)
        self.playback = Playback(self.actions, self.engine, self.detector)
