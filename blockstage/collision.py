"""Collision detector — swaps the programs of sprites that come close.

A single timer task polls sprite positions while playback is active. A
colliding pair swaps programs once, then stays locked for a cooldown window
so sprites that remain close do not ping-pong their programs every tick.
"""

import asyncio
import math
import sys
from typing import List, Optional, Set, Tuple

from blockstage.clock import AsyncioClock
from blockstage.config import CONFIG
from blockstage.domain.models import Sprite


def _log(msg: str):
    print(msg, file=sys.stderr)


def lock_keys(sprite1_id: str, sprite2_id: str) -> Tuple[str, str]:
    """Canonical lock key for a sprite pair, plus its reverse spelling."""
    first, second = sorted((sprite1_id, sprite2_id))
    return f"{first}-{second}", f"{second}-{first}"


class CollisionDetector:
    """Polls sprite positions on a fixed tick (stopped -> running -> stopped)."""

    def __init__(
        self,
        actions,
        clock=None,
        *,
        tick_ms: Optional[float] = None,
        distance: Optional[float] = None,
        cooldown_ms: Optional[float] = None,
    ):
        self.actions = actions
        self.clock = clock or AsyncioClock()
        self.tick_ms = CONFIG["collision_tick_ms"] if tick_ms is None else tick_ms
        self.distance = CONFIG["collision_distance"] if distance is None else distance
        self.cooldown_ms = CONFIG["collision_cooldown_ms"] if cooldown_ms is None else cooldown_ms
        self.sprites: List[Sprite] = []
        self.swap_count = 0
        self._timer: Optional[asyncio.Task] = None
        self._releases: Set[asyncio.Task] = set()

    @property
    def is_running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def start(self, sprites: List[Sprite]):
        """Begin polling ``sprites``. Restarting only swaps the observed list."""
        self.sprites = sprites
        if self.is_running:
            return
        self._timer = asyncio.get_running_loop().create_task(self._tick_loop())

    def stop(self):
        """Cancel the timer. Pending lock releases still fire."""
        if self._timer is None:
            return
        self._timer.cancel()
        self._timer = None

    async def _tick_loop(self):
        while True:
            await self.clock.sleep(self.tick_ms)
            self.check_collisions()

    def check_collisions(self):
        """One detector tick over every unordered pair of sprites."""
        sprites = list(self.sprites)
        if len(sprites) < 2:
            return
        for i in range(len(sprites)):
            for j in range(i + 1, len(sprites)):
                first, second = sprites[i], sprites[j]
                if not self.are_colliding(first, second):
                    continue
                try:
                    self.handle_collision(first, second)
                except Exception as e:
                    _log(f"[Collision] handling {first.id}/{second.id} failed: {e}")

    def are_colliding(self, sprite1: Sprite, sprite2: Sprite) -> bool:
        return math.hypot(sprite1.x - sprite2.x, sprite1.y - sprite2.y) < self.distance

    def handle_collision(self, sprite1: Sprite, sprite2: Sprite) -> bool:
        """Swap the pair's programs unless it is cooling down. Returns True on swap."""
        key, reverse_key = lock_keys(sprite1.id, sprite2.id)
        locks = self.actions.collision_locks()
        if key in locks or reverse_key in locks:
            return False

        self.actions.add_collision_lock(key)
        self.actions.swap_sprite_blocks(sprite1.id, sprite2.id)
        self.swap_count += 1
        _log(f"[Collision] swapped blocks between {sprite1.id} and {sprite2.id}")

        task = asyncio.get_running_loop().create_task(self._release_after_cooldown(key))
        self._releases.add(task)
        task.add_done_callback(self._releases.discard)
        return True

    async def _release_after_cooldown(self, key: str):
        await self.clock.sleep(self.cooldown_ms)
        self.actions.remove_collision_lock(key)
