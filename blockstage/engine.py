"""Block execution engine — runs one sprite's program with timed animation.

Each block suspends its sprite's walker until the visible effect finishes,
then a fixed pacing delay separates it from the next block. A run captures
the sprite's top-level block list when it starts; later swaps or edits of
``sprite.blocks`` take effect on the next run.
"""

import math
import sys
from typing import Callable, Dict, List, Optional, Sequence

from blockstage.blocks import as_number
from blockstage.clock import AsyncioClock
from blockstage.config import CONFIG
from blockstage.domain.models import Block, BlockKind, Sprite
from blockstage.errors import ExecutionFailure, UnknownBlockKindAtExecution


def _log(msg: str):
    print(msg, file=sys.stderr)


def ease_out_cubic(progress: float) -> float:
    return 1 - (1 - progress) ** 3


class RunToken:
    """Cancellation flag shared by the runs of one play."""

    __slots__ = ("cancelled",)

    def __init__(self):
        self.cancelled = False


class ExecutionEngine:
    """Interprets block programs against a SpriteActions collaborator."""

    def __init__(
        self,
        actions,
        clock=None,
        *,
        block_pacing_ms: Optional[float] = None,
        move_duration_ms: Optional[float] = None,
        turn_duration_ms: Optional[float] = None,
        goto_duration_ms: Optional[float] = None,
    ):
        self.actions = actions
        self.clock = clock or AsyncioClock()
        self.block_pacing_ms = _pick(block_pacing_ms, "block_pacing_ms")
        self.move_duration_ms = _pick(move_duration_ms, "move_duration_ms")
        self.turn_duration_ms = _pick(turn_duration_ms, "turn_duration_ms")
        self.goto_duration_ms = _pick(goto_duration_ms, "goto_duration_ms")
        self.failures: Dict[str, ExecutionFailure] = {}
        self._token = RunToken()
        self._handlers: Dict[BlockKind, Callable] = {
            BlockKind.MOVE_STEPS: self._move_steps,
            BlockKind.TURN_DEGREES: self._turn_degrees,
            BlockKind.GO_TO_XY: self._go_to_xy,
            BlockKind.REPEAT: self._repeat,
            BlockKind.SAY: self._say,
            BlockKind.THINK: self._think,
        }

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------
    @property
    def cancelled(self) -> bool:
        return self._token.cancelled

    def cancel(self):
        """Ask every run started under the current token to stop at its next
        suspension boundary. Runs started after ``reset()`` are unaffected.
        """
        self._token.cancelled = True

    def reset(self) -> RunToken:
        self._token = RunToken()
        return self._token

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------
    async def run(self, sprite: Sprite):
        """Run ``sprite``'s program to completion (or until cancelled).

        No-op when the sprite is already running or has no blocks. Failures
        are logged and recorded in ``self.failures``, never raised.
        """
        if sprite.is_running or not sprite.blocks:
            return

        token = self._token
        program = list(sprite.blocks)
        self.actions.set_sprite_running(sprite.id, True)
        self.failures.pop(sprite.id, None)
        try:
            await self.execute_block_list(program, sprite.id, token)
        except Exception as e:
            failure = ExecutionFailure(sprite.id, e)
            self.failures[sprite.id] = failure
            _log(f"[Engine] animation error for sprite {sprite.id}: {e}")
        finally:
            self.actions.set_sprite_running(sprite.id, False)

    async def execute_block_list(
        self, blocks: Sequence[Block], sprite_id: str, token: Optional[RunToken] = None
    ):
        token = token or self._token
        for block in blocks:
            if token.cancelled:
                return
            try:
                await self.execute_block(block, sprite_id, token)
            except UnknownBlockKindAtExecution as e:
                _log(f"[Engine] WARNING {e} (sprite {sprite_id}); skipped")
            if token.cancelled:
                return
            await self.clock.sleep(self.block_pacing_ms)

    async def execute_block(
        self, block: Block, sprite_id: str, token: Optional[RunToken] = None
    ):
        try:
            kind = BlockKind(block.kind)
        except ValueError:
            raise UnknownBlockKindAtExecution(block.kind) from None
        await self._handlers[kind](block, sprite_id, token or self._token)

    # ------------------------------------------------------------------
    # Motion
    # ------------------------------------------------------------------
    async def _move_steps(self, block: Block, sprite_id: str, token: RunToken):
        sprite = self.actions.get_sprite(sprite_id)
        if sprite is None:
            return
        steps = as_number(block.value("steps", 0))
        radians = math.radians(sprite.rotation)
        target_x = sprite.x + math.cos(radians) * steps
        target_y = sprite.y + math.sin(radians) * steps
        await self.animate_position(
            sprite_id, sprite.x, sprite.y, target_x, target_y, self.move_duration_ms, token
        )

    async def _turn_degrees(self, block: Block, sprite_id: str, token: RunToken):
        sprite = self.actions.get_sprite(sprite_id)
        if sprite is None:
            return
        degrees = as_number(block.value("degrees", 0))
        await self.animate_rotation(
            sprite_id, sprite.rotation, sprite.rotation + degrees, self.turn_duration_ms, token
        )

    async def _go_to_xy(self, block: Block, sprite_id: str, token: RunToken):
        sprite = self.actions.get_sprite(sprite_id)
        if sprite is None:
            return
        x = as_number(block.value("x", 0))
        y = as_number(block.value("y", 0))
        await self.animate_position(
            sprite_id, sprite.x, sprite.y, x, y, self.goto_duration_ms, token
        )

    async def _repeat(self, block: Block, sprite_id: str, token: RunToken):
        times = as_number(block.value("times", 0))
        if not math.isfinite(times):
            _log(f"[Engine] WARNING repeat count {times} is not finite (sprite {sprite_id}); skipped")
            return
        iterations = math.ceil(times) if times > 0 else 0
        children: List[Block] = block.children or []
        for _ in range(iterations):
            if token.cancelled:
                return
            await self.execute_block_list(children, sprite_id, token)

    # ------------------------------------------------------------------
    # Looks
    # ------------------------------------------------------------------
    async def _say(self, block: Block, sprite_id: str, token: RunToken):
        await self._speak(
            block, sprite_id, token, self.actions.set_say_text, self.actions.clear_say_text
        )

    async def _think(self, block: Block, sprite_id: str, token: RunToken):
        await self._speak(
            block, sprite_id, token, self.actions.set_think_text, self.actions.clear_think_text
        )

    async def _speak(self, block: Block, sprite_id: str, token: RunToken, set_text, clear_text):
        text = block.value("text", "")
        duration_ms = as_number(block.value("seconds", 0)) * 1000
        set_text(sprite_id, "" if text is None else str(text), duration_ms)
        try:
            await self.hold(duration_ms, token)
        finally:
            clear_text(sprite_id)

    # ------------------------------------------------------------------
    # Animation
    # ------------------------------------------------------------------
    async def hold(self, duration_ms: float, token: Optional[RunToken] = None):
        """Wait ``duration_ms`` frame by frame, returning early on cancel."""
        token = token or self._token
        if duration_ms <= 0:
            await self.clock.sleep(duration_ms)
            return
        start = self.clock.now()
        while self.clock.now() - start < duration_ms:
            await self.clock.next_frame()
            if token.cancelled:
                return

    async def animate(
        self,
        duration_ms: float,
        on_frame: Callable[[float], None],
        token: Optional[RunToken] = None,
    ):
        """Drive ``on_frame(eased)`` once per frame until progress reaches 1.

        Stops early, without a final frame, when ``token`` is cancelled.
        """
        token = token or self._token
        start = self.clock.now()
        while True:
            await self.clock.next_frame()
            if token.cancelled:
                return
            elapsed = self.clock.now() - start
            progress = 1.0 if duration_ms <= 0 else min(elapsed / duration_ms, 1.0)
            on_frame(ease_out_cubic(progress))
            if progress >= 1.0:
                return

    async def animate_position(
        self,
        sprite_id: str,
        from_x: float,
        from_y: float,
        to_x: float,
        to_y: float,
        duration_ms: float,
        token: Optional[RunToken] = None,
    ):
        def frame(eased: float):
            self.actions.update_sprite_position(
                sprite_id,
                from_x + (to_x - from_x) * eased,
                from_y + (to_y - from_y) * eased,
            )

        await self.animate(duration_ms, frame, token)

    async def animate_rotation(
        self,
        sprite_id: str,
        from_rotation: float,
        to_rotation: float,
        duration_ms: float,
        token: Optional[RunToken] = None,
    ):
        def frame(eased: float):
            self.actions.update_sprite_rotation(
                sprite_id, from_rotation + (to_rotation - from_rotation) * eased
            )

        await self.animate(duration_ms, frame, token)


def _pick(value: Optional[float], key: str) -> float:
    return CONFIG[key] if value is None else value
