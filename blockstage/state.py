"""Session state and the narrow mutation API used by engine and detector."""

import random
import re
from typing import Iterable, List, Optional, Set, Tuple

from blockstage.config import CONFIG
from blockstage.domain.models import Block, Sprite
from blockstage.errors import BlockNotFound, SpriteNotFound, UnknownBlockInput

_SPRITE_ID_RE = re.compile(r"sprite(\d+)")


class SessionState:
    """Process-wide sandbox state: sprites, selection, playback, locks."""

    def __init__(self, sprites: Optional[List[Sprite]] = None):
        if sprites is None:
            sprites = [Sprite(id="sprite1", name="Cat")]
        self.sprites: List[Sprite] = sprites
        self.active_sprite_id: Optional[str] = sprites[0].id if sprites else None
        self.is_playing = False
        self.collision_locks: Set[str] = set()


def _find_block(blocks: List[Block], block_id: str) -> Optional[Tuple[List[Block], Block]]:
    """Locate a block anywhere in the tree; returns (owning list, block)."""
    for block in blocks:
        if block.id == block_id:
            return blocks, block
        if block.children:
            found = _find_block(block.children, block_id)
            if found:
                return found
    return None


class SpriteActions:
    """Mutation and query capability over a SessionState.

    Runtime mutators (position, rotation, speech, locks) silently ignore
    unknown sprite ids. Editor mutators raise SpriteNotFound / BlockNotFound.
    """

    def __init__(self, state: SessionState):
        self._state = state

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get_sprite(self, sprite_id: str) -> Optional[Sprite]:
        for sprite in self._state.sprites:
            if sprite.id == sprite_id:
                return sprite
        return None

    def sprites(self) -> List[Sprite]:
        return self._state.sprites

    def collision_locks(self) -> Set[str]:
        return self._state.collision_locks

    def active_sprite(self) -> Optional[Sprite]:
        if self._state.active_sprite_id is None:
            return None
        return self.get_sprite(self._state.active_sprite_id)

    def is_playing(self) -> bool:
        return self._state.is_playing

    def _require(self, sprite_id: str) -> Sprite:
        sprite = self.get_sprite(sprite_id)
        if sprite is None:
            raise SpriteNotFound(sprite_id)
        return sprite

    # ------------------------------------------------------------------
    # Runtime mutators
    # ------------------------------------------------------------------
    def set_playing(self, is_playing: bool):
        self._state.is_playing = is_playing

    def set_sprite_running(self, sprite_id: str, is_running: bool):
        sprite = self.get_sprite(sprite_id)
        if sprite:
            sprite.is_running = is_running

    def update_sprite_position(self, sprite_id: str, x: float, y: float):
        sprite = self.get_sprite(sprite_id)
        if sprite:
            sprite.x = x
            sprite.y = y

    def update_sprite_rotation(self, sprite_id: str, rotation: float):
        sprite = self.get_sprite(sprite_id)
        if sprite:
            sprite.rotation = rotation

    def set_say_text(self, sprite_id: str, text: str, duration_ms: float):
        sprite = self.get_sprite(sprite_id)
        if sprite:
            sprite.say_text = text
            sprite.say_duration_ms = duration_ms

    def clear_say_text(self, sprite_id: str):
        self.set_say_text(sprite_id, "", 0)

    def set_think_text(self, sprite_id: str, text: str, duration_ms: float):
        sprite = self.get_sprite(sprite_id)
        if sprite:
            sprite.think_text = text
            sprite.think_duration_ms = duration_ms

    def clear_think_text(self, sprite_id: str):
        self.set_think_text(sprite_id, "", 0)

    def swap_sprite_blocks(self, sprite1_id: str, sprite2_id: str):
        """Exchange the two sprites' whole programs in one step."""
        first = self.get_sprite(sprite1_id)
        second = self.get_sprite(sprite2_id)
        if first is None or second is None or first is second:
            return
        first.blocks, second.blocks = second.blocks, first.blocks

    def add_collision_lock(self, lock_key: str):
        self._state.collision_locks.add(lock_key)

    def remove_collision_lock(self, lock_key: str):
        self._state.collision_locks.discard(lock_key)

    # ------------------------------------------------------------------
    # Editor mutators
    # ------------------------------------------------------------------
    def add_sprite(
        self,
        name: Optional[str] = None,
        x: Optional[float] = None,
        y: Optional[float] = None,
    ) -> Sprite:
        """Append a new sprite, at a random spot near the origin by default."""
        number = self._next_sprite_number()
        spread = CONFIG["spawn_range"]
        sprite = Sprite(
            id=f"sprite{number}",
            name=name or f"Sprite {number}",
            x=random.uniform(-spread, spread) if x is None else x,
            y=random.uniform(-spread, spread) if y is None else y,
        )
        self._state.sprites.append(sprite)
        return sprite

    def _next_sprite_number(self) -> int:
        taken = [len(self._state.sprites)]
        for sprite in self._state.sprites:
            match = _SPRITE_ID_RE.fullmatch(sprite.id)
            if match:
                taken.append(int(match.group(1)))
        return max(taken) + 1

    def select_sprite(self, sprite_id: str) -> Sprite:
        sprite = self._require(sprite_id)
        self._state.active_sprite_id = sprite.id
        return sprite

    def add_block(
        self,
        sprite_id: str,
        block: Block,
        parent_id: Optional[str] = None,
        index: Optional[int] = None,
    ):
        """Insert ``block`` at top level or into the container ``parent_id``."""
        sprite = self._require(sprite_id)
        target = sprite.blocks
        if parent_id is not None:
            found = _find_block(sprite.blocks, parent_id)
            if found is None or found[1].children is None:
                raise BlockNotFound(parent_id)
            target = found[1].children
        if index is None:
            target.append(block)
        else:
            target.insert(index, block)

    def remove_block(self, sprite_id: str, block_id: str) -> Block:
        sprite = self._require(sprite_id)
        found = _find_block(sprite.blocks, block_id)
        if found is None:
            raise BlockNotFound(block_id)
        owner, block = found
        owner.remove(block)
        return block

    def find_block(self, sprite_id: str, block_id: str) -> Block:
        sprite = self._require(sprite_id)
        found = _find_block(sprite.blocks, block_id)
        if found is None:
            raise BlockNotFound(block_id)
        return found[1]

    def reorder_blocks(self, sprite_id: str, block_ids: Iterable[str]):
        """Reorder the top-level program; ids must be a permutation of it."""
        sprite = self._require(sprite_id)
        block_ids = list(block_ids)
        by_id = {block.id: block for block in sprite.blocks}
        if sorted(block_ids) != sorted(by_id):
            raise ValueError("block_ids must list every top-level block exactly once")
        sprite.blocks[:] = [by_id[block_id] for block_id in block_ids]

    def update_block_input(self, sprite_id: str, block_id: str, name: str, value):
        """Change an input value. The input key set never changes."""
        block = self.find_block(sprite_id, block_id)
        if name not in block.inputs:
            raise UnknownBlockInput(block_id, name)
        block.inputs[name].value = value
