"""blockstage — block-programming sandbox engine package."""

from blockstage.config import CONFIG
from blockstage.errors import (
    BlockNotFound,
    BlockStageError,
    ExecutionFailure,
    SpriteNotFound,
    UnknownBlockInput,
    UnknownBlockKind,
    UnknownBlockKindAtExecution,
)
from blockstage.domain.models import Block, BlockDefinition, BlockKind, Sprite
from blockstage.blocks import create_block, get_definition, render_program, render_text
from blockstage.clock import AsyncioClock, ManualClock
from blockstage.state import SessionState, SpriteActions
from blockstage.engine import ExecutionEngine
from blockstage.collision import CollisionDetector
from blockstage.playback import Playback, Stage

__all__ = [
    "CONFIG",
    "BlockNotFound",
    "BlockStageError",
    "ExecutionFailure",
    "SpriteNotFound",
    "UnknownBlockInput",
    "UnknownBlockKind",
    "UnknownBlockKindAtExecution",
    "Block",
    "BlockDefinition",
    "BlockKind",
    "Sprite",
    "create_block",
    "get_definition",
    "render_program",
    "render_text",
    "AsyncioClock",
    "ManualClock",
    "SessionState",
    "SpriteActions",
    "ExecutionEngine",
    "CollisionDetector",
    "Playback",
    "Stage",
]
