"""Block catalog — definitions, factory, and text rendering."""

import re
import uuid
from typing import Any, Dict, Iterable, List, Optional

from blockstage.domain.models import (
    Block,
    BlockCategory,
    BlockDefinition,
    BlockInput,
    BlockKind,
    InputSpec,
)
from blockstage.errors import UnknownBlockKind


BLOCK_DEFINITIONS: Dict[BlockKind, BlockDefinition] = {
    BlockKind.MOVE_STEPS: BlockDefinition(
        kind=BlockKind.MOVE_STEPS,
        category=BlockCategory.MOTION,
        text_template="move {steps} steps",
        is_container=False,
        input_schema={"steps": InputSpec("number", 10)},
    ),
    BlockKind.TURN_DEGREES: BlockDefinition(
        kind=BlockKind.TURN_DEGREES,
        category=BlockCategory.MOTION,
        text_template="turn {degrees} degrees",
        is_container=False,
        input_schema={"degrees": InputSpec("number", 15)},
    ),
    BlockKind.GO_TO_XY: BlockDefinition(
        kind=BlockKind.GO_TO_XY,
        category=BlockCategory.MOTION,
        text_template="go to x: {x} y: {y}",
        is_container=False,
        input_schema={"x": InputSpec("number", 0), "y": InputSpec("number", 0)},
    ),
    BlockKind.REPEAT: BlockDefinition(
        kind=BlockKind.REPEAT,
        category=BlockCategory.MOTION,
        text_template="repeat {times}",
        is_container=True,
        input_schema={"times": InputSpec("number", 10)},
    ),
    BlockKind.SAY: BlockDefinition(
        kind=BlockKind.SAY,
        category=BlockCategory.LOOKS,
        text_template="say {text} for {seconds} seconds",
        is_container=False,
        input_schema={"text": InputSpec("text", "Hello!"), "seconds": InputSpec("number", 2)},
    ),
    BlockKind.THINK: BlockDefinition(
        kind=BlockKind.THINK,
        category=BlockCategory.LOOKS,
        text_template="think {text} for {seconds} seconds",
        is_container=False,
        input_schema={"text": InputSpec("text", "Hmm..."), "seconds": InputSpec("number", 2)},
    ),
}

_PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")


def _resolve_kind(kind: Any) -> Optional[BlockKind]:
    if isinstance(kind, BlockKind):
        return kind
    try:
        return BlockKind(kind)
    except ValueError:
        return None


def get_definition(kind: Any) -> Optional[BlockDefinition]:
    """Return the definition for ``kind`` (enum or its string value), or None."""
    resolved = _resolve_kind(kind)
    if resolved is None:
        return None
    return BLOCK_DEFINITIONS.get(resolved)


def create_block(kind: Any, overrides: Optional[Dict[str, Any]] = None) -> Block:
    """Build a fresh block instance from its definition.

    Input values start at the schema defaults; ``overrides`` replaces values
    for keys the schema declares and silently ignores any other key.
    Raises UnknownBlockKind for unregistered kinds.
    """
    definition = get_definition(kind)
    if definition is None:
        raise UnknownBlockKind(kind)

    overrides = overrides or {}
    inputs = {}
    for name, spec in definition.input_schema.items():
        value = overrides[name] if name in overrides else spec.default
        inputs[name] = BlockInput(value_type=spec.value_type, value=value)

    return Block(
        id=f"block_{uuid.uuid4().hex}",
        kind=definition.kind,
        inputs=inputs,
        children=[] if definition.is_container else None,
    )


def as_number(value: Any) -> float:
    """Coerce an editor-supplied input value to a float (0.0 when unparseable)."""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return 0.0


def _format_value(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def render_text(block: Block) -> str:
    """Render the block's text template with its current input values.

    Placeholders naming an input the block does not have stay literal.
    Blocks of unknown kind render as their raw kind.
    """
    definition = get_definition(block.kind)
    if definition is None:
        return str(getattr(block.kind, "value", block.kind))

    def _sub(match):
        name = match.group(1)
        if name not in block.inputs:
            return match.group(0)
        return _format_value(block.inputs[name].value)

    return _PLACEHOLDER_RE.sub(_sub, definition.text_template)


def render_program(blocks: Iterable[Block], indent: int = 0) -> List[str]:
    """Render a block sequence as indented lines, recursing into containers."""
    lines = []
    for block in blocks:
        lines.append("  " * indent + render_text(block))
        if block.children:
            lines.extend(render_program(block.children, indent + 1))
    return lines


def palette() -> List[BlockDefinition]:
    """Definitions in catalog order, Motion first."""
    order = [BlockCategory.MOTION, BlockCategory.LOOKS]
    return sorted(BLOCK_DEFINITIONS.values(), key=lambda d: order.index(d.category))
