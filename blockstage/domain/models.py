"""Domain data models — pure Python dataclasses."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class BlockKind(str, Enum):
    """Closed set of executable block kinds."""

    MOVE_STEPS = "move_steps"
    TURN_DEGREES = "turn_degrees"
    GO_TO_XY = "go_to_xy"
    REPEAT = "repeat"
    SAY = "say"
    THINK = "think"


class BlockCategory(str, Enum):
    MOTION = "Motion"
    LOOKS = "Looks"


@dataclass(frozen=True)
class InputSpec:
    """Schema entry for one block input."""

    value_type: str  # "number" | "text"
    default: Any


@dataclass(frozen=True)
class BlockDefinition:
    """Static catalog entry for a block kind."""

    kind: BlockKind
    category: BlockCategory
    text_template: str  # e.g. "move {steps} steps"
    is_container: bool
    input_schema: Dict[str, InputSpec]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "category": self.category.value,
            "text": self.text_template,
            "is_container": self.is_container,
            "inputs": {
                name: {"type": spec.value_type, "default": spec.default}
                for name, spec in self.input_schema.items()
            },
        }


@dataclass
class BlockInput:
    value_type: str
    value: Any


@dataclass
class Block:
    """One node of a sprite's program tree."""

    id: str
    kind: Any  # BlockKind for catalog blocks; anything else is unexecutable
    inputs: Dict[str, BlockInput] = field(default_factory=dict)
    children: Optional[List["Block"]] = None  # present only on containers

    def value(self, name: str, default: Any = None) -> Any:
        entry = self.inputs.get(name)
        return entry.value if entry is not None else default

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "kind": getattr(self.kind, "value", self.kind),
            "inputs": {
                name: {"type": entry.value_type, "value": entry.value}
                for name, entry in self.inputs.items()
            },
        }
        if self.children is not None:
            data["children"] = [child.to_dict() for child in self.children]
        return data


@dataclass
class Sprite:
    """Mutable per-actor record. Stage origin is the center."""

    id: str
    name: str
    x: float = 0.0
    y: float = 0.0
    rotation: float = 0.0  # degrees, unnormalized
    blocks: List[Block] = field(default_factory=list)
    say_text: str = ""
    say_duration_ms: float = 0.0
    think_text: str = ""
    think_duration_ms: float = 0.0
    is_running: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "x": self.x,
            "y": self.y,
            "rotation": self.rotation,
            "blocks": [block.to_dict() for block in self.blocks],
            "say_text": self.say_text,
            "say_duration_ms": self.say_duration_ms,
            "think_text": self.think_text,
            "think_duration_ms": self.think_duration_ms,
            "is_running": self.is_running,
        }
