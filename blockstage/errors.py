"""Error taxonomy for the block engine."""


class BlockStageError(Exception):
    """Base class for all blockstage errors."""


class UnknownBlockKind(BlockStageError, LookupError):
    """Raised when a block kind has no registered definition."""

    def __init__(self, kind):
        super().__init__(f"Unknown block kind: {kind!r}")
        self.kind = kind


class UnknownBlockKindAtExecution(UnknownBlockKind):
    """Raised by the engine for an unexecutable kind; handled as a no-op."""


class SpriteNotFound(BlockStageError, LookupError):
    def __init__(self, sprite_id: str):
        super().__init__(f"Sprite not found: {sprite_id!r}")
        self.sprite_id = sprite_id


class BlockNotFound(BlockStageError, LookupError):
    def __init__(self, block_id: str):
        super().__init__(f"Block not found: {block_id!r}")
        self.block_id = block_id


class UnknownBlockInput(BlockStageError, ValueError):
    """Raised when editing an input the block's schema does not declare."""

    def __init__(self, block_id: str, name: str):
        super().__init__(f"Block {block_id!r} has no input {name!r}")
        self.block_id = block_id
        self.name = name


class ExecutionFailure(BlockStageError):
    """An unexpected failure inside one sprite's run."""

    def __init__(self, sprite_id: str, cause: BaseException):
        super().__init__(f"Execution failed for sprite {sprite_id!r}: {cause}")
        self.sprite_id = sprite_id
        self.cause = cause
