"""HTTP control surface for a stage — the editor/stage UI talks to this."""

from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from blockstage.blocks import create_block, palette, render_program
from blockstage.errors import BlockNotFound, SpriteNotFound, UnknownBlockInput, UnknownBlockKind
from blockstage.playback import Stage


class NewSprite(BaseModel):
    name: Optional[str] = None
    x: Optional[float] = None
    y: Optional[float] = None


class NewBlock(BaseModel):
    kind: str
    inputs: Dict[str, Any] = {}
    parent_id: Optional[str] = None
    index: Optional[int] = None


class InputEdit(BaseModel):
    name: str
    value: Any


class BlockOrder(BaseModel):
    block_ids: List[str]


def create_app(stage: Optional[Stage] = None) -> FastAPI:
    stage = stage or Stage()
    app = FastAPI(title="blockstage")
    app.state.stage = stage
    actions = stage.actions

    @app.get("/status")
    async def status():
        active = actions.active_sprite()
        return {
            "playing": actions.is_playing(),
            "stopping": stage.playback.is_stopping,
            "active_sprite": active.id if active else None,
            "collision_locks": sorted(actions.collision_locks()),
            "sprite_count": len(actions.sprites()),
        }

    @app.get("/palette")
    async def get_palette():
        return [definition.to_dict() for definition in palette()]

    @app.get("/sprites")
    async def list_sprites():
        return [sprite.to_dict() for sprite in actions.sprites()]

    @app.post("/sprites", status_code=201)
    async def add_sprite(body: Optional[NewSprite] = None):
        body = body or NewSprite()
        sprite = actions.add_sprite(name=body.name, x=body.x, y=body.y)
        return sprite.to_dict()

    @app.post("/sprites/{sprite_id}/select")
    async def select_sprite(sprite_id: str):
        try:
            sprite = actions.select_sprite(sprite_id)
        except SpriteNotFound as e:
            raise HTTPException(status_code=404, detail=str(e))
        return {"active_sprite": sprite.id}

    @app.get("/sprites/{sprite_id}/program")
    async def get_program(sprite_id: str):
        sprite = actions.get_sprite(sprite_id)
        if sprite is None:
            raise HTTPException(status_code=404, detail=f"Sprite not found: {sprite_id!r}")
        return {"sprite": sprite.id, "lines": render_program(sprite.blocks)}

    @app.post("/sprites/{sprite_id}/blocks", status_code=201)
    async def add_block(sprite_id: str, body: NewBlock):
        try:
            block = create_block(body.kind, body.inputs)
        except UnknownBlockKind as e:
            raise HTTPException(status_code=400, detail=str(e))
        try:
            actions.add_block(sprite_id, block, parent_id=body.parent_id, index=body.index)
        except (SpriteNotFound, BlockNotFound) as e:
            raise HTTPException(status_code=404, detail=str(e))
        return block.to_dict()

    # Registered before the {block_id} routes so "order" is not read as an id.
    @app.put("/sprites/{sprite_id}/blocks/order")
    async def reorder_blocks(sprite_id: str, body: BlockOrder):
        try:
            actions.reorder_blocks(sprite_id, body.block_ids)
        except SpriteNotFound as e:
            raise HTTPException(status_code=404, detail=str(e))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {"block_ids": body.block_ids}

    @app.patch("/sprites/{sprite_id}/blocks/{block_id}")
    async def edit_block(sprite_id: str, block_id: str, body: InputEdit):
        try:
            actions.update_block_input(sprite_id, block_id, body.name, body.value)
            block = actions.find_block(sprite_id, block_id)
        except (SpriteNotFound, BlockNotFound) as e:
            raise HTTPException(status_code=404, detail=str(e))
        except UnknownBlockInput as e:
            raise HTTPException(status_code=400, detail=str(e))
        return block.to_dict()

    @app.delete("/sprites/{sprite_id}/blocks/{block_id}")
    async def delete_block(sprite_id: str, block_id: str):
        try:
            actions.remove_block(sprite_id, block_id)
        except (SpriteNotFound, BlockNotFound) as e:
            raise HTTPException(status_code=404, detail=str(e))
        return {"removed": block_id}

    @app.post("/play", status_code=202)
    async def play():
        if stage.playback.start() is None:
            raise HTTPException(status_code=409, detail="already playing")
        return {"playing": True}

    @app.post("/stop")
    async def stop():
        stage.playback.stop()
        return {"playing": False}

    return app


app = create_app()
