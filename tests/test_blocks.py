"""Tests for the block catalog, factory, and text rendering."""

import pytest

from blockstage.blocks import (
    BLOCK_DEFINITIONS,
    as_number,
    create_block,
    get_definition,
    palette,
    render_program,
    render_text,
)
from blockstage.domain.models import Block, BlockCategory, BlockKind
from blockstage.errors import UnknownBlockKind


class TestDefinitions:
    def test_catalog_is_closed(self):
        assert set(BLOCK_DEFINITIONS) == set(BlockKind)

    def test_only_repeat_is_container(self):
        containers = {k for k, d in BLOCK_DEFINITIONS.items() if d.is_container}
        assert containers == {BlockKind.REPEAT}

    def test_get_definition_accepts_string(self):
        definition = get_definition("move_steps")
        assert definition.kind == BlockKind.MOVE_STEPS
        assert definition.category == BlockCategory.MOTION
        assert definition.input_schema["steps"].default == 10

    def test_get_definition_unknown_is_none(self):
        assert get_definition("spin") is None

    def test_palette_lists_motion_before_looks(self):
        kinds = [d.kind for d in palette()]
        assert kinds == [
            BlockKind.MOVE_STEPS,
            BlockKind.TURN_DEGREES,
            BlockKind.GO_TO_XY,
            BlockKind.REPEAT,
            BlockKind.SAY,
            BlockKind.THINK,
        ]


class TestCreateBlock:
    def test_unknown_kind_raises(self):
        with pytest.raises(UnknownBlockKind):
            create_block("spin")

    def test_unknown_kind_is_lookup_error(self):
        with pytest.raises(LookupError):
            create_block("")

    def test_defaults_applied(self):
        block = create_block(BlockKind.SAY)
        assert block.value("text") == "Hello!"
        assert block.value("seconds") == 2
        assert block.inputs["text"].value_type == "text"

    def test_overrides_replace_defaults(self):
        block = create_block("go_to_xy", {"x": 30})
        assert block.value("x") == 30
        assert block.value("y") == 0

    def test_extraneous_override_keys_ignored(self):
        """Input keys always match the schema, whatever overrides carry."""
        block = create_block("move_steps", {"steps": 5, "speed": 99, "color": "red"})
        assert set(block.inputs) == {"steps"}
        assert block.value("steps") == 5

    def test_container_gets_empty_children(self):
        block = create_block("repeat")
        assert block.children == []

    def test_non_container_has_no_children(self):
        assert create_block("think").children is None

    def test_ids_are_unique(self):
        ids = {create_block("move_steps").id for _ in range(200)}
        assert len(ids) == 200

    def test_instances_do_not_share_inputs(self):
        first = create_block("move_steps")
        second = create_block("move_steps")
        first.inputs["steps"].value = 42
        assert second.value("steps") == 10


class TestRendering:
    def test_render_text_substitutes_values(self):
        block = create_block("say", {"text": "Hi", "seconds": 3})
        assert render_text(block) == "say Hi for 3 seconds"

    def test_render_text_integral_float(self):
        block = create_block("turn_degrees", {"degrees": 90.0})
        assert render_text(block) == "turn 90 degrees"

    def test_missing_input_stays_literal(self):
        block = create_block("go_to_xy")
        del block.inputs["y"]
        assert render_text(block) == "go to x: 0 y: {y}"

    def test_unknown_kind_renders_raw(self):
        assert render_text(Block(id="b", kind="spin")) == "spin"

    def test_render_program_indents_children(self):
        loop = create_block("repeat", {"times": 2})
        loop.children.append(create_block("move_steps"))
        inner = create_block("repeat", {"times": 3})
        inner.children.append(create_block("turn_degrees"))
        loop.children.append(inner)
        lines = render_program([loop, create_block("think")])
        assert lines == [
            "repeat 2",
            "  move 10 steps",
            "  repeat 3",
            "    turn 15 degrees",
            "think Hmm... for 2 seconds",
        ]


class TestAsNumber:
    @pytest.mark.parametrize(
        "raw,expected",
        [(10, 10.0), (2.5, 2.5), ("7", 7.0), (" -3.5 ", -3.5), ("abc", 0.0), (None, 0.0)],
    )
    def test_coercion(self, raw, expected):
        assert as_number(raw) == expected
