"""Tests for CollisionDetector — ticking, swaps, cooldown locks, lifecycle."""

import asyncio
from unittest.mock import MagicMock

import pytest

from blockstage.blocks import create_block
from blockstage.clock import ManualClock
from blockstage.collision import CollisionDetector, lock_keys
from blockstage.domain.models import Sprite
from blockstage.state import SessionState, SpriteActions


def _make_detector(*sprites):
    state = SessionState(list(sprites))
    actions = SpriteActions(state)
    clock = ManualClock(frame_interval_ms=10)
    detector = CollisionDetector(actions, clock, tick_ms=100, distance=50, cooldown_ms=1000)
    return detector, state, clock


def _pair(distance=0.0):
    a = Sprite(id="a", name="A", blocks=[create_block("move_steps")])
    b = Sprite(id="b", name="B", x=distance, blocks=[create_block("say")])
    return a, b


class TestLockKeys:
    def test_canonical_regardless_of_order(self):
        assert lock_keys("b", "a") == lock_keys("a", "b") == ("a-b", "b-a")


class TestProximity:
    def test_threshold_is_strict(self):
        detector, _, _ = _make_detector()
        a, b = _pair(distance=50)
        assert detector.are_colliding(a, b) is False
        b.x = 49.9
        assert detector.are_colliding(a, b) is True

    def test_euclidean_distance(self):
        detector, _, _ = _make_detector()
        a = Sprite(id="a", name="A")
        b = Sprite(id="b", name="B", x=30, y=39)  # ~49.2 apart
        assert detector.are_colliding(a, b) is True
        b.y = 41  # ~50.6 apart
        assert detector.are_colliding(a, b) is False


@pytest.mark.asyncio
class TestTicking:
    async def test_same_position_swaps_once_within_a_tick(self):
        a, b = _pair()
        a_program, b_program = a.blocks, b.blocks
        detector, state, clock = _make_detector(a, b)
        detector.start(state.sprites)

        await clock.advance(100)

        assert detector.swap_count == 1
        assert a.blocks is b_program
        assert b.blocks is a_program
        assert state.collision_locks == {"a-b"}
        detector.stop()

    async def test_cooldown_blocks_repeat_swaps(self):
        a, b = _pair()
        detector, state, clock = _make_detector(a, b)
        detector.start(state.sprites)
        await clock.advance(100)
        await clock.advance(900)  # nine more ticks while still touching
        assert detector.swap_count == 1
        detector.stop()

    async def test_swap_again_after_cooldown(self):
        a, b = _pair(distance=10)
        a_program = a.blocks
        detector, state, clock = _make_detector(a, b)
        detector.start(state.sprites)
        await clock.advance(100)
        await clock.advance(1100)
        assert detector.swap_count == 2
        assert a.blocks is a_program
        detector.stop()

    async def test_reverse_lock_key_also_blocks(self):
        a, b = _pair()
        detector, state, clock = _make_detector(a, b)
        state.collision_locks.add("b-a")
        detector.start(state.sprites)
        await clock.advance(300)
        assert detector.swap_count == 0
        detector.stop()

    async def test_far_apart_never_swaps(self):
        a, b = _pair(distance=200)
        detector, state, clock = _make_detector(a, b)
        detector.start(state.sprites)
        await clock.advance(1000)
        assert detector.swap_count == 0
        assert state.collision_locks == set()
        detector.stop()

    async def test_single_sprite_tick_is_noop(self):
        detector, state, clock = _make_detector(Sprite(id="a", name="A"))
        detector.start(state.sprites)
        await clock.advance(500)
        assert detector.swap_count == 0
        detector.stop()

    async def test_every_colliding_pair_is_handled(self):
        sprites = [Sprite(id=f"s{i}", name=str(i), x=i * 10) for i in range(3)]
        detector, state, clock = _make_detector(*sprites)
        detector.start(state.sprites)
        await clock.advance(100)
        assert state.collision_locks == {"s0-s1", "s0-s2", "s1-s2"}
        detector.stop()

    async def test_sprites_added_while_running_are_seen(self):
        a = Sprite(id="a", name="A")
        detector, state, clock = _make_detector(a)
        detector.start(state.sprites)
        await clock.advance(100)
        state.sprites.append(Sprite(id="b", name="B", x=5))
        await clock.advance(100)
        assert detector.swap_count == 1
        detector.stop()

    async def test_handler_failure_does_not_stop_detector(self, capsys):
        a, b = _pair()
        actions = MagicMock()
        actions.collision_locks.return_value = set()
        actions.swap_sprite_blocks.side_effect = [RuntimeError("boom"), None]
        clock = ManualClock(frame_interval_ms=10)
        detector = CollisionDetector(actions, clock, tick_ms=100, distance=50, cooldown_ms=1000)
        detector.start([a, b])
        await clock.advance(200)
        assert actions.swap_sprite_blocks.call_count == 2
        assert detector.is_running
        assert "[Collision] handling a/b failed: boom" in capsys.readouterr().err
        detector.stop()


@pytest.mark.asyncio
class TestLifecycle:
    async def test_starts_stopped(self):
        detector, _, _ = _make_detector()
        assert detector.is_running is False

    async def test_stop_without_start_is_noop(self):
        detector, _, _ = _make_detector()
        detector.stop()
        assert detector.is_running is False

    async def test_restart_keeps_single_timer(self):
        detector, _, clock = _make_detector()
        first_list = [Sprite(id="a", name="A")]
        second_list = [Sprite(id="x", name="X"), Sprite(id="y", name="Y")]
        detector.start(first_list)
        timer = detector._timer
        detector.start(second_list)
        assert detector._timer is timer
        assert detector.sprites is second_list
        await clock.advance(100)
        assert clock.pending == 2  # next tick + one lock release
        detector.stop()

    async def test_stop_halts_ticks(self):
        a, b = _pair(distance=200)
        detector, state, clock = _make_detector(a, b)
        detector.start(state.sprites)
        await clock.advance(100)
        detector.stop()
        await clock.advance(0)
        assert detector.is_running is False
        b.x = 0
        await clock.advance(500)
        assert detector.swap_count == 0

    async def test_lock_released_after_stop(self):
        a, b = _pair()
        detector, state, clock = _make_detector(a, b)
        detector.start(state.sprites)
        await clock.advance(100)
        detector.stop()
        assert state.collision_locks == {"a-b"}
        await clock.advance(1000)
        assert state.collision_locks == set()

    async def test_can_restart_after_stop(self):
        a, b = _pair()
        detector, state, clock = _make_detector(a, b)
        detector.start(state.sprites)
        detector.stop()
        detector.start(state.sprites)
        await clock.advance(100)
        assert detector.swap_count == 1
        detector.stop()
