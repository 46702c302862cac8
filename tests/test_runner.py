"""Tests for the jitted instruction and frame loops."""

import jax.numpy as jnp
from chipvm import run, run_frame, run_frames, Outcome
from conftest import load_words

# V0 counts to 5, then execution falls into an undefined 0NNN word
COUNT_TO_FIVE = [
    0x6000,  # 0x200: V0 = 0
    0x7001,  # 0x202: V0 += 1
    0x3005,  # 0x204: skip next if V0 == 5
    0x1202,  # 0x206: jump 0x202
    0x0000,  # 0x208: unknown
]

SPIN = [0x1200]  # 0x200: jump to self


def with_delay(state, value):
    return state.replace(delay_timer=jnp.asarray(value, dtype=jnp.uint8))


class TestRun:
    """Test run()."""

    def test_runs_requested_count(self, fresh_state):
        state = load_words(fresh_state, SPIN)
        state, outcome, executed = run(state, 25)
        assert outcome == Outcome.OK
        assert executed == 25
        assert state.pc == 0x200

    def test_loop_program(self, fresh_state):
        state = load_words(fresh_state, COUNT_TO_FIVE)
        state, outcome, executed = run(state, 100)

        assert outcome == Outcome.UNKNOWN_INSTRUCTION
        assert state.V[0] == 5
        assert state.pc == 0x208
        # 1 + 4 * 3 iterations that jump back + 2 for the last increment and skip
        assert executed == 15

    def test_halts_at_fault(self, fresh_state):
        state = load_words(fresh_state, [0x6005, 0x0000, 0x6109])
        state, outcome, executed = run(state, 10)

        assert outcome == Outcome.UNKNOWN_INSTRUCTION
        assert executed == 1
        assert state.V[0] == 5
        assert state.V[1] == 0
        assert state.pc == 0x202

    def test_does_not_tick(self, fresh_state):
        state = with_delay(load_words(fresh_state, SPIN), 9)
        state, _, _ = run(state, 50)
        assert state.delay_timer == 9


class TestRunFrame:
    """Test run_frame()."""

    def test_ticks_once(self, fresh_state):
        state = with_delay(load_words(fresh_state, SPIN), 5)
        state, outcome, executed = run_frame(state, 11)

        assert outcome == Outcome.OK
        assert executed == 11
        assert state.delay_timer == 4

    def test_delay_visible_to_program(self, fresh_state):
        # V1 = delay timer, then spin
        state = with_delay(load_words(fresh_state, [0xF107, 0x1202]), 3)
        state, _, _ = run_frame(state, 4)
        state, _, _ = run_frame(state, 4)
        state = state.replace(pc=jnp.asarray(0x200, dtype=jnp.uint16))
        state, _, _ = run_frame(state, 1)
        assert state.V[1] == 1


class TestRunFrames:
    """Test run_frames()."""

    def test_counts_frames(self, fresh_state):
        state = with_delay(load_words(fresh_state, SPIN), 10)
        state, outcome, executed, frames = run_frames(state, 3, 5)

        assert outcome == Outcome.OK
        assert frames == 3
        assert executed == 15
        assert state.delay_timer == 7

    def test_stops_after_faulting_frame(self, fresh_state):
        state = with_delay(load_words(fresh_state, [0x6001, 0x7001, 0x0000]), 10)
        state, outcome, executed, frames = run_frames(state, 5, 2)

        assert outcome == Outcome.UNKNOWN_INSTRUCTION
        assert frames == 1
        assert executed == 2
        assert state.V[0] == 2
        assert state.pc == 0x204
        # The faulting frame still ticks, later ones never run
        assert state.delay_timer == 8

    def test_zero_frames(self, fresh_state):
        state = load_words(fresh_state, SPIN)
        new_state, outcome, executed, frames = run_frames(state, 0, 5)
        assert outcome == Outcome.OK
        assert frames == 0
        assert executed == 0
        assert new_state.pc == state.pc

    def test_with_progress_bar(self, fresh_state):
        state = load_words(fresh_state, SPIN)
        _, outcome, executed, frames = run_frames(state, 4, 3, True)
        assert outcome == Outcome.OK
        assert frames == 4
        assert executed == 12
