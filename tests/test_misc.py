"""Tests for miscellaneous instructions (FX..)."""

import jax.numpy as jnp
import pytest
from chipvm import execute, step, set_keypad, Outcome, MEMORY_SIZE, FONT_START
from conftest import load_words, set_registers, setup_sprite_in_memory


def with_index(state, address):
    return state.replace(I=jnp.asarray(address, dtype=jnp.uint16))


class TestTimers:
    """Test timer instructions."""

    def test_get_delay_timer(self, fresh_state):
        """FX07 - VX = delay timer."""
        state = fresh_state.replace(delay_timer=jnp.asarray(42, dtype=jnp.uint8))
        state, outcome = execute(state, 0xF307)
        assert outcome == Outcome.OK
        assert state.V[3] == 42

    def test_set_delay_timer(self, fresh_state):
        """FX15 - delay timer = VX."""
        state = set_registers(fresh_state, V5=0x3C)
        state, _ = execute(state, 0xF515)
        assert state.delay_timer == 0x3C
        assert state.sound_timer == 0

    def test_set_sound_timer(self, fresh_state):
        """FX18 - sound timer = VX."""
        state = set_registers(fresh_state, VA=0x10)
        state, _ = execute(state, 0xFA18)
        assert state.sound_timer == 0x10
        assert state.delay_timer == 0


class TestWaitForKey:
    """FX0A never blocks: it rewinds until a key is down."""

    def test_no_key_repeats_instruction(self, fresh_state):
        state = load_words(fresh_state, [0xF10A])

        for _ in range(3):
            state, outcome = step(state)
            assert outcome == Outcome.OK
            assert state.pc == 0x200

    def test_key_pressed_stores_index(self, fresh_state):
        state = load_words(fresh_state, [0xF10A])
        state = set_keypad(state, [0x7])

        state, outcome = step(state)

        assert outcome == Outcome.OK
        assert state.V[1] == 0x7
        assert state.pc == 0x202

    def test_highest_key_wins(self, fresh_state):
        state = set_keypad(fresh_state, [0x2, 0xB, 0x5])
        state, _ = execute(state, 0xF40A)
        assert state.V[4] == 0xB

    def test_key_zero(self, fresh_state):
        state = set_keypad(fresh_state, [0x0])
        state, _ = execute(state, 0xF40A)
        assert state.V[4] == 0x0

    def test_resumes_after_key_press(self, fresh_state):
        state = load_words(fresh_state, [0xF20A])
        state, _ = step(state)
        assert state.pc == 0x200

        state = set_keypad(state, [0xF])
        state, _ = step(state)
        assert state.pc == 0x202
        assert state.V[2] == 0xF


class TestIndexArithmetic:
    """Test FX1E and FX29."""

    def test_add_to_index(self, fresh_state):
        """FX1E - I += VX."""
        state = with_index(set_registers(fresh_state, V2=0x10), 0x300)
        state, _ = execute(state, 0xF21E)
        assert state.I == 0x310

    def test_add_to_index_no_flag(self, fresh_state):
        """FX1E - Crossing 0xFFF does not touch VF."""
        state = with_index(set_registers(fresh_state, V2=0x10, VF=0x00), 0xFFF)
        state, outcome = execute(state, 0xF21E)
        assert outcome == Outcome.OK
        assert state.I == 0x100F
        assert state.V[15] == 0

    def test_add_to_index_wraps_16_bits(self, fresh_state):
        state = with_index(set_registers(fresh_state, V0=0x02), 0xFFFF)
        state, _ = execute(state, 0xF01E)
        assert state.I == 0x0001

    @pytest.mark.parametrize("digit", [0x0, 0x5, 0xA, 0xF])
    def test_font_character(self, fresh_state, digit):
        """FX29 - I = address of the glyph for VX."""
        state = set_registers(fresh_state, V6=digit)
        state, _ = execute(state, 0xF629)
        assert state.I == FONT_START + digit * 5


class TestBCD:
    """Test FX33."""

    @pytest.mark.parametrize("value,digits", [
        (156, [1, 5, 6]),
        (0, [0, 0, 0]),
        (9, [0, 0, 9]),
        (40, [0, 4, 0]),
        (255, [2, 5, 5]),
    ])
    def test_bcd(self, fresh_state, value, digits):
        state = with_index(set_registers(fresh_state, V3=value), 0x300)
        state, outcome = execute(state, 0xF333)

        assert outcome == Outcome.OK
        assert [int(b) for b in state.memory[0x300:0x303]] == digits
        assert state.I == 0x300

    def test_bcd_at_end_of_memory(self, fresh_state):
        state = with_index(set_registers(fresh_state, V3=123), MEMORY_SIZE - 3)
        state, outcome = execute(state, 0xF333)
        assert outcome == Outcome.OK
        assert [int(b) for b in state.memory[-3:]] == [1, 2, 3]

    def test_bcd_past_memory(self, fresh_state):
        state = with_index(set_registers(fresh_state, V3=123), MEMORY_SIZE - 2)
        new_state, outcome = execute(state, 0xF333)
        assert outcome == Outcome.MEMORY_OUT_OF_BOUNDS
        assert jnp.array_equal(new_state.memory, state.memory)


class TestRegisterTransfer:
    """Test FX55 and FX65."""

    @pytest.mark.parametrize("x", [0x0, 0x3, 0x7, 0xF])
    def test_store_registers(self, fresh_state, x):
        """FX55 - memory[I..I+X] = V0..VX, I unchanged."""
        state = fresh_state.replace(V=jnp.arange(1, 17, dtype=jnp.uint8))
        state = with_index(state, 0x400)

        state, outcome = execute(state, 0xF055 | (x << 8))

        assert outcome == Outcome.OK
        assert [int(b) for b in state.memory[0x400:0x400 + x + 1]] == list(range(1, x + 2))
        assert int(state.memory[0x400 + x + 1]) == 0
        assert state.I == 0x400

    @pytest.mark.parametrize("x", [0x0, 0x3, 0x7, 0xF])
    def test_load_registers(self, fresh_state, x):
        """FX65 - V0..VX = memory[I..I+X], I unchanged."""
        state = setup_sprite_in_memory(fresh_state, 0x500, list(range(0x10, 0x20)))
        state = with_index(state, 0x500)

        state, outcome = execute(state, 0xF065 | (x << 8))

        assert outcome == Outcome.OK
        assert [int(v) for v in state.V[:x + 1]] == list(range(0x10, 0x10 + x + 1))
        assert int(state.V[x + 1:].sum()) == 0
        assert state.I == 0x500

    def test_store_then_load(self, fresh_state):
        values = jnp.array([3, 1, 4, 1, 5, 9, 2, 6, 5, 3, 5, 8, 9, 7, 9, 3], dtype=jnp.uint8)
        state = with_index(fresh_state.replace(V=values), 0x600)
        state, _ = execute(state, 0xFF55)
        state = state.replace(V=jnp.zeros(16, dtype=jnp.uint8))
        state, _ = execute(state, 0xFF65)
        assert jnp.array_equal(state.V, values)

    def test_store_at_end_of_memory(self, fresh_state):
        state = with_index(set_registers(fresh_state, V0=0xAA, V1=0xBB), MEMORY_SIZE - 2)
        state, outcome = execute(state, 0xF155)
        assert outcome == Outcome.OK
        assert int(state.memory[-2]) == 0xAA
        assert int(state.memory[-1]) == 0xBB

    def test_store_past_memory(self, fresh_state):
        state = with_index(set_registers(fresh_state, V0=0xAA), MEMORY_SIZE - 2)
        new_state, outcome = execute(state, 0xF255)
        assert outcome == Outcome.MEMORY_OUT_OF_BOUNDS
        assert jnp.array_equal(new_state.memory, state.memory)

    def test_load_past_memory(self, fresh_state):
        state = with_index(fresh_state, MEMORY_SIZE - 1)
        new_state, outcome = execute(state, 0xF165)
        assert outcome == Outcome.MEMORY_OUT_OF_BOUNDS
        assert jnp.array_equal(new_state.V, state.V)


class TestUndefinedMisc:
    """Unassigned FX.. patterns are unknown instructions."""

    @pytest.mark.parametrize("instruction", [0xF000, 0xF108, 0xF2FF, 0xF364, 0xF456, 0xF51F])
    def test_unknown(self, fresh_state, instruction):
        state = set_registers(fresh_state, V1=0x22)
        new_state, outcome = execute(state, instruction)
        assert outcome == Outcome.UNKNOWN_INSTRUCTION
        assert jnp.array_equal(new_state.V, state.V)
        assert new_state.I == state.I
