"""Test configuration and fixtures for CHIP-8 virtual machine tests."""

import pytest
import jax
import jax.numpy as jnp
from chipvm import create_state, PROGRAM_START


@pytest.fixture
def fresh_state():
    """Provide a fresh emulator state with a fixed PRNG key for each test."""
    return create_state(jax.random.PRNGKey(0))


@pytest.fixture
def wrap_state():
    """Provide a fresh state that wraps sprites around the screen edges."""
    return create_state(jax.random.PRNGKey(0), wrap_sprites=True)


def setup_sprite_in_memory(state, address, sprite_bytes):
    """Helper to put sprite data in memory."""
    return state.replace(
        memory=state.memory.at[address:address+len(sprite_bytes)].set(
            jnp.array(sprite_bytes, dtype=jnp.uint8)
        )
    )


def load_words(state, words, address=PROGRAM_START):
    """Helper to write 16-bit instruction words big-endian starting at address."""
    data = []
    for word in words:
        data.extend([(word >> 8) & 0xFF, word & 0xFF])
    return setup_sprite_in_memory(state, address, data)


def set_registers(state, **registers):
    """Helper to set registers by name, e.g. set_registers(state, V1=0x10, VF=1)."""
    V = state.V
    for name, value in registers.items():
        V = V.at[int(name[1:], 16)].set(value)
    return state.replace(V=V)
