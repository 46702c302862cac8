"""CHIP-8 memory and register operations."""

import jax.numpy as jnp
from chipvm.state import EmulatorState, next_random_byte
from chipvm.decode import DecodedInstruction
from chipvm.constants import BYTE_MASK
from chipvm.errors import Outcome, status


def execute_set(state: EmulatorState, instruction: DecodedInstruction):
    """6XNN - Set VX = NN."""
    value = jnp.astype(instruction.nn, jnp.uint8)
    return state.replace(V=state.V.at[instruction.x].set(value)), status(Outcome.OK)


def execute_add(state: EmulatorState, instruction: DecodedInstruction):
    """7XNN - Add NN to VX, no carry."""
    total = jnp.astype(state.V[instruction.x], jnp.int32) + instruction.nn
    value = jnp.astype(total & BYTE_MASK, jnp.uint8)
    return state.replace(V=state.V.at[instruction.x].set(value)), status(Outcome.OK)


def execute_set_index(state: EmulatorState, instruction: DecodedInstruction):
    """ANNN - Set I = NNN."""
    return state.replace(I=jnp.astype(instruction.nnn, jnp.uint16)), status(Outcome.OK)


def execute_random(state: EmulatorState, instruction: DecodedInstruction):
    """CXNN - Set VX = random & NN."""
    state, random_value = next_random_byte(state)
    value = random_value & jnp.astype(instruction.nn, jnp.uint8)
    return state.replace(V=state.V.at[instruction.x].set(value)), status(Outcome.OK)
