"""CHIP-8 miscellaneous instructions (Fxxx)."""

import jax
import jax.lax
import jax.numpy as jnp
import numpy as np
from chipvm.state import EmulatorState
from chipvm.decode import DecodedInstruction
from chipvm.constants import (
    FONT_START, FONT_CHAR_SIZE, INSTRUCTION_SIZE, MEMORY_SIZE, NUM_KEYS, NUM_REGISTERS, WORD_MASK
)
from chipvm.errors import Outcome, status, fault_if
from chipvm.instructions.system import unknown_instruction


def execute_get_delay_timer(state: EmulatorState, instruction: DecodedInstruction):
    """FX07 - Set VX to delay timer value."""
    return state.replace(V=state.V.at[instruction.x].set(state.delay_timer)), status(Outcome.OK)


def execute_wait_for_key(state: EmulatorState, instruction: DecodedInstruction):
    """FX0A - Wait for key press.

    Never blocks: with no key down the program counter is rewound so the same
    instruction runs again next step. With several keys down the highest index wins.
    """
    def key_pressed_action(state):
        pressed_key = (NUM_KEYS - 1) - jnp.argmax(state.keypad[::-1])
        return state.replace(V=state.V.at[instruction.x].set(jnp.astype(pressed_key, jnp.uint8)))

    def wait_action(state):
        return state.replace(pc=state.pc - INSTRUCTION_SIZE)

    state = jax.lax.cond(jnp.any(state.keypad), key_pressed_action, wait_action, state)
    return state, status(Outcome.OK)


def execute_set_delay_timer(state: EmulatorState, instruction: DecodedInstruction):
    """FX15 - Set delay timer to VX."""
    return state.replace(delay_timer=state.V[instruction.x]), status(Outcome.OK)


def execute_set_sound_timer(state: EmulatorState, instruction: DecodedInstruction):
    """FX18 - Set sound timer to VX."""
    return state.replace(sound_timer=state.V[instruction.x]), status(Outcome.OK)


def execute_add_to_index(state: EmulatorState, instruction: DecodedInstruction):
    """FX1E - Add VX to I register."""
    new_i = (jnp.astype(state.I, jnp.int32) + state.V[instruction.x]) & WORD_MASK
    return state.replace(I=jnp.astype(new_i, jnp.uint16)), status(Outcome.OK)


def execute_font_character(state: EmulatorState, instruction: DecodedInstruction):
    """FX29 - Set I to location of sprite for digit VX."""
    font_address = FONT_START + jnp.astype(state.V[instruction.x], jnp.int32) * FONT_CHAR_SIZE
    return state.replace(I=jnp.astype(font_address, jnp.uint16)), status(Outcome.OK)


def _index_range_fault(state: EmulatorState, length) -> jnp.ndarray:
    """MEMORY_OUT_OF_BOUNDS if memory[I:I + length] leaves the address space."""
    return fault_if(jnp.astype(state.I, jnp.int32) + length > MEMORY_SIZE, Outcome.MEMORY_OUT_OF_BOUNDS)


def execute_bcd_conversion(state: EmulatorState, instruction: DecodedInstruction):
    """FX33 - Store BCD representation of VX at I, I+1, I+2."""
    value = jnp.astype(state.V[instruction.x], jnp.int32)

    digits = jnp.array([
        value // 100,
        (value // 10) % 10,
        value % 10
    ], dtype=jnp.uint8)

    indices = jnp.arange(3) + jnp.astype(state.I, jnp.int32)
    new_memory = state.memory.at[indices].set(digits)
    return state.replace(memory=new_memory), _index_range_fault(state, 3)


def execute_store_registers(state: EmulatorState, instruction: DecodedInstruction):
    """FX55 - Store V0 through VX in memory starting at I. I is left unchanged."""
    register_mask = jnp.arange(NUM_REGISTERS) <= instruction.x
    base_indices = jnp.astype(state.I, jnp.int32) + jnp.arange(NUM_REGISTERS)
    current_memory_values = state.memory[base_indices]
    new_memory_values = jnp.where(register_mask, state.V, current_memory_values)
    new_memory = state.memory.at[base_indices].set(new_memory_values)
    return state.replace(memory=new_memory), _index_range_fault(state, instruction.x + 1)


def execute_load_registers(state: EmulatorState, instruction: DecodedInstruction):
    """FX65 - Load V0 through VX from memory starting at I. I is left unchanged."""
    register_mask = jnp.arange(NUM_REGISTERS) <= instruction.x
    base_indices = jnp.astype(state.I, jnp.int32) + jnp.arange(NUM_REGISTERS)
    memory_values = state.memory[base_indices]
    new_V = jnp.where(register_mask, memory_values, state.V)
    return state.replace(V=new_V), _index_range_fault(state, instruction.x + 1)


MISC_OPERATIONS = [
    execute_get_delay_timer,
    execute_wait_for_key,
    execute_set_delay_timer,
    execute_set_sound_timer,
    execute_add_to_index,
    execute_font_character,
    execute_bcd_conversion,
    execute_store_registers,
    execute_load_registers,
    unknown_instruction,
]

# Low byte -> index into MISC_OPERATIONS; everything else is unknown
MISC_TABLE = np.full(256, len(MISC_OPERATIONS) - 1, dtype=np.int32)
MISC_TABLE[[0x07, 0x0A, 0x15, 0x18, 0x1E, 0x29, 0x33, 0x55, 0x65]] = np.arange(len(MISC_OPERATIONS) - 1)


def execute_misc_instruction(state: EmulatorState, instruction: DecodedInstruction):
    """Dispatch misc instructions through the low-byte lookup table."""
    return jax.lax.switch(
        jnp.asarray(MISC_TABLE)[instruction.nn],
        MISC_OPERATIONS,
        state, instruction
    )
