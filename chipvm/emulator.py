"""Main CHIP-8 emulator execution engine."""

import jax
import jax.lax
import jax.numpy as jnp
from chipvm.state import EmulatorState
from chipvm.decode import decode
from chipvm.constants import INSTRUCTION_SIZE, MAX_PC, MAX_PROGRAM_SIZE, PROGRAM_START
from chipvm.errors import Outcome, RomLoadError, RomTooLargeError, fault_if
from chipvm.logging import get_logger
from chipvm.instructions.system import execute_system_instruction
from chipvm.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset, execute_skip_if_key
)
from chipvm.instructions.alu import execute_alu_operation
from chipvm.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from chipvm.instructions.display import execute_display
from chipvm.instructions.misc import execute_misc_instruction

logger = get_logger("chipvm.emulator")

# Indexed by the top nibble of the instruction word
FAMILIES = [
    execute_system_instruction,
    execute_jump,
    execute_call,
    execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate,
    execute_skip_if_equal_register,
    execute_set,
    execute_add,
    execute_alu_operation,
    execute_skip_if_not_equal_register,
    execute_set_index,
    execute_jump_with_offset,
    execute_random,
    execute_display,
    execute_skip_if_key,
    execute_misc_instruction,
]


def commit(previous: EmulatorState, updated: EmulatorState, outcome: jnp.ndarray) -> EmulatorState:
    """Keep ``updated`` if the outcome is OK, otherwise fall back to ``previous``."""
    succeeded = outcome == Outcome.OK
    return jax.tree_util.tree_map(
        lambda new, old: jnp.where(succeeded, new, old), updated, previous
    )


def execute(state: EmulatorState, instruction: int) -> tuple[EmulatorState, jnp.ndarray]:
    """Execute single CHIP-8 instruction.

    Returns the new state and an ``Outcome`` code. On any outcome other than
    ``OK`` the input state is returned unchanged.
    """
    decoded_instruction = decode(instruction)

    updated, outcome = jax.lax.switch(
        decoded_instruction.opcode,
        FAMILIES,
        state, decoded_instruction
    )
    return commit(state, updated, outcome), outcome


def _pack_u16(high: jnp.uint8, low: jnp.uint8) -> jnp.uint16:
    """Pack two bytes into uint16."""
    return (high.astype(jnp.uint16) << 8) | low.astype(jnp.uint16)


def fetch(state: EmulatorState) -> tuple[EmulatorState, jnp.uint16]:
    """Fetch next instruction from memory, high byte first."""
    instruction = _pack_u16(state.memory[state.pc], state.memory[state.pc + 1])
    return state.replace(pc=state.pc + INSTRUCTION_SIZE, opcode=instruction), instruction


def step(state: EmulatorState) -> tuple[EmulatorState, jnp.ndarray]:
    """Fetch, decode and execute one instruction.

    A program counter past ``MAX_PC`` cannot be fetched and is reported as
    ``PC_OUT_OF_RANGE``. Any fault leaves ``state`` untouched.
    """
    pc_fault = fault_if(state.pc > MAX_PC, Outcome.PC_OUT_OF_RANGE)
    fetched, instruction = fetch(state)
    executed, outcome = execute(fetched, instruction)
    outcome = jnp.where(pc_fault == Outcome.OK, outcome, pc_fault)
    return commit(state, executed, outcome), outcome


def load_program(state: EmulatorState, data: bytes) -> EmulatorState:
    """Copy a program image into memory starting at 0x200."""
    if len(data) > MAX_PROGRAM_SIZE:
        raise RomTooLargeError(len(data), MAX_PROGRAM_SIZE)
    if not data:
        return state
    rom_array = jnp.array(list(data), dtype=jnp.uint8)
    new_memory = state.memory.at[PROGRAM_START:PROGRAM_START + len(data)].set(rom_array)
    return state.replace(memory=new_memory)


def load_rom(state: EmulatorState, filename: str) -> EmulatorState:
    """Load ROM data into CHIP-8 memory starting at 0x200."""
    logger.debug(f"Loading {filename}...")
    try:
        with open(filename, 'rb') as f:
            rom_data = f.read()
    except OSError as e:
        raise RomLoadError(f"Cannot read ROM {filename}: {e}") from e

    state = load_program(state, rom_data)
    logger.info(f"Loaded {filename} ({len(rom_data)} bytes)")
    return state
