"""CHIP-8 system instructions (0x0xxx)."""

import jax
import jax.lax
import jax.numpy as jnp
from chipvm.state import EmulatorState
from chipvm.decode import DecodedInstruction
from chipvm.constants import INSTRUCTION_SIZE
from chipvm.errors import Outcome, status, fault_if
from chipvm.stack import pop, is_empty


def unknown_instruction(state: EmulatorState, instruction: DecodedInstruction):
    """Bit pattern with no defined meaning in its family."""
    return state, status(Outcome.UNKNOWN_INSTRUCTION)


def execute_clear_screen(state: EmulatorState, instruction: DecodedInstruction):
    """00E0 - Clear display."""
    return state.replace(
        display=jnp.zeros_like(state.display),
        draw_flag=jnp.ones((), dtype=jnp.bool_),
    ), status(Outcome.OK)


def execute_return(state: EmulatorState, instruction: DecodedInstruction):
    """00EE - Return from subroutine.

    The stack holds the address of the calling 2NNN, so execution resumes at
    the instruction after it.
    """
    stack, address = pop(state.stack)
    return_address = jnp.astype(address + INSTRUCTION_SIZE, jnp.uint16)
    return (
        state.replace(stack=stack, pc=return_address),
        fault_if(is_empty(state.stack), Outcome.STACK_UNDERFLOW),
    )


def execute_system_instruction(state: EmulatorState, instruction: DecodedInstruction):
    """Dispatch system instructions."""
    index = jnp.where(instruction.raw == 0x00E0, 0, jnp.where(instruction.raw == 0x00EE, 1, 2))
    return jax.lax.switch(
        index,
        [execute_clear_screen, execute_return, unknown_instruction],
        state, instruction
    )
