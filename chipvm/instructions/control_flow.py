"""CHIP-8 control flow instructions."""

import jax
import jax.lax
import jax.numpy as jnp
from chipvm.state import EmulatorState
from chipvm.decode import DecodedInstruction
from chipvm.constants import INSTRUCTION_SIZE, NUM_KEYS
from chipvm.errors import Outcome, status, fault_if
from chipvm.stack import push, is_full


def execute_jump(state: EmulatorState, instruction: DecodedInstruction):
    """1NNN - Jump to address NNN."""
    return state.replace(pc=jnp.astype(instruction.nnn, jnp.uint16)), status(Outcome.OK)


def execute_call(state: EmulatorState, instruction: DecodedInstruction):
    """2NNN - Call subroutine at NNN.

    Pushes the address of this instruction; pc was already advanced by fetch.
    """
    call_site = state.pc - INSTRUCTION_SIZE
    overflow = is_full(state.stack)
    state = state.replace(stack=push(state.stack, call_site))
    state, _ = execute_jump(state, instruction)
    return state, fault_if(overflow, Outcome.STACK_OVERFLOW)


def _always_valid(instruction: DecodedInstruction):
    return status(Outcome.OK)


def _requires_zero_n(instruction: DecodedInstruction):
    return fault_if(instruction.n != 0, Outcome.UNKNOWN_INSTRUCTION)


def make_skip_instruction(condition_fn, outcome_fn=_always_valid):
    """Factory for skip instructions."""
    def skip_instruction(state: EmulatorState, instruction: DecodedInstruction):
        condition = condition_fn(state, instruction)
        state = jax.lax.cond(
            condition,
            lambda s: s.replace(pc=s.pc + INSTRUCTION_SIZE),
            lambda s: s,
            state
        )
        return state, outcome_fn(instruction)
    return skip_instruction


execute_skip_if_equal_immediate = make_skip_instruction(
    lambda state, inst: state.V[inst.x] == inst.nn
)

execute_skip_if_not_equal_immediate = make_skip_instruction(
    lambda state, inst: state.V[inst.x] != inst.nn
)

execute_skip_if_equal_register = make_skip_instruction(
    lambda state, inst: state.V[inst.x] == state.V[inst.y],
    _requires_zero_n,
)

execute_skip_if_not_equal_register = make_skip_instruction(
    lambda state, inst: state.V[inst.x] != state.V[inst.y],
    _requires_zero_n,
)


def execute_jump_with_offset(state: EmulatorState, instruction: DecodedInstruction):
    """BNNN - Jump to address NNN + V0.

    The sum is not masked: a target past the end of memory is reported by the
    next fetch as PC_OUT_OF_RANGE.
    """
    jump_address = jnp.astype(instruction.nnn, jnp.uint16) + jnp.astype(state.V[0], jnp.uint16)
    return state.replace(pc=jump_address), status(Outcome.OK)


def execute_skip_if_key(state: EmulatorState, instruction: DecodedInstruction):
    """EX9E/EXA1 - Skip if key pressed/not pressed."""
    key_index = state.V[instruction.x] & (NUM_KEYS - 1)
    key_pressed = state.keypad[key_index]
    is_pressed_test = jnp.asarray(instruction.nn == 0x9E)
    is_released_test = jnp.asarray(instruction.nn == 0xA1)
    condition = jnp.where(is_pressed_test, key_pressed, jnp.logical_not(key_pressed))

    state = jax.lax.cond(
        condition,
        lambda state: state.replace(pc=state.pc + INSTRUCTION_SIZE),
        lambda state: state,
        state
    )
    return state, fault_if(
        jnp.logical_not(is_pressed_test | is_released_test), Outcome.UNKNOWN_INSTRUCTION
    )
