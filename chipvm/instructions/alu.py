"""CHIP-8 ALU operations (8xxx)."""

import jax
import jax.lax
import jax.numpy as jnp
import numpy as np
from chipvm.state import EmulatorState
from chipvm.decode import DecodedInstruction
from chipvm.constants import BYTE_MASK, FLAG_REGISTER
from chipvm.errors import Outcome, fault_if

# Operands arrive widened to int32; results are masked back to 8 bits.


def _no_flag():
    return jnp.zeros((), dtype=jnp.int32)


def alu_set(vx, vy):
    """8XY0 - Set: VX = VY."""
    return vy, _no_flag()


def alu_or(vx, vy):
    """8XY1 - Binary OR: VX |= VY."""
    return vx | vy, _no_flag()


def alu_and(vx, vy):
    """8XY2 - Binary AND: VX &= VY."""
    return vx & vy, _no_flag()


def alu_xor(vx, vy):
    """8XY3 - Logical XOR: VX ^= VY."""
    return vx ^ vy, _no_flag()


def alu_add(vx, vy):
    """8XY4 - Add: VX += VY, set carry flag."""
    result = vx + vy
    carry = jnp.astype(result > BYTE_MASK, jnp.int32)
    return result & BYTE_MASK, carry


def alu_sub_xy(vx, vy):
    """8XY5 - Subtract: VX -= VY, flag cleared on borrow."""
    not_borrow = jnp.astype(vx >= vy, jnp.int32)
    return (vx - vy) & BYTE_MASK, not_borrow


def alu_shift_right(vx, vy):
    """8XY6 - Shift right: VX >>= 1."""
    return vx >> 1, vx & 1


def alu_sub_yx(vx, vy):
    """8XY7 - Subtract: VX = VY - VX, flag cleared on borrow."""
    not_borrow = jnp.astype(vy >= vx, jnp.int32)
    return (vy - vx) & BYTE_MASK, not_borrow


def alu_shift_left(vx, vy):
    """8XYE - Shift left: VX <<= 1."""
    return (vx << 1) & BYTE_MASK, (vx >> 7) & 1


ALU_OPERATIONS = [
    alu_set, alu_or, alu_and, alu_xor, alu_add,
    alu_sub_xy, alu_shift_right, alu_sub_yx, alu_shift_left,
]

# Selector nibble -> index into ALU_OPERATIONS, -1 for undefined operations
ALU_TABLE = np.full(16, -1, dtype=np.int32)
ALU_TABLE[[0x0, 0x1, 0x2, 0x3, 0x4, 0x5, 0x6, 0x7, 0xE]] = np.arange(len(ALU_OPERATIONS))

# Operations that report carry/borrow/shifted-out bit in VF
WRITES_FLAG = np.array([False, False, False, False, True, True, True, True, True])


def execute_alu_operation(state: EmulatorState, instruction: DecodedInstruction):
    """8XYN - ALU operations dispatcher."""
    vx = jnp.astype(state.V[instruction.x], jnp.int32)
    vy = jnp.astype(state.V[instruction.y], jnp.int32)

    operation = jnp.asarray(ALU_TABLE)[instruction.n]
    defined = operation >= 0
    operation = jnp.maximum(operation, 0)

    result, flag = jax.lax.switch(operation, ALU_OPERATIONS, vx, vy)

    new_V = state.V.at[instruction.x].set(jnp.astype(result, jnp.uint8))
    # VF is written last so the flag wins when X is F
    new_V = jnp.where(
        jnp.asarray(WRITES_FLAG)[operation],
        new_V.at[FLAG_REGISTER].set(jnp.astype(flag, jnp.uint8)),
        new_V,
    )
    return state.replace(V=new_V), fault_if(jnp.logical_not(defined), Outcome.UNKNOWN_INSTRUCTION)
